"""FastAPI application factory."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlmodel import SQLModel

from finhealth.api.routes import cardio, health, sleep
from finhealth.config import get_settings
from finhealth.db.engine import get_engine

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Build and return the FastAPI app with the sleep, cardio and health routers."""

    engine = get_engine()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        SQLModel.metadata.create_all(engine)
        settings = get_settings()
        logger.info(
            "Sleep provider=%s preference=%s day boundary=%02d:00",
            settings.sleep_provider,
            settings.sleep_source_preference.value,
            settings.day_boundary_hour,
        )
        yield

    app = FastAPI(
        title="FinHealth API",
        description="Multi-source sleep breakdowns, daily snapshots and running PRs",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(sleep.router, prefix="/sleep", tags=["sleep"])
    app.include_router(cardio.router, prefix="/cardio", tags=["cardio"])
    app.include_router(health.router, prefix="/health", tags=["health"])

    return app


# uvicorn finhealth.api.main:app
app = create_app()
