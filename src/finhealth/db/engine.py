"""
SQLModel engine singleton and session dependency.

Tables are created on first use; the schema has no columns that need
migrating yet.
"""
from typing import Generator

from sqlmodel import Session, SQLModel, create_engine

from finhealth.config import get_settings

_engine = None


def _register_models() -> None:
    """Import every table so SQLModel.metadata is complete before create_all."""
    from finhealth.models.cardio import CardioEntry  # noqa
    from finhealth.models.health import HealthEntry  # noqa
    from finhealth.models.sleep import SleepSample  # noqa


def get_engine():
    """Return the module-level engine, creating it on first call."""
    global _engine
    if _engine is None:
        url = get_settings().database_url
        # Sessions cross threads (executor reads, FastAPI workers)
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        _engine = create_engine(url, connect_args=connect_args)
        _register_models()
        SQLModel.metadata.create_all(_engine)
    return _engine


def get_session() -> Generator[Session, None, None]:
    """FastAPI dependency that yields a DB session."""
    with Session(get_engine()) as session:
        yield session
