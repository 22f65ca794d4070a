"""
Shared FastAPI dependencies.

Providers and the Garmin client are built on first use and kept on
app.state, so a Garmin login happens once per process rather than once per
request. A failed build is not cached; the next request retries it.
"""
from fastapi import HTTPException, Request

from finhealth.config import get_settings
from finhealth.db.engine import get_engine
from finhealth.providers.base import HealthDataFetchError
from finhealth.providers.factory import (
    build_daily_metrics_provider,
    build_sleep_provider,
    connect_garmin,
)
from finhealth.services.sleep_service import SleepService


def fetch_failed(exc: HealthDataFetchError) -> HTTPException:
    return HTTPException(status_code=502, detail=f"Health data unavailable: {exc}")


async def _cached(request: Request, name: str, build):
    state = request.app.state
    if getattr(state, name, None) is None:
        try:
            setattr(state, name, await build())
        except HealthDataFetchError as exc:
            raise fetch_failed(exc)
    return getattr(state, name)


async def get_garmin_client(request: Request):
    """Connected GarminClient shared by every Garmin-backed dependency."""
    return await _cached(request, "garmin_client", connect_garmin)


async def get_sleep_service(request: Request) -> SleepService:
    """SleepService over the configured provider."""
    settings = get_settings()
    client = await get_garmin_client(request) if settings.sleep_provider == "garmin" else None

    async def build():
        return await build_sleep_provider(settings, get_engine(), client)

    provider = await _cached(request, "sleep_provider", build)
    return SleepService.from_settings(provider, settings)


async def get_daily_metrics_provider(request: Request):
    """Configured DailyMetricsProvider, or None when metrics are disabled."""
    settings = get_settings()
    if settings.daily_metrics_provider == "none":
        return None
    client = await get_garmin_client(request)

    async def build():
        return await build_daily_metrics_provider(settings, client)

    return await _cached(request, "daily_metrics_provider", build)
