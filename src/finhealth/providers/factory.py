"""Build the configured health-data providers."""
import logging
from typing import Optional, Tuple

from finhealth.providers.base import HealthDataFetchError
from finhealth.providers.store import SampleStoreProvider

logger = logging.getLogger(__name__)


async def connect_garmin(auth=None):
    """
    Return a connected GarminClient.

    Raises:
        HealthDataFetchError: if there are no saved tokens, the tokens were
            rejected, or Garmin could not be reached. The message says to
            re-run setup where that applies.
    """
    from finhealth.garmin.client import GarminClient

    client = GarminClient(auth=auth)
    try:
        await client.connect()
    except Exception as exc:
        raise HealthDataFetchError(f"Garmin connection failed: {exc}") from exc
    logger.info("Connected to Garmin")
    return client


def uses_garmin(settings) -> bool:
    return "garmin" in (
        settings.sleep_provider.strip().lower(),
        settings.daily_metrics_provider.strip().lower(),
    )


async def build_sleep_provider(settings, engine, garmin_client=None):
    """
    Return the provider named by settings.sleep_provider.

    "store"  → SampleStoreProvider over the app database (default)
    "garmin" → GarminSleepProvider over garmin_client, connecting one if
               none is given

    Raises:
        ValueError: for an unknown provider name.
        HealthDataFetchError: if the Garmin connection fails.
    """
    name = settings.sleep_provider.strip().lower()
    if name == "store":
        return SampleStoreProvider(engine, user_id=settings.user_id)
    if name == "garmin":
        from finhealth.garmin.sleep_provider import GarminSleepProvider

        client = garmin_client or await connect_garmin()
        return GarminSleepProvider(client, source_id=settings.garmin_fallback_source_id)
    raise ValueError(f"Unknown sleep provider: {settings.sleep_provider!r}")


async def build_daily_metrics_provider(settings, garmin_client=None):
    """
    Return the provider named by settings.daily_metrics_provider.

    "none"   → None; snapshots record sleep only
    "garmin" → GarminDailyMetricsProvider

    Raises:
        ValueError: for an unknown provider name.
        HealthDataFetchError: if the Garmin connection fails.
    """
    name = settings.daily_metrics_provider.strip().lower()
    if name == "none":
        return None
    if name == "garmin":
        from finhealth.garmin.daily_metrics import GarminDailyMetricsProvider

        return GarminDailyMetricsProvider(garmin_client or await connect_garmin())
    raise ValueError(f"Unknown daily metrics provider: {settings.daily_metrics_provider!r}")


async def build_providers(settings, engine) -> Tuple[object, Optional[object]]:
    """Sleep and daily metrics providers sharing at most one Garmin login."""
    client = await connect_garmin() if uses_garmin(settings) else None
    sleep_provider = await build_sleep_provider(settings, engine, client)
    metrics_provider = await build_daily_metrics_provider(settings, client)
    return sleep_provider, metrics_provider
