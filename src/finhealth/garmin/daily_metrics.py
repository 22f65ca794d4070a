"""
GarminDailyMetricsProvider: steps, resting HR and weight from Garmin Connect.

Weight is the latest weigh-in in the lookback window, not necessarily one
taken on the requested day.
"""
import asyncio
import logging
from datetime import date, timedelta

from finhealth.garmin.normalizer import latest_weight_kg, normalize_daily_stats
from finhealth.providers.base import DailyMetrics, HealthDataFetchError

logger = logging.getLogger(__name__)


class GarminDailyMetricsProvider:

    def __init__(self, client, weight_lookback_days: int = 30):
        """
        Args:
            client: GarminClient instance (or AsyncMock in tests).
            weight_lookback_days: how far back to look for a weigh-in.
        """
        self.client = client
        self.weight_lookback_days = weight_lookback_days

    async def fetch_daily_metrics(self, day: date) -> DailyMetrics:
        day_str = day.isoformat()
        since_str = (day - timedelta(days=self.weight_lookback_days)).isoformat()
        try:
            stats, body = await asyncio.gather(
                self.client.get_stats(day_str),
                self.client.get_body_composition(since_str, day_str),
            )
        except Exception as exc:
            raise HealthDataFetchError(
                f"Garmin daily metrics fetch failed for {day_str}: {exc}"
            ) from exc

        rhr, steps = normalize_daily_stats(stats)
        metrics = DailyMetrics(
            weight_kg=latest_weight_kg(body),
            resting_heart_rate=rhr,
            steps=steps,
        )
        logger.debug("Garmin daily metrics for %s: %s", day_str, metrics)
        return metrics
