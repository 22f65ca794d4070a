"""
GarminSleepProvider: health-data provider backed by Garmin Connect.

Garmin files a night under the calendar date you wake up on, so a window
spanning two dates is covered by requesting both. Levels are filtered to
those overlapping the window.
"""
import logging
from datetime import datetime, timedelta
from typing import List

from finhealth.analysis.sleep import SLEEP_ANALYSIS, RawSample
from finhealth.garmin.normalizer import GARMIN_SOURCE_ID, normalize_sleep_levels
from finhealth.providers.base import HealthDataFetchError

logger = logging.getLogger(__name__)


class GarminSleepProvider:
    """Serves sleep samples straight from the Garmin Connect API."""

    def __init__(self, client, source_id: str = GARMIN_SOURCE_ID):
        """
        Args:
            client: GarminClient instance (or AsyncMock in tests).
            source_id: id tagged onto every sample.
        """
        self.client = client
        self.source_id = source_id

    async def fetch_category_samples(
        self,
        category: str,
        window_start: datetime,
        window_end: datetime,
    ) -> List[RawSample]:
        if category != SLEEP_ANALYSIS:
            raise ValueError(f"Unsupported category: {category}")

        samples: List[RawSample] = []
        day = window_start.date()
        while day <= window_end.date():
            date_str = day.strftime("%Y-%m-%d")
            try:
                raw = await self.client.get_sleep_data(date_str)
            except Exception as exc:
                raise HealthDataFetchError(
                    f"Garmin sleep fetch failed for {date_str}: {exc}"
                ) from exc
            samples.extend(normalize_sleep_levels(raw or {}, source_id=self.source_id))
            day += timedelta(days=1)

        in_window = [s for s in samples if s.start < window_end and s.end > window_start]
        logger.debug(
            "Garmin returned %d sleep levels, %d in window", len(samples), len(in_window)
        )
        return in_window
