"""
SampleStoreProvider: serves sleep samples previously imported into SQLite.

This is the default provider: samples from any platform (Apple Health
export, Garmin, manual entry) are stored as SleepSample rows with their
original source id, and read back here for the requested window.
"""
import asyncio
import logging
from datetime import datetime
from typing import List

from sqlmodel import Session, select

from finhealth.analysis.sleep import SLEEP_ANALYSIS, RawSample, SleepStage
from finhealth.models.sleep import SleepSample
from finhealth.providers.base import HealthDataFetchError

logger = logging.getLogger(__name__)


class SampleStoreProvider:
    """Reads SleepSample rows overlapping a window."""

    def __init__(self, engine, user_id: int = 1):
        """
        Args:
            engine: SQLAlchemy engine (SQLModel create_engine result).
            user_id: owner of the samples to read.
        """
        self.engine = engine
        self.user_id = user_id

    async def fetch_category_samples(
        self,
        category: str,
        window_start: datetime,
        window_end: datetime,
    ) -> List[RawSample]:
        if category != SLEEP_ANALYSIS:
            raise ValueError(f"Unsupported category: {category}")
        loop = asyncio.get_event_loop()
        try:
            return await loop.run_in_executor(
                None, self._fetch_sync, window_start, window_end
            )
        except Exception as exc:
            raise HealthDataFetchError(f"Sample store query failed: {exc}") from exc

    def _fetch_sync(self, window_start: datetime, window_end: datetime) -> List[RawSample]:
        with Session(self.engine) as s:
            rows = s.exec(
                select(SleepSample)
                .where(SleepSample.user_id == self.user_id)
                .where(SleepSample.start_time < window_end)
                .where(SleepSample.end_time > window_start)
                .order_by(SleepSample.start_time)
            ).all()

        samples = []
        for row in rows:
            try:
                stage = SleepStage(row.stage)
            except ValueError:
                logger.debug("Skipping sample %s with unknown stage %r", row.id, row.stage)
                continue
            samples.append(
                RawSample(
                    start=row.start_time,
                    end=row.end_time,
                    stage=stage,
                    source_id=row.source_id,
                )
            )
        return samples
