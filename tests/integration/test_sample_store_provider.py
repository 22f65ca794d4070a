"""Integration tests for SampleStoreProvider against in-memory SQLite."""
from datetime import datetime
from unittest.mock import MagicMock

import pytest
from sqlmodel import Session

from finhealth.analysis.sleep import SLEEP_ANALYSIS, SleepStage
from finhealth.models.sleep import SleepSample
from finhealth.providers.base import HealthDataFetchError
from finhealth.providers.store import SampleStoreProvider

WINDOW = (datetime(2025, 1, 14, 12, 0), datetime(2025, 1, 15, 12, 0))


def add(session, start, end, stage="core", source="com.garmin.connect", user_id=1):
    session.add(SleepSample(
        user_id=user_id, start_time=start, end_time=end, stage=stage, source_id=source,
    ))


@pytest.fixture
def seeded(engine):
    with Session(engine) as s:
        add(s, datetime(2025, 1, 15, 1, 0), datetime(2025, 1, 15, 2, 0), "deep")
        add(s, datetime(2025, 1, 14, 23, 0), datetime(2025, 1, 15, 1, 0), "core", "com.apple.health.X")
        # Straddles the window start
        add(s, datetime(2025, 1, 14, 11, 0), datetime(2025, 1, 14, 13, 0), "unspecified")
        # Ends exactly at the window start: outside
        add(s, datetime(2025, 1, 14, 10, 0), datetime(2025, 1, 14, 12, 0), "core")
        # Next night: outside
        add(s, datetime(2025, 1, 15, 23, 0), datetime(2025, 1, 16, 6, 0), "core")
        add(s, datetime(2025, 1, 15, 3, 0), datetime(2025, 1, 15, 4, 0), "mystery")
        add(s, datetime(2025, 1, 15, 3, 0), datetime(2025, 1, 15, 4, 0), "rem", user_id=2)
        s.commit()


class TestSampleStoreProvider:
    @pytest.mark.asyncio
    async def test_returns_overlapping_samples_in_start_order(self, engine, seeded):
        samples = await SampleStoreProvider(engine).fetch_category_samples(SLEEP_ANALYSIS, *WINDOW)
        assert [s.stage for s in samples] == [SleepStage.UNSPECIFIED, SleepStage.CORE, SleepStage.DEEP]

    @pytest.mark.asyncio
    async def test_keeps_source_ids(self, engine, seeded):
        samples = await SampleStoreProvider(engine).fetch_category_samples(SLEEP_ANALYSIS, *WINDOW)
        assert samples[1].source_id == "com.apple.health.X"

    @pytest.mark.asyncio
    async def test_samples_not_clipped(self, engine, seeded):
        samples = await SampleStoreProvider(engine).fetch_category_samples(SLEEP_ANALYSIS, *WINDOW)
        assert samples[0].start == datetime(2025, 1, 14, 11, 0)

    @pytest.mark.asyncio
    async def test_scoped_to_user(self, engine, seeded):
        samples = await SampleStoreProvider(engine, user_id=2).fetch_category_samples(
            SLEEP_ANALYSIS, *WINDOW
        )
        assert [s.stage for s in samples] == [SleepStage.REM]

    @pytest.mark.asyncio
    async def test_empty_store(self, engine):
        assert await SampleStoreProvider(engine).fetch_category_samples(SLEEP_ANALYSIS, *WINDOW) == []

    @pytest.mark.asyncio
    async def test_unsupported_category(self, engine):
        with pytest.raises(ValueError):
            await SampleStoreProvider(engine).fetch_category_samples("steps", *WINDOW)

    @pytest.mark.asyncio
    async def test_database_error_becomes_fetch_error(self):
        provider = SampleStoreProvider(MagicMock())
        provider._fetch_sync = MagicMock(side_effect=RuntimeError("disk I/O error"))
        with pytest.raises(HealthDataFetchError):
            await provider.fetch_category_samples(SLEEP_ANALYSIS, *WINDOW)
