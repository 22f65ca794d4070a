"""Integration tests for the daily health snapshot."""
from datetime import date, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlmodel import Session, select

from finhealth.models.health import HealthEntry
from finhealth.providers.base import DailyMetrics, HealthDataFetchError
from finhealth.services.snapshot import sync_today, upsert_health_entry

NOW = datetime(2025, 1, 15, 13, 0)


def mock_service(hours=None, side_effect=None):
    service = MagicMock()
    service.last_night = MagicMock(return_value=(datetime(2025, 1, 14, 12), datetime(2025, 1, 15, 12)))
    service.compute_total_sleep_hours = AsyncMock(return_value=hours, side_effect=side_effect)
    return service


def mock_metrics(metrics=None, side_effect=None):
    provider = MagicMock()
    provider.fetch_daily_metrics = AsyncMock(return_value=metrics, side_effect=side_effect)
    return provider


def entries(engine):
    with Session(engine) as s:
        return s.exec(select(HealthEntry)).all()


class TestSyncToday:
    @pytest.mark.asyncio
    async def test_creates_entry(self, engine):
        entry = await sync_today(engine, mock_service(7.5), now=NOW)
        assert entry.entry_date == date(2025, 1, 15)
        assert entry.sleep_hours == 7.5

    @pytest.mark.asyncio
    async def test_uses_last_night_window(self, engine):
        service = mock_service(7.5)
        await sync_today(engine, service, now=NOW)
        service.last_night.assert_called_once_with(NOW)
        service.compute_total_sleep_hours.assert_awaited_once_with(service.last_night.return_value)

    @pytest.mark.asyncio
    async def test_second_run_updates_same_row(self, engine):
        await sync_today(engine, mock_service(7.5), now=NOW)
        await sync_today(engine, mock_service(8.0), now=NOW)
        rows = entries(engine)
        assert len(rows) == 1
        assert rows[0].sleep_hours == 8.0

    @pytest.mark.asyncio
    async def test_no_sleep_keeps_existing_value(self, engine):
        await sync_today(engine, mock_service(7.5), now=NOW)
        entry = await sync_today(engine, mock_service(None), now=NOW)
        assert entry.sleep_hours == 7.5

    @pytest.mark.asyncio
    async def test_other_fields_untouched(self, engine):
        with Session(engine) as s:
            s.add(HealthEntry(entry_date=date(2025, 1, 15), weight_kg=72.4))
            s.commit()
        entry = await sync_today(engine, mock_service(6.0), now=NOW)
        assert entry.weight_kg == 72.4
        assert entry.sleep_hours == 6.0

    @pytest.mark.asyncio
    async def test_fetch_error_writes_nothing(self, engine):
        with pytest.raises(HealthDataFetchError):
            await sync_today(engine, mock_service(side_effect=HealthDataFetchError("x")), now=NOW)
        assert entries(engine) == []


# ─── Daily metrics ────────────────────────────────────────────────────────────

class TestSyncTodayMetrics:
    @pytest.mark.asyncio
    async def test_writes_every_field(self, engine):
        metrics = mock_metrics(DailyMetrics(weight_kg=70.1, resting_heart_rate=51, steps=10234))
        entry = await sync_today(engine, mock_service(7.0), now=NOW, metrics_provider=metrics)

        metrics.fetch_daily_metrics.assert_awaited_once_with(date(2025, 1, 15))
        assert entry.sleep_hours == 7.0
        assert entry.weight_kg == 70.1
        assert entry.resting_heart_rate == 51
        assert entry.steps == 10234

    @pytest.mark.asyncio
    async def test_missing_metric_keeps_recorded_value(self, engine):
        with Session(engine) as s:
            s.add(HealthEntry(entry_date=date(2025, 1, 15), weight_kg=72.4))
            s.commit()
        metrics = mock_metrics(DailyMetrics(steps=400))
        entry = await sync_today(engine, mock_service(None), now=NOW, metrics_provider=metrics)
        assert entry.weight_kg == 72.4
        assert entry.steps == 400

    @pytest.mark.asyncio
    async def test_metrics_error_writes_nothing(self, engine):
        metrics = mock_metrics(side_effect=HealthDataFetchError("garmin down"))
        with pytest.raises(HealthDataFetchError):
            await sync_today(engine, mock_service(7.0), now=NOW, metrics_provider=metrics)
        assert entries(engine) == []


class TestUpsertHealthEntry:
    def test_creates_then_updates(self, test_session):
        upsert_health_entry(test_session, 1, date(2025, 1, 15), weight_kg=70.0)
        entry = upsert_health_entry(test_session, 1, date(2025, 1, 15), steps=5000)
        assert entry.weight_kg == 70.0
        assert entry.steps == 5000
        assert len(test_session.exec(select(HealthEntry)).all()) == 1

    def test_rows_per_user(self, test_session):
        upsert_health_entry(test_session, 1, date(2025, 1, 15), steps=1)
        upsert_health_entry(test_session, 2, date(2025, 1, 15), steps=2)
        assert len(test_session.exec(select(HealthEntry)).all()) == 2

    def test_unknown_field_rejected(self, test_session):
        with pytest.raises(ValueError, match="mood"):
            upsert_health_entry(test_session, 1, date(2025, 1, 15), mood=5)
