"""Integration tests for importing Garmin cardio sessions into the log."""
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from finhealth.models.cardio import CardioEntry, CardioType
from finhealth.providers.base import HealthDataFetchError
from finhealth.services.cardio_import import import_recent_cardio
from finhealth.services.cardio_store import CardioStore

NOW = datetime(2025, 3, 31, 12, 0)


def activity(days_ago: int, type_key: str = "running", activity_id: int = 0) -> dict:
    start = NOW - timedelta(days=days_ago, hours=4)
    return {
        "activityId": activity_id or days_ago,
        "activityName": f"Activity {days_ago}",
        "activityType": {"typeKey": type_key},
        "startTimeLocal": start.strftime("%Y-%m-%d %H:%M:%S"),
        "duration": 1800.0,
        "distance": 5000.0,
        "averageHR": 150.0,
    }


def paged_client(activities):
    """AsyncMock client serving activities newest first, in pages."""
    client = MagicMock()
    client.get_activities = AsyncMock(
        side_effect=lambda start, limit: activities[start:start + limit]
    )
    return client


@pytest.fixture
def store(test_session):
    return CardioStore(test_session)


class TestImportRecentCardio:
    @pytest.mark.asyncio
    async def test_imports_within_window(self, store):
        client = paged_client([activity(1), activity(5, "cycling"), activity(40)])
        added = await import_recent_cardio(client, store, days_back=30, now=NOW)

        assert [e.cardio_type for e in added] == [CardioType.RUN, CardioType.CYCLE]
        assert len(store.list_entries()) == 2

    @pytest.mark.asyncio
    async def test_skips_non_cardio(self, store):
        client = paged_client([activity(1, "strength_training"), activity(2)])
        added = await import_recent_cardio(client, store, now=NOW)
        assert [e.notes for e in added] == ["Activity 2"]

    @pytest.mark.asyncio
    async def test_second_import_adds_nothing(self, store):
        client = paged_client([activity(1), activity(2)])
        await import_recent_cardio(client, store, now=NOW)
        assert await import_recent_cardio(client, store, now=NOW) == []
        assert len(store.list_entries()) == 2

    @pytest.mark.asyncio
    async def test_keeps_manual_entry(self, store):
        manual = CardioEntry(
            cardio_type=CardioType.RUN,
            date=NOW - timedelta(days=1, hours=4),
            distance_km=5.0,
            duration_minutes=31,
            notes="typed in",
        )
        store.add(manual)
        added = await import_recent_cardio(paged_client([activity(1)]), store, now=NOW)
        assert added == []
        assert store.list_entries()[0].notes == "typed in"

    @pytest.mark.asyncio
    async def test_pages_until_cutoff(self, store):
        activities = [activity(d) for d in range(1, 8)]
        client = paged_client(activities)
        added = await import_recent_cardio(client, store, days_back=5, now=NOW, page_size=2)

        assert len(added) == 4
        starts = [call.args[0] for call in client.get_activities.await_args_list]
        assert starts == [0, 2, 4]

    @pytest.mark.asyncio
    async def test_short_page_stops(self, store):
        client = paged_client([activity(1)])
        await import_recent_cardio(client, store, now=NOW, page_size=10)
        client.get_activities.assert_awaited_once_with(0, 10)

    @pytest.mark.asyncio
    async def test_fetch_error_wrapped(self, store):
        client = MagicMock()
        client.get_activities = AsyncMock(side_effect=ConnectionError("boom"))
        with pytest.raises(HealthDataFetchError, match="boom"):
            await import_recent_cardio(client, store, now=NOW)
        assert store.list_entries() == []
