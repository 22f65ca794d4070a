"""Tests for SQLModel table definitions."""
from datetime import date, datetime

import pytest
from sqlmodel import select

from finhealth.models.cardio import CardioEntry, CardioType
from finhealth.models.health import HealthEntry
from finhealth.models.sleep import SleepSample


class TestCardioEntry:
    def test_round_trip(self, test_session):
        entry = CardioEntry(
            cardio_type=CardioType.RUN,
            date=datetime(2025, 1, 15, 7, 0),
            distance_km=10.0,
            duration_minutes=50,
            avg_heart_rate=152,
        )
        test_session.add(entry)
        test_session.commit()

        loaded = test_session.exec(select(CardioEntry)).one()
        assert loaded.id is not None
        assert loaded.cardio_type == CardioType.RUN
        assert loaded.user_id == 1
        assert loaded.pace_minutes_per_km == pytest.approx(5.0)

    def test_distance_optional(self, test_session):
        test_session.add(CardioEntry(cardio_type=CardioType.ROW, duration_minutes=30))
        test_session.commit()
        loaded = test_session.exec(select(CardioEntry)).one()
        assert loaded.distance_km is None
        assert loaded.pace_minutes_per_km is None
        assert isinstance(loaded.date, datetime)

    def test_zero_distance_has_no_pace(self):
        assert CardioEntry(cardio_type=CardioType.RUN, distance_km=0.0, duration_minutes=10).pace_minutes_per_km is None


class TestSleepSample:
    def test_round_trip(self, test_session):
        test_session.add(SleepSample(
            start_time=datetime(2025, 1, 15, 0, 0),
            end_time=datetime(2025, 1, 15, 2, 0),
            stage="core",
            source_id="com.garmin.connect",
        ))
        test_session.commit()
        loaded = test_session.exec(select(SleepSample)).one()
        assert loaded.stage == "core"
        assert loaded.imported_at is not None


class TestHealthEntry:
    def test_fields_default_to_none(self, test_session):
        test_session.add(HealthEntry(entry_date=date(2025, 1, 15)))
        test_session.commit()
        loaded = test_session.exec(select(HealthEntry)).one()
        assert loaded.sleep_hours is None
        assert loaded.steps is None
