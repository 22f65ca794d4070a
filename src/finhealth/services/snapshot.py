"""
Daily health snapshot: last night's sleep plus the latest body metrics,
written into today's HealthEntry.

Only fields that have a value are written, so a night with no sleep data
or a day without a weigh-in never wipes a value recorded earlier.
"""
import asyncio
import logging
from datetime import date, datetime
from typing import Optional

from sqlmodel import Session, select

from finhealth.models.health import HealthEntry
from finhealth.providers.base import DailyMetrics

logger = logging.getLogger(__name__)

SNAPSHOT_FIELDS = ("sleep_hours", "weight_kg", "resting_heart_rate", "steps")


def upsert_health_entry(session: Session, user_id: int, day: date, **fields) -> HealthEntry:
    """
    Create or update the entry for (user_id, day), skipping None values.

    Commits and refreshes; the caller owns the session.
    """
    unknown = set(fields) - set(SNAPSHOT_FIELDS)
    if unknown:
        raise ValueError(f"Not a snapshot field: {', '.join(sorted(unknown))}")

    entry = session.exec(
        select(HealthEntry)
        .where(HealthEntry.user_id == user_id)
        .where(HealthEntry.entry_date == day)
    ).first()
    if entry is None:
        entry = HealthEntry(user_id=user_id, entry_date=day)

    for name, value in fields.items():
        if value is not None:
            setattr(entry, name, value)
    entry.updated_at = datetime.utcnow()

    session.add(entry)
    session.commit()
    session.refresh(entry)
    return entry


async def _no_metrics(day: date) -> DailyMetrics:
    return DailyMetrics()


async def sync_today(
    engine,
    sleep_service,
    user_id: int = 1,
    now: Optional[datetime] = None,
    metrics_provider=None,
) -> HealthEntry:
    """
    Upsert today's HealthEntry with last night's sleep and today's metrics.

    Args:
        engine: SQLAlchemy engine.
        sleep_service: SleepService used to compute the total.
        user_id: owner of the entry.
        now: reference time; defaults to datetime.now().
        metrics_provider: DailyMetricsProvider, or None to record sleep only.

    Returns:
        The persisted HealthEntry.

    Raises:
        HealthDataFetchError: if either provider fails (nothing is written).
    """
    now = now or datetime.now()
    today = now.date()
    fetch_metrics = metrics_provider.fetch_daily_metrics if metrics_provider else _no_metrics

    sleep_hours, metrics = await asyncio.gather(
        sleep_service.compute_total_sleep_hours(sleep_service.last_night(now)),
        fetch_metrics(today),
    )

    with Session(engine) as s:
        entry = upsert_health_entry(
            s,
            user_id,
            today,
            sleep_hours=sleep_hours,
            weight_kg=metrics.weight_kg,
            resting_heart_rate=metrics.resting_heart_rate,
            steps=metrics.steps,
        )

    logger.info(
        "Health snapshot for %s: sleep=%s h weight=%s kg rhr=%s steps=%s",
        entry.entry_date.isoformat(),
        "n/a" if sleep_hours is None else f"{sleep_hours:.2f}",
        metrics.weight_kg,
        metrics.resting_heart_rate,
        metrics.steps,
    )
    return entry
