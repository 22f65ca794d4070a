"""Daily health snapshot routes."""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlmodel import Session, select

from finhealth.api.deps import fetch_failed, get_daily_metrics_provider, get_sleep_service
from finhealth.config import get_settings
from finhealth.db.engine import get_engine, get_session
from finhealth.models.health import HealthEntry
from finhealth.providers.base import HealthDataFetchError
from finhealth.services.sleep_service import SleepService
from finhealth.services.snapshot import sync_today, upsert_health_entry

router = APIRouter()


class HealthEntryIn(BaseModel):
    """Manual values for one day; omitted or null fields are left as they are."""
    sleep_hours: Optional[float] = Field(default=None, ge=0, le=24)
    weight_kg: Optional[float] = Field(default=None, gt=0)
    resting_heart_rate: Optional[int] = Field(default=None, gt=0)
    steps: Optional[int] = Field(default=None, ge=0)


@router.post("/sync-today", response_model=HealthEntry)
async def sync_today_route(
    service: SleepService = Depends(get_sleep_service),
    metrics_provider=Depends(get_daily_metrics_provider),
    engine=Depends(get_engine),
):
    """Record last night's sleep and today's metrics into today's entry."""
    try:
        return await sync_today(
            engine,
            service,
            user_id=get_settings().user_id,
            metrics_provider=metrics_provider,
        )
    except HealthDataFetchError as exc:
        raise fetch_failed(exc)


@router.put("/entries/{entry_date}", response_model=HealthEntry)
def put_entry(entry_date: date, payload: HealthEntryIn, session: Session = Depends(get_session)):
    """Manually record metrics for a day, e.g. a weigh-in."""
    return upsert_health_entry(
        session, get_settings().user_id, entry_date, **payload.model_dump()
    )


@router.get("/entries", response_model=List[HealthEntry])
def list_entries(limit: int = 30, session: Session = Depends(get_session)):
    """Daily entries, newest first."""
    return session.exec(
        select(HealthEntry)
        .where(HealthEntry.user_id == get_settings().user_id)
        .order_by(HealthEntry.entry_date.desc())
        .limit(limit)
    ).all()
