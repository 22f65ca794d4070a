"""Last-night sleep routes and raw sample ingest."""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, model_validator
from sqlmodel import Session

from finhealth.analysis.sleep import SleepBreakdown, SleepStage
from finhealth.analysis.sources import SourcePreference
from finhealth.api.deps import fetch_failed, get_sleep_service
from finhealth.config import get_settings
from finhealth.db.engine import get_session
from finhealth.models.sleep import SleepSample
from finhealth.providers.base import HealthDataFetchError
from finhealth.services.sleep_service import SleepService

router = APIRouter()


class SampleIn(BaseModel):
    start_time: datetime
    end_time: datetime
    stage: SleepStage
    source_id: str

    @model_validator(mode="after")
    def _check_order(self):
        if self.start_time > self.end_time:
            raise ValueError("start_time must not be after end_time")
        return self


class IngestResponse(BaseModel):
    stored: int


def _breakdown_payload(b: Optional[SleepBreakdown]) -> dict:
    return {"breakdown": b.to_dict() if b is not None else None}


@router.get("/last-night/total")
async def last_night_total(service: SleepService = Depends(get_sleep_service)):
    """Total hours asleep last night; null when nothing was tracked."""
    try:
        hours = await service.compute_total_sleep_hours(service.last_night())
    except HealthDataFetchError as exc:
        raise fetch_failed(exc)
    return {"hours": hours}


@router.get("/last-night/union")
async def last_night_union(
    source_id: Optional[str] = None,
    service: SleepService = Depends(get_sleep_service),
):
    """Per-stage breakdown with a union total, optionally for one source (blank = all)."""
    try:
        b = await service.compute_union_breakdown(service.last_night(), source_filter=source_id)
    except HealthDataFetchError as exc:
        raise fetch_failed(exc)
    return _breakdown_payload(b)


@router.get("/last-night/exclusive")
async def last_night_exclusive(service: SleepService = Depends(get_sleep_service)):
    """Mutually exclusive breakdown across every source."""
    try:
        b = await service.compute_exclusive_breakdown(service.last_night())
    except HealthDataFetchError as exc:
        raise fetch_failed(exc)
    return _breakdown_payload(b)


@router.get("/last-night/source")
async def last_night_source(service: SleepService = Depends(get_sleep_service)):
    """Preferred source detected among last night's samples."""
    try:
        sid = await service.detect_preferred_source(service.last_night())
    except HealthDataFetchError as exc:
        raise fetch_failed(exc)
    return {"source_id": sid}


@router.get("/last-night")
async def last_night(
    preference: Optional[SourcePreference] = None,
    custom_source_id: Optional[str] = None,
    service: SleepService = Depends(get_sleep_service),
):
    """Breakdown honouring the source preference (settings when omitted)."""
    settings = get_settings()
    if preference is None:
        preference = settings.sleep_source_preference
    if custom_source_id is None:
        custom_source_id = settings.custom_sleep_source_id
    try:
        b = await service.resolve_breakdown(
            service.last_night(), preference, custom_source_id=custom_source_id
        )
    except HealthDataFetchError as exc:
        raise fetch_failed(exc)
    return _breakdown_payload(b)


@router.post("/samples", response_model=IngestResponse)
def ingest_samples(samples: List[SampleIn], session: Session = Depends(get_session)):
    """Store raw samples for the store-backed provider."""
    user_id = get_settings().user_id
    for sample in samples:
        session.add(SleepSample(
            user_id=user_id,
            start_time=sample.start_time,
            end_time=sample.end_time,
            stage=sample.stage.value,
            source_id=sample.source_id,
        ))
    session.commit()
    return IngestResponse(stored=len(samples))
