"""Cardio log routes with PR detection on create/update."""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, model_validator
from sqlmodel import Session

from finhealth.analysis.running_prs import DistancePR, PRLabel, pr_holder_ids, pr_summary
from finhealth.api.deps import fetch_failed, get_garmin_client
from finhealth.config import get_settings
from finhealth.db.engine import get_session
from finhealth.models.cardio import CardioEntry, CardioType
from finhealth.providers.base import HealthDataFetchError
from finhealth.services.cardio_import import import_recent_cardio
from finhealth.services.cardio_store import CardioEntryNotFoundError, CardioStore

router = APIRouter()


class CardioIn(BaseModel):
    cardio_type: CardioType
    date: Optional[datetime] = None
    distance_km: Optional[float] = Field(default=None, gt=0)
    duration_minutes: int = Field(gt=0)
    avg_heart_rate: Optional[int] = Field(default=None, gt=0)
    notes: Optional[str] = None


class CardioUpdate(BaseModel):
    cardio_type: Optional[CardioType] = None
    date: Optional[datetime] = None
    distance_km: Optional[float] = Field(default=None, gt=0)
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    avg_heart_rate: Optional[int] = Field(default=None, gt=0)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _required_fields_not_null(self):
        # Omitting a field leaves it unchanged; null would clear a NOT NULL column
        for name in ("cardio_type", "date", "duration_minutes"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class CardioOut(BaseModel):
    id: int
    cardio_type: CardioType
    date: datetime
    distance_km: Optional[float]
    duration_minutes: int
    avg_heart_rate: Optional[int]
    notes: Optional[str]
    pace_minutes_per_km: Optional[float]
    is_pr: bool = False


class CardioWriteResponse(BaseModel):
    entry: CardioOut
    new_prs: List[PRLabel]


class DistancePROut(BaseModel):
    label: PRLabel
    target_distance_km: float
    estimated_minutes: float
    pace_minutes_per_km: float
    source_record_id: Optional[int]


class PRSummaryOut(BaseModel):
    distance_prs: List[DistancePROut]
    longest_run: Optional[CardioOut]
    fastest_pace: Optional[CardioOut]


class CardioImportResponse(BaseModel):
    imported: int
    entries: List[CardioOut]


def _store(session: Session = Depends(get_session)) -> CardioStore:
    return CardioStore(session, user_id=get_settings().user_id)


def _out(entry: CardioEntry, is_pr: bool = False) -> CardioOut:
    return CardioOut(
        id=entry.id,
        cardio_type=entry.cardio_type,
        date=entry.date,
        distance_km=entry.distance_km,
        duration_minutes=entry.duration_minutes,
        avg_heart_rate=entry.avg_heart_rate,
        notes=entry.notes,
        pace_minutes_per_km=entry.pace_minutes_per_km,
        is_pr=is_pr,
    )


def _distance_pr_out(label: PRLabel, pr: DistancePR) -> DistancePROut:
    return DistancePROut(
        label=label,
        target_distance_km=pr.target_distance_km,
        estimated_minutes=pr.estimated_minutes,
        pace_minutes_per_km=pr.pace_minutes_per_km,
        source_record_id=pr.source_record_id,
    )


@router.get("/", response_model=List[CardioOut])
def list_cardio(limit: int = 50, offset: int = 0, store: CardioStore = Depends(_store)):
    """List entries newest first, flagging those that hold a PR."""
    holders = pr_holder_ids(store.list_entries())
    return [_out(e, e.id in holders) for e in store.list_entries(limit=limit, offset=offset)]


@router.get("/prs", response_model=PRSummaryOut)
def running_prs(store: CardioStore = Depends(_store)):
    """Current running records: distance PRs, longest run, fastest pace."""
    summary = pr_summary(store.list_entries())
    return PRSummaryOut(
        distance_prs=[
            _distance_pr_out(label, pr)
            for label, pr in summary.distance_prs.items()
            if pr is not None
        ],
        longest_run=_out(summary.longest_run, True) if summary.longest_run else None,
        fastest_pace=_out(summary.fastest_pace, True) if summary.fastest_pace else None,
    )


@router.post("/import", response_model=CardioImportResponse)
async def import_cardio(
    days_back: Optional[int] = Query(default=None, gt=0),
    client=Depends(get_garmin_client),
    store: CardioStore = Depends(_store),
):
    """Import recent Garmin cardio sessions, skipping ones already logged."""
    try:
        added = await import_recent_cardio(
            client, store, days_back=days_back or get_settings().cardio_import_days
        )
    except HealthDataFetchError as exc:
        raise fetch_failed(exc)
    holders = pr_holder_ids(store.list_entries())
    return CardioImportResponse(
        imported=len(added),
        entries=[_out(e, e.id in holders) for e in added],
    )


@router.get("/{entry_id}", response_model=CardioOut)
def get_cardio(entry_id: int, store: CardioStore = Depends(_store)):
    try:
        entry = store.get(entry_id)
    except CardioEntryNotFoundError:
        raise HTTPException(status_code=404, detail="Cardio entry not found")
    return _out(entry, entry.id in pr_holder_ids(store.list_entries()))


@router.post("/", response_model=CardioWriteResponse)
def create_cardio(payload: CardioIn, store: CardioStore = Depends(_store)):
    """Log a session; the response lists any PRs it set."""
    fields = payload.model_dump(exclude_none=True)
    entry, labels = store.add(CardioEntry(**fields))
    holders = pr_holder_ids(store.list_entries())
    return CardioWriteResponse(entry=_out(entry, entry.id in holders), new_prs=labels)


@router.put("/{entry_id}", response_model=CardioWriteResponse)
def update_cardio(entry_id: int, payload: CardioUpdate, store: CardioStore = Depends(_store)):
    """Edit a session; PRs are checked against every other entry."""
    try:
        entry, labels = store.update(entry_id, payload.model_dump(exclude_unset=True))
    except CardioEntryNotFoundError:
        raise HTTPException(status_code=404, detail="Cardio entry not found")
    holders = pr_holder_ids(store.list_entries())
    return CardioWriteResponse(entry=_out(entry, entry.id in holders), new_prs=labels)


@router.delete("/{entry_id}")
def delete_cardio(entry_id: int, store: CardioStore = Depends(_store)):
    try:
        store.delete(entry_id)
    except CardioEntryNotFoundError:
        raise HTTPException(status_code=404, detail="Cardio entry not found")
    return {"deleted": entry_id}
