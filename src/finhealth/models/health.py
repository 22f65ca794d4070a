"""Daily health snapshot model."""
from datetime import date, datetime
from typing import Optional

from sqlmodel import Field, SQLModel


class HealthEntry(SQLModel, table=True):
    """One row per day: last night's sleep plus the latest body metrics."""

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(default=1, index=True)
    entry_date: date = Field(index=True)

    sleep_hours: Optional[float] = None
    weight_kg: Optional[float] = None
    resting_heart_rate: Optional[int] = None  # bpm
    steps: Optional[int] = None

    updated_at: datetime = Field(default_factory=datetime.utcnow)
