"""Cardio log model: runs, rides, rows, walks."""
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel


class CardioType(str, Enum):
    RUN = "Run"
    CYCLE = "Cycle"
    ROW = "Row"
    WALK = "Walk"
    OTHER = "Other"


class CardioEntry(SQLModel, table=True):
    """One manually logged cardio session."""

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(default=1, index=True)
    cardio_type: CardioType = Field(index=True)
    date: datetime = Field(default_factory=datetime.now, index=True)
    distance_km: Optional[float] = None  # absent for e.g. stationary sessions
    duration_minutes: int
    avg_heart_rate: Optional[int] = None  # bpm
    notes: Optional[str] = None

    @property
    def pace_minutes_per_km(self) -> Optional[float]:
        """Average pace in min/km, or None without a positive distance."""
        if self.distance_km is None or self.distance_km <= 0:
            return None
        return self.duration_minutes / self.distance_km
