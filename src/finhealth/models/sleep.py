"""Raw sleep sample model, as imported from a health-data platform."""
from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel


class SleepSample(SQLModel, table=True):
    """
    One labelled sleep interval from one source.

    Rows are read back by SampleStoreProvider and never modified by the
    analysis layer. Samples from different sources may overlap freely.
    """

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(default=1, index=True)
    start_time: datetime = Field(index=True)  # local time
    end_time: datetime = Field(index=True)
    stage: str  # SleepStage value: "rem", "deep", "core", "unspecified", "in_bed", "awake"
    source_id: str = Field(index=True)  # e.g. "com.garmin.connect", "com.apple.health.<uuid>"

    imported_at: datetime = Field(default_factory=datetime.utcnow)
