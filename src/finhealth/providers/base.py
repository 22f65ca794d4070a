"""
Health-data provider interfaces.

A sleep provider yields raw labelled sleep intervals, each tagged with the
id of the source that recorded it, for a requested time window. A daily
metrics provider yields the body metrics recorded in today's snapshot.
Providers are injected into the services; nothing in the analysis layer
talks to a provider directly.

Any failure to reach the underlying store or API is raised as
HealthDataFetchError. An empty list or a None field is a normal
"no data" answer.
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional, Protocol

from finhealth.analysis.sleep import RawSample


class HealthDataFetchError(RuntimeError):
    """Raised when a provider cannot fetch data (network, auth, DB)."""


class HealthDataProvider(Protocol):
    async def fetch_category_samples(
        self,
        category: str,
        window_start: datetime,
        window_end: datetime,
    ) -> List[RawSample]:
        """Return every sample of the category that overlaps [window_start, window_end)."""
        ...


@dataclass(frozen=True)
class DailyMetrics:
    weight_kg: Optional[float] = None  # most recent weigh-in
    resting_heart_rate: Optional[int] = None
    steps: Optional[int] = None


class DailyMetricsProvider(Protocol):
    async def fetch_daily_metrics(self, day: date) -> DailyMetrics:
        ...
