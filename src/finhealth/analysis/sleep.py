"""
Sleep stage aggregation over one night of raw, multi-source samples.

Three views are derived from the same raw samples:

  total     : asleep stages merged together, in hours
  union     : each stage merged on its own; the total is the measure of the
              union of all stage sets, so per-stage percentages may sum to
              more than 100% when sources disagree about the same instant
  exclusive : every instant assigned to exactly one stage by the fixed
              priority Deep > REM > Core > Unspecified, so the stages always
              sum to the total

All views cover the noon-anchored analysis window
[yesterday 12:00, today 12:00) in local time, which keeps a night that
crosses midnight in one piece.

Every function returns None for "no data"; a zero total is never reported.
"""
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from finhealth.analysis.intervals import (
    TimeInterval,
    make_interval,
    merge_intervals,
    overlaps_any,
    partition_boundaries,
    sum_seconds,
)


class SleepStage(str, Enum):
    REM = "rem"
    DEEP = "deep"
    CORE = "core"
    UNSPECIFIED = "unspecified"
    IN_BED = "in_bed"
    AWAKE = "awake"


ASLEEP_STAGES = (SleepStage.REM, SleepStage.DEEP, SleepStage.CORE, SleepStage.UNSPECIFIED)

# Exclusive classification order: first stage overlapping a slice wins
EXCLUSIVE_PRIORITY = (SleepStage.DEEP, SleepStage.REM, SleepStage.CORE, SleepStage.UNSPECIFIED)

# Category name passed to health-data providers
SLEEP_ANALYSIS = "sleep_analysis"


@dataclass(frozen=True)
class RawSample:
    """One labelled sleep interval as reported by a health-data source."""

    start: datetime
    end: datetime
    stage: SleepStage
    source_id: str


@dataclass(frozen=True)
class SleepBreakdown:
    """Per-stage seconds plus the total they are measured against."""

    rem_seconds: float
    deep_seconds: float
    core_seconds: float
    unspecified_seconds: float
    total_seconds: float

    def _pct(self, seconds: float) -> float:
        return seconds / self.total_seconds if self.total_seconds > 0 else 0.0

    @property
    def rem_pct(self) -> float:
        return self._pct(self.rem_seconds)

    @property
    def deep_pct(self) -> float:
        return self._pct(self.deep_seconds)

    @property
    def core_pct(self) -> float:
        return self._pct(self.core_seconds)

    @property
    def unspecified_pct(self) -> float:
        return self._pct(self.unspecified_seconds)

    @property
    def rem_hours(self) -> float:
        return self.rem_seconds / 3600.0

    @property
    def deep_hours(self) -> float:
        return self.deep_seconds / 3600.0

    @property
    def core_hours(self) -> float:
        return self.core_seconds / 3600.0

    @property
    def unspecified_hours(self) -> float:
        return self.unspecified_seconds / 3600.0

    @property
    def total_hours(self) -> float:
        return self.total_seconds / 3600.0

    def to_dict(self) -> Dict[str, float]:
        """Flat JSON-friendly dict with seconds, hours and pct for each stage."""
        out: Dict[str, float] = {}
        for name in ("rem", "deep", "core", "unspecified"):
            out[f"{name}_seconds"] = getattr(self, f"{name}_seconds")
            out[f"{name}_hours"] = getattr(self, f"{name}_hours")
            out[f"{name}_pct"] = getattr(self, f"{name}_pct")
        out["total_seconds"] = self.total_seconds
        out["total_hours"] = self.total_hours
        return out


# ─── Window ───────────────────────────────────────────────────────────────────

def analysis_window(now: datetime, boundary_hour: int = 12) -> Tuple[datetime, datetime]:
    """
    Return the "last night" window [yesterday boundary, today boundary).

    Args:
        now: reference time (local, naive).
        boundary_hour: hour of day the window is anchored on (default noon).
    """
    end = datetime.combine(now.date(), time(hour=boundary_hour))
    start = end - timedelta(days=1)
    return start, end


# ─── Classification ───────────────────────────────────────────────────────────

def stage_intervals(samples: Iterable[RawSample]) -> Dict[SleepStage, List[TimeInterval]]:
    """
    Group asleep samples into raw (unmerged) intervals per stage.

    InBed and Awake samples are skipped; malformed samples are dropped.
    """
    buckets: Dict[SleepStage, List[TimeInterval]] = {stage: [] for stage in ASLEEP_STAGES}
    for s in samples:
        if s.stage not in buckets:
            continue
        iv = make_interval(s.start, s.end)
        if iv is not None:
            buckets[s.stage].append(iv)
    return buckets


def merged_stage_intervals(samples: Iterable[RawSample]) -> Dict[SleepStage, List[TimeInterval]]:
    """Per-stage interval sets, each merged independently."""
    return {stage: merge_intervals(ivs) for stage, ivs in stage_intervals(samples).items()}


# ─── Aggregates ───────────────────────────────────────────────────────────────

def total_asleep_hours(samples: Iterable[RawSample]) -> Optional[float]:
    """
    Hours asleep across all asleep stages, overlap-safe.

    Returns:
        Hours, or None if nothing asleep was recorded.
    """
    all_asleep: List[TimeInterval] = []
    for ivs in stage_intervals(samples).values():
        all_asleep.extend(ivs)
    total = sum_seconds(merge_intervals(all_asleep))
    if total <= 0:
        return None
    return total / 3600.0


def union_breakdown(
    samples: Iterable[RawSample],
    source_id: Optional[str] = None,
) -> Optional[SleepBreakdown]:
    """
    Per-stage breakdown with the union of all stages as the total.

    Args:
        samples: raw samples for the window.
        source_id: if given, only samples from this exact source are used.

    Returns:
        SleepBreakdown, or None if the total is zero.
    """
    if source_id is not None:
        samples = [s for s in samples if s.source_id == source_id]

    merged = merged_stage_intervals(samples)

    combined: List[TimeInterval] = []
    for ivs in merged.values():
        combined.extend(ivs)
    total = sum_seconds(merge_intervals(combined))
    if total <= 0:
        return None

    return SleepBreakdown(
        rem_seconds=sum_seconds(merged[SleepStage.REM]),
        deep_seconds=sum_seconds(merged[SleepStage.DEEP]),
        core_seconds=sum_seconds(merged[SleepStage.CORE]),
        unspecified_seconds=sum_seconds(merged[SleepStage.UNSPECIFIED]),
        total_seconds=total,
    )


def exclusive_breakdown(samples: Iterable[RawSample]) -> Optional[SleepBreakdown]:
    """
    Mutually exclusive breakdown over all sources combined.

    The boundaries of every merged stage set cut the night into atomic
    slices. Each slice is given, whole, to the first stage in
    EXCLUSIVE_PRIORITY whose merged intervals overlap it. Slices covered by
    no stage count towards nothing.

    Returns:
        SleepBreakdown whose stages sum exactly to total_seconds, or None if
        the total is zero.
    """
    merged = merged_stage_intervals(samples)
    boundaries = partition_boundaries(*merged.values())

    seconds = {stage: 0.0 for stage in ASLEEP_STAGES}
    for a, b in zip(boundaries, boundaries[1:]):
        for stage in EXCLUSIVE_PRIORITY:
            if overlaps_any(a, b, merged[stage]):
                seconds[stage] += (b - a).total_seconds()
                break

    rem = seconds[SleepStage.REM]
    deep = seconds[SleepStage.DEEP]
    core = seconds[SleepStage.CORE]
    unspecified = seconds[SleepStage.UNSPECIFIED]
    total = rem + deep + core + unspecified
    if total <= 0:
        return None

    return SleepBreakdown(
        rem_seconds=rem,
        deep_seconds=deep,
        core_seconds=core,
        unspecified_seconds=unspecified,
        total_seconds=total,
    )


def source_ids(samples: Iterable[RawSample]) -> List[str]:
    """Distinct source ids present in the samples, sorted."""
    return sorted({s.source_id for s in samples if s.source_id})
