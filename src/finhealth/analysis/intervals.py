"""
Closed time-interval algebra used by the sleep aggregator.

All intervals are closed [start, end]. Two intervals overlap or touch when
next.start <= current.end, and touching intervals are merged so that a
shared boundary instant is never counted twice.

Everything here is pure: no DB, no I/O, no state.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimeInterval:
    """An immutable closed interval [start, end] with start <= end."""

    start: datetime
    end: datetime

    @property
    def seconds(self) -> float:
        return (self.end - self.start).total_seconds()


def make_interval(start: Optional[datetime], end: Optional[datetime]) -> Optional[TimeInterval]:
    """
    Build a TimeInterval, or return None if the bounds are malformed.

    Missing bounds and reversed bounds (start > end) are rejected rather than
    producing a negative duration. Zero-length intervals are valid.
    """
    if start is None or end is None:
        logger.debug("Dropping interval with missing bound: %s → %s", start, end)
        return None
    if start > end:
        logger.debug("Dropping reversed interval: %s → %s", start, end)
        return None
    return TimeInterval(start=start, end=end)


def merge_intervals(intervals: Iterable[TimeInterval]) -> List[TimeInterval]:
    """
    Merge overlapping and touching intervals.

    Algorithm:
    1. Sort ascending by start.
    2. Walk left to right with a "current" accumulator.
    3. If next.start <= current.end, extend current.end to
       max(current.end, next.end). Otherwise flush current and start anew.

    Args:
        intervals: unordered intervals; may be empty, may overlap, may
                   contain zero-length intervals.

    Returns:
        Non-overlapping, non-touching intervals sorted by start. The sum of
        their durations equals the measure of the union of the input.
    """
    ordered = sorted(intervals, key=lambda iv: (iv.start, iv.end))
    if not ordered:
        return []

    merged: List[TimeInterval] = []
    cur_start, cur_end = ordered[0].start, ordered[0].end
    for iv in ordered[1:]:
        if iv.start <= cur_end:
            cur_end = max(cur_end, iv.end)
        else:
            merged.append(TimeInterval(cur_start, cur_end))
            cur_start, cur_end = iv.start, iv.end
    merged.append(TimeInterval(cur_start, cur_end))
    return merged


def sum_seconds(intervals: Iterable[TimeInterval]) -> float:
    """Total duration in seconds. Pass a merged set to avoid double counting."""
    return sum(iv.seconds for iv in intervals)


def overlaps_any(a: datetime, b: datetime, intervals: Iterable[TimeInterval]) -> bool:
    """
    True iff the open range (a, b) intersects any interval in the set.

    Strict bounds: a zero-width slice sitting exactly on an interval edge does
    not count as overlapping. Only used for slice classification, never for
    merging.
    """
    return any(a < iv.end and b > iv.start for iv in intervals)


def partition_boundaries(*merged_sets: Sequence[TimeInterval]) -> List[datetime]:
    """
    Collect every start/end across all sets, sorted and de-duplicated.

    Adjacent pairs of the returned list are the atomic slices used for
    exclusive stage classification.
    """
    points = set()
    for ivs in merged_sets:
        for iv in ivs:
            points.add(iv.start)
            points.add(iv.end)
    return sorted(points)
