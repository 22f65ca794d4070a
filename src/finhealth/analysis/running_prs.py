"""
Running personal records derived from the cardio log.

Distance PRs are estimated from a run's whole-run average pace: a 10 km run
in 50:00 (5:00/km) counts as a 25:00 5K. A run never qualifies for a target
longer than its own distance, so nothing is extrapolated upwards.

Categories:
  1K PR, 5K PR, 10K PR, Half PR : min estimated time over runs >= target
  Longest run                   : max distance
  Fastest pace                  : min average pace (min/km)

New-PR checks are strict: equalling the current best is not a PR.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set

from finhealth.models.cardio import CardioEntry, CardioType


class PRLabel(str, Enum):
    PR_1K = "1K PR"
    PR_5K = "5K PR"
    PR_10K = "10K PR"
    PR_HALF = "Half PR"
    LONGEST_RUN = "Longest run"
    FASTEST_PACE = "Fastest pace"


# Target distance (km) → label, in display order
DISTANCE_TARGETS: Dict[float, PRLabel] = {
    1.0: PRLabel.PR_1K,
    5.0: PRLabel.PR_5K,
    10.0: PRLabel.PR_10K,
    21.1: PRLabel.PR_HALF,
}


@dataclass(frozen=True)
class DistancePR:
    """Best estimated time for one target distance. Never persisted."""
    target_distance_km: float
    estimated_minutes: float
    pace_minutes_per_km: float
    source_record_id: Optional[int]


def is_eligible_run(entry: CardioEntry) -> bool:
    """A run with a positive distance and a positive duration."""
    return (
        entry.cardio_type == CardioType.RUN
        and entry.distance_km is not None
        and entry.distance_km > 0
        and entry.duration_minutes > 0
    )


def eligible_runs(entries: Iterable[CardioEntry]) -> List[CardioEntry]:
    return [e for e in entries if is_eligible_run(e)]


def estimated_minutes(entry: CardioEntry, target_km: float) -> Optional[float]:
    """
    Estimated time for target_km at the entry's average pace.

    Returns None if the entry is not an eligible run or is shorter than the
    target.
    """
    if not is_eligible_run(entry) or entry.distance_km < target_km:
        return None
    return entry.pace_minutes_per_km * target_km


# ─── Current records ──────────────────────────────────────────────────────────

def best_distance_pr(entries: Iterable[CardioEntry], target_km: float) -> Optional[DistancePR]:
    """Fastest estimated time for target_km across the history; first run wins ties."""
    best: Optional[DistancePR] = None
    for entry in entries:
        est = estimated_minutes(entry, target_km)
        if est is None:
            continue
        if best is None or est < best.estimated_minutes:
            best = DistancePR(
                target_distance_km=target_km,
                estimated_minutes=est,
                pace_minutes_per_km=entry.pace_minutes_per_km,
                source_record_id=entry.id,
            )
    return best


def distance_prs(entries: Iterable[CardioEntry]) -> Dict[PRLabel, Optional[DistancePR]]:
    """Best DistancePR for every target, None where no run reached it."""
    runs = eligible_runs(entries)
    return {label: best_distance_pr(runs, km) for km, label in DISTANCE_TARGETS.items()}


def longest_run(entries: Iterable[CardioEntry]) -> Optional[CardioEntry]:
    best: Optional[CardioEntry] = None
    for entry in eligible_runs(entries):
        if best is None or entry.distance_km > best.distance_km:
            best = entry
    return best


def fastest_pace_run(entries: Iterable[CardioEntry]) -> Optional[CardioEntry]:
    best: Optional[CardioEntry] = None
    for entry in eligible_runs(entries):
        if best is None or entry.pace_minutes_per_km < best.pace_minutes_per_km:
            best = entry
    return best


def pr_holder_ids(entries: Iterable[CardioEntry]) -> Set[int]:
    """Ids of entries currently holding at least one PR (for list medals)."""
    runs = eligible_runs(entries)
    ids: Set[int] = set()
    for pr in distance_prs(runs).values():
        if pr is not None and pr.source_record_id is not None:
            ids.add(pr.source_record_id)
    for holder in (longest_run(runs), fastest_pace_run(runs)):
        if holder is not None and holder.id is not None:
            ids.add(holder.id)
    return ids


@dataclass(frozen=True)
class PRSummary:
    """Everything the PR screen shows, computed from one history snapshot."""
    distance_prs: Dict[PRLabel, Optional[DistancePR]]
    longest_run: Optional[CardioEntry]
    fastest_pace: Optional[CardioEntry]


def pr_summary(entries: Iterable[CardioEntry]) -> PRSummary:
    runs = eligible_runs(entries)
    return PRSummary(
        distance_prs=distance_prs(runs),
        longest_run=longest_run(runs),
        fastest_pace=fastest_pace_run(runs),
    )


# ─── New-PR detection ─────────────────────────────────────────────────────────

def evaluate_new_prs(
    candidate: CardioEntry,
    history: Iterable[CardioEntry],
    is_edit: bool = False,
) -> List[PRLabel]:
    """
    Labels of every record the candidate sets against the existing history.

    The baseline is the eligible history, minus the candidate's own previous
    version when editing. Each category is checked on its own, so one run may
    set several records at once. A category with no qualifying baseline run
    is won automatically.

    Args:
        candidate: the entry being created or the edited version of an entry.
        history: entries as they are before the change.
        is_edit: True if candidate replaces an existing entry with the same id.

    Returns:
        PR labels in display order; empty for non-run or incomplete entries.
    """
    if not is_eligible_run(candidate):
        return []

    baseline = eligible_runs(history)
    if is_edit:
        baseline = [e for e in baseline if e.id != candidate.id]

    labels: List[PRLabel] = []

    for km, label in DISTANCE_TARGETS.items():
        new_time = estimated_minutes(candidate, km)
        if new_time is None:
            continue
        old = best_distance_pr(baseline, km)
        if old is None or new_time < old.estimated_minutes:
            labels.append(label)

    old_longest = longest_run(baseline)
    if old_longest is None or candidate.distance_km > old_longest.distance_km:
        labels.append(PRLabel.LONGEST_RUN)

    old_fastest = fastest_pace_run(baseline)
    if old_fastest is None or candidate.pace_minutes_per_km < old_fastest.pace_minutes_per_km:
        labels.append(PRLabel.FASTEST_PACE)

    return labels
