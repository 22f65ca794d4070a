"""
Preferred sleep-source detection and resolution.

Two wearables often report overlapping sleep for the same night (e.g. a
Garmin watch syncing through Garmin Connect alongside an Apple Watch). This
module decides which single source id, if any, a source-filtered breakdown
should be requested for.

Detection rules, in order:
  1. any id containing "garmin" (case-insensitive)  → Garmin candidate
  2. any id containing "watch" or starting with the platform prefix
     (default "com.apple")                           → platform candidate
  3. otherwise                                       → no preferred source

Resolution returns a SourcePlan; source_id=None means "skip filtering and
use the exclusive breakdown over all sources".
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

DEFAULT_PLATFORM_PREFIX = "com.apple"
DEFAULT_GARMIN_SOURCE_ID = "com.garmin.connect"
DEFAULT_PLATFORM_SOURCE_ID = "com.apple.health"


class SourcePreference(str, Enum):
    AUTO = "auto"
    GARMIN_ONLY = "garmin_only"
    APPLE_ONLY = "apple_only"
    COMBINE_EXCLUSIVE = "combine_exclusive"


@dataclass(frozen=True)
class SourcePlan:
    """Outcome of resolution: which source to filter on and why."""
    source_id: Optional[str]  # None → exclusive over all sources
    reason: str               # "custom", "detected", "fallback_id", "no_source", "exclusive"


def find_garmin_source(source_ids: Iterable[str]) -> Optional[str]:
    """First id (in sorted order) containing "garmin", case-insensitive."""
    for sid in sorted(source_ids):
        if "garmin" in sid.lower():
            return sid
    return None


def find_platform_source(
    source_ids: Iterable[str],
    platform_prefix: str = DEFAULT_PLATFORM_PREFIX,
) -> Optional[str]:
    """First id (in sorted order) containing "watch" or starting with the platform prefix."""
    prefix = platform_prefix.lower()
    for sid in sorted(source_ids):
        lowered = sid.lower()
        if "watch" in lowered or lowered.startswith(prefix):
            return sid
    return None


def detect_preferred_source(
    source_ids: Iterable[str],
    platform_prefix: str = DEFAULT_PLATFORM_PREFIX,
) -> Optional[str]:
    """
    Pick the preferred source among those present in a night's samples.

    A Garmin-like id always wins over a platform-like id.

    Returns:
        The chosen source id, or None if neither family is present.
    """
    ids = [sid for sid in source_ids if sid]
    return find_garmin_source(ids) or find_platform_source(ids, platform_prefix)


def resolve_source(
    preference: SourcePreference,
    source_ids: Iterable[str],
    custom_source_id: Optional[str] = None,
    platform_prefix: str = DEFAULT_PLATFORM_PREFIX,
    garmin_fallback_id: str = DEFAULT_GARMIN_SOURCE_ID,
    platform_fallback_id: str = DEFAULT_PLATFORM_SOURCE_ID,
) -> SourcePlan:
    """
    Decide which source id to request a filtered breakdown for.

    Args:
        preference: user's configured preference mode.
        source_ids: distinct source ids seen in the window.
        custom_source_id: free-text override; wins when non-blank.
        platform_prefix: reverse-domain prefix of the platform vendor.
        garmin_fallback_id: best-effort id for GARMIN_ONLY when none detected.
        platform_fallback_id: best-effort id for APPLE_ONLY when none detected.

    Returns:
        SourcePlan. A plan with source_id=None means go straight to the
        exclusive breakdown.
    """
    custom = (custom_source_id or "").strip()
    if custom:
        return SourcePlan(source_id=custom, reason="custom")

    ids = [sid for sid in source_ids if sid]

    if preference == SourcePreference.COMBINE_EXCLUSIVE:
        return SourcePlan(source_id=None, reason="exclusive")

    if preference == SourcePreference.GARMIN_ONLY:
        found = find_garmin_source(ids)
        if found:
            return SourcePlan(source_id=found, reason="detected")
        return SourcePlan(source_id=garmin_fallback_id, reason="fallback_id")

    if preference == SourcePreference.APPLE_ONLY:
        found = find_platform_source(ids, platform_prefix)
        if found:
            return SourcePlan(source_id=found, reason="detected")
        return SourcePlan(source_id=platform_fallback_id, reason="fallback_id")

    detected = detect_preferred_source(ids, platform_prefix)
    if detected:
        return SourcePlan(source_id=detected, reason="detected")
    return SourcePlan(source_id=None, reason="no_source")
