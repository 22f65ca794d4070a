"""
Garmin response normalizers. No network or DB access here.

  get_sleep_data()       → RawSample list
  get_activities() item  → unsaved CardioEntry
  get_stats()            → resting HR and steps
  get_body_composition() → latest weight in kg

Relevant part of the sleep response:

  {
    "dailySleepDTO": {"calendarDate": "2025-01-15", ...},
    "sleepLevels": [
      {"startGMT": "2025-01-14T22:31:00.0", "endGMT": "2025-01-14T23:02:00.0",
       "activityLevel": 1.0},
      ...
    ]
  }

activityLevel codes: 0 = deep, 1 = light, 2 = REM, 3 = awake. Garmin's
"light" sleep corresponds to the core stage.

Times are GMT; samples are converted to naive local time so they compare
directly with the local analysis window.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from finhealth.analysis.sleep import RawSample, SleepStage
from finhealth.models.cardio import CardioEntry, CardioType

logger = logging.getLogger(__name__)

GARMIN_SOURCE_ID = "com.garmin.connect"

_ACTIVITY_LEVEL_STAGES = {
    0: SleepStage.DEEP,
    1: SleepStage.CORE,
    2: SleepStage.REM,
    3: SleepStage.AWAKE,
}


def _parse_garmin_datetime(s: str) -> datetime:
    """Parse Garmin datetime strings in either endpoint format.

    Handles two formats:
      - "YYYY-MM-DD HH:MM:SS"
      - "YYYY-MM-DDTHH:MM:SS.f"
    """
    s = s.strip()
    if "T" in s:
        # Fractional seconds may be .0, .00, etc.
        base = s.split(".")[0]
        return datetime.strptime(base, "%Y-%m-%dT%H:%M:%S")
    return datetime.strptime(s, "%Y-%m-%d %H:%M:%S")


def gmt_to_local(dt: datetime) -> datetime:
    """Interpret a naive GMT datetime and return it as naive local time."""
    return dt.replace(tzinfo=timezone.utc).astimezone().replace(tzinfo=None)


def _stage_for_level(level: Any) -> Optional[SleepStage]:
    try:
        return _ACTIVITY_LEVEL_STAGES.get(int(round(float(level))))
    except (TypeError, ValueError):
        return None


def normalize_sleep_levels(
    raw: Dict[str, Any],
    source_id: str = GARMIN_SOURCE_ID,
) -> List[RawSample]:
    """
    Convert the sleepLevels of a sleep response into RawSample objects.

    Entries with unparseable times or unknown activity levels are skipped.

    Args:
        raw: Dict from garminconnect.get_sleep_data(date_str).
        source_id: source id to tag every sample with.

    Returns:
        Samples in response order.
    """
    samples: List[RawSample] = []
    for level in raw.get("sleepLevels") or []:
        stage = _stage_for_level(level.get("activityLevel"))
        if stage is None:
            logger.debug("Skipping sleep level with unknown activityLevel: %r", level)
            continue
        try:
            start = gmt_to_local(_parse_garmin_datetime(level["startGMT"]))
            end = gmt_to_local(_parse_garmin_datetime(level["endGMT"]))
        except (KeyError, TypeError, ValueError):
            logger.debug("Skipping sleep level with bad timestamps: %r", level)
            continue
        samples.append(RawSample(start=start, end=end, stage=stage, source_id=source_id))
    return samples


# ─── Activities → cardio log ──────────────────────────────────────────────────

# Garmin activityType.typeKey → cardio type. Anything else (strength,
# yoga, ...) is not a cardio session and is skipped on import.
_CARDIO_TYPE_KEYS = {
    "running": CardioType.RUN,
    "trail_running": CardioType.RUN,
    "treadmill_running": CardioType.RUN,
    "track_running": CardioType.RUN,
    "cycling": CardioType.CYCLE,
    "road_biking": CardioType.CYCLE,
    "mountain_biking": CardioType.CYCLE,
    "gravel_cycling": CardioType.CYCLE,
    "indoor_cycling": CardioType.CYCLE,
    "virtual_ride": CardioType.CYCLE,
    "rowing": CardioType.ROW,
    "indoor_rowing": CardioType.ROW,
    "walking": CardioType.WALK,
    "hiking": CardioType.WALK,
    "elliptical": CardioType.OTHER,
    "stair_climbing": CardioType.OTHER,
    "lap_swimming": CardioType.OTHER,
    "open_water_swimming": CardioType.OTHER,
}


def normalize_cardio_activity(raw: Dict[str, Any]) -> Optional[CardioEntry]:
    """
    Convert one get_activities() item into an unsaved CardioEntry.

    Returns None for non-cardio activity types and for items missing a
    start time or a positive duration.

    The list endpoint uses a flat structure:
      activityType.typeKey, startTimeLocal ("YYYY-MM-DD HH:MM:SS"),
      duration (s), distance (m), averageHR, activityName
    """
    type_key = (raw.get("activityType") or {}).get("typeKey")
    cardio_type = _CARDIO_TYPE_KEYS.get(type_key)
    if cardio_type is None:
        return None

    try:
        started = _parse_garmin_datetime(raw["startTimeLocal"])
        duration_minutes = int(round(float(raw["duration"]) / 60))
    except (AttributeError, KeyError, TypeError, ValueError):
        logger.debug("Skipping activity %s with bad start/duration", raw.get("activityId"))
        return None
    if duration_minutes <= 0:
        return None

    distance_m = raw.get("distance")
    avg_hr = raw.get("averageHR")
    return CardioEntry(
        cardio_type=cardio_type,
        date=started,
        distance_km=float(distance_m) / 1000 if distance_m else None,
        duration_minutes=duration_minutes,
        avg_heart_rate=int(round(avg_hr)) if avg_hr else None,
        notes=raw.get("activityName"),
    )


# ─── Daily metrics ────────────────────────────────────────────────────────────

def normalize_daily_stats(raw: Dict[str, Any]) -> Tuple[Optional[int], Optional[int]]:
    """(resting_heart_rate, steps) from get_stats(); None where Garmin has no value."""
    raw = raw or {}
    rhr = raw.get("restingHeartRate")
    steps = raw.get("totalSteps")
    return (
        int(rhr) if rhr else None,
        int(steps) if steps is not None else None,
    )


def latest_weight_kg(raw: Dict[str, Any]) -> Optional[float]:
    """
    Most recent weigh-in from get_body_composition(), in kg.

    Garmin reports weight in grams; entries are ordered by their epoch-ms
    "date" field, which is not guaranteed to be sorted in the response.
    """
    weigh_ins = [w for w in (raw or {}).get("dateWeightList") or [] if w.get("weight")]
    if not weigh_ins:
        return None
    latest = max(weigh_ins, key=lambda w: w.get("date") or 0)
    return round(float(latest["weight"]) / 1000, 2)
