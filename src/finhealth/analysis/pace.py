"""
Pace, time and duration formatting for PR and sleep displays.

Paces in this package are minutes per kilometer (the cardio log records
whole-minute durations and kilometer distances).
"""
import math

# 1 mile in kilometers
_KM_PER_MILE = 1.60934


def _is_finite(value: float) -> bool:
    return value is not None and not math.isnan(value) and not math.isinf(value)


def format_minutes(minutes: float) -> str:
    """
    Format a duration in minutes as "m:ss".

    Args:
        minutes: duration in minutes (fractional part becomes seconds)

    Returns:
        String like "24:00". Hours stay in the minutes field ("112:30").
        Non-finite input returns "-".
    """
    if not _is_finite(minutes):
        return "-"
    total_seconds = int(minutes * 60)
    return f"{total_seconds // 60}:{total_seconds % 60:02d}"


def format_pace(pace_min_per_km: float, unit: str = "km") -> str:
    """
    Format a pace (minutes/km) as a human-readable string.

    Args:
        pace_min_per_km: pace in minutes per kilometer
        unit: "km" for per-kilometer (default), "mi" for per-mile

    Returns:
        Formatted string like "5:00/km" or "8:02/mi"; "-" if non-finite.
    """
    if not _is_finite(pace_min_per_km):
        return "-"
    if unit == "mi":
        return f"{format_minutes(pace_min_per_km * _KM_PER_MILE)}/mi"
    return f"{format_minutes(pace_min_per_km)}/km"


def format_hours(hours: float) -> str:
    """
    Format hours as "7 h 5 min", or "7 h" when the minutes round to zero.
    """
    if not _is_finite(hours):
        return "-"
    mins = int(round(hours * 60))
    h, m = divmod(mins, 60)
    return f"{h} h" if m == 0 else f"{h} h {m} min"
