"""
Canonical conversions between "HH:mm" strings and minutes from midnight.

Handles missing or malformed inputs by returning the caller's fallback so a
bad pitch window never aborts a scheduling pass.
"""
from typing import Optional

DEFAULT_PITCH_START_MINUTES = 10 * 60


def parse_time_to_minutes(value: Optional[str], fallback: int = DEFAULT_PITCH_START_MINUTES) -> int:
    """
    Convert "HH:mm" to minutes from midnight.

    - None or "" -> fallback
    - "9:05" / "09:05" -> 545
    - anything without two integer parts -> fallback
    """
    if not value or not isinstance(value, str):
        return fallback
    parts = value.strip().split(":")
    if len(parts) < 2:
        return fallback
    try:
        hours = int(parts[0])
        minutes = int(parts[1])
    except ValueError:
        return fallback
    return hours * 60 + minutes


def minutes_to_time(total_minutes: int) -> str:
    """Render minutes from midnight as zero-padded "HH:mm"."""
    hours, minutes = divmod(int(total_minutes), 60)
    return f"{hours:02d}:{minutes:02d}"


def optional_minutes(value: Optional[str]) -> Optional[int]:
    """Like parse_time_to_minutes, but None when the value is absent or unparseable."""
    parsed = parse_time_to_minutes(value, fallback=-1)
    return parsed if parsed >= 0 else None
