"""Calendar and number helpers shared by the habit calculators."""

from __future__ import annotations

import math
from datetime import date, datetime

# Indexed by date.weekday(): Monday == 0
WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

# Display order for weekly views
WEEK_SUNDAY_FIRST = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

FREQUENCY_DAYS: dict[str, tuple[str, ...]] = {
    "daily": WEEKDAY_NAMES,
    "weekdays": WEEKDAY_NAMES[:5],
    "weekends": ("Saturday", "Sunday"),
}


def weekday_name(day: date) -> str:
    """English weekday name, independent of the process locale."""
    return WEEKDAY_NAMES[day.weekday()]


def iso_date(day: date) -> str:
    return day.isoformat()[:10]


def parse_date(value: str) -> date:
    return date.fromisoformat(value[:10])


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp, accepting a trailing ``Z``.

    Aware timestamps are converted to naive local time so they can be
    compared with the naive wall-clock values the calculators use.
    """
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def naive(moment: datetime) -> datetime:
    if moment.tzinfo is not None:
        return moment.astimezone().replace(tzinfo=None)
    return moment


def days_for_frequency(frequency: str, custom_days: list[str] | None = None) -> list[str]:
    """Scheduled weekdays for a frequency tag; ``custom`` uses ``custom_days``."""
    if frequency in FREQUENCY_DAYS:
        return list(FREQUENCY_DAYS[frequency])
    return [d for d in WEEKDAY_NAMES if d in set(custom_days or [])]


def round_half_up(value: float) -> int:
    """Round halves upward (0.5 -> 1, 2.5 -> 3), unlike the built-in round()."""
    return int(math.floor(value + 0.5))
