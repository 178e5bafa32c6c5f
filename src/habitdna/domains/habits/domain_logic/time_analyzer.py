"""Infers the time of day a habit is usually completed."""

from __future__ import annotations

import logging
from collections import Counter

from habitdna.domains.habits.domain_logic.calendar import parse_timestamp
from habitdna.domains.habits.models import Habit

logger = logging.getLogger(__name__)

NOT_ENOUGH_DATA = "Not enough data yet"
MIN_COMPLETIONS = 3


def format_hour(hour: int) -> str:
    """``13`` -> ``"1:00 PM"``; ``0`` -> ``"12:00 AM"``."""
    ampm = "PM" if hour >= 12 else "AM"
    return f"{hour % 12 or 12}:00 {ampm}"


def optimal_hour(habit: Habit) -> int | None:
    """Hour of day with the most completions, or None with fewer than three.

    Ties go to the earliest hour.
    """
    if len(habit.completion_history) < MIN_COMPLETIONS:
        return None

    hours: Counter[int] = Counter()
    for record in habit.completion_history:
        try:
            hours[parse_timestamp(record.time).hour] += 1
        except ValueError:
            logger.debug("Ignoring unparsable completion time %r", record.time)
    if not hours:
        return None
    return max(sorted(hours), key=lambda h: hours[h])


def analyze_optimal_time(habit: Habit) -> str:
    hour = optimal_hour(habit)
    if hour is None:
        return NOT_ENOUGH_DATA
    return f"You usually complete this at {format_hour(hour)}"
