"""Short-term completion trend for a single habit.

Compares completions in the last 7 calendar days with the 7 days before.
Membership is decided by the record's date string, not by elapsed time.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Literal

from habitdna.domains.habits.domain_logic.calendar import iso_date
from habitdna.domains.habits.models import Habit

logger = logging.getLogger(__name__)

TrendDirection = Literal["up", "down", "stable"]

MIN_COMPLETIONS = 7
WINDOW_DAYS = 7
UP_FACTOR = 1.1
DOWN_FACTOR = 0.9

_TREND_ICONS = {"up": "📈", "down": "📉", "stable": "➡️"}
_TREND_COLORS = {"up": "#4caf50", "down": "#f44336", "stable": "#b3b3b3"}


def _window(today: date, start: int) -> set[str]:
    return {iso_date(today - timedelta(days=start + i)) for i in range(WINDOW_DAYS)}


def window_counts(habit: Habit, *, today: date | None = None) -> tuple[int, int]:
    """(last 7 days, previous 7 days) completion counts."""
    today = today or date.today()
    last_days = _window(today, 0)
    previous_days = _window(today, WINDOW_DAYS)
    last = sum(1 for r in habit.completion_history if r.date in last_days)
    previous = sum(1 for r in habit.completion_history if r.date in previous_days)
    return last, previous


def get_completion_trend(habit: Habit, *, today: date | None = None) -> TrendDirection:
    if len(habit.completion_history) < MIN_COMPLETIONS:
        return "stable"

    last, previous = window_counts(habit, today=today)
    if last > previous * UP_FACTOR:
        return "up"
    if last < previous * DOWN_FACTOR:
        return "down"
    return "stable"


def get_trend_icon(trend: TrendDirection) -> str:
    return _TREND_ICONS[trend]


def get_trend_color(trend: TrendDirection) -> str:
    return _TREND_COLORS[trend]
