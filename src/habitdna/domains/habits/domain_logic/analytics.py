"""Completion-rate, streak, and activity calculators.

All functions are pure over a snapshot of habits. "Today" is an explicit
keyword argument that defaults to the wall clock, so tests can freeze time.
"""

from __future__ import annotations

import calendar as _calendar
import logging
import math
from collections.abc import Sequence
from datetime import date, datetime, timedelta
from typing import Any, Literal

from habitdna.domains.habits.domain_logic.calendar import (
    WEEK_SUNDAY_FIRST,
    iso_date,
    naive,
    parse_timestamp,
    round_half_up,
    weekday_name,
)
from habitdna.domains.habits.models import Habit, Reminder

logger = logging.getLogger(__name__)

Timeframe = Literal["today", "week", "month"]

ALL_HABITS = "All Habits"

HEATMAP_DAYS = 35
HEATMAP_LEVELS = 5

DEFAULT_HABIT_TIME = (8, 0)


def _scheduled_on(habits: Sequence[Habit], day: date) -> list[Habit]:
    name = weekday_name(day)
    return [h for h in habits if name in h.days]


def _percent(numerator: float, denominator: float) -> int:
    """Percentage rounded half-up and clamped to 0..100; 0 for an empty denominator."""
    if denominator <= 0:
        return 0
    return max(0, min(100, round_half_up(100 * numerator / denominator)))


# ---------------------------------------------------------------------------
# Completion rate
# ---------------------------------------------------------------------------


def calculate_completion_rate(
    habits: Sequence[Habit],
    timeframe: Timeframe = "today",
    *,
    today: date | None = None,
) -> int:
    """Completion rate as a percentage for ``today``, ``week`` or ``month``.

    ``month`` compares lifetime completions with the expected occurrences in
    the current month. That mixes scopes on purpose; long-lived habits will
    saturate at 100.

    Raises:
        ValueError: If ``timeframe`` is not one of the three windows.
    """
    if timeframe not in ("today", "week", "month"):
        raise ValueError(f"Unknown timeframe: {timeframe!r}")
    if not habits:
        return 0

    today = today or date.today()

    if timeframe == "today":
        today_str = iso_date(today)
        total = len(_scheduled_on(habits, today)) or len(habits)
        completed = sum(1 for h in habits if h.last_completed_date == today_str)
        return _percent(completed, total)

    if timeframe == "week":
        possible = sum(len(h.days) for h in habits)
        done = sum(h.weekly_completed for h in habits)
        return _percent(done, possible)

    days_in_month = _calendar.monthrange(today.year, today.month)[1]
    expected = sum(round_half_up(len(h.days) / 7 * days_in_month) for h in habits)
    actual = sum(h.completed for h in habits)
    return _percent(actual, expected)


# ---------------------------------------------------------------------------
# Streaks and today's progress
# ---------------------------------------------------------------------------


def get_longest_streak(habits: Sequence[Habit]) -> dict[str, Any]:
    """Habit with the highest streak; the first one wins ties."""
    best_name, best_streak = "None", 0
    for habit in habits:
        if habit.streak > best_streak:
            best_name, best_streak = habit.name, habit.streak
    return {"days": best_streak, "name": best_name}


def get_today_progress(habits: Sequence[Habit], *, today: date | None = None) -> dict[str, int]:
    """Completed vs. total for today.

    ``total`` counts habits scheduled today (all habits if none are), while
    ``completed`` counts every habit completed today, scheduled or not.
    """
    if not habits:
        return {"completed": 0, "total": 0}

    today = today or date.today()
    today_str = iso_date(today)
    return {
        "completed": sum(1 for h in habits if h.last_completed_date == today_str),
        "total": len(_scheduled_on(habits, today)) or len(habits),
    }


def was_habit_completed_on_date(habit: Habit, date_str: str) -> bool:
    return habit.last_completed_date == date_str


# ---------------------------------------------------------------------------
# Categories and weekly activity
# ---------------------------------------------------------------------------


def get_habits_by_category(habits: Sequence[Habit], categories: Sequence[str]) -> dict[str, int]:
    return {cat: sum(1 for h in habits if h.category == cat) for cat in categories}


def calculate_weekly_activity(
    habits: Sequence[Habit],
    category_filter: str | None = None,
) -> list[int]:
    """Percentages for Sunday..Saturday.

    A habit counts as active on a weekday when it is scheduled that day and
    has any lifetime completion.
    """
    if category_filter and category_filter != ALL_HABITS:
        habits = [h for h in habits if h.category == category_filter]

    activity = []
    for day_name in WEEK_SUNDAY_FIRST:
        for_day = [h for h in habits if day_name in h.days]
        active = sum(1 for h in for_day if h.completed > 0)
        activity.append(_percent(active, len(for_day)))
    return activity


# ---------------------------------------------------------------------------
# Heatmap, widget, upcoming
# ---------------------------------------------------------------------------


def build_heatmap(
    habits: Sequence[Habit],
    *,
    today: date | None = None,
    days: int = HEATMAP_DAYS,
) -> list[dict[str, Any]]:
    """Activity intensity (0-5) per day for the last ``days`` days, oldest first."""
    today = today or date.today()
    cells = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        day_str = iso_date(day)
        intensity = 0
        if habits:
            total = len(_scheduled_on(habits, day)) or len(habits)
            completed = sum(1 for h in habits if h.last_completed_date == day_str)
            intensity = min(HEATMAP_LEVELS, math.floor(completed / total * (HEATMAP_LEVELS + 1)))
        cells.append({"date": day_str, "weekday": weekday_name(day), "intensity": intensity})
    return cells


def get_widget_data(habits: Sequence[Habit], *, today: date | None = None) -> dict[str, Any]:
    """Compact summary of today's scheduled habits for home-screen widgets."""
    today = today or date.today()
    today_str = iso_date(today)
    todays = [
        {"name": h.name, "completed": h.last_completed_date == today_str, "streak": h.streak}
        for h in _scheduled_on(habits, today)
    ]
    return {
        "total": len(todays),
        "completed": sum(1 for h in todays if h["completed"]),
        "habits": todays[:5],
        "longestStreak": max((h["streak"] for h in todays), default=0),
    }


def _twelve_hour(hour: int, minute: int) -> dict[str, Any]:
    return {
        "hour": hour % 12 or 12,
        "minute": f"{minute:02d}",
        "ampm": "PM" if hour >= 12 else "AM",
    }


def _habit_time(habit: Habit) -> tuple[int, int]:
    if habit.time and len(habit.time) == 5 and habit.time[2] == ":":
        hh, mm = habit.time.split(":")
        if hh.isdigit() and mm.isdigit():
            return int(hh), int(mm)
    return DEFAULT_HABIT_TIME


def get_upcoming_items(
    habits: Sequence[Habit],
    reminders: Sequence[Reminder],
    *,
    now: datetime | None = None,
) -> list[dict[str, Any]]:
    """Reminders still due today plus habits scheduled and not yet done today.

    Items are ordered by time of day.
    """
    now = naive(now or datetime.now())
    today = now.date()
    today_str = iso_date(today)
    items: list[tuple[tuple[int, int], dict[str, Any]]] = []

    for reminder in reminders:
        if reminder.completed:
            continue
        try:
            due = parse_timestamp(reminder.datetime)
        except ValueError:
            logger.warning("Skipping reminder %s with invalid datetime %r", reminder.id, reminder.datetime)
            continue
        if due.date() != today or due <= now:
            continue
        items.append(((due.hour, due.minute), {
            "type": "reminder",
            "id": reminder.id,
            "title": reminder.title,
            "alarm": reminder.alarm,
            "notification": reminder.notification,
            **_twelve_hour(due.hour, due.minute),
        }))

    for habit in _scheduled_on(habits, today):
        if habit.last_completed_date == today_str:
            continue
        hour, minute = _habit_time(habit)
        items.append(((hour, minute), {
            "type": "habit",
            "id": habit.id,
            "title": habit.name,
            "tags": habit.category,
            **_twelve_hour(hour, minute),
        }))

    items.sort(key=lambda item: item[0])
    return [item for _, item in items]
