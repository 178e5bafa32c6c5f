"""Streak engine: decides how a completion event changes a habit.

A streak counts consecutive *scheduled* days that were completed. Days the
habit is not scheduled on neither extend nor break it.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime, timedelta

from habitdna.domains.habits.domain_logic.calendar import iso_date, weekday_name
from habitdna.domains.habits.models import CompletionRecord, Habit

logger = logging.getLogger(__name__)

# How far back to look for the previous scheduled day
LOOKBACK_DAYS = 7


def previous_scheduled_day(days: list[str], today: date) -> date | None:
    """Most recent scheduled day strictly before ``today``, within a week."""
    scheduled = set(days)
    for offset in range(1, LOOKBACK_DAYS + 1):
        candidate = today - timedelta(days=offset)
        if weekday_name(candidate) in scheduled:
            return candidate
    return None


def next_streak(habit: Habit, today: date) -> int:
    """Streak value after completing ``habit`` on ``today``."""
    if weekday_name(today) not in habit.days:
        return habit.streak
    if habit.last_completed_date is None:
        return 1

    previous = previous_scheduled_day(habit.days, today)
    if previous is not None and habit.last_completed_date == iso_date(previous):
        return habit.streak + 1
    return 1


def complete_habit(habit: Habit, today: date, now: datetime | None = None) -> Habit:
    """Apply a completion event for ``today``.

    Returns the same object when the habit was already completed today,
    otherwise a new Habit with updated counters; the input is not modified.

    Args:
        habit: Current habit state.
        today: Calendar date of the completion.
        now: Completion moment recorded in the history. Defaults to the wall
            clock; only its time of day is used when its date is not ``today``.
    """
    today_str = iso_date(today)
    if habit.last_completed_date == today_str:
        logger.debug("Habit %s already completed on %s", habit.id, today_str)
        return habit

    now = now or datetime.now()
    if now.date() != today:
        now = datetime.combine(today, now.time())

    streak = next_streak(habit, today)
    return dataclasses.replace(
        habit,
        streak=streak,
        completed=habit.completed + 1,
        weekly_completed=habit.weekly_completed + 1,
        last_completed_date=today_str,
        completion_history=[
            *habit.completion_history,
            CompletionRecord(date=today_str, time=now.isoformat()),
        ],
        completion_notes=list(habit.completion_notes),
        days=list(habit.days),
    )


def was_completed_on(habit: Habit, day: date) -> bool:
    return habit.last_completed_date == iso_date(day)
