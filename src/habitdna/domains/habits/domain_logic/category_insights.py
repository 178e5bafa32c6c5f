"""Plain-language insights comparing habit categories.

Each category gets an estimated completion rate: lifetime completions over
the completions that were possible since each habit was created.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from habitdna.domains.habits.domain_logic.calendar import (
    naive,
    parse_timestamp,
    round_half_up,
)
from habitdna.domains.habits.models import Habit

logger = logging.getLogger(__name__)

# Minimum rate gap (percentage points) worth calling out
COMPARISON_GAP = 10


@dataclass
class CategoryStat:
    category: str
    rate: float  # 0-100, may exceed 100 for new habits
    habit_count: int


def _possible_completions(habit: Habit, now: datetime) -> int:
    try:
        created = parse_timestamp(habit.created_at)
    except ValueError:
        logger.debug("Habit %s has no usable createdAt (%r)", habit.id, habit.created_at)
        return 0
    days_since_creation = math.floor((now - created).total_seconds() / 86400)
    return math.ceil(days_since_creation / 7 * len(habit.days))


def compute_category_stats(
    habits: Sequence[Habit],
    categories: Sequence[str],
    *,
    now: datetime | None = None,
) -> list[CategoryStat]:
    """Stats for categories that have at least one habit, best rate first."""
    now = naive(now or datetime.now())
    stats = []
    for category in categories:
        members = [h for h in habits if h.category == category]
        if not members:
            continue
        completed = sum(h.completed for h in members)
        possible = sum(_possible_completions(h, now) for h in members)
        rate = completed / possible * 100 if possible > 0 else 0.0
        stats.append(CategoryStat(category, rate, len(members)))

    stats.sort(key=lambda s: s.rate, reverse=True)
    return stats


def get_category_insights(
    habits: Sequence[Habit],
    categories: Sequence[str],
    *,
    now: datetime | None = None,
) -> list[str]:
    """Up to three insights: strongest category, best-vs-worst gap, biggest focus."""
    if not habits or not categories:
        return []

    stats = compute_category_stats(habits, categories, now=now)
    if not stats:
        return []

    insights = []
    best = stats[0]
    insights.append(
        f"🏆 {best.category} is your strongest category with "
        f"{round_half_up(best.rate)}% completion rate"
    )

    if len(stats) >= 2:
        worst = stats[-1]
        gap = best.rate - worst.rate
        if gap > COMPARISON_GAP:
            insights.append(
                f"Your {best.category} habits have {round_half_up(gap)}% higher completion "
                f"than {worst.category} habits"
            )

    focus = sorted(stats, key=lambda s: s.habit_count, reverse=True)[0]
    if focus.habit_count > 1:
        insights.append(f"You focus most on {focus.category} with {focus.habit_count} habits")

    return insights
