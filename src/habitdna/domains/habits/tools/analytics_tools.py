"""MCP tools for habit analytics.

Every tool reads one repository snapshot and runs the pure calculators
against it, so all numbers in a response describe the same state.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from habitdna.domains.habits.domain_logic.analytics import (
    build_heatmap,
    calculate_completion_rate,
    calculate_weekly_activity,
    get_habits_by_category,
    get_longest_streak,
    get_today_progress,
    get_widget_data,
)
from habitdna.domains.habits.domain_logic.category_insights import get_category_insights
from habitdna.domains.habits.domain_logic.time_analyzer import analyze_optimal_time
from habitdna.domains.habits.domain_logic.trend_analyzer import (
    get_completion_trend,
    get_trend_icon,
)

if TYPE_CHECKING:
    from habitdna.domains.habits.repository import Clock, HabitRepository

logger = logging.getLogger(__name__)


def register_analytics_tools(
    mcp: FastMCP,
    repository: HabitRepository,
    clock: Clock,
) -> None:
    """Register habit analytics tools on the MCP server."""

    @mcp.tool
    async def habit_overview(ctx: Context) -> str:
        """Summarize progress: completion rates, today's progress, and the longest streak."""
        snapshot = await repository.snapshot()
        today = clock().date()
        habits = snapshot.habits
        return json.dumps({
            "status": "ok",
            "habit_count": len(habits),
            "completion_rate": {
                timeframe: calculate_completion_rate(habits, timeframe, today=today)
                for timeframe in ("today", "week", "month")
            },
            "today": get_today_progress(habits, today=today),
            "longest_streak": get_longest_streak(habits),
            "by_category": get_habits_by_category(habits, snapshot.categories),
            "widget": get_widget_data(habits, today=today),
        }, ensure_ascii=False)

    @mcp.tool
    async def category_insights(ctx: Context) -> str:
        """Compare categories: strongest category, biggest gap, and main focus."""
        snapshot = await repository.snapshot()
        insights = get_category_insights(snapshot.habits, snapshot.categories, now=clock())
        return json.dumps({"status": "ok", "insights": insights}, ensure_ascii=False)

    @mcp.tool
    async def habit_insights(ctx: Context, habit_id: str) -> str:
        """Trend and usual completion time for one habit.

        Args:
            habit_id: The habit to analyze.
        """
        habit = await repository.get_habit(habit_id)
        if habit is None:
            return json.dumps({
                "status": "not_found",
                "habit_id": habit_id,
                "message": "No habit found with that ID.",
            })
        trend = get_completion_trend(habit, today=clock().date())
        return json.dumps({
            "status": "ok",
            "habit_id": habit_id,
            "name": habit.name,
            "streak": habit.streak,
            "trend": trend,
            "trend_icon": get_trend_icon(trend),
            "optimal_time": analyze_optimal_time(habit),
            "completions": len(habit.completion_history),
        }, ensure_ascii=False)

    @mcp.tool
    async def weekly_activity(ctx: Context, category: str | None = None) -> str:
        """Share of scheduled habits with any completion, per weekday (Sunday first).

        Args:
            category: Restrict to one category; omit for all habits.
        """
        snapshot = await repository.snapshot()
        percentages = calculate_weekly_activity(snapshot.habits, category)
        labels = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
        return json.dumps({
            "status": "ok",
            "category": category or "All Habits",
            "activity": dict(zip(labels, percentages)),
        })

    @mcp.tool
    async def activity_heatmap(ctx: Context, days: int = 35) -> str:
        """Daily activity intensity (0-5) for the last N days, oldest first.

        Args:
            days: Number of days to include (default: 35).
        """
        days = max(1, min(days, 366))
        snapshot = await repository.snapshot()
        cells = build_heatmap(snapshot.habits, today=clock().date(), days=days)
        return json.dumps({"status": "ok", "days": days, "cells": cells})
