"""MCP tools for creating, completing, and organizing habits."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from fastmcp import Context, FastMCP

from habitdna.domains.habits.repository import HabitValidationError

if TYPE_CHECKING:
    from habitdna.core.platform.capabilities import RecordingNotifier
    from habitdna.domains.habits.repository import HabitRepository

logger = logging.getLogger(__name__)


def _not_found(habit_id: str) -> str:
    return json.dumps({
        "status": "not_found",
        "habit_id": habit_id,
        "message": "No habit found with that ID.",
    })


def _error(exc: Exception) -> str:
    return json.dumps({"status": "error", "message": str(exc)})


def register_habit_tools(
    mcp: FastMCP,
    repository: HabitRepository,
    notifier: RecordingNotifier | None = None,
) -> None:
    """Register habit management tools on the MCP server."""

    @mcp.tool
    async def add_habit(
        ctx: Context,
        name: str,
        frequency: str = "daily",
        category: str = "Personal",
        days: list[str] | None = None,
        time: str | None = None,
        color: str | None = None,
        reminder: bool = False,
    ) -> str:
        """Create a new recurring habit.

        Args:
            name: Habit name (e.g., 'Morning run').
            frequency: 'daily', 'weekdays', 'weekends', or 'custom'.
            category: One of the configured categories (see list_categories).
            days: Weekday names, required for 'custom' (e.g., ['Monday', 'Friday']).
            time: Preferred time of day as HH:MM.
            color: Optional display colour.
            reminder: Whether reminders are wanted for this habit.
        """
        try:
            habit = await repository.add_habit(
                name,
                frequency=frequency,
                category=category,
                days=days,
                time=time,
                color=color,
                reminder=reminder,
            )
        except HabitValidationError as exc:
            return _error(exc)
        return json.dumps({"status": "created", "habit": habit.to_dict()})

    @mcp.tool
    async def update_habit(
        ctx: Context,
        habit_id: str,
        name: str | None = None,
        frequency: str | None = None,
        category: str | None = None,
        days: list[str] | None = None,
        time: str | None = None,
        color: str | None = None,
        reminder: bool | None = None,
    ) -> str:
        """Edit a habit's name, schedule, category, or reminder settings.

        Only the arguments you pass are changed. Progress counters cannot be edited.

        Args:
            habit_id: The habit to edit.
        """
        candidates: dict[str, Any] = {
            "name": name,
            "frequency": frequency,
            "category": category,
            "days": days,
            "time": time,
            "color": color,
            "reminder": reminder,
        }
        fields = {k: v for k, v in candidates.items() if v is not None}
        if not fields:
            return json.dumps({"status": "error", "message": "No fields to update"})
        try:
            habit = await repository.update_habit(habit_id, **fields)
        except HabitValidationError as exc:
            return _error(exc)
        if habit is None:
            return _not_found(habit_id)
        return json.dumps({"status": "updated", "habit": habit.to_dict()})

    @mcp.tool
    async def complete_habit(ctx: Context, habit_id: str) -> str:
        """Mark a habit as done for today.

        Completing the same habit twice on one day has no further effect.

        Args:
            habit_id: The habit to complete.
        """
        result = await repository.record_completion(habit_id)
        if result is None:
            return _not_found(habit_id)
        habit, changed = result
        return json.dumps({
            "status": "completed" if changed else "already_completed",
            "habit_id": habit_id,
            "streak": habit.streak,
            "completed": habit.completed,
            "last_completed_date": habit.last_completed_date,
        })

    @mcp.tool
    async def add_habit_note(ctx: Context, habit_id: str, note: str) -> str:
        """Attach a dated note to a habit (e.g., how today's session went).

        Args:
            habit_id: The habit to annotate.
            note: Free-text note.
        """
        try:
            habit = await repository.add_completion_note(habit_id, note)
        except HabitValidationError as exc:
            return _error(exc)
        if habit is None:
            return _not_found(habit_id)
        return json.dumps({
            "status": "saved",
            "habit_id": habit_id,
            "notes": [n.to_dict() for n in habit.completion_notes],
        })

    @mcp.tool
    async def delete_habit(ctx: Context, habit_id: str) -> str:
        """Permanently delete a habit and its history.

        Args:
            habit_id: The habit to delete.
        """
        deleted = await repository.delete_habit(habit_id)
        if not deleted:
            return json.dumps({
                "status": "not_deleted",
                "habit_id": habit_id,
                "message": "No habit was deleted (unknown ID or cancelled).",
            })
        return json.dumps({"status": "deleted", "habit_id": habit_id})

    @mcp.tool
    async def list_habits(ctx: Context, category: str | None = None) -> str:
        """List habits, optionally restricted to one category.

        Args:
            category: Only list habits in this category.
        """
        snapshot = await repository.snapshot()
        habits = [
            h.to_dict() for h in snapshot.habits
            if category is None or h.category == category
        ]
        return json.dumps({"status": "ok", "count": len(habits), "habits": habits}, indent=2)

    @mcp.tool
    async def list_categories(ctx: Context) -> str:
        """List the available habit categories."""
        categories = await repository.list_categories()
        return json.dumps({"status": "ok", "categories": categories})

    @mcp.tool
    async def add_category(ctx: Context, category: str) -> str:
        """Add a habit category.

        Args:
            category: Category name (e.g., 'Learning').
        """
        added = await repository.add_category(category)
        return json.dumps({
            "status": "created" if added else "exists",
            "categories": await repository.list_categories(),
        })

    @mcp.tool
    async def delete_category(ctx: Context, category: str) -> str:
        """Delete a category that no habit uses.

        Args:
            category: Category name.
        """
        deleted = await repository.delete_category(category)
        result: dict[str, Any] = {
            "status": "deleted" if deleted else "rejected",
            "categories": await repository.list_categories(),
        }
        if notifier is not None:
            messages = notifier.drain()
            if messages:
                result["warnings"] = messages
        return json.dumps(result)

    @mcp.tool
    async def reset_weekly_stats(ctx: Context) -> str:
        """Zero the weekly completion counters of all habits."""
        await repository.reset_weekly_stats()
        return json.dumps({"status": "reset", "habits": await repository.count_habits()})
