"""MCP tools for reminders and the combined "upcoming today" view."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from fastmcp import Context, FastMCP

from habitdna.domains.habits.domain_logic.analytics import get_upcoming_items
from habitdna.domains.habits.repository import HabitValidationError

if TYPE_CHECKING:
    from habitdna.domains.habits.reminders import ReminderRepository
    from habitdna.domains.habits.repository import Clock, HabitRepository

logger = logging.getLogger(__name__)


def register_reminder_tools(
    mcp: FastMCP,
    reminders: ReminderRepository,
    habits: HabitRepository,
    clock: Clock,
) -> None:
    """Register reminder tools on the MCP server."""

    @mcp.tool
    async def add_reminder(
        ctx: Context,
        title: str,
        datetime: str,
        alarm: bool = False,
        notification: bool = True,
        priority: str | None = None,
        category: str | None = None,
    ) -> str:
        """Create a dated reminder.

        Args:
            title: What to be reminded of.
            datetime: When, as ISO 8601 (e.g., '2026-03-01T09:30:00').
            alarm: Sound an alarm.
            notification: Show a notification.
            priority: 'high', 'medium', or 'low'.
            category: Optional category label.
        """
        try:
            reminder = await reminders.add_reminder(
                title,
                datetime,
                alarm=alarm,
                notification=notification,
                priority=priority,
                category=category,
            )
        except HabitValidationError as exc:
            return json.dumps({"status": "error", "message": str(exc)})
        return json.dumps({"status": "created", "reminder": reminder.to_dict()})

    @mcp.tool
    async def edit_reminder(
        ctx: Context,
        reminder_id: str,
        title: str | None = None,
        datetime: str | None = None,
        priority: str | None = None,
        category: str | None = None,
        alarm: bool | None = None,
        notification: bool | None = None,
    ) -> str:
        """Change fields of a reminder; omitted arguments are left as they are.

        Args:
            reminder_id: The reminder to edit.
        """
        candidates: dict[str, Any] = {
            "title": title,
            "datetime": datetime,
            "priority": priority,
            "category": category,
            "alarm": alarm,
            "notification": notification,
        }
        fields = {k: v for k, v in candidates.items() if v is not None}
        try:
            reminder = await reminders.edit_reminder(reminder_id, **fields)
        except HabitValidationError as exc:
            return json.dumps({"status": "error", "message": str(exc)})
        if reminder is None:
            return json.dumps({"status": "not_found", "reminder_id": reminder_id})
        return json.dumps({"status": "updated", "reminder": reminder.to_dict()})

    @mcp.tool
    async def delete_reminder(ctx: Context, reminder_id: str) -> str:
        """Delete a reminder.

        Args:
            reminder_id: The reminder to delete.
        """
        deleted = await reminders.delete_reminder(reminder_id)
        return json.dumps({
            "status": "deleted" if deleted else "not_found",
            "reminder_id": reminder_id,
        })

    @mcp.tool
    async def toggle_reminder(ctx: Context, reminder_id: str) -> str:
        """Mark a reminder done, or undo that.

        Args:
            reminder_id: The reminder to toggle.
        """
        reminder = await reminders.toggle_complete(reminder_id)
        if reminder is None:
            return json.dumps({"status": "not_found", "reminder_id": reminder_id})
        return json.dumps({"status": "ok", "reminder": reminder.to_dict()})

    @mcp.tool
    async def list_reminders(ctx: Context, include_completed: bool = True) -> str:
        """List reminders.

        Args:
            include_completed: Also list reminders already marked done.
        """
        items = [
            r.to_dict() for r in await reminders.list_reminders()
            if include_completed or not r.completed
        ]
        return json.dumps({"status": "ok", "count": len(items), "reminders": items}, indent=2)

    @mcp.tool
    async def upcoming_items(ctx: Context) -> str:
        """What is still ahead today: pending habits and reminders, by time of day."""
        now = clock()
        snapshot = await habits.snapshot()
        items = get_upcoming_items(
            snapshot.habits, await reminders.due_on(now.date()), now=now
        )
        return json.dumps({"status": "ok", "count": len(items), "items": items})
