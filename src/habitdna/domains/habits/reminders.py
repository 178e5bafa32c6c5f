"""Dated one-off reminders with simple CRUD."""

from __future__ import annotations

import asyncio
import copy
import dataclasses
import json
import logging
import uuid
from datetime import date, datetime
from typing import Any

from habitdna.core.storage.kv_store import KeyValueStore, StorageError
from habitdna.domains.habits.domain_logic.calendar import parse_timestamp
from habitdna.domains.habits.models import Reminder
from habitdna.domains.habits.repository import Clock, HabitValidationError

logger = logging.getLogger(__name__)

REMINDER_STORAGE_KEY = "reminder-storage"
PRIORITIES = ("high", "medium", "low")

_EDITABLE = ("title", "datetime", "alarm", "notification", "priority", "category")


class ReminderRepository:
    """Stores reminders under a single key, persisted after every change."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        clock: Clock | None = None,
        storage_key: str = REMINDER_STORAGE_KEY,
    ) -> None:
        self._store = store
        self._clock = clock or datetime.now
        self._key = storage_key
        self._reminders: list[Reminder] = []
        self._loaded = False
        self._load_lock = asyncio.Lock()
        self._lock = asyncio.Lock()

    async def load(self) -> None:
        """Read the persisted reminders once; concurrent first callers wait for it."""
        if self._loaded:
            return
        async with self._load_lock:
            if self._loaded:
                return
            try:
                raw = await self._store.get(self._key)
            except StorageError as exc:
                logger.error("Could not read %s, starting empty: %s", self._key, exc)
                raw = None
            if raw is not None:
                self._restore(raw)
            self._loaded = True

    def _restore(self, raw: str) -> None:
        try:
            state = json.loads(raw).get("state", {})
            self._reminders = [Reminder.from_dict(r) for r in state.get("reminders", [])]
        except (json.JSONDecodeError, AttributeError, KeyError, TypeError) as exc:
            logger.error("Ignoring malformed %s payload: %s", self._key, exc)

    async def _persist(self) -> None:
        payload = json.dumps(
            {"state": {"reminders": [r.to_dict() for r in self._reminders]}, "version": 0},
            separators=(",", ":"),
            ensure_ascii=False,
        )
        try:
            await self._store.set(self._key, payload)
        except StorageError as exc:
            logger.warning("Failed to persist %s; keeping in-memory state: %s", self._key, exc)

    @staticmethod
    def _validate(fields: dict[str, Any]) -> None:
        if "title" in fields and not str(fields["title"]).strip():
            raise HabitValidationError("Reminder title must not be empty")
        if "datetime" in fields:
            try:
                parse_timestamp(fields["datetime"])
            except (TypeError, ValueError) as exc:
                raise HabitValidationError(f"Invalid datetime: {fields['datetime']!r}") from exc
        if fields.get("priority") is not None and fields["priority"] not in PRIORITIES:
            raise HabitValidationError(f"Invalid priority: {fields['priority']!r}")

    def _find(self, reminder_id: str) -> int:
        for index, reminder in enumerate(self._reminders):
            if reminder.id == reminder_id:
                return index
        return -1

    async def list_reminders(self) -> list[Reminder]:
        await self.load()
        return copy.deepcopy(self._reminders)

    async def add_reminder(
        self,
        title: str,
        datetime_iso: str,
        *,
        alarm: bool = False,
        notification: bool = False,
        priority: str | None = None,
        category: str | None = None,
    ) -> Reminder:
        await self.load()
        self._validate({"title": title, "datetime": datetime_iso, "priority": priority})
        reminder = Reminder(
            id=str(uuid.uuid4()),
            title=title.strip(),
            datetime=datetime_iso,
            alarm=alarm,
            notification=notification,
            priority=priority,
            category=category,
        )
        async with self._lock:
            self._reminders.append(reminder)
            await self._persist()
        logger.info("Added reminder %s due %s", reminder.id, datetime_iso)
        return copy.deepcopy(reminder)

    async def edit_reminder(self, reminder_id: str, **fields: Any) -> Reminder | None:
        await self.load()
        unknown = set(fields) - set(_EDITABLE)
        if unknown:
            raise HabitValidationError(f"Fields cannot be edited: {sorted(unknown)}")
        self._validate(fields)
        async with self._lock:
            index = self._find(reminder_id)
            if index < 0:
                return None
            updated = dataclasses.replace(self._reminders[index], **fields)
            self._reminders[index] = updated
            await self._persist()
        return copy.deepcopy(updated)

    async def delete_reminder(self, reminder_id: str) -> bool:
        await self.load()
        async with self._lock:
            index = self._find(reminder_id)
            if index < 0:
                return False
            del self._reminders[index]
            await self._persist()
        logger.info("Deleted reminder %s", reminder_id)
        return True

    async def toggle_complete(self, reminder_id: str) -> Reminder | None:
        """Flip ``completed``; ``completed_at`` is set on completion and cleared on undo."""
        await self.load()
        async with self._lock:
            index = self._find(reminder_id)
            if index < 0:
                return None
            current = self._reminders[index]
            completed = not current.completed
            updated = dataclasses.replace(
                current,
                completed=completed,
                completed_at=self._clock().isoformat() if completed else None,
            )
            self._reminders[index] = updated
            await self._persist()
        return copy.deepcopy(updated)

    async def due_on(self, day: date) -> list[Reminder]:
        """Reminders scheduled on ``day``, earliest first."""
        await self.load()
        due = []
        for reminder in self._reminders:
            try:
                moment = parse_timestamp(reminder.datetime)
            except ValueError:
                continue
            if moment.date() == day:
                due.append((moment, reminder))
        due.sort(key=lambda pair: pair[0])
        return [copy.deepcopy(r) for _, r in due]
