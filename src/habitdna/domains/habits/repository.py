"""Habit repository — the source of truth for habits and categories.

Holds the habit list and category list in memory and writes a JSON
snapshot to the key-value store after every mutation. The in-memory state
is authoritative for the session: a failed write is logged and dropped,
never raised to the caller.
"""

from __future__ import annotations

import asyncio
import copy
import dataclasses
import json
import logging
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from habitdna.core.platform.capabilities import (
    AutoConfirmer,
    Confirmer,
    LoggingNotifier,
    Notifier,
)
from habitdna.core.storage.kv_store import KeyValueStore, StorageError
from habitdna.domains.habits.domain_logic.calendar import (
    WEEKDAY_NAMES,
    days_for_frequency,
    iso_date,
)
from habitdna.domains.habits.domain_logic.streak_engine import complete_habit
from habitdna.domains.habits.models import FREQUENCIES, CompletionNote, Habit

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = ("Health", "Work", "Personal")
HABIT_STORAGE_KEY = "habit-storage"
STORAGE_VERSION = 0

EDITABLE_FIELDS = frozenset({"name", "time", "color", "reminder", "category", "frequency", "days"})

Clock = Callable[[], datetime]


class HabitValidationError(ValueError):
    """Raised when habit input is rejected at the repository boundary."""


@dataclass(frozen=True)
class HabitSnapshot:
    """Consistent, detached copy of the repository state."""

    habits: tuple[Habit, ...]
    categories: tuple[str, ...]


class HabitRepository:
    """Owns the habit collection and serializes mutations.

    Usage::

        repo = HabitRepository(InMemoryKeyValueStore())
        habit = await repo.add_habit("Read", frequency="daily", category="Personal")
        await repo.mark_habit_complete(habit.id)
        snapshot = await repo.snapshot()
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        confirmer: Confirmer | None = None,
        notifier: Notifier | None = None,
        clock: Clock | None = None,
        storage_key: str = HABIT_STORAGE_KEY,
        default_categories: Sequence[str] = DEFAULT_CATEGORIES,
    ) -> None:
        self._store = store
        self._confirmer = confirmer or AutoConfirmer()
        self._notifier = notifier or LoggingNotifier()
        self._clock = clock or datetime.now
        self._key = storage_key

        self._habits: list[Habit] = []
        self._categories: list[str] = list(default_categories)
        self._loaded = False

        self._load_lock = asyncio.Lock()
        self._collection_lock = asyncio.Lock()
        self._persist_lock = asyncio.Lock()
        self._habit_locks: dict[str, asyncio.Lock] = {}

    # ------------------------------------------------------------------
    # Load / persist
    # ------------------------------------------------------------------

    async def load(self) -> None:
        """Read the persisted snapshot. Runs once; later calls are no-ops."""
        async with self._load_lock:
            if self._loaded:
                return
            self._loaded = True
            try:
                raw = await self._store.get(self._key)
            except StorageError as exc:
                logger.error("Could not read %s, starting empty: %s", self._key, exc)
                return
            if raw is None:
                return
            self._restore(raw)

    def _restore(self, raw: str) -> None:
        try:
            state = json.loads(raw).get("state", {})
            habits = [Habit.from_dict(h) for h in state.get("habits", [])]
            categories = list(state.get("categories") or self._categories)
        except (json.JSONDecodeError, AttributeError, KeyError, TypeError) as exc:
            logger.error("Ignoring malformed %s payload: %s", self._key, exc)
            return
        self._habits = habits
        self._categories = categories
        logger.info("Loaded %d habits and %d categories", len(habits), len(categories))

    def _serialize(self) -> str:
        payload: dict[str, Any] = {
            "state": {
                "habits": [h.to_dict() for h in self._habits],
                "categories": list(self._categories),
            },
            "version": STORAGE_VERSION,
        }
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)

    async def _persist(self) -> None:
        async with self._persist_lock:
            payload = self._serialize()
            try:
                await self._store.set(self._key, payload)
            except StorageError as exc:
                logger.warning("Failed to persist %s; keeping in-memory state: %s", self._key, exc)

    def _lock_for(self, habit_id: str) -> asyncio.Lock:
        lock = self._habit_locks.get(habit_id)
        if lock is None:
            lock = self._habit_locks[habit_id] = asyncio.Lock()
        return lock

    def _index_of(self, habit_id: str) -> int:
        for index, habit in enumerate(self._habits):
            if habit.id == habit_id:
                return index
        return -1

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def snapshot(self) -> HabitSnapshot:
        await self.load()
        return HabitSnapshot(
            habits=tuple(copy.deepcopy(self._habits)),
            categories=tuple(self._categories),
        )

    async def get_habit(self, habit_id: str) -> Habit | None:
        await self.load()
        index = self._index_of(habit_id)
        return copy.deepcopy(self._habits[index]) if index >= 0 else None

    async def count_habits(self) -> int:
        await self.load()
        return len(self._habits)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _resolve_days(self, frequency: str, days: Sequence[str] | None) -> list[str]:
        if frequency not in FREQUENCIES:
            raise HabitValidationError(
                f"Invalid frequency: {frequency!r}. Valid: {list(FREQUENCIES)}"
            )
        if frequency == "custom":
            unknown = [d for d in days or [] if d not in WEEKDAY_NAMES]
            if unknown:
                raise HabitValidationError(f"Unknown weekday names: {unknown}")
        resolved = days_for_frequency(frequency, list(days or []))
        if not resolved:
            raise HabitValidationError("Please select at least one day")
        return resolved

    def _check_category(self, category: str) -> None:
        if category not in self._categories:
            raise HabitValidationError(
                f"Unknown category: {category!r}. Valid: {self._categories}"
            )

    # ------------------------------------------------------------------
    # Habit mutations
    # ------------------------------------------------------------------

    async def add_habit(
        self,
        name: str,
        *,
        frequency: str,
        category: str,
        days: Sequence[str] | None = None,
        time: str | None = None,
        color: str | None = None,
        reminder: bool = False,
    ) -> Habit:
        """Create a habit. ``days`` is only used for the ``custom`` frequency.

        Raises:
            HabitValidationError: On an empty name, unknown frequency or
                category, or a custom schedule without valid days.
        """
        await self.load()
        name = name.strip()
        if not name:
            raise HabitValidationError("Habit name must not be empty")

        async with self._collection_lock:
            self._check_category(category)
            habit = Habit(
                id=str(uuid.uuid4()),
                name=name,
                frequency=frequency,
                days=self._resolve_days(frequency, days),
                category=category,
                created_at=self._clock().isoformat(),
                time=time,
                color=color,
                reminder=reminder,
            )
            self._habits.append(habit)
            await self._persist()

        logger.info("Added habit %s (%s, %s)", habit.id, habit.frequency, habit.category)
        return copy.deepcopy(habit)

    async def update_habit(self, habit_id: str, **fields: Any) -> Habit | None:
        """Edit descriptive fields of a habit. Progress counters are not editable.

        Returns:
            The updated habit, or None if no habit has that id.

        Raises:
            HabitValidationError: For non-editable fields or invalid values.
        """
        await self.load()
        rejected = set(fields) - EDITABLE_FIELDS
        if rejected:
            raise HabitValidationError(f"Fields cannot be edited: {sorted(rejected)}")

        async with self._lock_for(habit_id):
            index = self._index_of(habit_id)
            if index < 0:
                logger.debug("update_habit: no habit %s", habit_id)
                return None

            current = self._habits[index]
            changes = dict(fields)
            if "name" in changes:
                changes["name"] = str(changes["name"]).strip()
                if not changes["name"]:
                    raise HabitValidationError("Habit name must not be empty")
            if "category" in changes:
                self._check_category(changes["category"])
            if "frequency" in changes or "days" in changes:
                frequency = changes.get("frequency", current.frequency)
                changes["days"] = self._resolve_days(frequency, changes.get("days", current.days))

            updated = dataclasses.replace(current, **changes)
            self._habits[self._index_of(habit_id)] = updated
            await self._persist()

        logger.info("Updated habit %s: %s", habit_id, sorted(fields))
        return copy.deepcopy(updated)

    async def record_completion(self, habit_id: str) -> tuple[Habit, bool] | None:
        """Record a completion for today and say whether it changed anything.

        Completing twice on the same date leaves the habit unchanged.

        Returns:
            ``(habit, changed)`` where ``changed`` is False when the habit was
            already completed today, or None if no habit has that id.
        """
        await self.load()
        async with self._lock_for(habit_id):
            index = self._index_of(habit_id)
            if index < 0:
                logger.debug("record_completion: no habit %s", habit_id)
                return None

            now = self._clock()
            current = self._habits[index]
            updated = complete_habit(current, now.date(), now)
            changed = updated is not current
            if changed:
                self._habits[index] = updated
                await self._persist()
                logger.info(
                    "Completed habit %s (streak=%d, completed=%d)",
                    habit_id, updated.streak, updated.completed,
                )
        return copy.deepcopy(updated), changed

    async def mark_habit_complete(self, habit_id: str) -> Habit | None:
        """Record a completion for today; the habit afterwards, or None if unknown."""
        result = await self.record_completion(habit_id)
        return result[0] if result is not None else None

    async def add_completion_note(self, habit_id: str, note: str) -> Habit | None:
        """Attach a note dated today. Returns None for an unknown id."""
        await self.load()
        note = note.strip()
        if not note:
            raise HabitValidationError("Note must not be empty")

        async with self._lock_for(habit_id):
            index = self._index_of(habit_id)
            if index < 0:
                return None
            current = self._habits[index]
            updated = dataclasses.replace(
                current,
                completion_notes=[
                    *current.completion_notes,
                    CompletionNote(date=iso_date(self._clock().date()), note=note),
                ],
            )
            self._habits[index] = updated
            await self._persist()
        return copy.deepcopy(updated)

    async def delete_habit(self, habit_id: str) -> bool:
        """Hard-delete a habit after confirmation.

        Returns:
            True if the habit existed, was confirmed, and was removed.
        """
        await self.load()
        async with self._collection_lock, self._lock_for(habit_id):
            index = self._index_of(habit_id)
            if index < 0:
                logger.debug("delete_habit: no habit %s", habit_id)
                return False
            name = self._habits[index].name
            if not self._confirmer.confirm(f'Delete habit "{name}"? This cannot be undone.'):
                logger.info("Deletion of habit %s cancelled", habit_id)
                return False
            del self._habits[index]
            await self._persist()

        self._habit_locks.pop(habit_id, None)
        logger.info("Deleted habit %s", habit_id)
        return True

    async def reset_weekly_stats(self) -> None:
        """Zero every habit's weekly completion counter."""
        await self.load()
        async with self._collection_lock:
            self._habits = [dataclasses.replace(h, weekly_completed=0) for h in self._habits]
            await self._persist()
        logger.info("Weekly stats reset for %d habits", len(self._habits))

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def list_categories(self) -> list[str]:
        await self.load()
        return list(self._categories)

    async def add_category(self, category: str) -> bool:
        """Add a category. Returns False if it is empty or already exists."""
        await self.load()
        category = category.strip()
        async with self._collection_lock:
            if not category or category in self._categories:
                return False
            self._categories.append(category)
            await self._persist()
        logger.info("Added category %s", category)
        return True

    async def delete_category(self, category: str) -> bool:
        """Remove an unused category.

        A category still used by habits is kept; the user is warned through
        the notifier and False is returned.
        """
        await self.load()
        async with self._collection_lock:
            in_use = sum(1 for h in self._habits if h.category == category)
            if in_use:
                self._notifier.notify(
                    f'Cannot delete category "{category}" because it is being used '
                    f"by {in_use} habit(s)."
                )
                return False
            if category not in self._categories:
                return False
            self._categories.remove(category)
            await self._persist()
        logger.info("Deleted category %s", category)
        return True
