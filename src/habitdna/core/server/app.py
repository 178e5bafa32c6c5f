"""HabitDNA MCP server — application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging
from datetime import datetime

from fastmcp import FastMCP

from habitdna.core.config.settings import get_settings
from habitdna.core.platform.capabilities import Confirmer, RecordingNotifier
from habitdna.core.storage.database import HabitDatabase
from habitdna.core.storage.encryption import EncryptionError, ValueEncryptor
from habitdna.core.storage.kv_store import (
    InMemoryKeyValueStore,
    KeyValueStore,
    SQLiteKeyValueStore,
    StorageError,
)
from habitdna.domains.habits.dna_store import DNAStore
from habitdna.domains.habits.reminders import ReminderRepository
from habitdna.domains.habits.repository import Clock, HabitRepository
from habitdna.domains.habits.tools.analytics_tools import register_analytics_tools
from habitdna.domains.habits.tools.dna_tools import register_dna_tools
from habitdna.domains.habits.tools.habit_tools import register_habit_tools
from habitdna.domains.habits.tools.reminder_tools import register_reminder_tools
from habitdna.domains.habits.weekly_reset import reset_week_if_due

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def _create_store() -> KeyValueStore:
    """Build the configured key-value store, falling back to memory on key errors."""
    settings = get_settings()
    if settings.storage_backend == "memory":
        logger.info("Using in-memory storage — habits will not survive a restart")
        return InMemoryKeyValueStore()

    encryptor: ValueEncryptor | None = None
    if settings.encryption_key:
        try:
            encryptor = ValueEncryptor(settings.encryption_key)
        except EncryptionError as exc:
            logger.error("Invalid ENCRYPTION_KEY: %s", exc)
            logger.warning("Continuing with in-memory storage — data will not be stored")
            return InMemoryKeyValueStore()

    database = HabitDatabase(settings.db_path)
    database.initialize()
    logger.info(
        "Habit store initialized: %s (schema v%d, encrypted=%s)",
        settings.db_path,
        database.get_schema_version(),
        encryptor is not None,
    )
    return SQLiteKeyValueStore(database, encryptor)


def create_app(
    *,
    store_override: KeyValueStore | None = None,
    confirmer: Confirmer | None = None,
    notifier: RecordingNotifier | None = None,
    clock: Clock | None = None,
) -> FastMCP:
    """Create and configure the HabitDNA MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Initializes the key-value store (SQLite or memory)
    3. Creates the habit, reminder, and DNA repositories
    4. Registers all tools
    """
    settings = get_settings()
    clock = clock or datetime.now

    server = FastMCP(
        "HabitDNA",
        instructions=(
            "Personal habit tracker. Create habits, mark them complete, and "
            "read progress analytics, category insights, and your Habit DNA "
            "with its unlockable mutations."
        ),
    )

    store = store_override if store_override is not None else _create_store()

    notifier = notifier if notifier is not None else RecordingNotifier()
    repository = HabitRepository(
        store,
        confirmer=confirmer,
        notifier=notifier,
        clock=clock,
        default_categories=settings.default_categories,
    )
    reminders = ReminderRepository(store, clock=clock)
    dna_store = DNAStore(store, clock=clock)

    @server.tool
    async def health_check() -> dict:
        """Check server health and return basic status information."""
        reset = await reset_week_if_due(repository, store, today=clock().date())
        status = "ok"
        stored_keys = None
        if isinstance(store, (InMemoryKeyValueStore, SQLiteKeyValueStore)):
            try:
                stored_keys = store.count_keys()
            except StorageError as exc:
                logger.error("health_check could not count stored keys: %s", exc)
                status = "degraded"
        return {
            "status": status,
            "server": "HabitDNA",
            "version": VERSION,
            "storage": type(store).__name__,
            "stored_keys": stored_keys,
            "habits_stored": await repository.count_habits(),
            "weekly_reset_applied": reset,
        }

    register_habit_tools(server, repository, notifier)
    register_analytics_tools(server, repository, clock)
    register_dna_tools(server, repository, dna_store)
    register_reminder_tools(server, reminders, repository, clock)
    logger.info("Habit, analytics, DNA, and reminder tools registered")

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
