"""Shared test fixtures for HabitDNA tests."""

from __future__ import annotations

import asyncio
import sys
from datetime import datetime
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.setenv("ENCRYPTION_KEY", "")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from habitdna.core.storage.kv_store import InMemoryKeyValueStore  # noqa: E402
from habitdna.core.storage.kv_store import StorageError  # noqa: E402
from habitdna.domains.habits.models import CompletionRecord, Habit  # noqa: E402

# 2026-03-06 is a Friday
FRIDAY = datetime(2026, 3, 6, 9, 30)


def run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def make_habit(
    id: str = "h1",
    name: str = "Read",
    days: list[str] | None = None,
    frequency: str = "custom",
    category: str = "Health",
    **overrides,
) -> Habit:
    """Create a test habit with sensible defaults."""
    return Habit(
        id=id,
        name=name,
        frequency=frequency,
        days=days if days is not None else ["Monday", "Wednesday", "Friday"],
        category=category,
        created_at=overrides.pop("created_at", "2026-01-01T08:00:00"),
        **overrides,
    )


def history(*timestamps: str) -> list[CompletionRecord]:
    return [CompletionRecord(date=ts[:10], time=ts) for ts in timestamps]


class FrozenClock:
    """Callable clock whose current time tests can move."""

    def __init__(self, now: datetime = FRIDAY) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now


class FailingStore(InMemoryKeyValueStore):
    """Reads work, every write fails."""

    def __init__(self) -> None:
        super().__init__()
        self.write_attempts = 0

    async def set(self, key: str, value: str) -> None:
        self.write_attempts += 1
        raise StorageError("disk full")


class YieldingStore(InMemoryKeyValueStore):
    """Hands control back to the event loop on every read and write."""

    async def get(self, key: str) -> str | None:
        await asyncio.sleep(0)
        return await super().get(key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.sleep(0)
        await super().set(key, value)


class DenyingConfirmer:
    def __init__(self) -> None:
        self.prompts: list[str] = []

    def confirm(self, message: str) -> bool:
        self.prompts.append(message)
        return False


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def habit_db():
    """Create an in-memory HabitDatabase for testing."""
    from habitdna.core.storage.database import HabitDatabase

    db = HabitDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def value_encryptor():
    """Create a ValueEncryptor with a test key."""
    from habitdna.core.storage.encryption import ValueEncryptor

    return ValueEncryptor(ValueEncryptor.generate_key())


@pytest.fixture
def notifier():
    from habitdna.core.platform.capabilities import RecordingNotifier

    return RecordingNotifier()


@pytest.fixture
def habit_repository(kv_store, clock, notifier):
    """Create a HabitRepository backed by an in-memory store."""
    from habitdna.domains.habits.repository import HabitRepository

    return HabitRepository(kv_store, clock=clock, notifier=notifier)
