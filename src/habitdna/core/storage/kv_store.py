"""Key-value store contract and adapters.

Repositories persist a JSON snapshot under a namespaced key after every
mutation and read it back once at startup. They only see this narrow,
asynchronous contract; whether the value ends up in SQLite or in memory is
decided by the application factory.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Protocol, runtime_checkable

from habitdna.core.storage.database import DatabaseError, HabitDatabase
from habitdna.core.storage.encryption import EncryptionError, ValueEncryptor

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when a key-value read or write fails."""


@runtime_checkable
class KeyValueStore(Protocol):
    """Asynchronous string key-value store."""

    async def get(self, key: str) -> str | None:
        """Return the value stored under ``key``, or None."""
        ...

    async def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        ...


class InMemoryKeyValueStore:
    """Process-local store. Used for tests and ``storage_backend=memory``."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def count_keys(self) -> int:
        return len(self._data)


class SQLiteKeyValueStore:
    """Key-value store backed by the ``kv_store`` table.

    Values are encrypted with :class:`ValueEncryptor` when one is given.
    Rows written without encryption remain readable after a key is configured.

    Usage::

        db = HabitDatabase("~/.habitdna/habits.db")
        db.initialize()
        store = SQLiteKeyValueStore(db, ValueEncryptor(key))
        await store.set("habit-storage", payload)
    """

    def __init__(
        self,
        database: HabitDatabase,
        encryptor: ValueEncryptor | None = None,
    ) -> None:
        self._db = database
        self._enc = encryptor

    @property
    def encrypted(self) -> bool:
        return self._enc is not None

    async def get(self, key: str) -> str | None:
        try:
            row = self._db.connection.execute(
                "SELECT value, encrypted FROM kv_store WHERE key = ?", (key,)
            ).fetchone()
        except (sqlite3.Error, DatabaseError) as exc:
            raise StorageError(f"Failed to read {key!r}: {exc}") from exc

        if row is None:
            return None
        if not row["encrypted"]:
            return row["value"]
        if self._enc is None:
            raise StorageError(f"Value for {key!r} is encrypted but no key is configured")
        try:
            return self._enc.decrypt(row["value"])
        except EncryptionError as exc:
            raise StorageError(f"Failed to decrypt {key!r}: {exc}") from exc

    async def set(self, key: str, value: str) -> None:
        stored = self._enc.encrypt(value) if self._enc is not None else value
        try:
            conn = self._db.connection
            conn.execute(
                """INSERT INTO kv_store (key, value, encrypted, updated_at)
                   VALUES (?, ?, ?, datetime('now'))
                   ON CONFLICT(key) DO UPDATE SET
                       value = excluded.value,
                       encrypted = excluded.encrypted,
                       updated_at = excluded.updated_at""",
                (key, stored, int(self._enc is not None)),
            )
            conn.commit()
        except (sqlite3.Error, DatabaseError) as exc:
            raise StorageError(f"Failed to write {key!r}: {exc}") from exc
        logger.debug("Stored %s (%d chars)", key, len(value))

    def count_keys(self) -> int:
        """Number of stored keys, reported by the health check."""
        try:
            row = self._db.connection.execute("SELECT COUNT(*) FROM kv_store").fetchone()
        except (sqlite3.Error, DatabaseError) as exc:
            raise StorageError(f"Failed to count keys: {exc}") from exc
        return row[0]
