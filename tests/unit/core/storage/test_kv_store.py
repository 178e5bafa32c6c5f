"""Tests for the key-value store adapters."""

from __future__ import annotations

import pytest
from conftest import run

from habitdna.core.storage.encryption import ValueEncryptor
from habitdna.core.storage.kv_store import (
    InMemoryKeyValueStore,
    KeyValueStore,
    SQLiteKeyValueStore,
    StorageError,
)


class TestProtocol:
    def test_adapters_satisfy_protocol(self, habit_db):
        assert isinstance(InMemoryKeyValueStore(), KeyValueStore)
        assert isinstance(SQLiteKeyValueStore(habit_db), KeyValueStore)


class TestInMemory:
    def test_get_missing(self):
        assert run(InMemoryKeyValueStore().get("nope")) is None

    def test_set_and_overwrite(self):
        store = InMemoryKeyValueStore()
        run(store.set("k", "1"))
        run(store.set("k", "2"))
        assert run(store.get("k")) == "2"
        assert store.count_keys() == 1

    def test_initial_data(self):
        store = InMemoryKeyValueStore({"a": "b"})
        assert run(store.get("a")) == "b"


class TestSQLitePlain:
    def test_round_trip(self, habit_db):
        store = SQLiteKeyValueStore(habit_db)
        run(store.set("habit-storage", '{"state":{}}'))
        assert run(store.get("habit-storage")) == '{"state":{}}'
        assert store.encrypted is False

    def test_upsert_keeps_one_row(self, habit_db):
        store = SQLiteKeyValueStore(habit_db)
        run(store.set("k", "1"))
        run(store.set("k", "2"))
        assert store.count_keys() == 1
        assert run(store.get("k")) == "2"

    def test_closed_database_raises_storage_error(self):
        from habitdna.core.storage.database import HabitDatabase

        db = HabitDatabase(":memory:")
        store = SQLiteKeyValueStore(db)
        with pytest.raises(StorageError):
            run(store.set("k", "v"))
        with pytest.raises(StorageError):
            run(store.get("k"))
        with pytest.raises(StorageError, match="count"):
            store.count_keys()


class TestSQLiteEncrypted:
    def test_value_encrypted_at_rest(self, habit_db, value_encryptor):
        store = SQLiteKeyValueStore(habit_db, value_encryptor)
        run(store.set("k", "secret"))
        raw = habit_db.connection.execute(
            "SELECT value, encrypted FROM kv_store WHERE key = 'k'"
        ).fetchone()
        assert raw["value"] != "secret"
        assert raw["encrypted"] == 1
        assert run(store.get("k")) == "secret"

    def test_plaintext_rows_readable_after_key_added(self, habit_db, value_encryptor):
        run(SQLiteKeyValueStore(habit_db).set("k", "old"))
        assert run(SQLiteKeyValueStore(habit_db, value_encryptor).get("k")) == "old"

    def test_encrypted_row_without_key(self, habit_db, value_encryptor):
        run(SQLiteKeyValueStore(habit_db, value_encryptor).set("k", "secret"))
        with pytest.raises(StorageError, match="no key is configured"):
            run(SQLiteKeyValueStore(habit_db).get("k"))

    def test_wrong_key(self, habit_db, value_encryptor):
        run(SQLiteKeyValueStore(habit_db, value_encryptor).set("k", "secret"))
        other = ValueEncryptor(ValueEncryptor.generate_key())
        with pytest.raises(StorageError, match="decrypt"):
            run(SQLiteKeyValueStore(habit_db, other).get("k"))
