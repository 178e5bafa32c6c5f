"""Tests for store selection, the bind guard and the startup summary."""

from __future__ import annotations

import logging

import pytest

from habitdna.core.config.settings import Settings
from habitdna.core.server import main
from habitdna.core.server.app import _create_store
from habitdna.core.storage.encryption import ValueEncryptor
from habitdna.core.storage.kv_store import InMemoryKeyValueStore, SQLiteKeyValueStore


class TestCreateStore:
    def test_memory_backend(self):
        assert isinstance(_create_store(), InMemoryKeyValueStore)

    def test_sqlite_backend(self, monkeypatch, tmp_path):
        monkeypatch.setenv("STORAGE_BACKEND", "sqlite")
        monkeypatch.setenv("DB_PATH", str(tmp_path / "habits.db"))
        store = _create_store()
        assert isinstance(store, SQLiteKeyValueStore)
        assert store.encrypted is False

    def test_sqlite_with_encryption(self, monkeypatch, tmp_path):
        monkeypatch.setenv("STORAGE_BACKEND", "sqlite")
        monkeypatch.setenv("DB_PATH", str(tmp_path / "habits.db"))
        monkeypatch.setenv("ENCRYPTION_KEY", ValueEncryptor.generate_key())
        assert _create_store().encrypted is True

    def test_invalid_key_falls_back_to_memory(self, monkeypatch, tmp_path):
        monkeypatch.setenv("STORAGE_BACKEND", "sqlite")
        monkeypatch.setenv("DB_PATH", str(tmp_path / "habits.db"))
        monkeypatch.setenv("ENCRYPTION_KEY", "not-a-key")
        assert isinstance(_create_store(), InMemoryKeyValueStore)


class TestBindGuard:
    @pytest.mark.parametrize("host", ["localhost", "127.0.0.1", "::1"])
    def test_loopback(self, host):
        assert main._is_loopback_host(host)

    @pytest.mark.parametrize("host", ["0.0.0.0", "192.168.1.4", "example.com"])
    def test_not_loopback(self, host):
        assert not main._is_loopback_host(host)

    def test_refuses_public_bind(self, monkeypatch):
        monkeypatch.setenv("HABITDNA_HOST", "0.0.0.0")
        with pytest.raises(RuntimeError, match="non-loopback"):
            main.run()

    def test_refusal_names_the_host(self, monkeypatch):
        monkeypatch.setenv("HABITDNA_HOST", "192.168.1.4")
        with pytest.raises(RuntimeError, match="'192.168.1.4'"):
            main.run()


class TestStartupDescription:
    def test_endpoint_url(self, monkeypatch):
        monkeypatch.setenv("HABITDNA_PORT", "9100")
        assert main.endpoint_url(Settings()) == "http://127.0.0.1:9100/mcp"

    def test_endpoint_url_brackets_ipv6(self, monkeypatch):
        monkeypatch.setenv("HABITDNA_HOST", "::1")
        assert main.endpoint_url(Settings()) == "http://[::1]:8001/mcp"

    def test_memory_storage(self):
        assert main.describe_storage(Settings()) == "in memory (lost on restart)"

    def test_sqlite_storage(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "sqlite")
        monkeypatch.setenv("DB_PATH", "/data/habits.db")
        assert main.describe_storage(Settings()) == "/data/habits.db (unencrypted)"
        monkeypatch.setenv("ENCRYPTION_KEY", ValueEncryptor.generate_key())
        assert main.describe_storage(Settings()) == "/data/habits.db (encrypted)"

    @pytest.mark.parametrize(
        ("name", "level"),
        [("debug", logging.DEBUG), ("WARNING", logging.WARNING), ("chatty", logging.INFO)],
    )
    def test_log_level(self, name, level):
        assert main._log_level(name) == level
