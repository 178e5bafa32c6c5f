"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """HabitDNA server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default: there is no auth layer in front of the tools.
    habitdna_host: str = "127.0.0.1"
    habitdna_port: int = 8001
    habitdna_log_level: str = "info"
    habitdna_allow_insecure_bind: bool = False

    # Storage (key-value snapshot store)
    storage_backend: Literal["sqlite", "memory"] = "sqlite"
    db_path: str = "~/.habitdna/habits.db"

    # Encryption of stored values; empty means plaintext JSON
    encryption_key: str = ""

    # Habits
    default_categories: list[str] = ["Health", "Work", "Personal"]


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
