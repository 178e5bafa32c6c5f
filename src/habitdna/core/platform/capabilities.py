"""Platform capabilities injected into repositories.

The repositories never talk to a UI directly. Confirmation prompts and
user-facing warnings go through these two small interfaces; the embedding
application supplies adapters for its platform.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class Confirmer(Protocol):
    """Asks the user to approve a destructive action."""

    def confirm(self, message: str) -> bool:
        ...


@runtime_checkable
class Notifier(Protocol):
    """Shows a non-blocking message to the user."""

    def notify(self, message: str) -> None:
        ...


class AutoConfirmer:
    """Approves every request. Used where the caller already expressed intent."""

    def confirm(self, message: str) -> bool:
        logger.debug("Auto-confirmed: %s", message)
        return True


class LoggingNotifier:
    """Sends user-facing messages to the log."""

    def notify(self, message: str) -> None:
        logger.warning(message)


class RecordingNotifier:
    """Keeps every message so a caller can hand them back to the user."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)
        logger.info("Notification: %s", message)

    def drain(self) -> list[str]:
        """Return and clear pending messages."""
        messages, self.messages = self.messages, []
        return messages
