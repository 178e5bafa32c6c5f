"""Tests for the confirm/notify adapters."""

from __future__ import annotations

import logging

from habitdna.core.platform.capabilities import (
    AutoConfirmer,
    Confirmer,
    LoggingNotifier,
    Notifier,
    RecordingNotifier,
)


def test_adapters_satisfy_protocols():
    assert isinstance(AutoConfirmer(), Confirmer)
    assert isinstance(LoggingNotifier(), Notifier)
    assert isinstance(RecordingNotifier(), Notifier)


def test_auto_confirmer_approves():
    assert AutoConfirmer().confirm("Delete?") is True


def test_recording_notifier_drain():
    notifier = RecordingNotifier()
    notifier.notify("one")
    notifier.notify("two")
    assert notifier.drain() == ["one", "two"]
    assert notifier.drain() == []


def test_logging_notifier_warns(caplog):
    with caplog.at_level(logging.WARNING):
        LoggingNotifier().notify("careful")
    assert "careful" in caplog.text
