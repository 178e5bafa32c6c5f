"""Start-of-week reset of the weekly completion counters."""

from __future__ import annotations

import logging
from datetime import date

from habitdna.core.storage.kv_store import KeyValueStore, StorageError
from habitdna.domains.habits.domain_logic.calendar import iso_date
from habitdna.domains.habits.repository import HabitRepository

logger = logging.getLogger(__name__)

LAST_RESET_KEY = "lastWeeklyReset"
RESET_WEEKDAY = 0  # Monday


async def reset_week_if_due(
    repository: HabitRepository,
    store: KeyValueStore,
    *,
    today: date | None = None,
) -> bool:
    """Reset weekly counters once per Monday.

    Returns:
        True if the counters were reset by this call.
    """
    today = today or date.today()
    if today.weekday() != RESET_WEEKDAY:
        return False

    marker = iso_date(today)
    try:
        last_reset = await store.get(LAST_RESET_KEY)
    except StorageError as exc:
        logger.warning("Could not read %s: %s", LAST_RESET_KEY, exc)
        last_reset = None
    if last_reset == marker:
        return False

    await repository.reset_weekly_stats()
    try:
        await store.set(LAST_RESET_KEY, marker)
    except StorageError as exc:
        logger.warning("Could not record weekly reset: %s", exc)
    logger.info("Weekly reset applied for week starting %s", marker)
    return True
