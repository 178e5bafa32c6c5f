"""Keeps the last generated Habit DNA so first-unlock times survive restarts."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Sequence
from datetime import datetime

from habitdna.core.storage.kv_store import KeyValueStore, StorageError
from habitdna.domains.habits.domain_logic.dna import generate_dna, unlock_mutation
from habitdna.domains.habits.models import Habit, HabitDNA
from habitdna.domains.habits.repository import Clock

logger = logging.getLogger(__name__)

DNA_STORAGE_KEY = "dna-storage"


class DNAStore:
    """Regenerates DNA on demand and persists it.

    The stored DNA is only used as the ``previous`` input to
    :func:`generate_dna`; segments and scores are always recomputed.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        clock: Clock | None = None,
        storage_key: str = DNA_STORAGE_KEY,
    ) -> None:
        self._store = store
        self._clock = clock or datetime.now
        self._key = storage_key
        self._dna: HabitDNA | None = None
        self._loaded = False
        self._load_lock = asyncio.Lock()

    @property
    def current(self) -> HabitDNA | None:
        return self._dna

    async def load(self) -> HabitDNA | None:
        if self._loaded:
            return self._dna
        async with self._load_lock:
            if self._loaded:
                return self._dna
            try:
                raw = await self._store.get(self._key)
            except StorageError as exc:
                logger.error("Could not read %s: %s", self._key, exc)
                raw = None
            if raw:
                try:
                    self._dna = HabitDNA.from_dict(json.loads(raw)["state"]["dna"])
                except (json.JSONDecodeError, KeyError, TypeError) as exc:
                    logger.error("Ignoring malformed %s payload: %s", self._key, exc)
            self._loaded = True
        return self._dna

    async def _persist(self) -> None:
        if self._dna is None:
            return
        payload = json.dumps(
            {"state": {"dna": self._dna.to_dict()}, "version": 0},
            separators=(",", ":"),
            ensure_ascii=False,
        )
        try:
            await self._store.set(self._key, payload)
        except StorageError as exc:
            logger.warning("Failed to persist %s: %s", self._key, exc)

    async def regenerate(self, habits: Sequence[Habit]) -> HabitDNA:
        previous = await self.load()
        self._dna = generate_dna(habits, previous=previous, now=self._clock())
        await self._persist()
        return self._dna

    async def unlock_mutation(self, mutation_id: str) -> HabitDNA | None:
        """Manually unlock a mutation on the current DNA. None before any DNA exists."""
        dna = await self.load()
        if dna is None:
            return None
        self._dna = unlock_mutation(dna, mutation_id, now=self._clock())
        await self._persist()
        return self._dna
