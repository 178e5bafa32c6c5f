"""Tests for DNAStore and the Monday weekly reset."""

from __future__ import annotations

import asyncio
import json
from datetime import date, datetime

from conftest import YieldingStore, make_habit, run

from habitdna.core.storage.kv_store import InMemoryKeyValueStore
from habitdna.domains.habits.dna_store import DNA_STORAGE_KEY, DNAStore
from habitdna.domains.habits.weekly_reset import LAST_RESET_KEY, reset_week_if_due

MONDAY = date(2026, 3, 9)


class TestDNAStore:
    def test_regenerate_persists(self, kv_store, clock):
        store = DNAStore(kv_store, clock=clock)
        dna = run(store.regenerate([make_habit(streak=8)]))
        assert dna.mutation_ids() == ["week-warrior"]

        payload = json.loads(run(kv_store.get(DNA_STORAGE_KEY)))
        assert payload["version"] == 0
        assert payload["state"]["dna"]["mutations"][0]["id"] == "week-warrior"

    def test_unlock_time_survives_restart(self, kv_store, clock):
        run(DNAStore(kv_store, clock=clock).regenerate([make_habit(streak=8)]))
        first_unlock = clock().isoformat()

        clock.set(datetime(2026, 4, 1, 12, 0))
        restarted = DNAStore(kv_store, clock=clock)
        dna = run(restarted.regenerate([make_habit(streak=0)]))
        assert dna.mutation_ids() == ["week-warrior"]
        assert dna.mutations[0].unlocked_at == first_unlock

    def test_regenerate_during_first_load_keeps_unlocks(self, clock):
        seeding = DNAStore(InMemoryKeyValueStore(), clock=clock)
        first = run(seeding.regenerate([make_habit(streak=8)]))
        payload = json.dumps({"state": {"dna": first.to_dict()}, "version": 0})
        store = YieldingStore({DNA_STORAGE_KEY: payload})

        clock.set(datetime(2026, 4, 1, 12, 0))
        restarted = DNAStore(store, clock=clock)

        async def load_and_regenerate():
            _, dna = await asyncio.gather(
                restarted.load(),
                restarted.regenerate([make_habit(streak=0)]),
            )
            return dna

        dna = run(load_and_regenerate())
        assert dna.mutation_ids() == ["week-warrior"]
        assert dna.mutations[0].unlocked_at == first.mutations[0].unlocked_at

    def test_unlock_before_any_dna(self, kv_store, clock):
        assert run(DNAStore(kv_store, clock=clock).unlock_mutation("century-club")) is None

    def test_manual_unlock(self, kv_store, clock):
        store = DNAStore(kv_store, clock=clock)
        run(store.regenerate([make_habit()]))
        dna = run(store.unlock_mutation("century-club"))
        assert dna.mutation_ids() == ["century-club"]
        assert store.current is dna


class TestWeeklyReset:
    def _repo_with_weekly_progress(self, habit_repository):
        habit = run(habit_repository.add_habit(
            "Read", frequency="daily", category="Health"
        ))
        run(habit_repository.mark_habit_complete(habit.id))
        return habit.id

    def test_no_reset_outside_monday(self, habit_repository, kv_store):
        habit_id = self._repo_with_weekly_progress(habit_repository)
        assert run(reset_week_if_due(habit_repository, kv_store, today=date(2026, 3, 6))) is False
        assert run(habit_repository.get_habit(habit_id)).weekly_completed == 1

    def test_reset_once_per_monday(self, habit_repository, kv_store):
        habit_id = self._repo_with_weekly_progress(habit_repository)
        assert run(reset_week_if_due(habit_repository, kv_store, today=MONDAY)) is True
        assert run(habit_repository.get_habit(habit_id)).weekly_completed == 0
        assert run(kv_store.get(LAST_RESET_KEY)) == "2026-03-09"

        assert run(reset_week_if_due(habit_repository, kv_store, today=MONDAY)) is False

    def test_next_monday_resets_again(self, habit_repository, kv_store):
        self._repo_with_weekly_progress(habit_repository)
        run(reset_week_if_due(habit_repository, kv_store, today=MONDAY))
        assert run(reset_week_if_due(habit_repository, kv_store, today=date(2026, 3, 16))) is True
