"""Integration tests for the HabitDNA MCP server."""

from __future__ import annotations

import json

import pytest
from conftest import FrozenClock, run
from fastmcp import Client

from habitdna.core.server.app import create_app
from habitdna.core.storage.kv_store import InMemoryKeyValueStore

ALL_EXPECTED_TOOLS = [
    "health_check",
    "add_habit",
    "update_habit",
    "complete_habit",
    "add_habit_note",
    "delete_habit",
    "list_habits",
    "list_categories",
    "add_category",
    "delete_category",
    "reset_weekly_stats",
    "habit_overview",
    "category_insights",
    "habit_insights",
    "weekly_activity",
    "activity_heatmap",
    "habit_dna",
    "list_mutations",
    "unlock_mutation",
    "add_reminder",
    "edit_reminder",
    "delete_reminder",
    "toggle_reminder",
    "list_reminders",
    "upcoming_items",
]


def _payload(result) -> dict:
    content = getattr(result, "content", result)
    return json.loads(content[0].text)


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def client(store):
    mcp = create_app(store_override=store, clock=FrozenClock())
    return Client(mcp)


def test_server_starts_and_lists_tools(client):
    async def _check():
        async with client:
            tools = await client.list_tools()
            tool_names = [t.name for t in tools]
            for expected in ALL_EXPECTED_TOOLS:
                assert expected in tool_names, f"Missing tool: {expected}"
    run(_check())


def test_health_check_returns_ok(client):
    async def _check():
        async with client:
            result = await client.call_tool("health_check", {})
            text = str(result)
            assert "ok" in text
            assert "InMemoryKeyValueStore" in text
    run(_check())


def test_health_check_counts_stored_keys(client):
    async def _check():
        async with client:
            empty = _payload(await client.call_tool("health_check", {}))
            assert empty["stored_keys"] == 0
            await client.call_tool("add_habit", {"name": "Read", "category": "Health"})
            health = _payload(await client.call_tool("health_check", {}))
            assert health["status"] == "ok"
            assert health["stored_keys"] == 1
            assert health["habits_stored"] == 1
    run(_check())


def test_habit_lifecycle(client, store):
    async def _check():
        async with client:
            created = _payload(await client.call_tool(
                "add_habit", {"name": "Read", "frequency": "daily", "category": "Health"}
            ))
            assert created["status"] == "created"
            habit_id = created["habit"]["id"]

            done = _payload(await client.call_tool("complete_habit", {"habit_id": habit_id}))
            assert done["status"] == "completed"
            assert done["streak"] == 1
            assert done["last_completed_date"] == "2026-03-06"

            again = _payload(await client.call_tool("complete_habit", {"habit_id": habit_id}))
            assert again["status"] == "already_completed"
            assert again["completed"] == 1

            overview = _payload(await client.call_tool("habit_overview", {}))
            assert overview["completion_rate"]["today"] == 100
            assert overview["today"] == {"completed": 1, "total": 1}
            assert overview["longest_streak"] == {"days": 1, "name": "Read"}

            listed = _payload(await client.call_tool("list_habits", {}))
            assert listed["count"] == 1
    run(_check())
    assert store.count_keys() == 1
    assert run(store.get("habit-storage")) is not None


def test_validation_error_reported(client):
    async def _check():
        async with client:
            result = _payload(await client.call_tool(
                "add_habit", {"name": "Read", "frequency": "custom", "days": []}
            ))
            assert result["status"] == "error"
            assert "at least one day" in result["message"]
    run(_check())


def test_unknown_habit(client):
    async def _check():
        async with client:
            result = _payload(await client.call_tool("complete_habit", {"habit_id": "missing"}))
            assert result["status"] == "not_found"
    run(_check())


def test_delete_category_in_use_returns_warning(client):
    async def _check():
        async with client:
            await client.call_tool("add_habit", {"name": "Walk", "category": "Health"})
            result = _payload(await client.call_tool("delete_category", {"category": "Health"}))
            assert result["status"] == "rejected"
            assert result["warnings"] == [
                'Cannot delete category "Health" because it is being used by 1 habit(s).'
            ]
            assert "Health" in result["categories"]
    run(_check())


def test_dna_and_manual_unlock(client):
    async def _check():
        async with client:
            await client.call_tool("add_habit", {"name": "Walk", "category": "Health"})
            dna = _payload(await client.call_tool("habit_dna", {}))["dna"]
            assert len(dna["segments"]) == 1
            assert dna["segments"][0]["shape"] == "helix"
            assert dna["mutations"] == []

            unlocked = _payload(await client.call_tool(
                "unlock_mutation", {"mutation_id": "century-club"}
            ))
            assert unlocked["mutations"] == ["century-club"]

            catalog = _payload(await client.call_tool("list_mutations", {}))["mutations"]
            flags = {m["id"]: m["unlocked"] for m in catalog}
            assert flags["century-club"] is True
            assert flags["year-legend"] is False

            bad = _payload(await client.call_tool("unlock_mutation", {"mutation_id": "nope"}))
            assert bad["status"] == "error"
    run(_check())


def test_reminders_show_in_upcoming(client):
    async def _check():
        async with client:
            created = _payload(await client.call_tool(
                "add_reminder", {"title": "Dentist", "datetime": "2026-03-06T14:00:00"}
            ))
            assert created["status"] == "created"
            await client.call_tool(
                "add_reminder", {"title": "Passport", "datetime": "2026-03-07T08:00:00"}
            )

            upcoming = _payload(await client.call_tool("upcoming_items", {}))
            assert [i["title"] for i in upcoming["items"]] == ["Dentist"]

            reminder_id = created["reminder"]["id"]
            toggled = _payload(await client.call_tool("toggle_reminder", {"reminder_id": reminder_id}))
            assert toggled["reminder"]["completed"] is True

            upcoming = _payload(await client.call_tool("upcoming_items", {}))
            assert upcoming["items"] == []
    run(_check())
