"""MCP tools for the Habit DNA and its mutations."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from habitdna.domains.habits.domain_logic.dna import MUTATION_CATALOG

if TYPE_CHECKING:
    from habitdna.domains.habits.dna_store import DNAStore
    from habitdna.domains.habits.repository import HabitRepository

logger = logging.getLogger(__name__)


def register_dna_tools(
    mcp: FastMCP,
    repository: HabitRepository,
    dna_store: DNAStore,
) -> None:
    """Register Habit DNA tools on the MCP server."""

    @mcp.tool
    async def habit_dna(ctx: Context) -> str:
        """Generate your Habit DNA: segments, complexity score, colours, and mutations."""
        snapshot = await repository.snapshot()
        dna = await dna_store.regenerate(snapshot.habits)
        return json.dumps({"status": "ok", "dna": dna.to_dict()}, ensure_ascii=False)

    @mcp.tool
    async def list_mutations(ctx: Context) -> str:
        """List every mutation and whether it is unlocked."""
        dna = await dna_store.load()
        unlocked = {m.id: m.unlocked_at for m in dna.mutations} if dna else {}
        mutations = []
        for mutation in MUTATION_CATALOG:
            entry = mutation.to_dict()
            entry["unlockedAt"] = unlocked.get(mutation.id)
            entry["unlocked"] = mutation.id in unlocked
            mutations.append(entry)
        return json.dumps({"status": "ok", "mutations": mutations}, ensure_ascii=False)

    @mcp.tool
    async def unlock_mutation(ctx: Context, mutation_id: str) -> str:
        """Unlock a mutation by ID (e.g., 'week-warrior').

        Args:
            mutation_id: Catalog ID of the mutation.
        """
        if mutation_id not in {m.id for m in MUTATION_CATALOG}:
            return json.dumps({"status": "error", "message": f"Unknown mutation: {mutation_id}"})
        if await dna_store.load() is None:
            snapshot = await repository.snapshot()
            await dna_store.regenerate(snapshot.habits)
        dna = await dna_store.unlock_mutation(mutation_id)
        return json.dumps({
            "status": "unlocked",
            "mutation_id": mutation_id,
            "mutations": dna.mutation_ids() if dna else [],
        })
