"""Habit DNA generator.

Maps a habit collection to a deterministic visual model (segments,
complexity, dominant colours) and evaluates which mutations, the
achievement badges, are unlocked.

Unlocks are sticky. A mutation keeps the ``unlocked_at`` it was first seen
with, and a mutation that was unlocked before stays unlocked even when its
condition stops holding (for example after the habit with the long streak
is deleted). Pass the previous DNA to carry that history forward.
"""

from __future__ import annotations

import dataclasses
import logging
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from habitdna.domains.habits.domain_logic.calendar import round_half_up
from habitdna.domains.habits.models import DNASegment, Habit, HabitDNA, Mutation

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Lookup tables
# ---------------------------------------------------------------------------

CATEGORY_COLORS = {
    "Health": "#4caf50",
    "Work": "#f44336",
    "Personal": "#8a2be2",
    "Learning": "#2196f3",
    "Finance": "#ffc107",
    "Fitness": "#ff5722",
    "Social": "#e91e63",
    "Mind": "#9c27b0",
}
DEFAULT_COLOR = "#8a2be2"

FREQUENCY_SHAPES = {
    "daily": "helix",
    "weekdays": "cube",
    "weekends": "pyramid",
    "custom": "sphere",
}
DEFAULT_SHAPE = "sphere"

MIN_SEGMENT_SIZE = 5
MAX_SEGMENT_SIZE = 20
MAX_COMPLEXITY = 100
DOMINANT_COLOR_COUNT = 3

# ---------------------------------------------------------------------------
# Mutation catalog
# ---------------------------------------------------------------------------

MUTATION_CATALOG: tuple[Mutation, ...] = (
    Mutation(
        id="week-warrior",
        name="Week Warrior",
        description="Maintain a 7-day streak on any habit",
        trigger_condition="streak >= 7",
        visual_effect="fire-glow",
        icon="🔥",
    ),
    Mutation(
        id="month-master",
        name="Month Master",
        description="Maintain a 30-day streak on any habit",
        trigger_condition="streak >= 30",
        visual_effect="golden-shine",
        icon="⭐",
    ),
    Mutation(
        id="category-king",
        name="Category King",
        description="Complete 5 habits in one category",
        trigger_condition="categoryHabits >= 5",
        visual_effect="rainbow-gradient",
        icon="👑",
    ),
    Mutation(
        id="century-club",
        name="Century Club",
        description="Reach 100 total completions",
        trigger_condition="totalCompletions >= 100",
        visual_effect="sparkle-burst",
        icon="💯",
    ),
    Mutation(
        id="consistent-champion",
        name="Consistent Champion",
        description="Maintain 10+ active habits",
        trigger_condition="habitCount >= 10",
        visual_effect="pulse-wave",
        icon="🏆",
    ),
    Mutation(
        id="year-legend",
        name="Year Legend",
        description="Maintain a 365-day streak",
        trigger_condition="streak >= 365",
        visual_effect="legendary-aura",
        icon="🌟",
    ),
)

# mutation id -> (DNAStats attribute, threshold)
UNLOCK_RULES: dict[str, tuple[str, int]] = {
    "week-warrior": ("max_streak", 7),
    "month-master": ("max_streak", 30),
    "category-king": ("max_category_count", 5),
    "century-club": ("total_completions", 100),
    "consistent-champion": ("habit_count", 10),
    "year-legend": ("max_streak", 365),
}


@dataclass(frozen=True)
class DNAStats:
    """Aggregate statistics the mutation conditions are evaluated against."""

    max_streak: int = 0
    total_completions: int = 0
    max_category_count: int = 0
    habit_count: int = 0


def get_category_color(category: str) -> str:
    return CATEGORY_COLORS.get(category, DEFAULT_COLOR)


def get_shape_from_frequency(frequency: str) -> str:
    # Stored frequencies are lowercase; older clients wrote "Daily" etc.
    return FREQUENCY_SHAPES.get(frequency.lower(), DEFAULT_SHAPE)


def segment_size(streak: int) -> float:
    return float(max(MIN_SEGMENT_SIZE, min(MAX_SEGMENT_SIZE, streak / 2)))


def build_segments(habits: Sequence[Habit]) -> list[DNASegment]:
    return [
        DNASegment(
            id=habit.id,
            color=get_category_color(habit.category),
            size=segment_size(habit.streak),
            shape=get_shape_from_frequency(habit.frequency),
            category=habit.category,
            streak=habit.streak,
            habit_name=habit.name,
            earned_at=habit.created_at,
        )
        for habit in habits
    ]


def calculate_complexity(habits: Sequence[Habit]) -> int:
    """Weighted 0-100 score of habit count, streaks, categories and completions."""
    if not habits:
        return 0

    habit_count = len(habits)
    avg_streak = sum(h.streak for h in habits) / habit_count
    category_count = len({h.category for h in habits})
    total_completions = sum(h.completed for h in habits)

    raw = habit_count * 5 + avg_streak * 2 + category_count * 10 + total_completions * 0.5
    return min(MAX_COMPLEXITY, round_half_up(raw))


def get_dominant_colors(segments: Sequence[DNASegment]) -> list[str]:
    """Up to three most frequent colours; ties keep first-seen order."""
    counts = Counter(s.color for s in segments)
    return [color for color, _ in counts.most_common(DOMINANT_COLOR_COUNT)]


def compute_dna_stats(habits: Sequence[Habit]) -> DNAStats:
    category_counts = Counter(h.category for h in habits)
    return DNAStats(
        max_streak=max((h.streak for h in habits), default=0),
        total_completions=sum(h.completed for h in habits),
        max_category_count=max(category_counts.values(), default=0),
        habit_count=len(habits),
    )


def is_unlocked(mutation_id: str, stats: DNAStats) -> bool:
    rule = UNLOCK_RULES.get(mutation_id)
    if rule is None:
        return False
    attribute, threshold = rule
    return getattr(stats, attribute) >= threshold


def evaluate_mutations(
    stats: DNAStats,
    previous: Sequence[Mutation] = (),
    *,
    now: datetime | None = None,
) -> list[Mutation]:
    """Unlocked mutations in catalog order.

    Previously unlocked entries keep their ``unlocked_at`` and are kept even
    when their condition no longer holds; newly satisfied ones get ``now``.
    """
    earlier = {m.id: m.unlocked_at for m in previous if m.unlocked_at}
    stamp = (now or datetime.now()).isoformat()

    unlocked = []
    for mutation in MUTATION_CATALOG:
        if mutation.id in earlier:
            unlocked.append(dataclasses.replace(mutation, unlocked_at=earlier[mutation.id]))
        elif is_unlocked(mutation.id, stats):
            logger.info("Mutation unlocked: %s", mutation.id)
            unlocked.append(dataclasses.replace(mutation, unlocked_at=stamp))
    return unlocked


def generate_dna(
    habits: Sequence[Habit],
    *,
    previous: HabitDNA | None = None,
    now: datetime | None = None,
) -> HabitDNA:
    """Recompute the full DNA for ``habits``.

    Args:
        habits: Current habit collection.
        previous: Last generated DNA, whose unlocked mutations are carried over.
        now: Timestamp for newly unlocked mutations and ``last_updated``.
    """
    now = now or datetime.now()
    segments = build_segments(habits)
    return HabitDNA(
        segments=segments,
        complexity=calculate_complexity(habits),
        dominant_colors=get_dominant_colors(segments),
        mutations=evaluate_mutations(
            compute_dna_stats(habits),
            previous.mutations if previous is not None else (),
            now=now,
        ),
        last_updated=now.isoformat(),
    )


def unlock_mutation(dna: HabitDNA, mutation_id: str, *, now: datetime | None = None) -> HabitDNA:
    """Manually unlock a catalog mutation. Unknown or already unlocked ids are a no-op."""
    if mutation_id in dna.mutation_ids():
        return dna
    catalog = {m.id: m for m in MUTATION_CATALOG}
    if mutation_id not in catalog:
        logger.debug("Unknown mutation id %r", mutation_id)
        return dna

    stamp = (now or datetime.now()).isoformat()
    unlocked = dataclasses.replace(catalog[mutation_id], unlocked_at=stamp)
    order = {mid: index for index, mid in enumerate(catalog)}
    mutations = sorted([*dna.mutations, unlocked], key=lambda m: order.get(m.id, len(order)))
    return dataclasses.replace(dna, mutations=mutations)
