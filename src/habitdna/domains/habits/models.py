"""Data models for habits, reminders, and the Habit DNA.

Python attributes are snake_case; the persisted JSON shape uses the
camelCase keys of the stored snapshots. ``to_dict``/``from_dict`` convert
between the two without loss.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

FREQUENCIES = ("daily", "weekdays", "weekends", "custom")


@dataclass
class CompletionRecord:
    """One successful completion. ``date`` is the date part of ``time``."""

    date: str  # YYYY-MM-DD
    time: str  # ISO 8601 timestamp

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date, "time": self.time}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CompletionRecord:
        return cls(date=data["date"], time=data["time"])


@dataclass
class CompletionNote:
    date: str
    note: str

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date, "note": self.note}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CompletionNote:
        return cls(date=data["date"], note=data["note"])


@dataclass
class Habit:
    """A recurring task definition and its progress counters."""

    id: str
    name: str
    frequency: str  # one of FREQUENCIES
    days: list[str]  # weekday names, e.g. ["Monday", "Friday"]
    category: str
    created_at: str = ""  # ISO 8601

    # Progress
    completed: int = 0  # lifetime completions, never decreases
    streak: int = 0
    weekly_completed: int = 0
    last_completed_date: str | None = None  # YYYY-MM-DD

    # History (append-only)
    completion_history: list[CompletionRecord] = field(default_factory=list)
    completion_notes: list[CompletionNote] = field(default_factory=list)

    # Optional metadata
    time: str | None = None  # preferred reminder time, HH:MM
    color: str | None = None
    reminder: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "time": self.time,
            "frequency": self.frequency,
            "days": list(self.days),
            "category": self.category,
            "reminder": self.reminder,
            "color": self.color,
            "completed": self.completed,
            "streak": self.streak,
            "lastCompletedDate": self.last_completed_date,
            "weeklyCompleted": self.weekly_completed,
            "createdAt": self.created_at,
            "completionHistory": [r.to_dict() for r in self.completion_history],
            "completionNotes": [n.to_dict() for n in self.completion_notes],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Habit:
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            frequency=data.get("frequency", "custom"),
            days=list(data.get("days") or []),
            category=data.get("category", ""),
            created_at=data.get("createdAt", ""),
            completed=data.get("completed") or 0,
            streak=data.get("streak") or 0,
            weekly_completed=data.get("weeklyCompleted") or 0,
            last_completed_date=data.get("lastCompletedDate"),
            completion_history=[
                CompletionRecord.from_dict(r) for r in data.get("completionHistory") or []
            ],
            completion_notes=[
                CompletionNote.from_dict(n) for n in data.get("completionNotes") or []
            ],
            time=data.get("time"),
            color=data.get("color"),
            reminder=bool(data.get("reminder", False)),
        )


@dataclass
class Reminder:
    """A one-off dated reminder."""

    id: str
    title: str
    datetime: str  # ISO 8601
    alarm: bool = False
    notification: bool = False
    priority: str | None = None  # 'high' | 'medium' | 'low'
    category: str | None = None
    completed: bool = False
    completed_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "datetime": self.datetime,
            "alarm": self.alarm,
            "notification": self.notification,
            "priority": self.priority,
            "category": self.category,
            "completed": self.completed,
            "completedAt": self.completed_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Reminder:
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            datetime=data["datetime"],
            alarm=bool(data.get("alarm", False)),
            notification=bool(data.get("notification", False)),
            priority=data.get("priority"),
            category=data.get("category"),
            completed=bool(data.get("completed", False)),
            completed_at=data.get("completedAt"),
        )


# ---------------------------------------------------------------------------
# Habit DNA
# ---------------------------------------------------------------------------


@dataclass
class DNASegment:
    """One visual unit of the DNA, one per habit."""

    id: str  # == habit id
    color: str
    size: float  # 5..20
    shape: str  # 'helix' | 'sphere' | 'cube' | 'pyramid'
    category: str
    streak: int
    habit_name: str = ""
    earned_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "color": self.color,
            "size": self.size,
            "shape": self.shape,
            "category": self.category,
            "streak": self.streak,
            "habitName": self.habit_name,
            "earnedAt": self.earned_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DNASegment:
        return cls(
            id=data["id"],
            color=data["color"],
            size=data["size"],
            shape=data["shape"],
            category=data.get("category", ""),
            streak=data.get("streak", 0),
            habit_name=data.get("habitName", ""),
            earned_at=data.get("earnedAt", ""),
        )


@dataclass(frozen=True)
class Mutation:
    """An achievement definition; ``unlocked_at`` is set once it is earned."""

    id: str
    name: str
    description: str
    trigger_condition: str
    visual_effect: str
    icon: str
    unlocked_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "triggerCondition": self.trigger_condition,
            "visualEffect": self.visual_effect,
            "icon": self.icon,
            "unlockedAt": self.unlocked_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Mutation:
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            description=data.get("description", ""),
            trigger_condition=data.get("triggerCondition", ""),
            visual_effect=data.get("visualEffect", ""),
            icon=data.get("icon", ""),
            unlocked_at=data.get("unlockedAt"),
        )


@dataclass
class HabitDNA:
    """Derived snapshot of a habit collection. Always regenerable."""

    segments: list[DNASegment] = field(default_factory=list)
    complexity: int = 0
    dominant_colors: list[str] = field(default_factory=list)
    mutations: list[Mutation] = field(default_factory=list)
    last_updated: str = ""

    def mutation_ids(self) -> list[str]:
        return [m.id for m in self.mutations]

    def to_dict(self) -> dict[str, Any]:
        return {
            "segments": [s.to_dict() for s in self.segments],
            "complexity": self.complexity,
            "dominantColors": list(self.dominant_colors),
            "mutations": [m.to_dict() for m in self.mutations],
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HabitDNA:
        return cls(
            segments=[DNASegment.from_dict(s) for s in data.get("segments") or []],
            complexity=data.get("complexity", 0),
            dominant_colors=list(data.get("dominantColors") or []),
            mutations=[Mutation.from_dict(m) for m in data.get("mutations") or []],
            last_updated=data.get("lastUpdated", ""),
        )
