"""Data models for daily records, tasks, and journal entries."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional


class Priority(Enum):
    """Priority of a task."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Mood(Enum):
    """Mood attached to a journal entry."""
    HAPPY = "happy"
    NEUTRAL = "neutral"
    SAD = "sad"
    EXCITED = "excited"
    TIRED = "tired"


def utc_now() -> datetime:
    """Get current UTC time with timezone info."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Generate an opaque identifier for tasks and entries."""
    return str(uuid.uuid4())


def normalize_timestamp(dt: datetime) -> datetime:
    """Aware UTC at millisecond precision, the form snapshots preserve.

    Naive values are taken as UTC, matching ``parse_timestamp``.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    return dt.replace(microsecond=dt.microsecond - dt.microsecond % 1000)


def format_timestamp(dt: datetime) -> str:
    """Format datetime as ISO 8601 with timezone."""
    return dt.isoformat(timespec='milliseconds')


def parse_timestamp(s: str) -> datetime:
    """Parse ISO 8601 timestamp string.

    Naive values are taken as UTC.
    """
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_date_key(day: date) -> str:
    """Format a calendar day as the YYYY-MM-DD record key."""
    return day.strftime('%Y-%m-%d')


def parse_date_key(key: str) -> date:
    """Parse a YYYY-MM-DD record key.

    Raises:
        ValueError: If the key is not a valid calendar date in that format.
    """
    if not isinstance(key, str) or len(key) != 10:
        raise ValueError(f"Malformed date key: {key!r}")
    return datetime.strptime(key, '%Y-%m-%d').date()


def is_valid_date_key(key: str) -> bool:
    try:
        parse_date_key(key)
    except ValueError:
        return False
    return True


def parse_priority(value: Any) -> Priority:
    """Coerce a string or Priority into a Priority.

    Raises:
        ValueError: If the value names no priority.
    """
    if isinstance(value, Priority):
        return value
    return Priority(value)


def parse_mood(value: Any) -> Optional[Mood]:
    """Coerce a string, Mood or None into an optional Mood.

    Raises:
        ValueError: If the value names no mood.
    """
    if value is None or isinstance(value, Mood):
        return value
    return Mood(value)


def normalize_tags(tags: Optional[list[str]]) -> list[str]:
    """Strip tags, drop blank ones and duplicates, keeping first-seen order."""
    result: list[str] = []
    for tag in tags or []:
        cleaned = str(tag).strip()
        if cleaned and cleaned not in result:
            result.append(cleaned)
    return result


def _optional_timestamp(value: Optional[str]) -> Optional[datetime]:
    return parse_timestamp(value) if value else None


@dataclass
class Task:
    """A single task on a daily record."""
    task_id: str
    description: str
    created_at: datetime
    completed: bool = False
    priority: Priority = Priority.MEDIUM
    tags: list[str] = field(default_factory=list)
    order: int = 0
    completed_at: Optional[datetime] = None

    def __post_init__(self):
        self.created_at = normalize_timestamp(self.created_at)
        if self.completed_at is not None:
            self.completed_at = normalize_timestamp(self.completed_at)

    def to_dict(self) -> dict:
        """Convert task to its snapshot dictionary."""
        return {
            "id": self.task_id,
            "description": self.description,
            "completed": self.completed,
            "priority": self.priority.value,
            "tags": list(self.tags),
            "order": self.order,
            "createdAt": format_timestamp(self.created_at),
            "completedAt": format_timestamp(self.completed_at) if self.completed_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Task:
        return cls(
            task_id=data["id"],
            description=data["description"],
            created_at=parse_timestamp(data["createdAt"]),
            completed=bool(data.get("completed", False)),
            priority=parse_priority(data.get("priority", Priority.MEDIUM.value)),
            tags=list(data.get("tags") or []),
            order=int(data.get("order", 0)),
            completed_at=_optional_timestamp(data.get("completedAt")),
        )


@dataclass
class JournalEntry:
    """A single journal entry.

    The content is an opaque payload produced by the editor and may carry
    markup; only its blank-ness is ever inspected.
    """
    entry_id: str
    content: str
    created_at: datetime
    mood: Optional[Mood] = None

    def __post_init__(self):
        self.created_at = normalize_timestamp(self.created_at)

    def to_dict(self) -> dict:
        """Convert entry to its snapshot dictionary."""
        return {
            "id": self.entry_id,
            "content": self.content,
            "mood": self.mood.value if self.mood else None,
            "createdAt": format_timestamp(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> JournalEntry:
        return cls(
            entry_id=data["id"],
            content=data.get("content", ""),
            created_at=parse_timestamp(data["createdAt"]),
            mood=parse_mood(data.get("mood")),
        )


@dataclass
class DailyRecord:
    """Everything recorded for one calendar day.

    ``journal`` and ``mood`` are the legacy single-journal fields. Records
    written before multi-entry journals only carry those; newer records keep
    them mirroring the newest entry.

    ``journal_entries`` is kept in insertion order; readers that want the
    newest-first view go through the ledger.
    """
    date_key: str
    created_at: datetime
    tasks: list[Task] = field(default_factory=list)
    journal_entries: list[JournalEntry] = field(default_factory=list)
    journal: str = ""
    mood: Optional[Mood] = None
    is_sealed: bool = False
    completion_rate: int = 0
    sealed_at: Optional[datetime] = None

    def __post_init__(self):
        self.created_at = normalize_timestamp(self.created_at)
        if self.sealed_at is not None:
            self.sealed_at = normalize_timestamp(self.sealed_at)

    @classmethod
    def empty(cls, date_key: str, created_at: datetime) -> DailyRecord:
        """Create a fresh, unsealed record with no activity."""
        return cls(date_key=date_key, created_at=created_at)

    def to_dict(self) -> dict:
        """Convert record to its snapshot dictionary (JSON-serializable)."""
        return {
            "id": self.date_key,
            "date": self.date_key,
            "tasks": [t.to_dict() for t in self.tasks],
            "journal": self.journal,
            "mood": self.mood.value if self.mood else None,
            "journalEntries": [e.to_dict() for e in self.journal_entries],
            "isSealed": self.is_sealed,
            "completionRate": self.completion_rate,
            "createdAt": format_timestamp(self.created_at),
            "sealedAt": format_timestamp(self.sealed_at) if self.sealed_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> DailyRecord:
        """Build a record from a snapshot dictionary.

        Legacy snapshots without ``journalEntries`` read as having none.

        Raises:
            KeyError, ValueError, TypeError: If the snapshot is malformed.
        """
        date_key = data.get("date") or data["id"]
        parse_date_key(date_key)
        return cls(
            date_key=date_key,
            created_at=parse_timestamp(data["createdAt"]),
            tasks=[Task.from_dict(t) for t in data.get("tasks") or []],
            journal_entries=[JournalEntry.from_dict(e) for e in data.get("journalEntries") or []],
            journal=data.get("journal") or "",
            mood=parse_mood(data.get("mood")),
            is_sealed=bool(data.get("isSealed", False)),
            completion_rate=int(data.get("completionRate", 0)),
            sealed_at=_optional_timestamp(data.get("sealedAt")),
        )
