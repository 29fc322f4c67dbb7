"""Derived metrics over a record's tasks and journal entries.

These are never stored as the source of truth; callers recompute them from
the current tasks and entries whenever they need them.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from .models import DailyRecord, JournalEntry, Mood, Task


def completion_rate(tasks: Sequence[Task]) -> int:
    """Percentage of completed tasks, rounded half up; 0 with no tasks."""
    total = len(tasks)
    if total == 0:
        return 0
    completed = sum(1 for t in tasks if t.completed)
    # Integer form of floor(100 * completed / total + 0.5).
    return (200 * completed + total) // (2 * total)


def overall_mood(entries: Iterable[JournalEntry]) -> Optional[Mood]:
    """Mood of the most recently created entry that has one.

    Entries sharing a timestamp resolve to the later-inserted one.
    """
    latest: Optional[JournalEntry] = None
    for entry in entries:
        if entry.mood is None:
            continue
        if latest is None or entry.created_at >= latest.created_at:
            latest = entry
    return latest.mood if latest else None


def primary_mood(record: DailyRecord) -> Optional[Mood]:
    """Mood shown for a record in archives and statistics.

    Records that predate journal entries only have the legacy mood field.
    """
    if record.journal_entries:
        mood = overall_mood(record.journal_entries)
        if mood is not None:
            return mood
    return record.mood
