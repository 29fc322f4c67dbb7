"""Simple aggregation over a collection of daily records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Sequence

from .models import DailyRecord, Mood, parse_date_key


@dataclass
class TrendPoint:
    date: str
    rate: int

    def to_dict(self) -> dict:
        return {"date": self.date, "rate": self.rate}


@dataclass
class MoodCount:
    mood: Mood
    count: int

    def to_dict(self) -> dict:
        return {"mood": self.mood.value, "count": self.count}


@dataclass
class TagStat:
    tag: str
    total: int
    completed: int

    def to_dict(self) -> dict:
        return {"tag": self.tag, "total": self.total, "completed": self.completed}


@dataclass
class Statistics:
    total_tasks: int = 0
    completed_tasks: int = 0
    consecutive_days: int = 0
    completion_trend: list[TrendPoint] = field(default_factory=list)
    mood_distribution: list[MoodCount] = field(default_factory=list)
    tag_stats: list[TagStat] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total_tasks": self.total_tasks,
            "completed_tasks": self.completed_tasks,
            "consecutive_days": self.consecutive_days,
            "completion_trend": [p.to_dict() for p in self.completion_trend],
            "mood_distribution": [m.to_dict() for m in self.mood_distribution],
            "tag_stats": [t.to_dict() for t in self.tag_stats],
        }


def mood_distribution(records: Sequence[DailyRecord]) -> list[MoodCount]:
    """Count moods across records.

    Every mood-bearing entry counts; records without entries fall back to
    their legacy mood. Moods that never occur are left out.
    """
    counts = {mood: 0 for mood in Mood}
    for record in records:
        if record.journal_entries:
            for entry in record.journal_entries:
                if entry.mood:
                    counts[entry.mood] += 1
        elif record.mood:
            counts[record.mood] += 1
    return [MoodCount(mood, count) for mood, count in counts.items() if count > 0]


def completion_trend(records: Sequence[DailyRecord], days: int = 7) -> list[TrendPoint]:
    """Completion rate of the latest ``days`` records, oldest first."""
    ordered = sorted(records, key=lambda r: r.date_key)
    return [TrendPoint(r.date_key, r.completion_rate) for r in ordered[-days:]]


def cumulative_task_count(records: Sequence[DailyRecord]) -> tuple[int, int]:
    """(total, completed) tasks over all records."""
    total = 0
    completed = 0
    for record in records:
        total += len(record.tasks)
        completed += sum(1 for t in record.tasks if t.completed)
    return total, completed


def tag_stats(records: Sequence[DailyRecord]) -> list[TagStat]:
    """Per-tag task totals, most used tag first."""
    stats: dict[str, TagStat] = {}
    for record in records:
        for task in record.tasks:
            for tag in task.tags:
                stat = stats.setdefault(tag, TagStat(tag, 0, 0))
                stat.total += 1
                if task.completed:
                    stat.completed += 1
    return sorted(stats.values(), key=lambda s: s.total, reverse=True)


def consecutive_days(records: Sequence[DailyRecord], today: date) -> int:
    """Length of the streak of consecutive recorded days ending at the latest one.

    The streak is broken (0) when the latest record is older than yesterday.
    """
    if not records:
        return 0

    days = sorted({parse_date_key(r.date_key) for r in records}, reverse=True)
    if (today - days[0]).days > 1:
        return 0

    streak = 1
    for newer, older in zip(days, days[1:]):
        if (newer - older).days == 1:
            streak += 1
        else:
            break
    return streak


def calculate_statistics(records: Sequence[DailyRecord], today: date, trend_days: int = 30) -> Statistics:
    total, completed = cumulative_task_count(records)
    return Statistics(
        total_tasks=total,
        completed_tasks=completed,
        consecutive_days=consecutive_days(records, today),
        completion_trend=completion_trend(records, trend_days),
        mood_distribution=mood_distribution(records),
        tag_stats=tag_stats(records),
    )
