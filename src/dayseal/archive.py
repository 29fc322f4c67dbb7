"""Read-only view over past records: listing, lookup, and search."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from .metrics import primary_mood
from .models import DailyRecord, Mood, parse_date_key
from .richtext import strip_markup
from .storage import RecordStore


@dataclass
class SearchQuery:
    """Filters for archive search; unset fields match everything."""
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    mood: Optional[Mood] = None
    keyword: str = ""
    tags: list[str] = field(default_factory=list)


def _matches_keyword(record: DailyRecord, keyword: str) -> bool:
    if keyword in record.journal.lower():
        return True
    for entry in record.journal_entries:
        if keyword in entry.content.lower() or keyword in strip_markup(entry.content).lower():
            return True
    return any(keyword in t.description.lower() for t in record.tasks)


def matches(record: DailyRecord, query: SearchQuery) -> bool:
    """Whether ``record`` passes every filter set on ``query``."""
    day = parse_date_key(record.date_key)
    if query.start_date and day < parse_date_key(query.start_date):
        return False
    if query.end_date and day > parse_date_key(query.end_date):
        return False

    if query.mood and primary_mood(record) != query.mood:
        return False

    keyword = query.keyword.strip().lower()
    if keyword and not _matches_keyword(record, keyword):
        return False

    if query.tags:
        record_tags = {tag for task in record.tasks for tag in task.tags}
        if not any(tag in record_tags for tag in query.tags):
            return False

    return True


def newest_first(records: Sequence[DailyRecord]) -> list[DailyRecord]:
    return sorted(records, key=lambda r: r.date_key, reverse=True)


def search_records(records: Sequence[DailyRecord], query: SearchQuery) -> list[DailyRecord]:
    """Records matching ``query``, newest day first.

    Raises:
        ValueError: If a date bound is malformed.
    """
    return newest_first([r for r in records if matches(r, query)])


class RecordArchive:
    """Past records as stored; nothing here mutates them."""

    def __init__(self, store: RecordStore):
        self.store = store

    def records(self, include_unsealed: bool = False) -> list[DailyRecord]:
        """Stored records newest first; sealed ones only unless asked otherwise."""
        found = self.store.list_records()
        if not include_unsealed:
            found = [r for r in found if r.is_sealed]
        return newest_first(found)

    def get(self, date_key: str) -> Optional[DailyRecord]:
        result = self.store.load(date_key)
        return result.record if result.success else None

    def search(self, query: SearchQuery, include_unsealed: bool = False) -> list[DailyRecord]:
        return search_records(self.records(include_unsealed), query)
