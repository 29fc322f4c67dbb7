"""Lift legacy single-journal records into the multi-entry shape."""

from __future__ import annotations

from typing import Callable

from .log import get_logger
from .models import DailyRecord, JournalEntry, new_id
from .richtext import is_blank

logger = get_logger(__name__)


def needs_migration(record: DailyRecord) -> bool:
    """True for a legacy-shaped record: journal text but no entries."""
    return not record.journal_entries and not is_blank(record.journal)


def migrate(record: DailyRecord, id_factory: Callable[[], str] = new_id) -> bool:
    """Turn the legacy journal/mood into a single journal entry.

    This is a structural repair, so it applies to sealed records too and
    skips the usual command validation. Returns True if the record changed;
    a second call is a no-op.
    """
    if not needs_migration(record):
        return False

    record.journal_entries.append(JournalEntry(
        entry_id=id_factory(),
        content=record.journal,
        created_at=record.created_at,
        mood=record.mood,
    ))
    logger.info("legacy_journal_migrated", date=record.date_key, sealed=record.is_sealed)
    return True
