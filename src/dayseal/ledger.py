"""Multi-entry journal of a daily record."""

from __future__ import annotations

from typing import Callable, Optional

from .clock import MonotonicClock
from .log import get_logger
from .metrics import overall_mood
from .models import DailyRecord, JournalEntry, Mood, new_id, parse_mood
from .results import CommandResult, RejectionKind
from .richtext import is_blank
from .seal import ensure_unsealed

logger = get_logger(__name__)


def sort_newest_first(entries: list[JournalEntry]) -> list[JournalEntry]:
    """Entries ordered newest first.

    Among equal timestamps the later-inserted entry counts as newer, the
    same tie rule ``overall_mood`` applies.
    """
    return sorted(reversed(entries), key=lambda e: e.created_at, reverse=True)


class JournalEntryLedger:
    """Adds, edits and removes journal entries of one record."""

    def __init__(
        self,
        record: DailyRecord,
        clock: Optional[MonotonicClock] = None,
        id_factory: Callable[[], str] = new_id,
    ):
        self.record = record
        self.clock = clock or MonotonicClock()
        self._new_id = id_factory

    def list(self) -> list[JournalEntry]:
        """Entries newest first."""
        return sort_newest_first(self.record.journal_entries)

    def newest(self) -> Optional[JournalEntry]:
        """The entry the legacy journal/mood fields mirror, or None."""
        entries = self.list()
        return entries[0] if entries else None

    def get(self, entry_id: str) -> Optional[JournalEntry]:
        """Look up an entry by id.

        Args:
            entry_id: Id returned by ``add``

        Returns:
            The live JournalEntry, or None if no entry has that id
        """
        for entry in self.record.journal_entries:
            if entry.entry_id == entry_id:
                return entry
        return None

    def __len__(self) -> int:
        return len(self.record.journal_entries)

    def overall_mood(self) -> Optional[Mood]:
        return overall_mood(self.record.journal_entries)

    def _blank(self) -> CommandResult:
        return CommandResult.rejected(
            RejectionKind.VALIDATION_REJECTED,
            "Journal entry content must not be blank",
            field="content",
        )

    def _unknown(self, entry_id: str) -> CommandResult:
        return CommandResult.rejected(
            RejectionKind.UNKNOWN_ENTITY,
            f"Unknown journal entry: {entry_id}",
            entry_id=entry_id,
        )

    def _invalid_mood(self, mood: object) -> CommandResult:
        return CommandResult.rejected(
            RejectionKind.VALIDATION_REJECTED,
            f"Invalid mood: {mood}",
            field="mood",
            allowed=[m.value for m in Mood],
        )

    def add(self, content: str, mood: Mood | str | None = None) -> CommandResult[str]:
        """Append an entry stamped with the clock's next timestamp.

        Args:
            content: Editor payload, stored as given
            mood: Mood, its string value, or None

        Returns:
            CommandResult carrying the new entry id, or a rejection when the
            content renders blank, the mood is unknown or the record is sealed
        """
        if is_blank(content):
            return self._blank()
        try:
            parsed_mood = parse_mood(mood)
        except ValueError:
            return self._invalid_mood(mood)
        rejection = ensure_unsealed(self.record, "add journal entry")
        if rejection:
            return CommandResult.from_rejection(rejection)

        entry = JournalEntry(
            entry_id=self._new_id(),
            content=content,
            created_at=self.clock.now(),
            mood=parsed_mood,
        )
        self.record.journal_entries.append(entry)
        logger.debug("entry_added", entry_id=entry.entry_id)
        return CommandResult.success(entry.entry_id)

    def edit(self, entry_id: str, content: str) -> CommandResult[None]:
        """Replace an entry's content; its timestamp and mood stay.

        Args:
            entry_id: Entry to edit
            content: New payload; must not render blank

        Returns:
            CommandResult with no value on success
        """
        rejection = ensure_unsealed(self.record, "edit journal entry")
        if rejection:
            return CommandResult.from_rejection(rejection)
        entry = self.get(entry_id)
        if entry is None:
            return self._unknown(entry_id)
        if is_blank(content):
            return self._blank()

        entry.content = content
        logger.debug("entry_edited", entry_id=entry_id)
        return CommandResult.success()

    def set_mood(self, entry_id: str, mood: Mood | str | None) -> CommandResult[None]:
        """Set or clear an entry's mood."""
        rejection = ensure_unsealed(self.record, "change entry mood")
        if rejection:
            return CommandResult.from_rejection(rejection)
        entry = self.get(entry_id)
        if entry is None:
            return self._unknown(entry_id)
        try:
            entry.mood = parse_mood(mood)
        except ValueError:
            return self._invalid_mood(mood)
        return CommandResult.success()

    def remove(self, entry_id: str) -> CommandResult[None]:
        """Delete an entry.

        Args:
            entry_id: Entry to delete

        Returns:
            CommandResult with no value, or UNKNOWN_ENTITY /
            MUTATION_ON_SEALED_RECORD
        """
        rejection = ensure_unsealed(self.record, "delete journal entry")
        if rejection:
            return CommandResult.from_rejection(rejection)
        entry = self.get(entry_id)
        if entry is None:
            return self._unknown(entry_id)

        self.record.journal_entries.remove(entry)
        logger.debug("entry_removed", entry_id=entry_id)
        return CommandResult.success()
