"""Tests for the journal entry ledger."""

from datetime import timedelta

import pytest

from dayseal.ledger import JournalEntryLedger, sort_newest_first
from dayseal.models import JournalEntry, Mood
from dayseal.results import RejectionKind


@pytest.fixture
def ledger(record, clock):
    return JournalEntryLedger(record, clock)


class TestAdd:

    def test_add_entry(self, ledger):
        result = ledger.add("<p>Went for a run</p>", "happy")
        assert result.ok
        entry = ledger.get(result.value)
        assert entry.content == "<p>Went for a run</p>"
        assert entry.mood is Mood.HAPPY

    def test_add_without_mood(self, ledger):
        entry = ledger.get(ledger.add("text").value)
        assert entry.mood is None

    @pytest.mark.parametrize("content", ["", "  ", "<p>   </p>", "<p><br></p>"])
    def test_blank_rejected(self, ledger, content):
        result = ledger.add(content)
        assert result.kind is RejectionKind.VALIDATION_REJECTED
        assert len(ledger) == 0

    def test_invalid_mood_rejected(self, ledger):
        result = ledger.add("text", "grumpy")
        assert result.kind is RejectionKind.VALIDATION_REJECTED
        assert len(ledger) == 0


class TestEditRemove:

    def test_edit(self, ledger):
        entry_id = ledger.add("first draft").value
        assert ledger.edit(entry_id, "second draft").ok
        assert ledger.get(entry_id).content == "second draft"

    def test_edit_blank_rejected(self, ledger):
        entry_id = ledger.add("keep me").value
        result = ledger.edit(entry_id, "<p> </p>")
        assert result.kind is RejectionKind.VALIDATION_REJECTED
        assert ledger.get(entry_id).content == "keep me"

    def test_edit_unknown(self, ledger):
        assert ledger.edit("nope", "text").kind is RejectionKind.UNKNOWN_ENTITY

    def test_set_mood(self, ledger):
        entry_id = ledger.add("text").value
        assert ledger.set_mood(entry_id, "tired").ok
        assert ledger.get(entry_id).mood is Mood.TIRED
        assert ledger.set_mood(entry_id, None).ok
        assert ledger.get(entry_id).mood is None

    def test_remove(self, ledger):
        entry_id = ledger.add("text").value
        assert ledger.remove(entry_id).ok
        assert ledger.get(entry_id) is None

    def test_remove_unknown(self, ledger):
        assert ledger.remove("nope").kind is RejectionKind.UNKNOWN_ENTITY


class TestOrdering:

    def test_newest_first(self, ledger):
        ids = [ledger.add(f"entry {i}").value for i in range(3)]
        assert [e.entry_id for e in ledger.list()] == list(reversed(ids))
        assert ledger.newest().entry_id == ids[-1]

    def test_ties_put_later_insert_first(self, record):
        t = record.created_at
        entries = [
            JournalEntry("a", "a", t),
            JournalEntry("b", "b", t + timedelta(seconds=1)),
            JournalEntry("c", "c", t),
        ]
        assert [e.entry_id for e in sort_newest_first(entries)] == ["b", "c", "a"]

    def test_newest_agrees_with_overall_mood_on_ties(self, record, clock):
        t = record.created_at
        record.journal_entries.extend([
            JournalEntry("a", "first", t, Mood.SAD),
            JournalEntry("b", "second", t, Mood.HAPPY),
        ])
        ledger = JournalEntryLedger(record, clock)

        assert ledger.newest().entry_id == "b"
        assert ledger.newest().mood is ledger.overall_mood()

    def test_newest_on_empty(self, ledger):
        assert ledger.newest() is None


class TestOverallMood:

    def test_latest_mood_bearing_entry_wins(self, ledger, manual_time):
        """sad at T1, none at T2, happy at T3 -> happy."""
        ledger.add("one", "sad")
        manual_time.advance(minutes=1)
        ledger.add("two")
        manual_time.advance(minutes=1)
        ledger.add("three", "happy")
        assert ledger.overall_mood() is Mood.HAPPY

    def test_moodless_latest_entry_skipped(self, ledger, manual_time):
        ledger.add("one", "excited")
        manual_time.advance(minutes=1)
        ledger.add("two")
        assert ledger.overall_mood() is Mood.EXCITED

    def test_no_moods(self, ledger):
        ledger.add("one")
        assert ledger.overall_mood() is None


class TestSealedLedger:

    def test_all_mutations_rejected(self, ledger):
        entry_id = ledger.add("text", "happy").value
        ledger.record.is_sealed = True
        before = ledger.record.to_dict()

        for result in (
            ledger.add("more"),
            ledger.edit(entry_id, "changed"),
            ledger.set_mood(entry_id, "sad"),
            ledger.remove(entry_id),
        ):
            assert result.kind is RejectionKind.MUTATION_ON_SEALED_RECORD

        assert ledger.record.to_dict() == before
