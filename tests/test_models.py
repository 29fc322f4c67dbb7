"""Tests for data models and snapshot conversion."""

from datetime import date, datetime, timedelta, timezone

import pytest

from dayseal.models import (
    DailyRecord,
    JournalEntry,
    Mood,
    Priority,
    Task,
    format_date_key,
    format_timestamp,
    is_valid_date_key,
    normalize_tags,
    parse_date_key,
    parse_mood,
    parse_priority,
    parse_timestamp,
)

T0 = datetime(2026, 3, 14, 9, 0, 0, tzinfo=timezone.utc)


class TestDateKeys:
    """Tests for YYYY-MM-DD record keys."""

    def test_round_trip(self):
        assert format_date_key(date(2026, 1, 6)) == "2026-01-06"
        assert parse_date_key("2026-01-06") == date(2026, 1, 6)

    @pytest.mark.parametrize("key", ["2026-13-01", "2026-02-30", "20260101", "2026-1-6", "", "yesterday"])
    def test_malformed_keys_rejected(self, key):
        assert not is_valid_date_key(key)
        with pytest.raises(ValueError):
            parse_date_key(key)

    def test_non_string_key(self):
        assert not is_valid_date_key(None)


class TestTimestamps:
    """Tests for timestamp formatting/parsing."""

    def test_millisecond_precision(self):
        dt = datetime(2026, 3, 14, 9, 0, 0, 123000, tzinfo=timezone.utc)
        assert format_timestamp(dt) == "2026-03-14T09:00:00.123+00:00"
        assert parse_timestamp(format_timestamp(dt)) == dt

    def test_z_suffix_accepted(self):
        assert parse_timestamp("2024-12-01T08:30:00.000Z") == datetime(2024, 12, 1, 8, 30, tzinfo=timezone.utc)

    def test_naive_taken_as_utc(self):
        assert parse_timestamp("2024-12-01T08:30:00").tzinfo == timezone.utc

    def test_models_store_snapshot_precision(self):
        created = datetime(2026, 3, 14, 11, 0, 0, 123456, tzinfo=timezone(timedelta(hours=2)))
        record = DailyRecord.empty("2026-03-14", created)

        assert record.created_at == datetime(2026, 3, 14, 9, 0, 0, 123000, tzinfo=timezone.utc)
        assert record.created_at.tzinfo is timezone.utc
        assert DailyRecord.from_dict(record.to_dict()) == record

    def test_naive_model_timestamps_become_utc(self):
        task = Task("t1", "x", datetime(2026, 3, 14, 9, 0, 0, 999999), completed_at=datetime(2026, 3, 14, 10, 0))
        entry = JournalEntry("e1", "x", datetime(2026, 3, 14, 9, 30, 0, 1))

        assert task.created_at == datetime(2026, 3, 14, 9, 0, 0, 999000, tzinfo=timezone.utc)
        assert task.completed_at.tzinfo is timezone.utc
        assert entry.created_at == datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)
        assert Task.from_dict(task.to_dict()) == task
        assert JournalEntry.from_dict(entry.to_dict()) == entry


class TestParsing:
    """Tests for enum coercion helpers."""

    def test_priority_from_string(self):
        assert parse_priority("high") is Priority.HIGH
        assert parse_priority(Priority.LOW) is Priority.LOW

    def test_invalid_priority(self):
        with pytest.raises(ValueError):
            parse_priority("urgent")

    def test_mood(self):
        assert parse_mood("tired") is Mood.TIRED
        assert parse_mood(None) is None
        with pytest.raises(ValueError):
            parse_mood("angry")

    def test_normalize_tags(self):
        assert normalize_tags([" work ", "", "home", "work", "   "]) == ["work", "home"]
        assert normalize_tags(None) == []


class TestSnapshots:
    """Tests for to_dict/from_dict."""

    def test_record_snapshot_keys(self):
        record = DailyRecord.empty("2026-03-14", T0)
        data = record.to_dict()
        assert data == {
            "id": "2026-03-14",
            "date": "2026-03-14",
            "tasks": [],
            "journal": "",
            "mood": None,
            "journalEntries": [],
            "isSealed": False,
            "completionRate": 0,
            "createdAt": "2026-03-14T09:00:00.000+00:00",
            "sealedAt": None,
        }

    def test_full_record_round_trip(self):
        record = DailyRecord(
            date_key="2026-03-14",
            created_at=T0,
            tasks=[Task("t1", "Buy milk", T0, completed=True, priority=Priority.HIGH,
                        tags=["errand"], order=0, completed_at=T0)],
            journal_entries=[JournalEntry("e1", "<p>Good day</p>", T0, Mood.HAPPY)],
            journal="<p>Good day</p>",
            mood=Mood.HAPPY,
            is_sealed=True,
            completion_rate=100,
            sealed_at=T0,
        )
        assert DailyRecord.from_dict(record.to_dict()) == record

    def test_legacy_snapshot_without_entries(self):
        data = {
            "id": "2024-12-01",
            "date": "2024-12-01",
            "tasks": [],
            "journal": "Old style journal",
            "mood": "sad",
            "isSealed": True,
            "completionRate": 0,
            "createdAt": "2024-12-01T08:30:00.000Z",
            "sealedAt": "2024-12-01T22:00:00.000Z",
        }
        record = DailyRecord.from_dict(data)
        assert record.journal_entries == []
        assert record.mood is Mood.SAD
        assert record.is_sealed

    def test_bad_date_rejected(self):
        data = DailyRecord.empty("2026-03-14", T0).to_dict()
        data["id"] = data["date"] = "2026-99-99"
        with pytest.raises(ValueError):
            DailyRecord.from_dict(data)

    def test_bad_priority_rejected(self):
        task = Task("t1", "x", T0).to_dict()
        task["priority"] = "urgent"
        with pytest.raises(ValueError):
            Task.from_dict(task)
