"""Tests for JSON/Markdown export."""

import json
from datetime import timedelta

import pytest

from dayseal.export import (
    EXPORT_VERSION,
    ExportFormat,
    export_json,
    export_markdown,
    parse_export,
    verify_export,
    write_export,
)
from dayseal.models import DailyRecord, JournalEntry, Mood, Priority, Task
from dayseal.results import ExportFormatError

from conftest import START


@pytest.fixture
def records():
    first = DailyRecord.empty("2026-03-13", START - timedelta(days=1))
    first.journal = "Legacy only"
    first.mood = Mood.SAD

    second = DailyRecord.empty("2026-03-14", START)
    second.tasks = [
        Task("t1", "Write report", START, completed=True, priority=Priority.HIGH,
             tags=["work"], order=0, completed_at=START),
        Task("t2", "Call mum", START, order=1),
    ]
    second.journal_entries = [JournalEntry("e1", "<p>Busy &amp; good</p>", START, Mood.HAPPY)]
    second.journal = "<p>Busy &amp; good</p>"
    second.mood = Mood.HAPPY
    second.completion_rate = 50
    second.is_sealed = True
    second.sealed_at = START + timedelta(hours=12)
    return [first, second]


class TestJson:

    def test_document_shape(self, records):
        document = json.loads(export_json(records, exported_at=START))
        assert document["exportedAt"] == "2026-03-14T09:00:00.000+00:00"
        assert document["version"] == EXPORT_VERSION
        assert document["recordCount"] == 2
        assert [r["date"] for r in document["records"]] == ["2026-03-13", "2026-03-14"]

    def test_round_trip(self, records):
        assert parse_export(export_json(records)) == records

    def test_round_trip_sub_millisecond_timestamps(self):
        record = DailyRecord.empty("2026-03-14", START.replace(microsecond=123456))
        record.journal_entries.append(JournalEntry("e1", "x", START + timedelta(microseconds=999)))

        assert parse_export(export_json([record])) == [record]

    def test_empty_collection(self):
        text = export_json([])
        assert json.loads(text)["recordCount"] == 0
        assert parse_export(text) == []

    @pytest.mark.parametrize("text", ["not json", "[]", '{"records": 5}', '{"records": [{"date": "x"}]}'])
    def test_invalid_documents(self, text):
        with pytest.raises(ExportFormatError):
            parse_export(text)


class TestVerify:

    def test_verify_matching(self, records):
        assert verify_export(records, export_json(records))

    def test_verify_detects_missing_entry(self, records):
        text = export_json(records)
        records[1].journal_entries.append(JournalEntry("e2", "added later", START))
        assert not verify_export(records, text)

    def test_verify_detects_missing_record(self, records):
        assert not verify_export(records, export_json(records[:1]))

    def test_verify_garbage(self, records):
        assert not verify_export(records, "garbage")


class TestMarkdown:

    def test_contents(self, records):
        text = export_markdown(records, exported_at=START)

        assert text.startswith("# Daily Records")
        assert "Records: 2" in text
        assert text.index("## Saturday, March 14, 2026") < text.index("## Friday, March 13, 2026")
        assert "- [x] [high] Write report #work" in text
        assert "- [ ] [medium] Call mum" in text
        assert "**09:00** Happy" in text
        assert "Busy & good" in text
        assert "Legacy only" in text
        assert "*Sealed at 2026-03-14T21:00:00.000+00:00*" in text


class TestWriteExport:

    def test_write_json(self, records, temp_project):
        path = write_export(records, temp_project / "out" / "export.json")
        assert parse_export(path.read_text(encoding="utf-8")) == records

    def test_write_markdown(self, records, temp_project):
        path = write_export(records, temp_project / "export.md", "markdown")
        assert path.read_text(encoding="utf-8").startswith("# Daily Records")

    def test_unknown_format(self, records, temp_project):
        with pytest.raises(ValueError):
            write_export(records, temp_project / "x", "pdf")

    def test_format_enum(self):
        assert ExportFormat("json") is ExportFormat.JSON
