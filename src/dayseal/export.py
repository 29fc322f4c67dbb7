"""Export daily records to JSON or Markdown, and re-import JSON exports."""

from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence

from .locking import locked_atomic_write
from .models import DailyRecord, Mood, Priority, format_timestamp, parse_date_key, utc_now
from .results import ExportFormatError, SnapshotFormatError
from .richtext import is_blank, strip_markup
from .storage import record_from_snapshot

EXPORT_VERSION = "1.0"

MOOD_LABELS = {
    Mood.HAPPY: "Happy",
    Mood.NEUTRAL: "Neutral",
    Mood.SAD: "Sad",
    Mood.EXCITED: "Excited",
    Mood.TIRED: "Tired",
}

PRIORITY_LABELS = {
    Priority.HIGH: "high",
    Priority.MEDIUM: "medium",
    Priority.LOW: "low",
}


class ExportFormat(Enum):
    JSON = "json"
    MARKDOWN = "markdown"


def export_json(records: Sequence[DailyRecord], exported_at: Optional[datetime] = None) -> str:
    """Serialize records into an export document."""
    document = {
        "exportedAt": format_timestamp(exported_at or utc_now()),
        "version": EXPORT_VERSION,
        "recordCount": len(records),
        "records": [r.to_dict() for r in records],
    }
    return json.dumps(document, indent=2, ensure_ascii=False)


def parse_export(text: str) -> list[DailyRecord]:
    """Read records back from an ``export_json`` document.

    Raises:
        ExportFormatError: If the text is not a valid export document.
    """
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise ExportFormatError(f"Invalid JSON: {e}") from e

    if not isinstance(document, dict) or not isinstance(document.get("records"), list):
        raise ExportFormatError("Export document has no 'records' list")

    try:
        return [record_from_snapshot(r) for r in document["records"]]
    except SnapshotFormatError as e:
        raise ExportFormatError(str(e)) from e


def _format_day(date_key: str) -> str:
    return parse_date_key(date_key).strftime("%A, %B %d, %Y")


def export_markdown(records: Sequence[DailyRecord], exported_at: Optional[datetime] = None) -> str:
    """Render records as a human-readable Markdown document, newest day first."""
    lines = [
        "# Daily Records",
        "",
        f"Exported: {format_timestamp(exported_at or utc_now())}",
        f"Records: {len(records)}",
        "",
        "---",
        "",
    ]

    for record in sorted(records, key=lambda r: r.date_key, reverse=True):
        lines.extend([f"## {_format_day(record.date_key)}", ""])

        if record.mood:
            lines.extend([f"**Mood:** {MOOD_LABELS[record.mood]}", ""])

        lines.extend([f"**Completion:** {record.completion_rate}%", ""])

        if record.tasks:
            lines.extend(["### Tasks", ""])
            for task in sorted(record.tasks, key=lambda t: t.order):
                checkbox = "[x]" if task.completed else "[ ]"
                tags = "".join(f" #{tag}" for tag in task.tags)
                lines.append(f"- {checkbox} [{PRIORITY_LABELS[task.priority]}] {task.description}{tags}")
            lines.append("")

        if record.journal_entries:
            lines.extend(["### Journal", ""])
            for entry in record.journal_entries:
                mood = f" {MOOD_LABELS[entry.mood]}" if entry.mood else ""
                lines.extend([f"**{entry.created_at.strftime('%H:%M')}**{mood}", ""])
                lines.extend([strip_markup(entry.content), ""])
        elif not is_blank(record.journal):
            lines.extend(["### Journal", "", strip_markup(record.journal), ""])

        if record.is_sealed and record.sealed_at:
            lines.extend([f"*Sealed at {format_timestamp(record.sealed_at)}*", ""])

        lines.extend(["---", ""])

    return "\n".join(lines)


def verify_export(records: Sequence[DailyRecord], text: str) -> bool:
    """Check that an export carries every task, journal entry and mood of ``records``."""
    try:
        exported = {r.date_key: r for r in parse_export(text)}
    except ExportFormatError:
        return False

    if len(exported) != len(records):
        return False

    for original in records:
        restored = exported.get(original.date_key)
        if restored is None:
            return False
        if [t.to_dict() for t in restored.tasks] != [t.to_dict() for t in original.tasks]:
            return False
        if [e.to_dict() for e in restored.journal_entries] != [e.to_dict() for e in original.journal_entries]:
            return False
        if restored.journal != original.journal or restored.mood != original.mood:
            return False
    return True


def write_export(
    records: Sequence[DailyRecord],
    path: Path,
    fmt: ExportFormat | str = ExportFormat.JSON,
    timeout: float = 10.0,
) -> Path:
    """Write an export file atomically and return its path.

    Raises:
        ValueError: If ``fmt`` names no export format.
    """
    fmt = ExportFormat(fmt)
    text = export_json(records) if fmt == ExportFormat.JSON else export_markdown(records)
    path = Path(path)
    with locked_atomic_write(path, timeout=timeout) as f:
        f.write(text)
    return path
