"""Tool definitions wrapping the daily record controller."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Any

from .archive import RecordArchive, SearchQuery
from .controller import DailyRecordController
from .export import ExportFormat, export_json, export_markdown, write_export
from .models import Mood, Priority, format_timestamp, parse_mood
from .results import CommandResult, DaySealError, LoadResult, PROGRAMMING_KINDS, RejectionKind
from .stats import calculate_statistics

_MOODS = [m.value for m in Mood]
_PRIORITIES = [p.value for p in Priority]

SUGGESTIONS = {
    RejectionKind.VALIDATION_REJECTED: "Check the input values and try again",
    RejectionKind.SEAL_PRECONDITION_UNMET: "Complete the remaining tasks or write a journal entry, then seal again",
    RejectionKind.MUTATION_ON_SEALED_RECORD: "Use day_unseal to reopen the record before changing it",
    RejectionKind.NOT_SEALED: "The record is already editable",
    RejectionKind.RECORD_UNAVAILABLE: "Repair or restore the stored record, then use day_load again",
}


def _string(description: str) -> dict:
    return {"type": "string", "description": description}


def make_tools(controller: DailyRecordController) -> dict[str, dict]:
    """Create tool definitions for the controller.

    Returns:
        Dict mapping tool names to their definitions.
    """
    tools = {}

    def add(name: str, description: str, properties: dict, required: list[str]) -> None:
        tools[name] = {
            "name": name,
            "description": description,
            "inputSchema": {
                "type": "object",
                "properties": properties,
                "required": required,
            },
        }

    # ========== Tasks ==========
    add("task_add", "Add a task to today's record.", {
        "description": _string("What needs doing"),
        "priority": {"type": "string", "enum": _PRIORITIES, "description": "Task priority (default medium)"},
        "tags": {"type": "array", "items": {"type": "string"}, "description": "Tags for grouping"},
    }, ["description"])
    add("task_update", "Edit a task's description, priority or tags. Omitted fields stay as they are.", {
        "task_id": _string("Task ID"),
        "description": _string("New description"),
        "priority": {"type": "string", "enum": _PRIORITIES, "description": "New priority"},
        "tags": {"type": "array", "items": {"type": "string"}, "description": "Replacement tag list"},
    }, ["task_id"])
    add("task_remove", "Delete a task.", {"task_id": _string("Task ID")}, ["task_id"])
    add("task_toggle", "Flip a task between done and not done.", {"task_id": _string("Task ID")}, ["task_id"])
    add("task_batch_complete", "Mark several tasks done or not done in one step.", {
        "updates": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "task_id": _string("Task ID"),
                    "completed": {"type": "boolean", "description": "New completed flag"},
                },
                "required": ["task_id", "completed"],
            },
            "description": "Tasks and their new completed flags",
        },
    }, ["updates"])
    add("task_reorder", "Reorder tasks. Must list every task ID exactly once.", {
        "task_ids": {"type": "array", "items": {"type": "string"}, "description": "Task IDs in the new order"},
    }, ["task_ids"])

    # ========== Journal ==========
    add("entry_add", "Add a journal entry (plain text or editor HTML).", {
        "content": _string("Entry content"),
        "mood": {"type": "string", "enum": _MOODS, "description": "Optional mood"},
    }, ["content"])
    add("entry_edit", "Replace a journal entry's content.", {
        "entry_id": _string("Entry ID"),
        "content": _string("New content"),
    }, ["entry_id", "content"])
    add("entry_delete", "Delete a journal entry.", {"entry_id": _string("Entry ID")}, ["entry_id"])
    add("entry_mood", "Set or clear a journal entry's mood.", {
        "entry_id": _string("Entry ID"),
        "mood": {"type": ["string", "null"], "enum": _MOODS + [None], "description": "Mood, or null to clear"},
    }, ["entry_id"])
    add("journal_update", "Write the single-text journal (edits the newest entry once entries exist).", {
        "content": _string("Journal text"),
    }, ["content"])
    add("mood_update", "Set the day's mood (sets the newest entry's mood once entries exist).", {
        "mood": {"type": ["string", "null"], "enum": _MOODS + [None], "description": "Mood, or null to clear"},
    }, ["mood"])

    # ========== Day ==========
    add("day_status", "Show the active record with completion rate, mood and seal readiness.", {}, [])
    add("day_load", "Open the record for a date (default today), e.g. to unseal a past day.", {
        "date": _string("Date as YYYY-MM-DD"),
    }, [])
    add("day_seal", "Seal the active record so it can no longer change.", {}, [])
    add("day_unseal", "Reopen a sealed record for editing.", {}, [])

    # ========== Archive ==========
    add("archive_search", "Search stored records.", {
        "start_date": _string("Earliest date (YYYY-MM-DD)"),
        "end_date": _string("Latest date (YYYY-MM-DD)"),
        "mood": {"type": "string", "enum": _MOODS, "description": "Day mood"},
        "keyword": _string("Text in tasks or journal"),
        "tags": {"type": "array", "items": {"type": "string"}, "description": "Any of these task tags"},
        "include_unsealed": {"type": "boolean", "description": "Also search records that are not sealed"},
    }, [])
    add("statistics", "Aggregate totals, streak, completion trend, moods and tags.", {}, [])
    add("export_records", "Export all stored records as JSON or Markdown.", {
        "format": {"type": "string", "enum": [f.value for f in ExportFormat], "description": "Export format"},
        "path": _string("Write to this file instead of returning the content"),
    }, [])

    return tools


def _result_dict(result: CommandResult, message: str, **extra: Any) -> dict[str, Any]:
    """Translate a command result into a response dict."""
    if result.ok:
        response = {"success": True, "message": message, **extra}
        if result.persistence is not None and not result.persistence.success:
            response["persistence"] = result.persistence.to_dict()
        return response

    rejection = result.rejection
    response = {
        "success": False,
        "error": rejection.message,
        "error_type": rejection.kind.value,
    }
    if rejection.kind in PROGRAMMING_KINDS:
        # Caller bug: keep details for debugging, no user-facing advice.
        response["details"] = dict(rejection.details)
        return response
    if rejection.details:
        response["details"] = dict(rejection.details)
    if rejection.kind in SUGGESTIONS:
        response["suggestion"] = SUGGESTIONS[rejection.kind]
    return response


async def execute_tool(controller: DailyRecordController, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
    """Execute a tool and return the result.

    Args:
        controller: DailyRecordController instance
        name: Tool name
        arguments: Tool arguments

    Returns:
        Result dict with success status and data or error
    """
    try:
        if name == "task_add":
            result = controller.add_task(
                description=arguments["description"],
                priority=arguments.get("priority", Priority.MEDIUM.value),
                tags=arguments.get("tags"),
            )
            return _result_dict(result, f"Task {result.value} added", task_id=result.value)

        elif name == "task_update":
            result = controller.update_task(
                arguments["task_id"],
                description=arguments.get("description"),
                priority=arguments.get("priority"),
                tags=arguments.get("tags"),
            )
            return _result_dict(result, f"Task {arguments['task_id']} updated")

        elif name == "task_remove":
            result = controller.remove_task(arguments["task_id"])
            return _result_dict(result, f"Task {arguments['task_id']} removed")

        elif name == "task_toggle":
            result = controller.toggle_task(arguments["task_id"])
            return _result_dict(result, f"Task {arguments['task_id']} toggled", completed=result.value)

        elif name == "task_batch_complete":
            updates = [(u["task_id"], u["completed"]) for u in arguments["updates"]]
            result = controller.batch_set_completed(updates)
            return _result_dict(result, f"{result.value} task(s) updated", updated=result.value)

        elif name == "task_reorder":
            result = controller.reorder_tasks(arguments["task_ids"])
            return _result_dict(result, "Tasks reordered")

        elif name == "entry_add":
            result = controller.add_entry(arguments["content"], arguments.get("mood"))
            return _result_dict(result, f"Entry {result.value} added", entry_id=result.value)

        elif name == "entry_edit":
            result = controller.edit_entry(arguments["entry_id"], arguments["content"])
            return _result_dict(result, f"Entry {arguments['entry_id']} updated")

        elif name == "entry_delete":
            result = controller.delete_entry(arguments["entry_id"])
            return _result_dict(result, f"Entry {arguments['entry_id']} deleted")

        elif name == "entry_mood":
            result = controller.set_entry_mood(arguments["entry_id"], arguments.get("mood"))
            return _result_dict(result, f"Entry {arguments['entry_id']} mood updated")

        elif name == "journal_update":
            result = controller.update_journal(arguments["content"])
            return _result_dict(result, "Journal updated")

        elif name == "mood_update":
            result = controller.update_mood(arguments.get("mood"))
            return _result_dict(result, "Mood updated")

        elif name == "day_status":
            return {
                "success": True,
                "record": controller.get_read_model().to_dict(),
            }

        elif name == "day_load":
            result = controller.load(arguments.get("date"))
            loaded = result.persistence
            response = _result_dict(replace(result, persistence=None), "Record loaded")
            if result.ok:
                response["record"] = result.value.to_dict()
                # A missing record just means a fresh day.
                missing = isinstance(loaded, LoadResult) and loaded.not_found
                if not loaded.success and not missing:
                    response["persistence"] = loaded.to_dict()
            return response

        elif name == "day_seal":
            result = controller.seal()
            return _result_dict(
                result,
                f"Record {controller.record.date_key} sealed",
                sealed_at=format_timestamp(result.value) if result.ok else None,
            )

        elif name == "day_unseal":
            result = controller.unseal()
            return _result_dict(result, f"Record {controller.record.date_key} unsealed")

        elif name == "archive_search":
            query = SearchQuery(
                start_date=arguments.get("start_date"),
                end_date=arguments.get("end_date"),
                mood=parse_mood(arguments.get("mood")),
                keyword=arguments.get("keyword", ""),
                tags=arguments.get("tags") or [],
            )
            records = RecordArchive(controller.store).search(query, arguments.get("include_unsealed", False))
            return {
                "success": True,
                "count": len(records),
                "records": [r.to_dict() for r in records],
            }

        elif name == "statistics":
            records = controller.store.list_records()
            stats = calculate_statistics(
                records,
                today=controller.today(),
                trend_days=controller.config.trend_days,
            )
            return {"success": True, **stats.to_dict()}

        elif name == "export_records":
            fmt = ExportFormat(arguments.get("format", ExportFormat.JSON.value))
            records = controller.store.list_records()
            if arguments.get("path"):
                path = write_export(records, Path(arguments["path"]), fmt, controller.config.lock_timeout)
                return {
                    "success": True,
                    "count": len(records),
                    "path": str(path),
                    "message": f"Exported {len(records)} record(s) to {path}",
                }
            content = export_json(records) if fmt == ExportFormat.JSON else export_markdown(records)
            return {
                "success": True,
                "count": len(records),
                "format": fmt.value,
                "content": content,
            }

        else:
            return {
                "success": False,
                "error": f"Unknown tool: {name}",
            }

    except KeyError as e:
        return {
            "success": False,
            "error": f"Missing required argument: {e}",
            "error_type": "missing_argument",
        }

    except ValueError as e:
        return {
            "success": False,
            "error": str(e),
            "error_type": RejectionKind.VALIDATION_REJECTED.value,
        }

    except DaySealError as e:
        return {
            "success": False,
            "error": str(e),
            "error_type": "dayseal_error",
        }

    except Exception as e:
        return {
            "success": False,
            "error": str(e),
            "error_type": "unexpected_error",
        }

