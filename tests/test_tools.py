"""Tests for tool definitions and execution."""

import json

import pytest

from dayseal.tools import SUGGESTIONS, execute_tool, make_tools
from dayseal.results import RejectionKind
from dayseal.storage import MemoryStore


class TestMakeTools:
    """Tests for make_tools function."""

    def test_make_tools_returns_all_tools(self, controller):
        tools = make_tools(controller)

        expected_tools = [
            "task_add",
            "task_update",
            "task_remove",
            "task_batch_complete",
            "task_toggle",
            "task_reorder",
            "entry_add",
            "entry_edit",
            "entry_delete",
            "entry_mood",
            "journal_update",
            "mood_update",
            "day_status",
            "day_load",
            "day_seal",
            "day_unseal",
            "archive_search",
            "statistics",
            "export_records",
        ]

        assert sorted(tools) == sorted(expected_tools)
        for tool_name in expected_tools:
            tool = tools[tool_name]
            assert tool["name"] == tool_name
            assert tool["description"]
            assert tool["inputSchema"]["type"] == "object"

    def test_required_fields(self, controller):
        tools = make_tools(controller)
        assert tools["task_add"]["inputSchema"]["required"] == ["description"]
        assert tools["entry_edit"]["inputSchema"]["required"] == ["entry_id", "content"]


class TestTaskTools:

    @pytest.mark.asyncio
    async def test_add_and_toggle(self, controller):
        result = await execute_tool(controller, "task_add", {"description": "Buy milk", "tags": ["errand"]})
        assert result["success"]
        task_id = result["task_id"]

        result = await execute_tool(controller, "task_toggle", {"task_id": task_id})
        assert result["success"]
        assert result["completed"] is True

        status = await execute_tool(controller, "day_status", {})
        assert status["record"]["completion_rate"] == 100

    @pytest.mark.asyncio
    async def test_blank_description(self, controller):
        result = await execute_tool(controller, "task_add", {"description": "  "})
        assert not result["success"]
        assert result["error_type"] == "validation_rejected"
        assert result["suggestion"] == SUGGESTIONS[RejectionKind.VALIDATION_REJECTED]

    @pytest.mark.asyncio
    async def test_unknown_task_has_no_suggestion(self, controller):
        result = await execute_tool(controller, "task_remove", {"task_id": "missing"})
        assert result["error_type"] == "unknown_entity"
        assert result["details"] == {"task_id": "missing"}
        assert "suggestion" not in result

    @pytest.mark.asyncio
    async def test_bad_reorder(self, controller):
        await execute_tool(controller, "task_add", {"description": "a"})
        result = await execute_tool(controller, "task_reorder", {"task_ids": []})
        assert result["error_type"] == "reorder_invalid_permutation"

    @pytest.mark.asyncio
    async def test_update(self, controller):
        task_id = (await execute_tool(controller, "task_add", {"description": "Buy milk"}))["task_id"]

        result = await execute_tool(controller, "task_update", {"task_id": task_id, "priority": "high"})
        assert result["success"]

        task = (await execute_tool(controller, "day_status", {}))["record"]["tasks"][0]
        assert task["description"] == "Buy milk"
        assert task["priority"] == "high"

    @pytest.mark.asyncio
    async def test_string_tags_rejected(self, controller):
        result = await execute_tool(controller, "task_add", {"description": "Buy milk", "tags": "errand"})
        assert result["error_type"] == "validation_rejected"
        assert result["details"]["field"] == "tags"

    @pytest.mark.asyncio
    async def test_batch_complete(self, controller):
        ids = [(await execute_tool(controller, "task_add", {"description": d}))["task_id"] for d in "ab"]

        result = await execute_tool(controller, "task_batch_complete", {
            "updates": [{"task_id": task_id, "completed": True} for task_id in ids],
        })

        assert result["success"]
        assert result["updated"] == 2
        status = await execute_tool(controller, "day_status", {})
        assert status["record"]["completion_rate"] == 100

    @pytest.mark.asyncio
    async def test_missing_argument(self, controller):
        result = await execute_tool(controller, "task_add", {})
        assert not result["success"]
        assert result["error_type"] == "missing_argument"


class TestJournalTools:

    @pytest.mark.asyncio
    async def test_entry_lifecycle(self, controller):
        result = await execute_tool(controller, "entry_add", {"content": "<p>Hello</p>", "mood": "happy"})
        entry_id = result["entry_id"]

        assert (await execute_tool(controller, "entry_edit", {"entry_id": entry_id, "content": "Bye"}))["success"]
        assert (await execute_tool(controller, "entry_mood", {"entry_id": entry_id, "mood": None}))["success"]

        status = await execute_tool(controller, "day_status", {})
        assert status["record"]["journal_entries"][0]["content"] == "Bye"
        assert status["record"]["overall_mood"] is None

        assert (await execute_tool(controller, "entry_delete", {"entry_id": entry_id}))["success"]

    @pytest.mark.asyncio
    async def test_legacy_journal_and_mood(self, controller):
        assert (await execute_tool(controller, "journal_update", {"content": "plain"}))["success"]
        assert (await execute_tool(controller, "mood_update", {"mood": "neutral"}))["success"]
        record = (await execute_tool(controller, "day_status", {}))["record"]
        assert record["journal"] == "plain"
        assert record["mood"] == "neutral"

    @pytest.mark.asyncio
    async def test_invalid_mood(self, controller):
        result = await execute_tool(controller, "entry_add", {"content": "x", "mood": "angry"})
        assert result["error_type"] == "validation_rejected"
        assert result["details"]["field"] == "mood"


class TestDayTools:

    @pytest.mark.asyncio
    async def test_seal_unseal(self, controller):
        result = await execute_tool(controller, "day_seal", {})
        assert result["error_type"] == "seal_precondition_unmet"
        assert len(result["details"]["unmet"]) == 3

        await execute_tool(controller, "mood_update", {"mood": "happy"})
        result = await execute_tool(controller, "day_seal", {})
        assert result["success"]
        assert result["sealed_at"].startswith("2026-03-14T")

        result = await execute_tool(controller, "task_add", {"description": "late"})
        assert result["error_type"] == "mutation_on_sealed_record"
        assert "day_unseal" in result["suggestion"]

        assert (await execute_tool(controller, "day_unseal", {}))["success"]
        assert (await execute_tool(controller, "day_unseal", {}))["error_type"] == "not_sealed"

    @pytest.mark.asyncio
    async def test_day_load(self, controller):
        result = await execute_tool(controller, "day_load", {"date": "2026-03-01"})
        assert result["success"]
        assert result["record"]["date"] == "2026-03-01"
        assert "persistence" not in result

        result = await execute_tool(controller, "day_load", {"date": "03/01/2026"})
        assert result["error_type"] == "validation_rejected"

    @pytest.mark.asyncio
    async def test_unreadable_record_refuses_changes(self, controller_factory):
        ctl = controller_factory(MemoryStore({"2026-03-14": {"date": "garbage"}}))

        result = await execute_tool(ctl, "day_load", {})
        assert result["success"]
        assert result["persistence"]["error_kind"] == "parse_error"

        result = await execute_tool(ctl, "task_add", {"description": "new"})
        assert result["error_type"] == "record_unavailable"
        assert result["suggestion"] == SUGGESTIONS[RejectionKind.RECORD_UNAVAILABLE]

    @pytest.mark.asyncio
    async def test_unknown_tool(self, controller):
        result = await execute_tool(controller, "nope", {})
        assert not result["success"]
        assert "Unknown tool" in result["error"]


class TestArchiveTools:

    async def _sealed_day(self, controller, date_key, content, mood):
        await execute_tool(controller, "day_load", {"date": date_key})
        await execute_tool(controller, "entry_add", {"content": content, "mood": mood})
        await execute_tool(controller, "task_add", {"description": f"task for {date_key}", "tags": ["daily"]})
        result = await execute_tool(controller, "day_seal", {})
        assert result["success"]

    @pytest.mark.asyncio
    async def test_search(self, controller):
        await self._sealed_day(controller, "2026-03-12", "Rainy", "sad")
        await self._sealed_day(controller, "2026-03-13", "Sunny", "happy")

        result = await execute_tool(controller, "archive_search", {"mood": "happy"})
        assert result["count"] == 1
        assert result["records"][0]["date"] == "2026-03-13"

        result = await execute_tool(controller, "archive_search", {"keyword": "rain"})
        assert [r["date"] for r in result["records"]] == ["2026-03-12"]

    @pytest.mark.asyncio
    async def test_statistics(self, controller):
        await self._sealed_day(controller, "2026-03-12", "Rainy", "sad")
        await self._sealed_day(controller, "2026-03-13", "Sunny", "happy")

        result = await execute_tool(controller, "statistics", {})
        assert result["success"]
        assert result["total_tasks"] == 2
        assert result["consecutive_days"] == 2
        assert result["tag_stats"] == [{"tag": "daily", "total": 2, "completed": 0}]

    @pytest.mark.asyncio
    async def test_export_content(self, controller):
        await self._sealed_day(controller, "2026-03-13", "Sunny", "happy")

        result = await execute_tool(controller, "export_records", {})
        document = json.loads(result["content"])
        assert document["recordCount"] == result["count"]

        result = await execute_tool(controller, "export_records", {"format": "markdown"})
        assert result["content"].startswith("# Daily Records")

    @pytest.mark.asyncio
    async def test_export_to_file(self, controller, temp_project):
        target = temp_project / "export.json"
        result = await execute_tool(controller, "export_records", {"path": str(target)})
        assert result["success"]
        assert json.loads(target.read_text(encoding="utf-8"))["version"] == "1.0"

    @pytest.mark.asyncio
    async def test_export_bad_format(self, controller):
        result = await execute_tool(controller, "export_records", {"format": "pdf"})
        assert result["error_type"] == "validation_rejected"
