"""Daily record controller - the command surface a front end talks to.

The controller owns the single active record. Each command goes through
the same steps: refuse if the record is sealed, apply the change through
the task registry / journal ledger / seal gate, recompute derived fields,
save a snapshot, and publish the new read model.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from typing import Any, Callable, Optional

from .clock import MonotonicClock
from .config import DaySealConfig
from .ledger import JournalEntryLedger, sort_newest_first
from .log import get_logger
from .metrics import completion_rate, overall_mood
from .migration import migrate
from .models import (
    DailyRecord,
    JournalEntry,
    Mood,
    Priority,
    Task,
    format_date_key,
    format_timestamp,
    parse_date_key,
    parse_mood,
)
from .results import CommandResult, LoadResult, RejectionKind
from .seal import SealCheck, SealGate, SealState
from .storage import RecordStore
from .tasks import CompletionUpdates, TaskRegistry

logger = get_logger(__name__)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


@dataclass(frozen=True)
class ReadModel:
    """What a front end renders: the record plus derived values."""
    record: DailyRecord
    tasks: list[Task]
    journal_entries: list[JournalEntry]
    completion_rate: int
    overall_mood: Optional[Mood]
    seal_state: SealState
    seal_check: SealCheck

    @property
    def date_key(self) -> str:
        return self.record.date_key

    @property
    def is_sealed(self) -> bool:
        return self.seal_state == SealState.SEALED

    @property
    def can_seal(self) -> bool:
        return not self.is_sealed and self.seal_check.allowed

    def to_dict(self) -> dict:
        record = self.record
        return {
            "date": record.date_key,
            "tasks": [t.to_dict() for t in self.tasks],
            "journal_entries": [e.to_dict() for e in self.journal_entries],
            "journal": record.journal,
            "mood": record.mood.value if record.mood else None,
            "is_sealed": self.is_sealed,
            "sealed_at": format_timestamp(record.sealed_at) if record.sealed_at else None,
            "created_at": format_timestamp(record.created_at),
            "completion_rate": self.completion_rate,
            "overall_mood": self.overall_mood.value if self.overall_mood else None,
            "can_seal": self.can_seal,
            "seal_check": self.seal_check.to_dict(),
        }


Listener = Callable[[ReadModel], None]


class DailyRecordController:
    """Single-writer façade over the active daily record.

    Not thread-safe: callers issuing overlapping commands must serialize
    them.
    """

    def __init__(
        self,
        store: RecordStore,
        config: Optional[DaySealConfig] = None,
        clock: Optional[MonotonicClock] = None,
        today: Callable[[], date] = utc_today,
    ):
        self.store = store
        self.config = config or DaySealConfig()
        self.clock = clock or MonotonicClock()
        self._today = today
        self._record: Optional[DailyRecord] = None
        self._tasks: Optional[TaskRegistry] = None
        self._ledger: Optional[JournalEntryLedger] = None
        self._gate: Optional[SealGate] = None
        self._load_failure: Optional[LoadResult] = None
        self._listeners: list[Listener] = []

    # ========== Active record ==========

    def today(self) -> date:
        """Calendar day the controller treats as today."""
        return self._today()

    def _require_record(self) -> DailyRecord:
        if self._record is None:
            self.load()
        return self._record

    @property
    def record(self) -> DailyRecord:
        """The active record, loading today's on first use."""
        return self._require_record()

    @property
    def tasks(self) -> TaskRegistry:
        self._require_record()
        return self._tasks

    @property
    def ledger(self) -> JournalEntryLedger:
        self._require_record()
        return self._ledger

    @property
    def gate(self) -> SealGate:
        self._require_record()
        return self._gate

    def _activate(self, record: DailyRecord) -> None:
        self._record = record
        self._tasks = TaskRegistry(record, self.clock)
        self._ledger = JournalEntryLedger(record, self.clock)
        self._gate = SealGate(record, self.clock, self.config.min_journal_length)
        self._refresh_derived()

    def load(self, date_key: Optional[str] = None) -> CommandResult[ReadModel]:
        """Make the record for ``date_key`` (default: today) active.

        A missing record starts fresh. A legacy-shaped record is migrated
        and the migrated snapshot saved. Store failures other than
        not-found still leave a fresh record active for reading, but every
        mutating command is refused with ``RECORD_UNAVAILABLE`` until a
        later load succeeds, so the unreadable snapshot is never saved over.

        Args:
            date_key: Record key in YYYY-MM-DD form.

        Returns:
            The new read model, with the store's ``LoadResult`` (or the
            ``SaveResult`` of a migration) in ``persistence``.
        """
        if date_key is None:
            date_key = format_date_key(self.today())
        else:
            try:
                parse_date_key(date_key)
            except ValueError:
                return CommandResult.rejected(
                    RejectionKind.VALIDATION_REJECTED,
                    f"Malformed date: {date_key!r} (expected YYYY-MM-DD)",
                    field="date",
                )

        loaded: LoadResult = self.store.load(date_key)
        persistence: Any = loaded
        self._load_failure = None
        if loaded.success:
            record = loaded.record
            self._activate(record)
            if migrate(record):
                persistence = self.store.save(record)
            logger.info("record_loaded", date=date_key, sealed=record.is_sealed)
        else:
            if not loaded.not_found:
                logger.warning(
                    "record_load_failed",
                    date=date_key,
                    error_kind=loaded.error_kind.value,
                    error=loaded.error,
                )
                self._load_failure = loaded
            else:
                logger.info("record_created", date=date_key)
            self._activate(DailyRecord.empty(date_key, self.clock.now()))

        model = self.get_read_model()
        self._publish(model)
        return CommandResult(value=model, persistence=persistence)

    # ========== Read side ==========

    def get_read_model(self) -> ReadModel:
        """Current record (a copy) with freshly computed derived values."""
        record = copy.deepcopy(self.record)
        return ReadModel(
            record=record,
            tasks=sorted(record.tasks, key=lambda t: t.order),
            journal_entries=sort_newest_first(record.journal_entries),
            completion_rate=completion_rate(record.tasks),
            overall_mood=overall_mood(record.journal_entries),
            seal_state=self.gate.state,
            seal_check=self.gate.evaluate(),
        )

    def snapshot(self) -> dict:
        """Serializable snapshot of the active record, ready to persist."""
        record = self.record
        self._refresh_derived()
        return record.to_dict()

    def evaluate_seal(self) -> SealCheck:
        return self.gate.evaluate()

    def subscribe(self, listener: Listener) -> None:
        """Call ``listener`` with the new read model after every change."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _publish(self, model: ReadModel) -> None:
        for listener in list(self._listeners):
            listener(model)

    # ========== Command plumbing ==========

    def _refresh_derived(self) -> None:
        self._record.completion_rate = completion_rate(self._record.tasks)

    def _mirror_legacy_fields(self, had_entries: bool) -> None:
        """Keep legacy journal/mood equal to the newest entry.

        When the last entry goes away the mirror is cleared; otherwise a
        reload would migrate the stale text back into an entry.
        """
        newest = self._ledger.newest()
        if newest is not None:
            self._record.journal = newest.content
            self._record.mood = newest.mood
        elif had_entries:
            self._record.journal = ""
            self._record.mood = None

    def _unavailable(self, action: str) -> Optional[CommandResult]:
        """Refusal for commands issued while the stored record is unreadable."""
        failure = self._load_failure
        if failure is None:
            return None
        logger.debug("command_rejected", action=action, kind=RejectionKind.RECORD_UNAVAILABLE.value)
        result = CommandResult.rejected(
            RejectionKind.RECORD_UNAVAILABLE,
            f"Cannot {action}: the stored record for {self._record.date_key} could not be loaded",
            action=action,
            date=self._record.date_key,
            error_kind=failure.error_kind.value,
        )
        return replace(result, persistence=failure)

    def _run(self, action: str, apply: Callable[[], CommandResult], journal_change: bool = False) -> CommandResult:
        self._require_record()
        refused = self._unavailable(action)
        if refused is not None:
            return refused

        rejection = self.gate.guard(action)
        if rejection:
            logger.debug("command_rejected", action=action, kind=rejection.kind.value)
            return CommandResult.from_rejection(rejection)

        had_entries = len(self._ledger) > 0
        result = apply()
        if not result.ok:
            logger.debug("command_rejected", action=action, kind=result.kind.value)
            return result

        if journal_change:
            self._mirror_legacy_fields(had_entries)
        return self._commit(action, result)

    def _commit(self, action: str, result: CommandResult) -> CommandResult:
        """Persist and publish after a successful command.

        A failed save is reported, not rolled back.
        """
        self._refresh_derived()
        saved = self.store.save(self._record)
        if not saved.success:
            logger.warning(
                "snapshot_save_failed",
                action=action,
                date=self._record.date_key,
                error_kind=saved.error_kind.value if saved.error_kind else None,
                error=saved.error,
            )
        else:
            logger.debug("command_applied", action=action, date=self._record.date_key)
        self._publish(self.get_read_model())
        return replace(result, persistence=saved)

    # ========== Tasks ==========

    def add_task(
        self,
        description: str,
        priority: Priority | str = Priority.MEDIUM,
        tags: Optional[list[str]] = None,
    ) -> CommandResult[str]:
        """Add a task to the active record.

        Args:
            description: Task text; must not be blank
            priority: high, medium or low
            tags: Tag strings

        Returns:
            CommandResult carrying the new task id; ``persistence`` holds
            the SaveResult of the snapshot written afterwards
        """
        return self._run("add task", lambda: self.tasks.add(description, priority, tags))

    def update_task(
        self,
        task_id: str,
        description: Optional[str] = None,
        priority: Priority | str | None = None,
        tags: Optional[list[str]] = None,
    ) -> CommandResult[None]:
        """Edit a task's description, priority or tags; None leaves a field as is."""
        return self._run("edit task", lambda: self.tasks.update(task_id, description, priority, tags))

    def remove_task(self, task_id: str) -> CommandResult[None]:
        return self._run("remove task", lambda: self.tasks.remove(task_id))

    def toggle_task(self, task_id: str) -> CommandResult[bool]:
        """Flip a task between done and not done.

        Args:
            task_id: Task to toggle

        Returns:
            CommandResult carrying the new completed flag
        """
        return self._run("toggle task", lambda: self.tasks.toggle(task_id))

    def batch_set_completed(self, updates: CompletionUpdates) -> CommandResult[int]:
        """Set the completed flag of several tasks with a single save.

        Args:
            updates: ``{task_id: completed}`` or ``(task_id, completed)`` pairs;
                unknown ids are skipped

        Returns:
            CommandResult carrying the number of tasks updated
        """
        return self._run("complete tasks", lambda: self.tasks.batch_set_completed(updates))

    def reorder_tasks(self, task_ids: list[str]) -> CommandResult[None]:
        return self._run("reorder tasks", lambda: self.tasks.reorder(task_ids))

    # ========== Journal ==========

    def add_entry(self, content: str, mood: Mood | str | None = None) -> CommandResult[str]:
        """Add a journal entry stamped with the current time.

        Args:
            content: Editor payload; rejected when it renders blank
            mood: Optional mood for the entry

        Returns:
            CommandResult carrying the new entry id
        """
        return self._run("add journal entry", lambda: self.ledger.add(content, mood), journal_change=True)

    def edit_entry(self, entry_id: str, content: str) -> CommandResult[None]:
        return self._run("edit journal entry", lambda: self.ledger.edit(entry_id, content), journal_change=True)

    def delete_entry(self, entry_id: str) -> CommandResult[None]:
        return self._run("delete journal entry", lambda: self.ledger.remove(entry_id), journal_change=True)

    def set_entry_mood(self, entry_id: str, mood: Mood | str | None) -> CommandResult[None]:
        return self._run("change entry mood", lambda: self.ledger.set_mood(entry_id, mood), journal_change=True)

    def update_journal(self, content: str) -> CommandResult[None]:
        """Write the legacy journal text.

        Once entries exist the legacy field only mirrors the newest entry,
        so the write goes to that entry instead.
        """
        def apply() -> CommandResult[None]:
            newest = self.ledger.newest()
            if newest is not None:
                return self.ledger.edit(newest.entry_id, content)
            if not isinstance(content, str):
                return CommandResult.rejected(
                    RejectionKind.VALIDATION_REJECTED,
                    "Journal content must be a string",
                    field="journal",
                )
            self.record.journal = content
            return CommandResult.success()

        return self._run("update journal", apply, journal_change=True)

    def update_mood(self, mood: Mood | str | None) -> CommandResult[None]:
        """Write the legacy mood; routed to the newest entry once entries exist."""
        def apply() -> CommandResult[None]:
            newest = self.ledger.newest()
            if newest is not None:
                return self.ledger.set_mood(newest.entry_id, mood)
            try:
                self.record.mood = parse_mood(mood)
            except ValueError:
                return CommandResult.rejected(
                    RejectionKind.VALIDATION_REJECTED,
                    f"Invalid mood: {mood}",
                    field="mood",
                    allowed=[m.value for m in Mood],
                )
            return CommandResult.success()

        return self._run("update mood", apply, journal_change=True)

    # ========== Seal ==========

    def seal(self) -> CommandResult[datetime]:
        """Seal the active record if its precondition holds.

        Returns:
            CommandResult carrying the seal time, or SEAL_PRECONDITION_UNMET
            listing every unmet condition in its details
        """
        return self._run("seal", self.gate.seal)

    def unseal(self) -> CommandResult[None]:
        """Reopen the active record; the only command allowed while sealed."""
        self._require_record()
        refused = self._unavailable("unseal")
        if refused is not None:
            return refused
        result = self.gate.unseal()
        if not result.ok:
            return result
        return self._commit("unseal", result)
