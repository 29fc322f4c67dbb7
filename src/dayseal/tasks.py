"""Task list of a daily record."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Callable, Optional, Union

from .clock import MonotonicClock
from .log import get_logger
from .models import DailyRecord, Priority, Task, new_id, normalize_tags, parse_priority
from .results import CommandResult, RejectionKind
from .seal import ensure_unsealed

logger = get_logger(__name__)

CompletionUpdates = Union[Mapping[str, bool], Iterable[tuple[str, bool]]]


def _invalid(field: str, message: str, **details) -> CommandResult:
    return CommandResult.rejected(RejectionKind.VALIDATION_REJECTED, message, field=field, **details)


def _check_description(description: object) -> Optional[CommandResult]:
    if not isinstance(description, str) or not description.strip():
        return _invalid("description", "Task description must not be blank")
    return None


def _check_tags(tags: object) -> Optional[CommandResult]:
    # A bare string would otherwise be split into single-letter tags.
    if tags is None:
        return None
    if not isinstance(tags, (list, tuple)) or not all(isinstance(t, str) for t in tags):
        return _invalid("tags", "Task tags must be a list of strings")
    return None


class TaskRegistry:
    """Adds, removes, toggles and orders the tasks of one record.

    Every mutation is refused while the record is sealed, independent of
    whatever checks the caller already made.
    """

    def __init__(
        self,
        record: DailyRecord,
        clock: Optional[MonotonicClock] = None,
        id_factory: Callable[[], str] = new_id,
    ):
        self.record = record
        self.clock = clock or MonotonicClock()
        self._new_id = id_factory

    def list(self) -> list[Task]:
        """Tasks sorted by their manual order."""
        return sorted(self.record.tasks, key=lambda t: t.order)

    def get(self, task_id: str) -> Optional[Task]:
        """Look up a task by id.

        Args:
            task_id: Id returned by ``add``

        Returns:
            The live Task (changes to it change the record), or None
        """
        for task in self.record.tasks:
            if task.task_id == task_id:
                return task
        return None

    def __len__(self) -> int:
        return len(self.record.tasks)

    def _unknown(self, task_id: str) -> CommandResult:
        return CommandResult.rejected(
            RejectionKind.UNKNOWN_ENTITY,
            f"Unknown task: {task_id}",
            task_id=task_id,
        )

    def _parse_priority(self, priority: Priority | str) -> Union[Priority, CommandResult]:
        try:
            return parse_priority(priority)
        except ValueError:
            return _invalid(
                "priority",
                f"Invalid priority: {priority}",
                allowed=[p.value for p in Priority],
            )

    def add(
        self,
        description: str,
        priority: Priority | str = Priority.MEDIUM,
        tags: Optional[list[str]] = None,
    ) -> CommandResult[str]:
        """Append a new task and return its id.

        Args:
            description: Task text, kept verbatim; must not be blank
            priority: Priority or its string value
            tags: List of tag strings; stripped, blanks and repeats dropped

        Returns:
            CommandResult carrying the new task id, or a VALIDATION_REJECTED /
            MUTATION_ON_SEALED_RECORD rejection
        """
        for rejected in (_check_description(description), _check_tags(tags)):
            if rejected is not None:
                return rejected
        parsed_priority = self._parse_priority(priority)
        if isinstance(parsed_priority, CommandResult):
            return parsed_priority
        rejection = ensure_unsealed(self.record, "add task")
        if rejection:
            return CommandResult.from_rejection(rejection)

        tasks = self.record.tasks
        order = max(t.order for t in tasks) + 1 if tasks else 0
        task = Task(
            task_id=self._new_id(),
            description=description,
            created_at=self.clock.now(),
            priority=parsed_priority,
            tags=normalize_tags(tags),
            order=order,
        )
        tasks.append(task)
        logger.debug("task_added", task_id=task.task_id, order=order)
        return CommandResult.success(task.task_id)

    def update(
        self,
        task_id: str,
        description: Optional[str] = None,
        priority: Priority | str | None = None,
        tags: Optional[list[str]] = None,
    ) -> CommandResult[None]:
        """Edit a task's description, priority and/or tags.

        Fields left as None are not touched. Nothing changes unless every
        supplied field is valid.

        Args:
            task_id: Task to edit
            description: New text; same rules as ``add``
            priority: New priority
            tags: New tag list, replacing the old one

        Returns:
            CommandResult with no value on success
        """
        rejection = ensure_unsealed(self.record, "edit task")
        if rejection:
            return CommandResult.from_rejection(rejection)
        task = self.get(task_id)
        if task is None:
            return self._unknown(task_id)

        if description is not None:
            rejected = _check_description(description)
            if rejected is not None:
                return rejected
        rejected = _check_tags(tags)
        if rejected is not None:
            return rejected
        parsed_priority = None
        if priority is not None:
            parsed_priority = self._parse_priority(priority)
            if isinstance(parsed_priority, CommandResult):
                return parsed_priority

        if description is not None:
            task.description = description
        if parsed_priority is not None:
            task.priority = parsed_priority
        if tags is not None:
            task.tags = normalize_tags(tags)
        logger.debug("task_updated", task_id=task_id)
        return CommandResult.success()

    def remove(self, task_id: str) -> CommandResult[None]:
        """Delete a task; the remaining tasks are renumbered 0..n-1."""
        rejection = ensure_unsealed(self.record, "remove task")
        if rejection:
            return CommandResult.from_rejection(rejection)
        task = self.get(task_id)
        if task is None:
            return self._unknown(task_id)

        self.record.tasks.remove(task)
        for index, remaining in enumerate(self.list()):
            remaining.order = index
        logger.debug("task_removed", task_id=task_id)
        return CommandResult.success()

    def toggle(self, task_id: str) -> CommandResult[bool]:
        """Flip a task's completed flag; returns the new value."""
        rejection = ensure_unsealed(self.record, "toggle task")
        if rejection:
            return CommandResult.from_rejection(rejection)
        task = self.get(task_id)
        if task is None:
            return self._unknown(task_id)

        task.completed = not task.completed
        task.completed_at = self.clock.now() if task.completed else None
        logger.debug("task_toggled", task_id=task_id, completed=task.completed)
        return CommandResult.success(task.completed)

    def batch_set_completed(self, updates: CompletionUpdates) -> CommandResult[int]:
        """Set the completed flag of several tasks at once.

        Ids that name no task are skipped. A task moving to completed gets
        one shared completion timestamp; one moving back loses it. A task
        already in the requested state keeps its timestamp.

        Args:
            updates: ``{task_id: completed}`` or ``(task_id, completed)`` pairs

        Returns:
            CommandResult carrying how many updates named an existing task
        """
        rejection = ensure_unsealed(self.record, "complete tasks")
        if rejection:
            return CommandResult.from_rejection(rejection)
        pairs = list(updates.items() if isinstance(updates, Mapping) else updates)
        for _, completed in pairs:
            if not isinstance(completed, bool):
                return _invalid("completed", f"Completed flag must be true or false, got {completed!r}")

        now = None
        applied = 0
        for task_id, completed in pairs:
            task = self.get(task_id)
            if task is None:
                continue
            if completed and not task.completed:
                now = now or self.clock.now()
                task.completed_at = now
            elif not completed:
                task.completed_at = None
            task.completed = completed
            applied += 1
        logger.debug("tasks_completed", requested=len(pairs), applied=applied)
        return CommandResult.success(applied)

    def reorder(self, task_ids: list[str]) -> CommandResult[None]:
        """Reorder tasks to match ``task_ids``.

        ``task_ids`` must be a permutation of the current ids: same length,
        no duplicates, nothing added or missing.
        """
        rejection = ensure_unsealed(self.record, "reorder tasks")
        if rejection:
            return CommandResult.from_rejection(rejection)

        ids = list(task_ids)
        current = {t.task_id for t in self.record.tasks}
        supplied = set(ids)
        if len(ids) != len(current) or len(supplied) != len(ids) or supplied != current:
            return CommandResult.rejected(
                RejectionKind.REORDER_INVALID_PERMUTATION,
                "Reorder must list every existing task exactly once",
                missing=sorted(current - supplied),
                unexpected=sorted(supplied - current),
                duplicates=len(ids) - len(supplied),
            )

        by_id = {t.task_id: t for t in self.record.tasks}
        reordered = [by_id[task_id] for task_id in ids]
        for index, task in enumerate(reordered):
            task.order = index
        self.record.tasks[:] = reordered
        logger.debug("tasks_reordered", count=len(reordered))
        return CommandResult.success()
