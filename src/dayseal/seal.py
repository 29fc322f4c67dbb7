"""Seal/unseal state machine for a daily record.

A record is either unsealed (editable) or sealed (historical). Sealing is
gated on the day having enough activity; unsealing is always allowed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from .clock import MonotonicClock
from .log import get_logger
from .models import DailyRecord, format_timestamp
from .results import CommandResult, Rejection, RejectionKind
from .richtext import is_blank

logger = get_logger(__name__)

DEFAULT_MIN_JOURNAL_LENGTH = 50


class SealState(Enum):
    UNSEALED = "unsealed"
    SEALED = "sealed"


class SealCondition(Enum):
    """One alternative that can satisfy the seal precondition."""
    ALL_TASKS_COMPLETED = "all_tasks_completed"
    JOURNAL_MIN_LENGTH = "journal_min_length"
    JOURNAL_ENTRY_EXISTS = "journal_entry_exists"
    JOURNAL_TEXT = "journal_text"
    MOOD_SELECTED = "mood_selected"


@dataclass(frozen=True)
class UnmetCondition:
    condition: SealCondition
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "condition": self.condition.value,
            "message": self.message,
            **self.details,
        }


@dataclass(frozen=True)
class SealCheck:
    """Result of evaluating the seal precondition.

    When ``allowed`` is False, ``unmet`` lists every alternative of the
    applicable branch (with tasks / without tasks), any one of which would
    have been enough.
    """
    allowed: bool
    unmet: tuple[UnmetCondition, ...] = ()

    def to_dict(self) -> dict:
        return {
            "allowed": self.allowed,
            "unmet": [u.to_dict() for u in self.unmet],
        }


def ensure_unsealed(record: DailyRecord, action: str) -> Optional[Rejection]:
    """Return a rejection if ``record`` is sealed, else None."""
    if record.is_sealed:
        return Rejection(
            kind=RejectionKind.MUTATION_ON_SEALED_RECORD,
            message=f"Cannot {action}: record {record.date_key} is sealed",
            details={"date": record.date_key},
        )
    return None


def evaluate(record: DailyRecord, min_journal_length: int = DEFAULT_MIN_JOURNAL_LENGTH) -> SealCheck:
    """Evaluate the seal precondition for ``record``.

    With tasks: all tasks completed, or legacy journal of at least
    ``min_journal_length`` characters, or any journal entry.
    Without tasks: non-blank legacy journal, or a mood, or any journal entry.
    """
    has_entries = len(record.journal_entries) > 0

    if record.tasks:
        remaining = sum(1 for t in record.tasks if not t.completed)
        journal_length = len(record.journal)
        if remaining == 0 or journal_length >= min_journal_length or has_entries:
            return SealCheck(allowed=True)
        needed = min_journal_length - journal_length
        return SealCheck(allowed=False, unmet=(
            UnmetCondition(
                SealCondition.ALL_TASKS_COMPLETED,
                f"{remaining} task(s) still incomplete",
                {"remaining": remaining},
            ),
            UnmetCondition(
                SealCondition.JOURNAL_MIN_LENGTH,
                f"Journal needs {needed} more character(s)",
                {"characters_needed": needed, "minimum": min_journal_length},
            ),
            UnmetCondition(
                SealCondition.JOURNAL_ENTRY_EXISTS,
                "No journal entry written yet",
            ),
        ))

    if not is_blank(record.journal) or record.mood is not None or has_entries:
        return SealCheck(allowed=True)
    return SealCheck(allowed=False, unmet=(
        UnmetCondition(SealCondition.JOURNAL_TEXT, "Journal is empty"),
        UnmetCondition(SealCondition.MOOD_SELECTED, "No mood selected"),
        UnmetCondition(SealCondition.JOURNAL_ENTRY_EXISTS, "No journal entry written yet"),
    ))


class SealGate:
    """Guards and performs seal/unseal transitions on one record."""

    def __init__(
        self,
        record: DailyRecord,
        clock: Optional[MonotonicClock] = None,
        min_journal_length: int = DEFAULT_MIN_JOURNAL_LENGTH,
    ):
        self.record = record
        self.clock = clock or MonotonicClock()
        self.min_journal_length = min_journal_length

    @property
    def state(self) -> SealState:
        return SealState.SEALED if self.record.is_sealed else SealState.UNSEALED

    def guard(self, action: str) -> Optional[Rejection]:
        """Rejection for a mutating ``action`` if the record is sealed."""
        return ensure_unsealed(self.record, action)

    def evaluate(self) -> SealCheck:
        return evaluate(self.record, self.min_journal_length)

    def seal(self) -> CommandResult[datetime]:
        """Seal the record if the precondition holds.

        ``sealed_at`` always moves strictly forward, also across repeated
        seal/unseal cycles within one clock tick.
        """
        rejection = self.guard("seal")
        if rejection:
            return CommandResult.from_rejection(rejection)

        check = self.evaluate()
        if not check.allowed:
            logger.warning(
                "seal_rejected",
                date=self.record.date_key,
                unmet=[u.condition.value for u in check.unmet],
            )
            return CommandResult.rejected(
                RejectionKind.SEAL_PRECONDITION_UNMET,
                "Record cannot be sealed yet",
                unmet=[u.to_dict() for u in check.unmet],
            )

        sealed_at = self.clock.now(after=self.record.sealed_at)
        self.record.is_sealed = True
        self.record.sealed_at = sealed_at
        logger.info("record_sealed", date=self.record.date_key, sealed_at=format_timestamp(sealed_at))
        return CommandResult.success(sealed_at)

    def unseal(self) -> CommandResult[None]:
        """Make the record editable again; ``sealed_at`` is kept."""
        if not self.record.is_sealed:
            return CommandResult.rejected(
                RejectionKind.NOT_SEALED,
                f"Record {self.record.date_key} is not sealed",
                date=self.record.date_key,
            )
        self.record.is_sealed = False
        logger.info("record_unsealed", date=self.record.date_key)
        return CommandResult.success()
