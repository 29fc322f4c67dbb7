"""Command outcomes and error types.

Expected outcomes of a command (blank input, sealed record, unknown id...)
are returned as a ``CommandResult`` carrying a ``Rejection``. Exceptions are
reserved for genuine faults such as a corrupt snapshot or a bad config file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Optional, TypeVar, Union

T = TypeVar("T")


class DaySealError(Exception):
    """Base exception for dayseal faults."""
    pass


class SnapshotFormatError(DaySealError):
    """Raised when a stored snapshot cannot be turned back into a record."""
    pass


class ExportFormatError(DaySealError):
    """Raised when an export document cannot be parsed."""
    pass


class ConfigError(DaySealError):
    """Raised when a configuration file is unusable."""
    pass


class RejectionKind(Enum):
    """Why a command was not applied."""
    VALIDATION_REJECTED = "validation_rejected"
    SEAL_PRECONDITION_UNMET = "seal_precondition_unmet"
    MUTATION_ON_SEALED_RECORD = "mutation_on_sealed_record"
    UNKNOWN_ENTITY = "unknown_entity"
    REORDER_INVALID_PERMUTATION = "reorder_invalid_permutation"
    NOT_SEALED = "not_sealed"
    RECORD_UNAVAILABLE = "record_unavailable"


# Kinds that point at a caller bug rather than something the user did.
PROGRAMMING_KINDS = frozenset({
    RejectionKind.UNKNOWN_ENTITY,
    RejectionKind.REORDER_INVALID_PERMUTATION,
})


@dataclass(frozen=True)
class Rejection:
    """A structured reason for a rejected command."""
    kind: RejectionKind
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "details": dict(self.details),
        }


class PersistenceErrorKind(Enum):
    """Failure categories reported by a record store."""
    NOT_FOUND = "not_found"
    READ_ERROR = "read_error"
    PARSE_ERROR = "parse_error"
    WRITE_ERROR = "write_error"
    LOCK_TIMEOUT = "lock_timeout"


@dataclass(frozen=True)
class SaveResult:
    """Outcome of ``RecordStore.save``."""
    success: bool
    error_kind: Optional[PersistenceErrorKind] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls) -> SaveResult:
        return cls(success=True)

    @classmethod
    def failed(cls, kind: PersistenceErrorKind, error: str) -> SaveResult:
        return cls(success=False, error_kind=kind, error=error)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "error": self.error,
        }


@dataclass(frozen=True)
class LoadResult:
    """Outcome of ``RecordStore.load``."""
    success: bool
    record: Any = None
    error_kind: Optional[PersistenceErrorKind] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, record: Any) -> LoadResult:
        return cls(success=True, record=record)

    @classmethod
    def failed(cls, kind: PersistenceErrorKind, error: str) -> LoadResult:
        return cls(success=False, error_kind=kind, error=error)

    @property
    def not_found(self) -> bool:
        return self.error_kind == PersistenceErrorKind.NOT_FOUND

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "error": self.error,
        }


@dataclass(frozen=True)
class CommandResult(Generic[T]):
    """Either a success carrying ``value`` or a rejection.

    ``persistence`` is filled in by the controller with whatever the store
    reported for the save (or load) that followed the command.
    """
    value: Optional[T] = None
    rejection: Optional[Rejection] = None
    persistence: Optional[Union[SaveResult, LoadResult]] = None

    @property
    def ok(self) -> bool:
        return self.rejection is None

    def __bool__(self) -> bool:
        return self.ok

    @property
    def kind(self) -> Optional[RejectionKind]:
        return self.rejection.kind if self.rejection else None

    @classmethod
    def success(cls, value: Optional[T] = None) -> CommandResult[T]:
        return cls(value=value)

    @classmethod
    def rejected(cls, kind: RejectionKind, message: str, **details: Any) -> CommandResult[T]:
        return cls(rejection=Rejection(kind=kind, message=message, details=details))

    @classmethod
    def from_rejection(cls, rejection: Rejection) -> CommandResult[T]:
        return cls(rejection=rejection)
