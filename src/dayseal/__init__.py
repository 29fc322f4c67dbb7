"""dayseal - daily tasks and journal entries, sealed into a permanent record."""

from .controller import DailyRecordController, ReadModel
from .models import DailyRecord, JournalEntry, Mood, Priority, Task
from .results import CommandResult, Rejection, RejectionKind
from .storage import JsonFileStore, MemoryStore

__version__ = "0.1.0"

__all__ = [
    "CommandResult",
    "DailyRecord",
    "DailyRecordController",
    "JournalEntry",
    "JsonFileStore",
    "MemoryStore",
    "Mood",
    "Priority",
    "ReadModel",
    "Rejection",
    "RejectionKind",
    "Task",
]
