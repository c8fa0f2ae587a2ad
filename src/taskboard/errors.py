"""Error taxonomy for the task board engine.

Caller misuse (ValidationError, NotFoundError) is raised synchronously.
Environment failures (CorruptStateError, StoreUnavailableError) are recorded
and absorbed by the persistence layer; the board keeps working in memory.
"""

from __future__ import annotations

from typing import Optional


class TaskBoardError(Exception):
    """Base class for every error raised by the task board."""


class ValidationError(TaskBoardError, ValueError):
    """Input rejected before any mutation (empty title, unknown status, ...)."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class NotFoundError(TaskBoardError, LookupError):
    """An operation referenced a task id that is not on the board."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class CorruptStateError(TaskBoardError):
    """A persisted value exists but cannot be parsed as a task collection."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Corrupt value under {key!r}: {reason}")
        self.key = key
        self.reason = reason


class StoreUnavailableError(TaskBoardError):
    """The backing key-value store could not be read or written."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Store unavailable for {key!r}: {reason}")
        self.key = key
        self.reason = reason
