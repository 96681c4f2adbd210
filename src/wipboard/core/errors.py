"""Error taxonomy for the board engine and its store adapters.

Capacity violations are not errors: the move engine reports them as
``Rejection`` values so the board can show them as ordinary notifications.
"""

from __future__ import annotations


class WipboardError(Exception):
    """Base class for wipboard errors."""


class StoreError(WipboardError):
    """Raised when a store adapter cannot complete a read or command."""


class TaskNotFoundError(StoreError):
    """Raised when a command references a task the store no longer holds."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class ImportFormatError(WipboardError):
    """Raised when an import document cannot be parsed."""
