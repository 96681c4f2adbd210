"""Domain services."""

from __future__ import annotations

from wipboard.core.services.tasks import BoardStore, TaskServiceImpl, TaskStore

__all__ = ["BoardStore", "TaskServiceImpl", "TaskStore"]
