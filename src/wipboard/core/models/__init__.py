"""Domain models."""

from __future__ import annotations

from wipboard.core.models.entities import DomainModel, Project, Task
from wipboard.core.models.enums import (
    ExportFormat,
    NavMode,
    NotificationSeverity,
    SideEffect,
    SortKey,
    SortOrder,
    TaskPriority,
    TaskStatus,
)

__all__ = [
    "DomainModel",
    "ExportFormat",
    "NavMode",
    "NotificationSeverity",
    "Project",
    "SideEffect",
    "SortKey",
    "SortOrder",
    "Task",
    "TaskPriority",
    "TaskStatus",
]
