"""Core domain enums."""

from __future__ import annotations

from enum import StrEnum


class TaskStatus(StrEnum):
    """Task status values for board columns."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @property
    def label(self) -> str:
        """Column title."""
        return {
            self.TODO: "To Do",
            self.IN_PROGRESS: "In Progress",
            self.COMPLETED: "Completed",
        }[self]

    @property
    def icon(self) -> str:
        """Column icon."""
        return {self.TODO: "☐", self.IN_PROGRESS: "▶", self.COMPLETED: "✓"}[self]

    @classmethod
    def coerce(cls, value: object) -> TaskStatus | None:
        """Return a status for ``value`` or None when it is not a known status."""
        if isinstance(value, TaskStatus):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower().replace("-", "_").replace(" ", "_")
            if normalized == "done":
                normalized = "completed"
            try:
                return cls(normalized)
            except ValueError:
                return None
        return None


class TaskPriority(StrEnum):
    """Task priority levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        """Numeric rank used for sorting (low < medium < high)."""
        return {self.LOW: 0, self.MEDIUM: 1, self.HIGH: 2}[self]

    @property
    def label(self) -> str:
        """Short display label."""
        return {self.LOW: "LOW", self.MEDIUM: "MED", self.HIGH: "HIGH"}[self]

    @property
    def css_class(self) -> str:
        """CSS class name for styling."""
        return {self.LOW: "low", self.MEDIUM: "medium", self.HIGH: "high"}[self]


class SortKey(StrEnum):
    """Sortable task attributes."""

    CREATED_AT = "created_at"
    PRIORITY = "priority"
    DUE_DATE = "due_date"


class SortOrder(StrEnum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


class SideEffect(StrEnum):
    """Bookkeeping triggered by a status transition."""

    STAMP_STARTED = "stamp_started"
    STAMP_COMPLETED = "stamp_completed"
    START_TIMER = "start_timer"
    STOP_TIMER = "stop_timer"


class NavMode(StrEnum):
    """Keyboard navigation state."""

    IDLE = "idle"
    NAVIGATING = "navigating"


class NotificationSeverity(StrEnum):
    """Notification severity levels."""

    INFORMATION = "information"
    WARNING = "warning"
    ERROR = "error"


class ExportFormat(StrEnum):
    """Supported export document formats."""

    JSON = "json"
    CSV = "csv"
    MARKDOWN = "markdown"

    @property
    def suffix(self) -> str:
        return {self.JSON: ".json", self.CSV: ".csv", self.MARKDOWN: ".md"}[self]
