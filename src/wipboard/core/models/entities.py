"""Core domain entities.

These models are intentionally light on persistence concerns. Stores map
their records to/from these entities, and every loosely-typed record
(camelCase keys, ``created_at``/``createdAt`` duplicates, naive timestamps)
is normalized here so the board engine only ever sees one shape.
"""

from __future__ import annotations

from datetime import date, datetime  # noqa: TC003 - Pydantic needs runtime access

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from wipboard.core.models.enums import TaskPriority, TaskStatus
from wipboard.core.time import ensure_utc


def _alias(snake: str, camel: str) -> AliasChoices:
    return AliasChoices(snake, camel)


class DomainModel(BaseModel):
    """Base model with common config."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class Project(DomainModel):
    """Project container. Relationships: tasks."""

    id: str
    name: str
    description: str = ""
    created_at: datetime = Field(validation_alias=_alias("created_at", "createdAt"))
    updated_at: datetime = Field(validation_alias=_alias("updated_at", "updatedAt"))

    @field_validator("created_at", "updated_at", mode="after")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class Task(DomainModel):
    """Unit of work (board card)."""

    id: str
    project_id: str = Field(validation_alias=_alias("project_id", "projectId"))
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    position: int = 0
    tags: list[str] = Field(default_factory=list)
    due_date: date | None = Field(default=None, validation_alias=_alias("due_date", "dueDate"))
    estimated_hours: float | None = Field(
        default=None, validation_alias=_alias("estimated_hours", "estimatedHours")
    )
    time_spent_minutes: int = Field(
        default=0, ge=0, validation_alias=_alias("time_spent_minutes", "timeSpentMinutes")
    )
    timer_start_time: datetime | None = Field(
        default=None, validation_alias=_alias("timer_start_time", "timerStartTime")
    )
    started_at: datetime | None = Field(
        default=None, validation_alias=_alias("started_at", "startedAt")
    )
    completed_at: datetime | None = Field(
        default=None, validation_alias=_alias("completed_at", "completedAt")
    )
    created_at: datetime = Field(validation_alias=_alias("created_at", "createdAt"))
    updated_at: datetime = Field(validation_alias=_alias("updated_at", "updatedAt"))

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: object) -> object:
        return TaskStatus.coerce(value) or value

    @field_validator("priority", mode="before")
    @classmethod
    def _coerce_priority(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("due_date", mode="before")
    @classmethod
    def _coerce_due_date(cls, value: object) -> object:
        # ISO timestamps are accepted and truncated to their calendar day.
        if isinstance(value, str) and "T" in value:
            return value.split("T", 1)[0]
        if isinstance(value, datetime):
            return value.date()
        if value == "":
            return None
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, list | tuple | set):
            seen: dict[str, None] = {}
            for item in value:
                tag = str(item).strip()
                if tag:
                    seen.setdefault(tag, None)
            return list(seen)
        return value

    @field_validator(
        "timer_start_time", "started_at", "completed_at", "created_at", "updated_at", mode="after"
    )
    @classmethod
    def _utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value) if value is not None else None

    @property
    def short_id(self) -> str:
        """Return shortened ID for display."""
        return self.id[:8]

    @property
    def timer_running(self) -> bool:
        return self.timer_start_time is not None

    @property
    def priority_label(self) -> str:
        """Return human-readable priority label."""
        return self.priority.label
