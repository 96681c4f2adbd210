"""Domain events and event bus contracts."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Protocol
from uuid import uuid4

from wipboard.core.time import utc_now

if TYPE_CHECKING:
    from wipboard.core.models.enums import TaskStatus


def _new_event_id() -> str:
    return uuid4().hex


class DomainEvent(Protocol):
    """Base protocol for all domain events."""

    @property
    def event_id(self) -> str: ...

    @property
    def occurred_at(self) -> datetime: ...


EventHandler = Callable[[DomainEvent], None]


class EventBus(Protocol):
    """Async fan-out bus for domain events."""

    async def publish(self, event: DomainEvent) -> None:
        """Publish a single event to subscribers."""
        ...

    def subscribe(self, event_type: type[DomainEvent] | None = None) -> AsyncIterator[DomainEvent]:
        """Subscribe to events (optionally filtered by type)."""
        ...

    def add_handler(
        self,
        handler: EventHandler,
        event_type: type[DomainEvent] | None = None,
    ) -> None:
        """Register a sync handler for events (UI bridges use this)."""
        ...

    def remove_handler(self, handler: EventHandler) -> None:
        """Remove a previously registered handler."""
        ...


@dataclass(frozen=True)
class TaskCreated:
    task_id: str
    project_id: str
    status: TaskStatus
    title: str
    created_at: datetime
    event_id: str = field(default_factory=_new_event_id)
    occurred_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class TaskUpdated:
    task_id: str
    fields_changed: list[str]
    updated_at: datetime
    event_id: str = field(default_factory=_new_event_id)
    occurred_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class TaskStatusChanged:
    task_id: str
    from_status: TaskStatus
    to_status: TaskStatus
    updated_at: datetime
    event_id: str = field(default_factory=_new_event_id)
    occurred_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class TaskTimeRecorded:
    """Emitted when minutes are credited to a task."""

    task_id: str
    minutes: int
    total_minutes: int
    event_id: str = field(default_factory=_new_event_id)
    occurred_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class TaskDeleted:
    task_id: str
    event_id: str = field(default_factory=_new_event_id)
    occurred_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class ProjectCreated:
    """Emitted when a new project is created."""

    project_id: str
    name: str
    event_id: str = field(default_factory=_new_event_id)
    occurred_at: datetime = field(default_factory=utc_now)
