"""Task store contract and its SQL-backed implementation."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Protocol

from sqlalchemy.exc import SQLAlchemyError

from wipboard.core.errors import StoreError, TaskNotFoundError
from wipboard.core.events import (
    TaskCreated,
    TaskDeleted,
    TaskStatusChanged,
    TaskTimeRecorded,
    TaskUpdated,
)
from wipboard.core.models.entities import Project, Task

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from wipboard.core.adapters.db.repositories import TaskRepository
    from wipboard.core.events import DomainEvent, EventBus
    from wipboard.core.models.enums import TaskStatus

logger = logging.getLogger(__name__)

# Fields callers may set through create/update commands.
MUTABLE_TASK_FIELDS = frozenset(
    {
        "title",
        "description",
        "status",
        "priority",
        "position",
        "tags",
        "due_date",
        "estimated_hours",
        "time_spent_minutes",
        "timer_start_time",
        "started_at",
        "completed_at",
    }
)
# Imports may carry the original creation time.
CREATE_ONLY_FIELDS = frozenset({"created_at"})


class TaskStore(Protocol):
    """Protocol boundary for the board's task persistence.

    Every method raises ``StoreError`` when the backing store fails.
    """

    async def list_tasks(self, project_id: str) -> list[Task]: ...

    async def get_task(self, task_id: str) -> Task | None: ...

    async def create_task(self, project_id: str, title: str, **fields: Any) -> Task: ...

    async def update_task(
        self,
        task_id: str,
        fields: Mapping[str, Any],
        *,
        add_minutes: int = 0,
    ) -> Task: ...

    async def delete_task(self, task_id: str) -> bool: ...

    async def record_time(self, task_id: str, minutes: int) -> Task: ...


class BoardStore(TaskStore, Protocol):
    """Task store that also scopes boards by project and owns its resources."""

    async def ensure_project(self, name: str) -> Project: ...

    async def list_projects(self) -> list[Project]: ...

    async def close(self) -> None: ...


def check_fields(fields: Mapping[str, Any], *, creating: bool = False) -> None:
    """Reject field names the store does not accept."""
    allowed = MUTABLE_TASK_FIELDS | CREATE_ONLY_FIELDS if creating else MUTABLE_TASK_FIELDS
    unknown = set(fields) - allowed
    if unknown:
        raise StoreError(f"Unknown task field(s): {', '.join(sorted(unknown))}")


def change_events(
    before: TaskStatus,
    task: Task,
    fields: Mapping[str, Any],
    add_minutes: int,
) -> list[DomainEvent]:
    """Build the domain events describing one update command."""
    events: list[DomainEvent] = []
    if fields:
        events.append(
            TaskUpdated(
                task_id=task.id,
                fields_changed=sorted(fields),
                updated_at=task.updated_at,
            )
        )
    if task.status != before:
        events.append(
            TaskStatusChanged(
                task_id=task.id,
                from_status=before,
                to_status=task.status,
                updated_at=task.updated_at,
            )
        )
    if add_minutes:
        events.append(
            TaskTimeRecorded(
                task_id=task.id,
                minutes=add_minutes,
                total_minutes=task.time_spent_minutes,
            )
        )
    return events


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except (SQLAlchemyError, ValueError) as exc:
        logger.warning("Store failed to %s: %s", action, exc)
        raise StoreError(f"Could not {action}: {exc}") from exc


class TaskServiceImpl:
    """Task store backed by TaskRepository and EventBus."""

    def __init__(self, repo: TaskRepository, event_bus: EventBus) -> None:
        self._repo = repo
        self._events = event_bus

    async def _publish(self, events: list[DomainEvent]) -> None:
        for event in events:
            await self._events.publish(event)

    async def ensure_project(self, name: str) -> Project:
        """Return the named project, creating it if needed."""
        with _store_errors("open project"):
            row = await self._repo.get_or_create_project(name)
        return Project.model_validate(row)

    async def list_projects(self) -> list[Project]:
        with _store_errors("list projects"):
            rows = await self._repo.list_projects()
        return [Project.model_validate(row) for row in rows]

    async def list_tasks(self, project_id: str) -> list[Task]:
        with _store_errors("load tasks"):
            rows = await self._repo.get_all(project_id=project_id)
        return [Task.model_validate(row) for row in rows]

    async def get_task(self, task_id: str) -> Task | None:
        with _store_errors("load task"):
            row = await self._repo.get(task_id)
        return Task.model_validate(row) if row is not None else None

    async def create_task(self, project_id: str, title: str, **fields: Any) -> Task:
        from wipboard.core.adapters.db.schema import Task as DbTask

        check_fields(fields, creating=True)
        fields.pop("position", None)
        with _store_errors("create task"):
            created = await self._repo.create(DbTask(project_id=project_id, title=title, **fields))
        task = Task.model_validate(created)
        logger.info("Created task %s in %s", task.short_id, task.status)
        await self._publish(
            [
                TaskCreated(
                    task_id=task.id,
                    project_id=task.project_id,
                    status=task.status,
                    title=task.title,
                    created_at=task.created_at,
                )
            ]
        )
        return task

    async def update_task(
        self,
        task_id: str,
        fields: Mapping[str, Any],
        *,
        add_minutes: int = 0,
    ) -> Task:
        check_fields(fields)
        with _store_errors("update task"):
            result = await self._repo.update(task_id, fields, add_minutes=add_minutes)
        if result is None:
            raise TaskNotFoundError(task_id)
        row, before = result
        task = Task.model_validate(row)
        await self._publish(change_events(before, task, fields, add_minutes))
        return task

    async def delete_task(self, task_id: str) -> bool:
        with _store_errors("delete task"):
            deleted = await self._repo.delete(task_id)
        if deleted:
            await self._publish([TaskDeleted(task_id=task_id)])
        return deleted

    async def record_time(self, task_id: str, minutes: int) -> Task:
        return await self.update_task(task_id, {}, add_minutes=minutes)

    async def close(self) -> None:
        await self._repo.close()
