"""Process-local task store used by ``--memory`` boards and the test suite."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from wipboard.core.constants import COLUMN_ORDER, POSITION_STEP
from wipboard.core.errors import StoreError, TaskNotFoundError
from wipboard.core.events import TaskCreated, TaskDeleted
from wipboard.core.models.entities import Project, Task
from wipboard.core.models.enums import TaskStatus
from wipboard.core.services.tasks import change_events, check_fields
from wipboard.core.time import utc_now

if TYPE_CHECKING:
    from collections.abc import Mapping

    from wipboard.core.events import DomainEvent, EventBus
    from wipboard.core.time import Clock


def _new_id() -> str:
    return uuid4().hex[:8]


class InMemoryTaskStore:
    """Dictionary-backed ``TaskStore``.

    Commands are applied under a single lock so that each one is atomic with
    respect to the others, mirroring the SQL repository.
    """

    def __init__(self, *, clock: Clock = utc_now, event_bus: EventBus | None = None) -> None:
        self._clock = clock
        self._events = event_bus
        self._projects: dict[str, Project] = {}
        self._tasks: dict[str, Task] = {}
        self._lock = asyncio.Lock()

    async def _publish(self, events: list[DomainEvent]) -> None:
        if self._events is None:
            return
        for event in events:
            await self._events.publish(event)

    async def ensure_project(self, name: str) -> Project:
        for project in self._projects.values():
            if project.name == name:
                return project
        now = self._clock()
        project = Project(id=_new_id(), name=name, created_at=now, updated_at=now)
        self._projects[project.id] = project
        return project

    async def list_projects(self) -> list[Project]:
        return sorted(self._projects.values(), key=lambda project: project.name)

    async def list_tasks(self, project_id: str) -> list[Task]:
        tasks = [task for task in self._tasks.values() if task.project_id == project_id]
        tasks.sort(
            key=lambda task: (COLUMN_ORDER.index(task.status), task.position, task.created_at)
        )
        return [task.model_copy(deep=True) for task in tasks]

    async def get_task(self, task_id: str) -> Task | None:
        task = self._tasks.get(task_id)
        return task.model_copy(deep=True) if task is not None else None

    def _next_position(self, project_id: str, status: TaskStatus) -> int:
        positions = [
            task.position
            for task in self._tasks.values()
            if task.project_id == project_id and task.status == status
        ]
        return max(positions) + POSITION_STEP if positions else POSITION_STEP

    async def create_task(self, project_id: str, title: str, **fields: Any) -> Task:
        check_fields(fields, creating=True)
        fields.pop("position", None)
        async with self._lock:
            now = self._clock()
            data: dict[str, Any] = {
                "id": _new_id(),
                "project_id": project_id,
                "title": title,
                "created_at": now,
                "updated_at": now,
                **fields,
            }
            status = TaskStatus.coerce(data.get("status")) or TaskStatus.TODO
            data["status"] = status
            data["position"] = self._next_position(project_id, status)
            try:
                task = Task.model_validate(data)
            except ValueError as exc:
                raise StoreError(f"Could not create task: {exc}") from exc
            self._tasks[task.id] = task
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
        return task.model_copy(deep=True)

    async def update_task(
        self,
        task_id: str,
        fields: Mapping[str, Any],
        *,
        add_minutes: int = 0,
    ) -> Task:
        check_fields(fields)
        if add_minutes < 0:
            raise StoreError(f"Cannot credit a negative duration ({add_minutes} minutes)")
        async with self._lock:
            current = self._tasks.get(task_id)
            if current is None:
                raise TaskNotFoundError(task_id)
            spent = fields.get("time_spent_minutes")
            if spent is not None and spent < current.time_spent_minutes:
                raise StoreError(
                    f"time_spent_minutes cannot decrease ({current.time_spent_minutes} -> {spent})"
                )
            data = current.model_dump()
            data.update(fields)
            data["time_spent_minutes"] += add_minutes
            data["updated_at"] = self._clock()
            try:
                task = Task.model_validate(data)
            except ValueError as exc:
                raise StoreError(f"Could not update task: {exc}") from exc
            self._tasks[task_id] = task
        await self._publish(change_events(current.status, task, fields, add_minutes))
        return task.model_copy(deep=True)

    async def delete_task(self, task_id: str) -> bool:
        async with self._lock:
            deleted = self._tasks.pop(task_id, None) is not None
        if deleted:
            await self._publish([TaskDeleted(task_id=task_id)])
        return deleted

    async def record_time(self, task_id: str, minutes: int) -> Task:
        return await self.update_task(task_id, {}, add_minutes=minutes)

    async def close(self) -> None:
        return None
