"""Task builders for pure (store-less) tests."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

from tests.helpers.clock import BASE_TIME

from wipboard.core.constants import POSITION_STEP
from wipboard.core.models.entities import Task
from wipboard.core.models.enums import TaskStatus


def make_task(
    task_id: str = "t1",
    *,
    status: TaskStatus = TaskStatus.TODO,
    position: int = POSITION_STEP,
    created_offset: int = 0,
    **fields: Any,
) -> Task:
    """Build a task; ``created_offset`` shifts ``created_at`` by minutes."""
    created = BASE_TIME + timedelta(minutes=created_offset)
    fields.setdefault("title", f"Task {task_id}")
    return Task(
        id=task_id,
        project_id="p1",
        status=status,
        position=position,
        created_at=created,
        updated_at=created,
        **fields,
    )


def column(status: TaskStatus, *ids: str) -> list[Task]:
    """Tasks ``ids`` in ``status`` at evenly spaced positions."""
    return [
        make_task(task_id, status=status, position=(offset + 1) * POSITION_STEP)
        for offset, task_id in enumerate(ids)
    ]
