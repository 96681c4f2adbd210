"""WIP limit enforcement for the In Progress column."""

from __future__ import annotations

from typing import TYPE_CHECKING

from wipboard.core.constants import WIP_LIMIT, WIP_STATUS

if TYPE_CHECKING:
    from collections.abc import Iterable

    from wipboard.core.models.entities import Task
    from wipboard.core.models.enums import TaskStatus


def wip_count(tasks: Iterable[Task], *, excluding: str | None = None) -> int:
    """Count tasks currently in progress, optionally ignoring one task."""
    return sum(1 for task in tasks if task.status == WIP_STATUS and task.id != excluding)


def can_enter_column(
    tasks: Iterable[Task],
    task_id: str,
    target_status: TaskStatus,
    *,
    wip_limit: int = WIP_LIMIT,
) -> bool:
    """Return whether ``task_id`` may be placed in ``target_status``.

    Only In Progress is constrained. The moving task never counts against the
    limit, so reordering inside In Progress is always admissible.
    """
    if target_status != WIP_STATUS:
        return True
    return wip_count(tasks, excluding=task_id) < wip_limit


def remaining_capacity(tasks: Iterable[Task], wip_limit: int = WIP_LIMIT) -> int:
    """Number of tasks that can still enter In Progress."""
    return max(0, wip_limit - wip_count(tasks))


def wip_rejection_message(wip_limit: int = WIP_LIMIT) -> str:
    return (
        f"Cannot move task to In Progress. WIP limit reached ({wip_limit} tasks maximum). "
        "Complete or move out a task first."
    )
