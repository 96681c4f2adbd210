"""Conversion between on-screen column indices and stored positions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from wipboard.core.constants import POSITION_STEP

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from wipboard.core.models.entities import Task
    from wipboard.core.models.enums import TaskStatus


@dataclass(frozen=True, slots=True)
class Placement:
    """Target position for a task plus any sibling renumbering it requires."""

    position: int
    shifted: dict[str, int] = field(default_factory=dict)


def column_tasks(
    tasks: Iterable[Task], status: TaskStatus, *, excluding: str | None = None
) -> list[Task]:
    """Tasks of one column in stored order."""
    members = [task for task in tasks if task.status == status and task.id != excluding]
    return sorted(members, key=lambda task: task.position)


def position_for_index(siblings: Sequence[Task], index: int) -> int | None:
    """Position that lands a task at ``index`` among ordered ``siblings``.

    Returns None when the neighbours leave no integer gap.
    """
    index = max(0, min(index, len(siblings)))
    if not siblings:
        return POSITION_STEP
    if index == 0:
        return siblings[0].position - POSITION_STEP
    if index == len(siblings):
        return siblings[-1].position + POSITION_STEP
    before = siblings[index - 1].position
    after = siblings[index].position
    if after - before < 2:
        return None
    return (before + after) // 2


def rebalance(order: Sequence[str]) -> dict[str, int]:
    """Evenly spaced positions for task ids in their final order."""
    return {task_id: (offset + 1) * POSITION_STEP for offset, task_id in enumerate(order)}


def end_position(tasks: Iterable[Task], task_id: str, status: TaskStatus) -> int:
    """Position placing ``task_id`` last in ``status``.

    A task that is already last keeps its position.
    """
    column = column_tasks(tasks, status)
    if not column:
        return POSITION_STEP
    last = column[-1]
    if last.id == task_id:
        return last.position
    return last.position + POSITION_STEP


def plan_placement(
    tasks: Sequence[Task], task_id: str, status: TaskStatus, index: int
) -> Placement | None:
    """Place ``task_id`` at ``index`` of column ``status``.

    ``index`` counts positions in the destination column with the moving
    task removed, so it is the task's final on-screen index. Returns None
    when the task is unknown.
    """
    task = next((candidate for candidate in tasks if candidate.id == task_id), None)
    if task is None:
        return None
    siblings = column_tasks(tasks, status, excluding=task_id)
    index = max(0, min(index, len(siblings)))

    if task.status == status:
        current = [member.id for member in column_tasks(tasks, status)]
        if current.index(task_id) == index:
            return Placement(position=task.position)

    position = position_for_index(siblings, index)
    if position is not None:
        return Placement(position=position)

    order = [sibling.id for sibling in siblings]
    order.insert(index, task_id)
    positions = rebalance(order)
    by_id = {sibling.id: sibling for sibling in siblings}
    shifted = {
        sibling_id: new_position
        for sibling_id, new_position in positions.items()
        if sibling_id != task_id and by_id[sibling_id].position != new_position
    }
    return Placement(position=positions[task_id], shifted=shifted)
