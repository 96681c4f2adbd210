"""Filter/sort projection of the task list and grouping into columns."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from wipboard.core.constants import COLUMN_ORDER
from wipboard.core.models.enums import SortKey, SortOrder, TaskPriority, TaskStatus
from wipboard.core.time import format_minutes

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from wipboard.core.models.entities import Task


@dataclass(frozen=True, slots=True)
class FilterCriteria:
    """Search, filters and sort applied to the board."""

    search_text: str = ""
    priority: TaskPriority | None = None
    status: TaskStatus | None = None
    sort_key: SortKey = SortKey.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC

    @property
    def is_filtering(self) -> bool:
        """Whether any filter can hide tasks (sorting never does)."""
        return bool(self.search_text.strip()) or self.priority is not None or self.status is not None

    @property
    def is_default(self) -> bool:
        return not self.is_filtering


def _matches(task: Task, criteria: FilterCriteria, needle: str) -> bool:
    if criteria.priority is not None and task.priority != criteria.priority:
        return False
    if criteria.status is not None and task.status != criteria.status:
        return False
    if needle and needle not in task.title.lower() and needle not in task.description.lower():
        return False
    return True


def project_tasks(tasks: Iterable[Task], criteria: FilterCriteria) -> list[Task]:
    """Filter and sort ``tasks``; the input is never mutated.

    Ties (and missing values) fall back to ``created_at`` ascending. Tasks
    without a due date sort after every dated task in both directions.
    """
    needle = criteria.search_text.strip().lower()
    visible = [task for task in tasks if _matches(task, criteria, needle)]
    # Stable sorts: apply the tie-breaker first, then the primary key.
    visible.sort(key=lambda task: task.created_at)
    descending = criteria.sort_order == SortOrder.DESC

    match criteria.sort_key:
        case SortKey.PRIORITY:
            visible.sort(key=lambda task: task.priority.rank, reverse=descending)
        case SortKey.DUE_DATE:
            dated = [task for task in visible if task.due_date is not None]
            undated = [task for task in visible if task.due_date is None]
            dated.sort(key=lambda task: task.due_date or date.min, reverse=descending)
            visible = dated + undated
        case _:
            if descending:
                # Equal timestamps keep ascending order.
                visible.sort(key=lambda task: task.created_at, reverse=True)
    return visible


def group_columns(tasks: Iterable[Task]) -> dict[TaskStatus, list[Task]]:
    """Bucket tasks by status, one entry per column, each ordered by position."""
    columns: dict[TaskStatus, list[Task]] = {status: [] for status in COLUMN_ORDER}
    for task in tasks:
        columns.setdefault(task.status, []).append(task)
    for members in columns.values():
        members.sort(key=lambda task: task.position)
    return columns


@dataclass(frozen=True, slots=True)
class BoardProgress:
    """Summary counters shown above the board."""

    total: int
    todo: int
    in_progress: int
    completed: int
    total_minutes: int

    @property
    def completion_percent(self) -> int:
        if self.total == 0:
            return 0
        return round(self.completed / self.total * 100)

    @property
    def time_label(self) -> str:
        return format_minutes(self.total_minutes)


def board_progress(tasks: Sequence[Task]) -> BoardProgress:
    """Count tasks per column and total the tracked time."""
    counts = dict.fromkeys(COLUMN_ORDER, 0)
    for task in tasks:
        counts[task.status] = counts.get(task.status, 0) + 1
    return BoardProgress(
        total=len(tasks),
        todo=counts[TaskStatus.TODO],
        in_progress=counts[TaskStatus.IN_PROGRESS],
        completed=counts[TaskStatus.COMPLETED],
        total_minutes=sum(task.time_spent_minutes for task in tasks),
    )
