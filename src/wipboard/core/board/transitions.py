"""Bookkeeping implied by each status transition."""

from __future__ import annotations

from wipboard.core.models.enums import SideEffect, TaskStatus

_NONE: frozenset[SideEffect] = frozenset()
_ENTER_PROGRESS = frozenset({SideEffect.STAMP_STARTED, SideEffect.START_TIMER})
_COMPLETE = frozenset({SideEffect.STAMP_COMPLETED, SideEffect.STOP_TIMER})

# Every ordered pair of statuses; same-status moves are pure reorders.
TRANSITIONS: dict[tuple[TaskStatus, TaskStatus], frozenset[SideEffect]] = {
    (TaskStatus.TODO, TaskStatus.TODO): _NONE,
    (TaskStatus.TODO, TaskStatus.IN_PROGRESS): _ENTER_PROGRESS,
    # Stopping is a no-op unless a manually started timer is running.
    (TaskStatus.TODO, TaskStatus.COMPLETED): _COMPLETE,
    (TaskStatus.IN_PROGRESS, TaskStatus.TODO): frozenset({SideEffect.STOP_TIMER}),
    (TaskStatus.IN_PROGRESS, TaskStatus.IN_PROGRESS): _NONE,
    (TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED): _COMPLETE,
    (TaskStatus.COMPLETED, TaskStatus.TODO): _NONE,
    (TaskStatus.COMPLETED, TaskStatus.IN_PROGRESS): _ENTER_PROGRESS,
    (TaskStatus.COMPLETED, TaskStatus.COMPLETED): _NONE,
}


def side_effects_for(from_status: TaskStatus, to_status: TaskStatus) -> frozenset[SideEffect]:
    """Return the side effects of moving a task from one status to another."""
    return TRANSITIONS[(TaskStatus(from_status), TaskStatus(to_status))]
