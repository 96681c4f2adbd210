"""Task board engine: moves, timers, projection, selection and navigation."""

from __future__ import annotations

from wipboard.core.board.moves import Destination, MoveCommand, MoveEngine, Rejection
from wipboard.core.board.orchestrator import BoardOrchestrator
from wipboard.core.board.projection import FilterCriteria, group_columns, project_tasks
from wipboard.core.board.selection import BulkResult, SelectionController
from wipboard.core.board.timers import TaskTimers
from wipboard.core.board.transitions import side_effects_for
from wipboard.core.board.wip import can_enter_column

__all__ = [
    "BoardOrchestrator",
    "BulkResult",
    "Destination",
    "FilterCriteria",
    "MoveCommand",
    "MoveEngine",
    "Rejection",
    "SelectionController",
    "TaskTimers",
    "can_enter_column",
    "group_columns",
    "project_tasks",
    "side_effects_for",
]
