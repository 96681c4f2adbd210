"""Keyboard navigation state machine for the board.

The navigator owns only the focus cursor. Keys are translated into intents
that the board orchestrator executes, so navigation logic stays independent
of any widget toolkit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from wipboard.core.models.enums import NavMode

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from wipboard.core.models.entities import Task
    from wipboard.core.models.enums import TaskStatus

type Columns = Mapping[TaskStatus, Sequence[Task]]

VERTICAL_KEYS = frozenset({"up", "down"})
HORIZONTAL_KEYS = frozenset({"left", "right", "tab", "shift+tab"})
DIRECTIONAL_KEYS = VERTICAL_KEYS | HORIZONTAL_KEYS
REORDER_KEYS = {"shift+up": -1, "shift+down": 1}
ACTIVATE_KEYS = frozenset({"enter", "space"})
SELECT_ALL_KEYS = frozenset({"ctrl+a", "meta+a", "super+a"})
COLUMN_KEYS = {str(number): number for number in range(1, 10)}


@dataclass(frozen=True, slots=True)
class FocusTask:
    task_id: str
    status: TaskStatus


@dataclass(frozen=True, slots=True)
class FocusColumn:
    status: TaskStatus


@dataclass(frozen=True, slots=True)
class ClearFocus:
    pass


@dataclass(frozen=True, slots=True)
class OpenDetails:
    task_id: str


@dataclass(frozen=True, slots=True)
class ToggleSelection:
    task_id: str


@dataclass(frozen=True, slots=True)
class MoveToColumn:
    task_id: str
    status: TaskStatus


@dataclass(frozen=True, slots=True)
class Reorder:
    task_id: str
    offset: int


@dataclass(frozen=True, slots=True)
class EnterSelection:
    pass


@dataclass(frozen=True, slots=True)
class ExitSelection:
    pass


@dataclass(frozen=True, slots=True)
class SelectAll:
    pass


type NavIntent = (
    FocusTask
    | FocusColumn
    | ClearFocus
    | OpenDetails
    | ToggleSelection
    | MoveToColumn
    | Reorder
    | EnterSelection
    | ExitSelection
    | SelectAll
)


class KeyboardNavigator:
    """Tracks the focused column/task and maps keys to intents."""

    def __init__(self) -> None:
        self.mode = NavMode.IDLE
        self.column_index = 0
        self.task_index: int | None = None
        self.focused_task_id: str | None = None

    def reset(self) -> None:
        """Back to IDLE (mouse interaction or Escape)."""
        self.mode = NavMode.IDLE
        self.column_index = 0
        self.task_index = None
        self.focused_task_id = None

    def focused_status(self, columns: Columns) -> TaskStatus | None:
        if self.mode != NavMode.NAVIGATING:
            return None
        statuses = list(columns)
        if not statuses:
            return None
        return statuses[min(self.column_index, len(statuses) - 1)]

    def _focus(self, columns: Columns, column_index: int, task_index: int | None) -> NavIntent:
        statuses = list(columns)
        self.mode = NavMode.NAVIGATING
        self.column_index = column_index
        status = statuses[column_index]
        members = columns[status]
        if task_index is None or not members:
            self.task_index = None
            self.focused_task_id = None
            return FocusColumn(status)
        self.task_index = max(0, min(task_index, len(members) - 1))
        task = members[self.task_index]
        self.focused_task_id = task.id
        return FocusTask(task.id, status)

    def _enter(self, columns: Columns) -> NavIntent | None:
        statuses = list(columns)
        if not statuses:
            return None
        for index, status in enumerate(statuses):
            if columns[status]:
                return self._focus(columns, index, 0)
        return self._focus(columns, 0, None)

    def _navigate(self, key: str, columns: Columns) -> NavIntent | None:
        statuses = list(columns)
        if not statuses:
            return None
        column_index = min(self.column_index, len(statuses) - 1)
        if key in VERTICAL_KEYS:
            members = columns[statuses[column_index]]
            if not members:
                return None
            current = self.task_index if self.task_index is not None else -1
            step = -1 if key == "up" else 1
            if current < 0:
                return self._focus(columns, column_index, 0)
            return self._focus(columns, column_index, current + step)
        step = -1 if key in ("left", "shift+tab") else 1
        target = max(0, min(column_index + step, len(statuses) - 1))
        return self._focus(columns, target, 0)

    def handle_key(
        self, key: str, columns: Columns, *, selection_mode: bool = False
    ) -> NavIntent | None:
        """Translate ``key`` into an intent, updating focus as a side effect."""
        key = key.lower()
        if key in SELECT_ALL_KEYS:
            return SelectAll()
        if key == "m":
            return None if selection_mode else EnterSelection()
        if key == "escape":
            if selection_mode:
                return ExitSelection()
            if self.mode == NavMode.NAVIGATING:
                self.reset()
                return ClearFocus()
            return None
        if key in DIRECTIONAL_KEYS:
            if self.mode == NavMode.IDLE:
                return self._enter(columns)
            return self._navigate(key, columns)

        focused = self.focused_task_id if self.mode == NavMode.NAVIGATING else None
        if focused is None:
            return None
        if key in REORDER_KEYS:
            return None if selection_mode else Reorder(focused, REORDER_KEYS[key])
        if key in ACTIVATE_KEYS:
            return ToggleSelection(focused) if selection_mode else OpenDetails(focused)
        if key in COLUMN_KEYS:
            statuses = list(columns)
            number = COLUMN_KEYS[key]
            if number > len(statuses):
                return None
            if selection_mode:
                return ToggleSelection(focused)
            return MoveToColumn(focused, statuses[number - 1])
        return None

    def focus_task(self, task_id: str, columns: Columns) -> NavIntent | None:
        """Put the cursor on ``task_id`` if it is visible."""
        for column_index, (_status, members) in enumerate(columns.items()):
            for task_index, task in enumerate(members):
                if task.id == task_id:
                    return self._focus(columns, column_index, task_index)
        return None

    def sync(self, columns: Columns) -> NavIntent | None:
        """Keep focus valid after the columns changed.

        The same task stays focused wherever it moved; otherwise the index is
        clamped within the focused column, or only the column stays focused.
        """
        if self.mode != NavMode.NAVIGATING:
            return None
        statuses = list(columns)
        if not statuses:
            self.reset()
            return ClearFocus()
        if self.focused_task_id is not None:
            intent = self.focus_task(self.focused_task_id, columns)
            if intent is not None:
                return intent
        column_index = min(self.column_index, len(statuses) - 1)
        return self._focus(columns, column_index, self.task_index)
