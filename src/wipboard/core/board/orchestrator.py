"""Board Orchestrator: owns board state and turns gestures into commands."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from wipboard.core.board.commands import CommandSerializer
from wipboard.core.board.moves import Destination, MoveEngine, Rejection
from wipboard.core.board.navigation import (
    EnterSelection,
    ExitSelection,
    KeyboardNavigator,
    MoveToColumn,
    OpenDetails,
    Reorder,
    SelectAll,
    ToggleSelection,
)
from wipboard.core.board.placement import column_tasks, plan_placement
from wipboard.core.board.projection import (
    BoardProgress,
    FilterCriteria,
    board_progress,
    group_columns,
    project_tasks,
)
from wipboard.core.board.selection import BulkResult, SelectionController
from wipboard.core.board.timers import TaskTimers
from wipboard.core.board.wip import can_enter_column, wip_count, wip_rejection_message
from wipboard.core.config import WipboardConfig
from wipboard.core.errors import StoreError, TaskNotFoundError
from wipboard.core.models.enums import NotificationSeverity, TaskStatus
from wipboard.core.time import utc_now

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from wipboard.core.models.entities import Task
    from wipboard.core.services.tasks import TaskStore
    from wipboard.core.time import Clock

logger = logging.getLogger(__name__)

type Notify = Callable[[str, NotificationSeverity], None]

SAVE_FAILED_MESSAGE = "Could not save changes"
LOAD_FAILED_MESSAGE = "Could not load tasks"


def _log_notification(message: str, severity: NotificationSeverity) -> None:
    logger.info("[%s] %s", severity, message)


class BoardOrchestrator:
    """Single owner of the board's task list, filters, selection, focus and timers.

    ``start()`` loads the board and resumes persisted timers; ``close()``
    cancels their tick loops. Both follow the board's mount/unmount.
    """

    def __init__(
        self,
        store: TaskStore,
        project_id: str,
        *,
        config: WipboardConfig | None = None,
        clock: Clock = utc_now,
        notify: Notify | None = None,
        on_open_details: Callable[[Task], None] | None = None,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self.store = store
        self.project_id = project_id
        self.config = config or WipboardConfig()
        self._clock = clock
        self._notify = notify or _log_notification
        self._on_open_details = on_open_details
        self._on_change = on_change

        self.tasks: list[Task] = []
        self.criteria = FilterCriteria(
            sort_key=self.config.filters.sort_key,
            sort_order=self.config.filters.sort_order,
        )
        self.navigator = KeyboardNavigator()
        self.serializer = CommandSerializer(enabled=self.config.board.serialize_commands)
        self.timers = TaskTimers(
            store,
            clock=clock,
            tick_seconds=self.config.board.timer_tick_seconds,
            serializer=self.serializer,
        )
        self.moves = MoveEngine(
            store=store,
            timers=self.timers,
            clock=clock,
            wip_limit=self.config.board.wip_limit,
            overwrite_started_at=self.config.board.overwrite_started_at,
            serializer=self.serializer,
        )
        self.selection = SelectionController(self.moves, store, self.timers)
        self._started = False

    # Lifecycle

    async def start(self) -> None:
        """Load the board and resume persisted timers."""
        if self._started:
            return
        self._started = True
        await self.refresh()

    async def close(self) -> None:
        """Stop tick loops; running timers resume from their anchor next session."""
        if not self._started:
            return
        self._started = False
        await self.timers.close()

    # Derived state

    @property
    def wip_limit(self) -> int:
        return self.config.board.wip_limit

    @property
    def wip_count(self) -> int:
        return wip_count(self.tasks)

    @property
    def selection_mode(self) -> bool:
        return self.selection.selection_mode

    @property
    def selected_ids(self) -> set[str]:
        return self.selection.selected_ids

    @property
    def visible_tasks(self) -> list[Task]:
        return project_tasks(self.tasks, self.criteria)

    @property
    def columns(self) -> dict[TaskStatus, list[Task]]:
        return group_columns(self.visible_tasks)

    @property
    def progress(self) -> BoardProgress:
        return board_progress(self.tasks)

    @property
    def has_tasks(self) -> bool:
        return bool(self.tasks)

    def get_task(self, task_id: str) -> Task | None:
        return next((task for task in self.tasks if task.id == task_id), None)

    def display_minutes(self, task: Task) -> int:
        """Credited minutes plus the live, not yet credited, timer minutes."""
        return task.time_spent_minutes + self.timers.elapsed_minutes(task.id)

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()

    def _save_failed(self) -> None:
        self._notify(SAVE_FAILED_MESSAGE, NotificationSeverity.WARNING)

    # Reads

    async def refresh(self) -> bool:
        """Re-read the authoritative list and re-derive every view.

        On failure the previous view is kept.
        """
        try:
            tasks = await self.store.list_tasks(self.project_id)
        except StoreError:
            logger.exception("Failed to load tasks for project %s", self.project_id)
            self._notify(LOAD_FAILED_MESSAGE, NotificationSeverity.WARNING)
            return False
        self.tasks = tasks
        if self._started:
            self.timers.adopt(tasks)
        self.selection.prune(task.id for task in tasks)
        self.navigator.sync(self.columns)
        self._changed()
        return True

    def set_criteria(self, criteria: FilterCriteria) -> None:
        self.criteria = criteria
        self.navigator.sync(self.columns)
        self._changed()

    # Moves

    async def move_task(self, task_id: str, destination: Destination) -> bool:
        """Move one task; returns True when the store accepted a change."""
        if self.selection_mode:
            logger.debug("Ignoring move of %s while selecting", task_id)
            return False
        try:
            outcome = await self.moves.move(self.project_id, task_id, destination)
        except TaskNotFoundError:
            logger.warning("Task %s disappeared before it could be moved", task_id)
            await self.refresh()
            return False
        except StoreError:
            logger.exception("Failed to move task %s", task_id)
            self._save_failed()
            await self.refresh()
            return False
        if isinstance(outcome, Rejection):
            self._notify(outcome.reason, NotificationSeverity.WARNING)
            return False
        if outcome is None:
            return False
        await self.refresh()
        return True

    def _full_index(self, task_id: str, status: TaskStatus, index: int) -> int:
        """Translate an index among visible cards into one among all cards."""
        visible = [task for task in self.columns.get(status, []) if task.id != task_id]
        full = [task.id for task in column_tasks(self.tasks, status, excluding=task_id)]
        if not visible:
            return len(full)
        if index < len(visible):
            return full.index(visible[max(0, index)].id)
        return full.index(visible[-1].id) + 1

    async def on_reorder(self, task_id: str, status: TaskStatus | str, index: int) -> bool:
        """Drop callback: place ``task_id`` at visible ``index`` of column ``status``."""
        if self.selection_mode:
            logger.debug("Ignoring drag of %s while selecting", task_id)
            return False
        target = TaskStatus.coerce(status)
        task = self.get_task(task_id)
        if target is None or task is None:
            logger.warning("Ignoring drop of %s onto %r", task_id, status)
            return False
        if task.status != target and not can_enter_column(
            self.tasks, task_id, target, wip_limit=self.wip_limit
        ):
            self._notify(wip_rejection_message(self.wip_limit), NotificationSeverity.WARNING)
            return False

        placement = plan_placement(
            self.tasks, task_id, target, self._full_index(task_id, target, index)
        )
        if placement is None:
            return False
        try:
            for sibling_id, position in placement.shifted.items():
                async with self.serializer.task(sibling_id):
                    await self.store.update_task(sibling_id, {"position": position})
        except TaskNotFoundError:
            logger.warning("Sibling vanished while renumbering column %s", target)
            await self.refresh()
            return False
        except StoreError:
            logger.exception("Failed to renumber column %s", target)
            self._save_failed()
            await self.refresh()
            return False
        if placement.shifted:
            logger.debug("Renumbered %d tasks in %s", len(placement.shifted), target)
        return await self.move_task(task_id, Destination(target, placement.position))

    # Keyboard and pointer

    async def handle_key(self, key: str) -> bool:
        """Execute the intent for ``key``; returns whether the key was consumed."""
        columns = self.columns
        intent = self.navigator.handle_key(key, columns, selection_mode=self.selection_mode)
        match intent:
            case None:
                return False
            case OpenDetails(task_id=task_id):
                self._open_details(task_id)
            case ToggleSelection(task_id=task_id):
                self.selection.toggle_task_selection(task_id)
            case MoveToColumn(task_id=task_id, status=status):
                await self.move_task(task_id, Destination(status))
            case Reorder(task_id=task_id, offset=offset):
                await self._reorder_by(task_id, offset, columns)
            case EnterSelection():
                self.selection.enter_selection_mode()
            case ExitSelection():
                self.selection.exit_selection_mode()
            case SelectAll():
                if not self.selection_mode:
                    self.selection.enter_selection_mode()
                self.selection.toggle_select_all(self.visible_tasks)
            case _:
                pass
        self._changed()
        return True

    async def _reorder_by(
        self, task_id: str, offset: int, columns: Mapping[TaskStatus, list[Task]]
    ) -> None:
        for status, members in columns.items():
            ids = [task.id for task in members]
            if task_id not in ids:
                continue
            current = ids.index(task_id)
            target = max(0, min(current + offset, len(ids) - 1))
            if target != current:
                await self.on_reorder(task_id, status, target)
            return

    def _open_details(self, task_id: str) -> None:
        task = self.get_task(task_id)
        if task is None:
            logger.warning("Cannot open details of unknown task %s", task_id)
            return
        if self._on_open_details is not None:
            self._on_open_details(task)

    async def click_task(self, task_id: str) -> None:
        """Pointer activation: toggle selection or open details."""
        self.navigator.reset()
        if self.selection_mode:
            self.selection.toggle_task_selection(task_id)
        else:
            self._open_details(task_id)
        self._changed()

    def toggle_selection_mode(self) -> None:
        if self.selection_mode:
            self.selection.exit_selection_mode()
        else:
            self.selection.enter_selection_mode()
        self._changed()

    # Timers

    async def start_timer(self, task_id: str) -> bool:
        try:
            started = await self.timers.start_timer(task_id)
        except TaskNotFoundError:
            logger.warning("Cannot start timer of missing task %s", task_id)
            await self.refresh()
            return False
        except StoreError:
            logger.exception("Failed to start timer for %s", task_id)
            self._save_failed()
            return False
        if started:
            await self.refresh()
        return started

    async def stop_timer(self, task_id: str) -> int:
        try:
            minutes = await self.timers.stop_timer(task_id)
        except StoreError:
            logger.exception("Failed to stop timer for %s", task_id)
            self._save_failed()
            return 0
        await self.refresh()
        return minutes

    # Edits outside the move engine

    async def create_task(self, title: str, **fields: Any) -> Task | None:
        """Create a To Do task at the end of its column."""
        fields.pop("status", None)
        try:
            task = await self.store.create_task(self.project_id, title, **fields)
        except StoreError:
            logger.exception("Failed to create task %r", title)
            self._save_failed()
            return None
        await self.refresh()
        return task

    async def update_task(self, task_id: str, fields: Mapping[str, Any]) -> Task | None:
        """Edit non-status fields of one task."""
        editable = {
            key: value
            for key, value in fields.items()
            if key not in {"status", "position", "timer_start_time", "time_spent_minutes"}
        }
        try:
            async with self.serializer.task(task_id):
                task = await self.store.update_task(task_id, editable)
        except TaskNotFoundError:
            logger.warning("Cannot edit missing task %s", task_id)
            await self.refresh()
            return None
        except StoreError:
            logger.exception("Failed to update task %s", task_id)
            self._save_failed()
            return None
        await self.refresh()
        return task

    async def delete_task(self, task_id: str) -> bool:
        """Delete one task, discarding its running timer without credit."""
        self.timers.discard(task_id)
        try:
            async with self.serializer.task(task_id):
                deleted = await self.store.delete_task(task_id)
        except StoreError:
            logger.exception("Failed to delete task %s", task_id)
            self._save_failed()
            await self.refresh()
            return False
        self.serializer.forget(task_id)
        self.selection.deselect(task_id)
        await self.refresh()
        return deleted

    # Bulk

    def _report_bulk(self, result: BulkResult) -> None:
        if result.rejected:
            count = len(result.rejected)
            suffix = f" ({count} tasks not moved)" if count > 1 else ""
            self._notify(result.rejected[0].reason + suffix, NotificationSeverity.WARNING)
        if result.failed:
            self._save_failed()

    async def bulk_update(self, patch: Mapping[str, Any]) -> BulkResult:
        result = await self.selection.bulk_update(self.project_id, patch)
        self._report_bulk(result)
        await self.refresh()
        return result

    async def bulk_delete(self) -> BulkResult:
        result = await self.selection.bulk_delete()
        self._report_bulk(result)
        await self.refresh()
        return result
