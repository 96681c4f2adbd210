"""Multi-select state and bulk commands."""

from __future__ import annotations

import logging
from contextlib import nullcontext
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from wipboard.core.board.moves import Destination, MoveCommand, MoveEngine, Rejection
from wipboard.core.constants import COLUMN_ORDER, WIP_STATUS
from wipboard.core.errors import StoreError
from wipboard.core.models.enums import TaskStatus

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from wipboard.core.board.timers import TaskTimers
    from wipboard.core.models.entities import Task
    from wipboard.core.services.tasks import TaskStore

logger = logging.getLogger(__name__)

# Engine-managed fields cannot be patched in bulk.
_BULK_FORBIDDEN = frozenset(
    {"position", "timer_start_time", "time_spent_minutes", "started_at", "completed_at"}
)


@dataclass(slots=True)
class BulkResult:
    """Outcome of a bulk command.

    ``updated`` lists ids whose command succeeded (for deletes: removed ids).
    """

    updated: list[str] = field(default_factory=list)
    rejected: list[Rejection] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.rejected and not self.failed


class SelectionController:
    """Selection mode, the selected id set and the bulk commands acting on it."""

    def __init__(self, move_engine: MoveEngine, store: TaskStore, timers: TaskTimers) -> None:
        self._moves = move_engine
        self._store = store
        self._timers = timers
        self.selection_mode = False
        self.selected_ids: set[str] = set()

    def enter_selection_mode(self) -> None:
        self.selection_mode = True

    def exit_selection_mode(self) -> None:
        self.selection_mode = False
        self.selected_ids.clear()

    def is_selected(self, task_id: str) -> bool:
        return task_id in self.selected_ids

    def toggle_task_selection(self, task_id: str) -> bool:
        """Flip membership of ``task_id``; returns whether it is now selected."""
        if task_id in self.selected_ids:
            self.selected_ids.discard(task_id)
            return False
        self.selected_ids.add(task_id)
        return True

    def select(self, task_id: str) -> None:
        self.selected_ids.add(task_id)

    def deselect(self, task_id: str) -> None:
        self.selected_ids.discard(task_id)

    def toggle_select_all(self, visible_tasks: Iterable[Task]) -> None:
        """Select every visible task, or clear the selection if all already are."""
        visible_ids = {task.id for task in visible_tasks}
        if visible_ids and visible_ids <= self.selected_ids:
            self.selected_ids.clear()
        else:
            self.selected_ids = visible_ids

    def clear(self) -> None:
        self.selected_ids.clear()

    def prune(self, existing_ids: Iterable[str]) -> None:
        """Forget selected ids that no longer exist."""
        self.selected_ids &= set(existing_ids)

    def _board_order(self, tasks: Sequence[Task]) -> list[Task]:
        selected = [task for task in tasks if task.id in self.selected_ids]
        return sorted(
            selected, key=lambda task: (COLUMN_ORDER.index(task.status), task.position)
        )

    async def bulk_update(self, project_id: str, patch: Mapping[str, Any]) -> BulkResult:
        """Apply ``patch`` to every selected task of ``project_id``.

        The task list is re-read once the command locks are held. A ``status``
        entry is routed through the move engine task by task in board order,
        planning against a working copy that reflects earlier moves of the
        batch, so the WIP limit holds across the batch and against moves
        issued concurrently. A task whose move is rejected is left untouched;
        tasks already in the target column keep their place.
        """
        forbidden = _BULK_FORBIDDEN & set(patch)
        if forbidden:
            raise ValueError(f"Fields cannot be bulk updated: {', '.join(sorted(forbidden))}")
        fields = {key: value for key, value in patch.items() if key != "status"}
        status = TaskStatus.coerce(patch["status"]) if "status" in patch else None
        if "status" in patch and status is None:
            logger.warning("Ignoring bulk move to unknown status %r", patch["status"])

        result = BulkResult()
        serializer = self._moves.serializer
        admission = serializer.admission() if status == WIP_STATUS else nullcontext()

        async with admission:
            try:
                tasks = await self._store.list_tasks(project_id)
            except StoreError:
                logger.exception("Bulk update could not read project %s", project_id)
                result.failed.extend(sorted(self.selected_ids))
                return result
            working = {task.id: task for task in tasks}
            for task in self._board_order(tasks):
                try:
                    async with serializer.task(task.id):
                        command: MoveCommand | None = None
                        if status is not None and working[task.id].status != status:
                            outcome = self._moves.plan_move(
                                list(working.values()), task.id, Destination(status)
                            )
                            if isinstance(outcome, Rejection):
                                result.rejected.append(outcome)
                                continue
                            command = outcome
                        if command is not None:
                            # Patch fields ride along in the same store command.
                            command = replace(command, fields={**command.fields, **fields})
                            working[task.id] = await self._moves.apply(command)
                        elif fields:
                            working[task.id] = await self._store.update_task(task.id, fields)
                except StoreError:
                    logger.exception("Bulk update failed for %s", task.id)
                    result.failed.append(task.id)
                    continue
                result.updated.append(task.id)

        logger.info(
            "Bulk update: %d updated, %d rejected, %d failed",
            len(result.updated),
            len(result.rejected),
            len(result.failed),
        )
        return result

    async def bulk_delete(self) -> BulkResult:
        """Delete every selected task, then clear the selection.

        Running timers are discarded first: only minutes already credited by
        ticks survive.
        """
        result = BulkResult()
        serializer = self._moves.serializer
        for task_id in sorted(self.selected_ids):
            self._timers.discard(task_id)
            try:
                async with serializer.task(task_id):
                    deleted = await self._store.delete_task(task_id)
            except StoreError:
                logger.exception("Bulk delete failed for %s", task_id)
                result.failed.append(task_id)
                continue
            serializer.forget(task_id)
            if deleted:
                result.updated.append(task_id)
        self.selected_ids.clear()
        logger.info("Bulk delete: %d deleted, %d failed", len(result.updated), len(result.failed))
        return result
