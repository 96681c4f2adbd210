"""Main board screen: three status columns driven by the BoardOrchestrator."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from textual import getters, on
from textual.containers import Container, Horizontal
from textual.errors import NoWidget
from textual.reactive import var
from textual.widgets import Footer, Input, Static

from wipboard.core.board.navigation import (
    ACTIVATE_KEYS,
    DIRECTIONAL_KEYS,
    REORDER_KEYS,
    SELECT_ALL_KEYS,
)
from wipboard.core.board.orchestrator import BoardOrchestrator
from wipboard.core.constants import COLUMN_ORDER, MIN_SCREEN_HEIGHT, MIN_SCREEN_WIDTH
from wipboard.core.models.enums import (
    NavMode,
    NotificationSeverity,
    SortKey,
    SortOrder,
    TaskPriority,
    TaskStatus,
)
from wipboard.core.time import utc_now
from wipboard.tui.keybindings import BOARD_BINDINGS
from wipboard.tui.ui.modals import BulkEditModal, ConfirmModal, ModalAction, TaskDetailsModal
from wipboard.tui.ui.screens.base import WipboardScreen
from wipboard.tui.ui.widgets.card import TaskCard
from wipboard.tui.ui.widgets.column import BoardColumn
from wipboard.tui.ui.widgets.header import BoardHeader
from wipboard.tui.ui.widgets.search_bar import SearchBar

if TYPE_CHECKING:
    from textual import events
    from textual.app import ComposeResult
    from textual.timer import Timer

    from wipboard.core.models.entities import Task
    from wipboard.core.time import Clock

logger = logging.getLogger(__name__)

SIZE_WARNING_MESSAGE = (
    f"Terminal too small\n\n"
    f"Minimum size: {MIN_SCREEN_WIDTH}x{MIN_SCREEN_HEIGHT}\n"
    f"Please resize your terminal"
)

# Live timer labels only change once a minute; a few seconds of lag is fine.
TIME_REFRESH_SECONDS = 5.0

NAVIGATOR_KEYS = (
    DIRECTIONAL_KEYS
    | frozenset(REORDER_KEYS)
    | ACTIVATE_KEYS
    | SELECT_ALL_KEYS
    | frozenset({"m", "escape"})
    | frozenset(str(number) for number in range(1, len(COLUMN_ORDER) + 1))
)

PRIORITY_FILTER_CYCLE: list[TaskPriority | None] = [
    None,
    TaskPriority.HIGH,
    TaskPriority.MEDIUM,
    TaskPriority.LOW,
]


def _next_in_cycle[T](items: list[T], current: T) -> T:
    index = items.index(current) if current in items else -1
    return items[(index + 1) % len(items)]


class BoardScreen(WipboardScreen):
    """Board screen. All state lives in the orchestrator; widgets only render it."""

    BINDINGS = BOARD_BINDINGS
    search_visible: var[bool] = var(False, init=False)

    header = getters.query_one(BoardHeader)

    def __init__(self, *, clock: Clock = utc_now, **kwargs) -> None:
        super().__init__(**kwargs)
        self._clock = clock
        self._board: BoardOrchestrator | None = None
        self._drag_task_id: str | None = None
        self._time_timer: Timer | None = None

    @property
    def board(self) -> BoardOrchestrator:
        assert self._board is not None, "Board not started"
        return self._board

    def compose(self) -> ComposeResult:
        wip_limit = self.ctx.config.board.wip_limit
        yield BoardHeader()
        yield SearchBar(id="search-bar").data_bind(is_visible=BoardScreen.search_visible)
        with Container(classes="board-container"):
            with Horizontal(classes="board"):
                for status in COLUMN_ORDER:
                    yield BoardColumn(status, wip_limit=wip_limit)
        with Container(classes="size-warning"):
            yield Static(SIZE_WARNING_MESSAGE, classes="size-warning-text")
        yield Footer()

    async def on_mount(self) -> None:
        ctx = self.ctx
        self._board = BoardOrchestrator(
            ctx.task_store,
            ctx.project.id,
            config=ctx.config,
            clock=self._clock,
            notify=self._notify,
            on_open_details=self._on_open_details,
            on_change=self.render_board,
        )
        self.header.project_name = ctx.project.name
        self.check_screen_size()
        await self._board.start()
        self.wipboard_app.task_changed_signal.subscribe(self, self._on_task_changed)
        self._time_timer = self.set_interval(TIME_REFRESH_SECONDS, self._refresh_minutes)

    async def on_unmount(self) -> None:
        if self._time_timer is not None:
            self._time_timer.stop()
            self._time_timer = None
        self.wipboard_app.task_changed_signal.unsubscribe(self)
        if self._board is not None:
            await self._board.close()

    def on_resize(self, event: events.Resize) -> None:
        self.check_screen_size()

    def check_screen_size(self) -> None:
        too_small = self.size.width < MIN_SCREEN_WIDTH or self.size.height < MIN_SCREEN_HEIGHT
        self.set_class(too_small, "too-small")

    # Rendering

    def get_columns(self) -> list[BoardColumn]:
        return [self.query_one(f"#column-{status.value}", BoardColumn) for status in COLUMN_ORDER]

    def render_board(self) -> None:
        """Re-derive every widget from the orchestrator's state."""
        if self._board is None or not self.is_mounted:
            return
        board = self._board
        columns = board.columns
        totals = dict.fromkeys(COLUMN_ORDER, 0)
        for task in board.tasks:
            totals[task.status] = totals.get(task.status, 0) + 1
        navigator = board.navigator
        focused_id = navigator.focused_task_id if navigator.mode == NavMode.NAVIGATING else None
        focused_status = navigator.focused_status(columns)

        for column in self.get_columns():
            column.update_tasks(
                columns.get(column.status, []),
                total=totals.get(column.status, 0),
                minutes_for=board.display_minutes,
                selected_ids=board.selected_ids,
                selecting=board.selection_mode,
                focused_id=focused_id,
                filtering=board.criteria.is_filtering,
            )
            column.set_class(column.status == focused_status, "focused-column")
            if focused_id is not None and (card := column.get_card(focused_id)) is not None:
                card.scroll_visible()

        self.header.update_progress(board.progress)
        self.header.update_view(board.criteria)
        self.header.update_selection(board.selection_mode, len(board.selected_ids))
        self.set_class(board.selection_mode, "selecting")

    def _refresh_minutes(self) -> None:
        if self._board is None:
            return
        for column in self.get_columns():
            column.refresh_minutes(self._board.display_minutes)
        self.header.update_progress(self._board.progress)

    def _notify(self, message: str, severity: NotificationSeverity) -> None:
        self.notify(message, severity=severity.value)

    async def _on_task_changed(self, task_id: str) -> None:
        if not self.is_mounted or self._board is None:
            return
        self.run_worker(
            self._board.refresh(),
            group="board-refresh",
            exclusive=True,
            exit_on_error=False,
        )

    # Keyboard

    async def on_key(self, event: events.Key) -> None:
        if self._board is None:
            return
        if isinstance(self.focused, Input):
            if event.key in ("escape", "enter", "down"):
                event.stop()
                event.prevent_default()
                if event.key == "escape":
                    self.search_visible = False
                else:
                    self.set_focus(None)
            return
        if event.key == "escape" and self.search_visible and not self._board.selection_mode:
            event.stop()
            self.search_visible = False
            return
        if event.key not in NAVIGATOR_KEYS:
            return
        event.stop()
        event.prevent_default()
        await self._board.handle_key(event.key)

    # Pointer

    @on(TaskCard.Selected)
    async def on_task_card_selected(self, message: TaskCard.Selected) -> None:
        await self.board.click_task(message.task.id)

    def _card_or_column_at(self, x: int, y: int) -> TaskCard | BoardColumn | None:
        try:
            widget, _ = self.get_widget_at(x, y)
        except NoWidget:
            return None
        for node in widget.ancestors_with_self:
            if isinstance(node, (TaskCard, BoardColumn)):
                return node
        return None

    def on_mouse_down(self, event: events.MouseDown) -> None:
        target = self._card_or_column_at(event.screen_x, event.screen_y)
        if isinstance(target, TaskCard) and target.task_model is not None:
            self._drag_task_id = target.task_model.id

    async def on_mouse_up(self, event: events.MouseUp) -> None:
        task_id, self._drag_task_id = self._drag_task_id, None
        if task_id is None or self._board is None:
            return
        target = self._card_or_column_at(event.screen_x, event.screen_y)
        if target is None:
            return
        if isinstance(target, TaskCard):
            if target.task_model is None or target.task_model.id == task_id:
                # Released on the same card: a click, handled by TaskCard.Selected.
                return
            status = target.task_model.status
            members = [task.id for task in self._board.columns.get(status, []) if task.id != task_id]
            index = members.index(target.task_model.id) if target.task_model.id in members else 0
        else:
            status = target.status
            members = [task.id for task in self._board.columns.get(status, []) if task.id != task_id]
            index = len(members)
        self._board.navigator.reset()
        await self._board.on_reorder(task_id, status, index)

    # Details and editing

    def _focused_task(self, *, notify_on_missing: bool = True) -> Task | None:
        navigator = self.board.navigator
        task_id = navigator.focused_task_id if navigator.mode == NavMode.NAVIGATING else None
        task = self.board.get_task(task_id) if task_id is not None else None
        if task is None and notify_on_missing:
            self.notify("No task selected", severity="warning")
        return task

    def _on_open_details(self, task: Task) -> None:
        self.run_worker(
            self._task_details_flow(task),
            group="task-details",
            exclusive=True,
            exit_on_error=False,
        )

    async def _task_details_flow(self, task: Task | None, *, start_editing: bool = False) -> None:
        minutes = self.board.display_minutes(task) if task is not None else None
        result = await self.app.push_screen_wait(
            TaskDetailsModal(task, minutes=minutes, start_editing=start_editing)
        )
        if result is None:
            return
        if task is None:
            if isinstance(result, dict):
                fields = dict(result)
                title = str(fields.pop("title"))
                created = await self.board.create_task(title, **fields)
                if created is not None:
                    self.notify(f"Created #{created.short_id}", severity="information")
            return
        match result:
            case ModalAction.DELETE:
                await self._confirm_and_delete(task)
            case ModalAction.TOGGLE_TIMER:
                await self._toggle_timer(task)
            case dict():
                await self.board.update_task(task.id, result)

    async def _confirm_and_delete(self, task: Task) -> None:
        confirmed = await self.app.push_screen_wait(
            ConfirmModal("Delete task?", f'"{task.title}" will be removed permanently.')
        )
        if confirmed:
            await self.board.delete_task(task.id)

    async def _toggle_timer(self, task: Task) -> None:
        if self.board.timers.is_running(task.id) or task.timer_running:
            minutes = await self.board.stop_timer(task.id)
            if minutes:
                self.notify(f"Recorded {minutes} min on #{task.short_id}", severity="information")
            return
        if task.status != TaskStatus.IN_PROGRESS:
            self.notify("Timers only run for In Progress tasks", severity="warning")
            return
        await self.board.start_timer(task.id)

    async def _bulk_edit_flow(self) -> None:
        patch = await self.app.push_screen_wait(BulkEditModal(len(self.board.selected_ids)))
        if not patch:
            return
        count = len(self.board.selected_ids)
        result = await self.board.bulk_update(patch)
        if result.updated:
            self.notify(f"Updated {len(result.updated)} of {count} tasks", severity="information")

    async def _bulk_delete_flow(self) -> None:
        count = len(self.board.selected_ids)
        if self.ctx.config.ui.confirm_bulk_delete:
            confirmed = await self.app.push_screen_wait(
                ConfirmModal("Delete tasks?", f"{count} selected tasks will be removed permanently.")
            )
            if not confirmed:
                return
        result = await self.board.bulk_delete()
        if result.updated:
            self.notify(f"Deleted {len(result.updated)} tasks", severity="information")

    # Actions

    def action_new_task(self) -> None:
        self.run_worker(
            self._task_details_flow(None),
            group="task-details",
            exclusive=True,
            exit_on_error=False,
        )

    def action_edit_task(self) -> None:
        if (task := self._focused_task()) is None:
            return
        self.run_worker(
            self._task_details_flow(task, start_editing=True),
            group="task-details",
            exclusive=True,
            exit_on_error=False,
        )

    def action_delete_task(self) -> None:
        if self.board.selection_mode:
            if not self.board.selected_ids:
                self.notify("No tasks selected", severity="warning")
                return
            self.run_worker(self._bulk_delete_flow(), group="bulk", exclusive=True)
            return
        if (task := self._focused_task()) is None:
            return
        self.run_worker(self._confirm_and_delete(task), group="task-delete", exclusive=True)

    async def action_toggle_timer(self) -> None:
        if (task := self._focused_task()) is None:
            return
        await self._toggle_timer(task)

    def action_bulk_edit(self) -> None:
        if not self.board.selection_mode or not self.board.selected_ids:
            self.notify("Select tasks first (m to start selecting)", severity="warning")
            return
        self.run_worker(self._bulk_edit_flow(), group="bulk", exclusive=True)

    def action_toggle_search(self) -> None:
        self.search_visible = not self.search_visible

    def watch_search_visible(self, visible: bool) -> None:
        if not visible and self._board is not None and self._board.criteria.search_text:
            self._board.set_criteria(replace(self._board.criteria, search_text=""))

    @on(SearchBar.QueryChanged)
    def on_search_query_changed(self, event: SearchBar.QueryChanged) -> None:
        if self._board is None:
            return
        self._board.set_criteria(replace(self._board.criteria, search_text=event.query))

    def action_cycle_sort(self) -> None:
        criteria = self.board.criteria
        sort_key = _next_in_cycle(list(SortKey), criteria.sort_key)
        self.board.set_criteria(replace(criteria, sort_key=sort_key))
        self._persist_sort(sort_key=sort_key)

    def action_toggle_sort_order(self) -> None:
        criteria = self.board.criteria
        order = SortOrder.ASC if criteria.sort_order == SortOrder.DESC else SortOrder.DESC
        self.board.set_criteria(replace(criteria, sort_order=order))
        self._persist_sort(sort_order=order)

    def action_cycle_priority_filter(self) -> None:
        criteria = self.board.criteria
        priority = _next_in_cycle(PRIORITY_FILTER_CYCLE, criteria.priority)
        self.board.set_criteria(replace(criteria, priority=priority))

    def _persist_sort(
        self, *, sort_key: SortKey | None = None, sort_order: SortOrder | None = None
    ) -> None:
        path = self.ctx.config_path
        if path is None:
            return
        self.run_worker(
            self.ctx.config.update_filter_defaults(path, sort_key=sort_key, sort_order=sort_order),
            group="config-save",
            exit_on_error=False,
        )

    async def action_refresh_board(self) -> None:
        await self.board.refresh()

    def action_quit(self) -> None:
        self.app.exit()

    def action_interrupt(self) -> None:
        self.app.exit()
