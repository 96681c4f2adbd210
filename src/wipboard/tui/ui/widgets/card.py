"""TaskCard widget for displaying a board task."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.reactive import reactive, var
from textual.widget import Widget
from textual.widgets import Label

from wipboard.core.constants import (
    CARD_DESC_MAX_LENGTH,
    CARD_ID_MAX_LENGTH,
    CARD_TAGS_MAX_LENGTH,
    CARD_TITLE_LINE_WIDTH,
)
from wipboard.tui.ui.card_formatters import format_due, format_tags, format_time, truncate_text

if TYPE_CHECKING:
    from textual import events
    from textual.app import ComposeResult

    from wipboard.core.models.entities import Task


class TaskCard(Widget):
    """A card widget representing a single task on the board.

    Cards never take Textual focus; the board's navigator owns the cursor
    and the screen mirrors it through the ``focused`` class.
    """

    ALLOW_SELECT = False
    can_focus = False

    task_model: reactive[Task | None] = reactive(None)
    minutes: var[int] = var(0)
    is_selected: var[bool] = var(False, toggle_class="selected")
    is_focused: var[bool] = var(False, toggle_class="focused")
    selecting: var[bool] = var(False, toggle_class="selecting")

    @dataclass
    class Selected(Message):
        """Posted when the card is clicked."""

        task: Task

    def __init__(self, task: Task, *, minutes: int | None = None, **kwargs) -> None:
        super().__init__(id=f"card-{task.id}", **kwargs)
        self._title_label: Label | None = None
        self._task_id_label: Label | None = None
        self._check_label: Label | None = None
        self._description_label: Label | None = None
        self._tags_label: Label | None = None
        self._due_label: Label | None = None
        self._time_label: Label | None = None
        self._priority_label: Label | None = None
        self.task_model = task
        self.minutes = task.time_spent_minutes if minutes is None else minutes

    def compose(self) -> ComposeResult:
        with Vertical():
            with Horizontal(classes="card-row"):
                self._check_label = Label("", classes="card-check")
                self._title_label = Label("", classes="card-title")
                self._task_id_label = Label("", classes="card-id")
                yield self._check_label
                yield self._title_label
                yield self._task_id_label

            with Horizontal(classes="card-row"):
                self._description_label = Label("", classes="card-desc")
                yield self._description_label

            with Horizontal(classes="card-row card-badge-row"):
                self._tags_label = Label("", classes="card-badge card-tags")
                self._due_label = Label("", classes="card-badge card-due")
                self._time_label = Label("", classes="card-badge card-time")
                self._priority_label = Label("", classes="card-badge card-badge-priority")
                yield self._tags_label
                yield self._due_label
                yield Label("", classes="card-spacer")
                yield self._time_label
                yield self._priority_label

    def on_mount(self) -> None:
        self._render_task_model()

    def on_click(self, event: events.Click) -> None:
        event.stop()
        if self.task_model is not None:
            self.post_message(self.Selected(self.task_model))

    def watch_task_model(self, task: Task | None) -> None:
        self._render_task_model()

    def watch_minutes(self, minutes: int) -> None:
        self._render_time()

    def watch_is_selected(self, selected: bool) -> None:
        self._render_check()

    def watch_selecting(self, selecting: bool) -> None:
        self._render_check()

    def _render_check(self) -> None:
        if self._check_label is None:
            return
        if not self.selecting:
            self._check_label.update("")
            self._check_label.display = False
            return
        self._check_label.update("[x] " if self.is_selected else "[ ] ")
        self._check_label.display = True

    def _render_time(self) -> None:
        if self._time_label is None or self.task_model is None:
            return
        self._time_label.update(format_time(self.task_model, self.minutes))
        self._time_label.set_class(self.task_model.timer_running, "timer-running")

    def _render_task_model(self) -> None:
        if self.task_model is None or not self._labels_ready():
            return

        assert self._title_label is not None
        assert self._task_id_label is not None
        assert self._description_label is not None
        assert self._tags_label is not None
        assert self._due_label is not None
        assert self._priority_label is not None

        task = self.task_model
        self._task_id_label.update(f"#{task.short_id[:CARD_ID_MAX_LENGTH]}")
        self._title_label.update(truncate_text(task.title, CARD_TITLE_LINE_WIDTH))

        desc = task.description.strip()
        if desc:
            self._description_label.update(truncate_text(desc, CARD_DESC_MAX_LENGTH))
            self._description_label.remove_class("card-desc-empty")
        else:
            self._description_label.update("No description...")
            self._description_label.add_class("card-desc-empty")

        tags = format_tags(task.tags, CARD_TAGS_MAX_LENGTH)
        self._tags_label.update(tags)
        self._tags_label.display = bool(tags)

        today = date.today()
        due = format_due(task.due_date, today)
        self._due_label.update(due)
        self._due_label.display = bool(due)
        overdue = task.due_date is not None and task.due_date < today
        self._due_label.set_class(overdue, "overdue")

        self._priority_label.update(task.priority.label)
        self._priority_label.remove_class("priority-low", "priority-medium", "priority-high")
        self._priority_label.add_class(f"priority-{task.priority.css_class}")

        self._render_time()
        self._render_check()

    def _labels_ready(self) -> bool:
        return all(
            (
                self._title_label is not None,
                self._task_id_label is not None,
                self._description_label is not None,
                self._tags_label is not None,
                self._due_label is not None,
                self._time_label is not None,
                self._priority_label is not None,
            )
        )
