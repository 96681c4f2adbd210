"""Unified task modal for viewing, editing, and creating tasks."""

from __future__ import annotations

from datetime import date
from enum import Enum, StrEnum, auto
from typing import TYPE_CHECKING

from textual import on
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.widgets import Button, Footer, Input, Label, Rule, Select, Static, TextArea

from wipboard.core.constants import PRIORITY_LABELS
from wipboard.core.models.enums import TaskPriority, TaskStatus
from wipboard.core.time import format_minutes
from wipboard.tui.keybindings import TASK_DETAILS_BINDINGS
from wipboard.tui.ui.modals.base import WipboardModalScreen
from wipboard.tui.ui.utils import safe_query_one

if TYPE_CHECKING:
    from datetime import datetime

    from textual.app import ComposeResult

    from wipboard.core.models.entities import Task


type TaskUpdateDict = dict[str, object]

TITLE_MAX_LENGTH = 200


class ModalAction(Enum):
    DELETE = auto()
    TOGGLE_TIMER = auto()


class BindingAction(StrEnum):
    SAVE = "save"
    TOGGLE_EDIT = "toggle_edit"
    DELETE = "delete"


def parse_due_date(text: str) -> date | None:
    """Parse ``YYYY-MM-DD``; blank means no due date. Raises ValueError."""
    text = text.strip()
    return date.fromisoformat(text[:10]) if text else None


def parse_estimate(text: str) -> float | None:
    """Parse an hour estimate; blank means none. Raises ValueError."""
    text = text.strip()
    if not text:
        return None
    hours = float(text)
    if hours < 0:
        raise ValueError("estimate must not be negative")
    return hours


def parse_tags(text: str) -> list[str]:
    return [tag.strip() for tag in text.split(",") if tag.strip()]


def _stamp(value: datetime | None) -> str:
    return f"{value.astimezone():%Y-%m-%d %H:%M}" if value is not None else "-"


class TaskDetailsModal(WipboardModalScreen[ModalAction | TaskUpdateDict | None]):
    """Unified modal for viewing, editing, and creating tasks."""

    editing = reactive(False)

    BINDINGS = TASK_DETAILS_BINDINGS

    def __init__(
        self,
        task: Task | None = None,
        *,
        minutes: int | None = None,
        start_editing: bool = False,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._task_model = task
        self.is_create = task is None
        self._minutes = minutes if minutes is not None else (task.time_spent_minutes if task else 0)
        self._initial_editing = self.is_create or start_editing

    def on_mount(self) -> None:
        if self.is_create:
            self.add_class("create-mode")
        self.editing = self._initial_editing

    def compose(self) -> ComposeResult:
        task = self._task_model
        with Vertical(id="task-details-container"):
            yield Label(self._get_modal_title(), classes="modal-title", id="modal-title-label")
            yield Rule(line_style="heavy")

            if task is not None:
                with Horizontal(classes="badge-row view-only", id="badge-row"):
                    yield Label(
                        task.priority.label,
                        classes=f"badge priority-{task.priority.css_class}",
                        id="priority-badge",
                    )
                    yield Label(task.status.label, classes="badge badge-status", id="status-badge")
                    yield Label(
                        self._time_text(task),
                        classes="badge badge-time",
                        id="time-badge",
                    )

            yield Label("Title", classes="section-title view-only")
            yield Static(
                task.title if task else "",
                classes="task-title view-only",
                id="title-display",
                markup=False,
            )
            with Vertical(classes="form-field edit-fields", id="title-field"):
                yield Input(
                    value=task.title if task else "",
                    placeholder="Enter task title...",
                    max_length=TITLE_MAX_LENGTH,
                    id="title-input",
                )

            yield Rule()

            yield Label("Description", classes="section-title")
            yield Static(
                (task.description if task else "") or "(No description)",
                classes="task-description view-only",
                id="description-content",
                markup=False,
            )
            with Vertical(classes="form-field edit-fields", id="description-field"):
                yield TextArea(
                    text=task.description if task else "",
                    show_line_numbers=False,
                    id="description-input",
                )

            yield from self._compose_fields_row()
            yield from self._compose_meta_row()

            yield Rule()
            yield from self._compose_buttons()

        yield Footer(show_command_palette=False)

    def _compose_fields_row(self) -> ComposeResult:
        task = self._task_model
        priority = task.priority if task else TaskPriority.MEDIUM
        tags = ", ".join(task.tags) if task else ""
        due = task.due_date.isoformat() if task and task.due_date else ""
        estimate = (
            f"{task.estimated_hours:g}" if task and task.estimated_hours is not None else ""
        )

        with Horizontal(classes="field-row view-only", id="fields-view"):
            yield Label(f"Tags: {tags or '-'}", classes="field-value", markup=False)
            yield Label(f"Due: {due or '-'}", classes="field-value")
            yield Label(f"Estimate: {estimate + 'h' if estimate else '-'}", classes="field-value")

        with Horizontal(classes="field-row edit-fields", id="edit-fields-row"):
            with Vertical(classes="form-field field-quarter"):
                yield Label("Priority:", classes="form-label")
                yield Select[str](
                    [(label, p.value) for p, label in PRIORITY_LABELS.items()],
                    value=priority.value,
                    allow_blank=False,
                    id="priority-select",
                )
            with Vertical(classes="form-field field-quarter"):
                yield Label("Tags (comma separated):", classes="form-label")
                yield Input(value=tags, id="tags-input")
            with Vertical(classes="form-field field-quarter"):
                yield Label("Due (YYYY-MM-DD):", classes="form-label")
                yield Input(value=due, placeholder="none", id="due-input")
            with Vertical(classes="form-field field-quarter"):
                yield Label("Estimate (hours):", classes="form-label")
                yield Input(value=estimate, placeholder="none", id="estimate-input")

    def _compose_meta_row(self) -> ComposeResult:
        task = self._task_model
        if task is None:
            return
        with Horizontal(classes="meta-row view-only", id="meta-row"):
            yield Label(f"Created: {_stamp(task.created_at)}", classes="task-meta")
            yield Static("  |  ", classes="meta-separator")
            yield Label(f"Started: {_stamp(task.started_at)}", classes="task-meta")
            yield Static("  |  ", classes="meta-separator")
            yield Label(f"Completed: {_stamp(task.completed_at)}", classes="task-meta")

    def _compose_buttons(self) -> ComposeResult:
        with Horizontal(classes="button-row view-only", id="view-buttons"):
            yield Button("[Esc] Close", id="close-btn")
            yield Button("[e] Edit", id="edit-btn")
            if self._task_model is not None and self._task_model.status == TaskStatus.IN_PROGRESS:
                label = "Stop timer" if self._task_model.timer_running else "Start timer"
                yield Button(label, id="timer-btn")
            yield Button("[d] Delete", variant="error", id="delete-btn")

        with Horizontal(classes="button-row edit-fields", id="edit-buttons"):
            yield Button("[F2] Save", variant="primary", id="save-btn")
            yield Button("[Esc] Cancel", id="cancel-btn")

    def _get_modal_title(self) -> str:
        if self.is_create:
            return "New Task"
        return "Edit Task" if self.editing else "Task Details"

    def _time_text(self, task: Task) -> str:
        text = f"⏱ {format_minutes(self._minutes)}"
        return f"{text} (running)" if task.timer_running else text

    def watch_editing(self, editing: bool) -> None:
        self.set_class(editing, "editing")
        if title_label := safe_query_one(self, "#modal-title-label", Label):
            title_label.update(self._get_modal_title())
        self.refresh_bindings()
        if editing and (title_input := safe_query_one(self, "#title-input", Input)):
            title_input.focus()

    def check_action(self, action: str, parameters: tuple[object, ...]) -> bool | None:
        """Show Save only while editing, Edit/Delete only while viewing."""
        try:
            binding_action = BindingAction(action)
        except ValueError:
            return True
        if binding_action is BindingAction.SAVE:
            return self.editing
        return not self.editing

    @on(Button.Pressed, "#edit-btn")
    def on_edit_btn(self) -> None:
        self.action_toggle_edit()

    @on(Button.Pressed, "#delete-btn")
    def on_delete_btn(self) -> None:
        self.action_delete()

    @on(Button.Pressed, "#timer-btn")
    def on_timer_btn(self) -> None:
        self.dismiss(ModalAction.TOGGLE_TIMER)

    @on(Button.Pressed, "#close-btn")
    def on_close_btn(self) -> None:
        self.dismiss(None)

    @on(Button.Pressed, "#save-btn")
    def on_save_btn(self) -> None:
        self.action_save()

    @on(Button.Pressed, "#cancel-btn")
    def on_cancel_btn(self) -> None:
        self.action_close_or_cancel()

    def action_toggle_edit(self) -> None:
        if not self.editing and not self.is_create:
            self.editing = True

    def action_delete(self) -> None:
        if not self.editing and self._task_model is not None:
            self.dismiss(ModalAction.DELETE)

    def action_close_or_cancel(self) -> None:
        """Escape always cancels/closes without saving."""
        self.dismiss(None)

    def action_save(self) -> None:
        if not self.editing:
            return
        result = self._validate_and_build_result()
        if result is not None:
            self.dismiss(result)

    def _validate_and_build_result(self) -> TaskUpdateDict | None:
        title = self.query_one("#title-input", Input).value.strip()
        if not title:
            self.notify("Title is required", severity="warning")
            return None
        try:
            due_date = parse_due_date(self.query_one("#due-input", Input).value)
        except ValueError:
            self.notify("Due date must look like 2024-05-31", severity="warning")
            return None
        try:
            estimate = parse_estimate(self.query_one("#estimate-input", Input).value)
        except ValueError:
            self.notify("Estimate must be a positive number of hours", severity="warning")
            return None

        priority = self.query_one("#priority-select", Select).value
        return {
            "title": title,
            "description": self.query_one("#description-input", TextArea).text.strip(),
            "priority": TaskPriority(str(priority)),
            "tags": parse_tags(self.query_one("#tags-input", Input).value),
            "due_date": due_date,
            "estimated_hours": estimate,
        }
