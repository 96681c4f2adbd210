"""Bulk edit modal for the selected tasks."""

from __future__ import annotations

from typing import TYPE_CHECKING

from textual import on
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, Footer, Label, Rule, Select

from wipboard.core.constants import COLUMN_ORDER, PRIORITY_LABELS, STATUS_LABELS
from wipboard.core.models.enums import TaskPriority, TaskStatus
from wipboard.tui.keybindings import BULK_EDIT_BINDINGS
from wipboard.tui.ui.modals.base import WipboardModalScreen

if TYPE_CHECKING:
    from textual.app import ComposeResult


class BulkEditModal(WipboardModalScreen[dict[str, object] | None]):
    """Pick a status and/or priority to apply to every selected task.

    Dismisses with the patch, or None when cancelled or nothing was chosen.
    """

    BINDINGS = BULK_EDIT_BINDINGS

    def __init__(self, count: int, **kwargs) -> None:
        super().__init__(**kwargs)
        self._count = count

    def compose(self) -> ComposeResult:
        with Vertical(id="bulk-edit-container"):
            yield Label(f"Edit {self._count} selected tasks", classes="modal-title")
            yield Rule()
            with Horizontal(classes="field-row"):
                with Vertical(classes="form-field field-half"):
                    yield Label("Move to:", classes="form-label")
                    yield Select[str](
                        [(STATUS_LABELS[status], status.value) for status in COLUMN_ORDER],
                        prompt="(unchanged)",
                        id="bulk-status-select",
                    )
                with Vertical(classes="form-field field-half"):
                    yield Label("Priority:", classes="form-label")
                    yield Select[str](
                        [(label, p.value) for p, label in PRIORITY_LABELS.items()],
                        prompt="(unchanged)",
                        id="bulk-priority-select",
                    )
            with Horizontal(classes="button-row"):
                yield Button("[F2] Apply", variant="primary", id="apply-btn")
                yield Button("[Esc] Cancel", id="cancel-btn")
        yield Footer(show_command_palette=False)

    @on(Button.Pressed, "#apply-btn")
    def on_apply_btn(self) -> None:
        self.action_apply()

    @on(Button.Pressed, "#cancel-btn")
    def on_cancel_btn(self) -> None:
        self.action_cancel()

    def action_apply(self) -> None:
        patch: dict[str, object] = {}
        status_value = self.query_one("#bulk-status-select", Select).value
        if status_value is not Select.BLANK:
            patch["status"] = TaskStatus(str(status_value))
        priority_value = self.query_one("#bulk-priority-select", Select).value
        if priority_value is not Select.BLANK:
            patch["priority"] = TaskPriority(str(priority_value))
        self.dismiss(patch or None)

    def action_cancel(self) -> None:
        self.dismiss(None)
