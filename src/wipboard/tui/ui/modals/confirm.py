"""Yes/no confirmation modal."""

from __future__ import annotations

from typing import TYPE_CHECKING

from textual import on
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, Footer, Label, Rule, Static

from wipboard.tui.keybindings import CONFIRM_BINDINGS
from wipboard.tui.ui.modals.base import WipboardModalScreen

if TYPE_CHECKING:
    from textual.app import ComposeResult


class ConfirmModal(WipboardModalScreen[bool]):
    """Ask a yes/no question; dismisses with True on confirm."""

    BINDINGS = CONFIRM_BINDINGS

    def __init__(self, title: str, message: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self._title = title
        self._message = message

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm-container"):
            yield Label(self._title, classes="modal-title")
            yield Rule()
            yield Static(self._message, id="confirm-message", markup=False)
            with Horizontal(classes="button-row"):
                yield Button("[y] Yes", variant="error", id="confirm-btn")
                yield Button("[n] No", id="cancel-btn")
        yield Footer(show_command_palette=False)

    @on(Button.Pressed, "#confirm-btn")
    def on_confirm_btn(self) -> None:
        self.action_confirm()

    @on(Button.Pressed, "#cancel-btn")
    def on_cancel_btn(self) -> None:
        self.action_cancel()

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)
