"""Help modal with a keybindings reference."""

from __future__ import annotations

from typing import TYPE_CHECKING

from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.widgets import Footer, Label, Rule, Static

from wipboard.tui.keybindings import BOARD_NAVIGATION_HELP, HELP_BINDINGS
from wipboard.tui.ui.modals.base import WipboardModalScreen

if TYPE_CHECKING:
    from textual.app import ComposeResult

ACTION_HELP: list[tuple[str, str]] = [
    ("n", "New task"),
    ("e", "Edit focused task"),
    ("x", "Delete focused task (selected tasks when selecting)"),
    ("t", "Start or stop the focused task's timer"),
    ("b", "Bulk edit selected tasks"),
    ("/", "Search"),
    ("s / o", "Cycle sort key / flip sort order"),
    ("p", "Cycle priority filter"),
    ("r", "Reload the board"),
    ("F12", "Debug log"),
    ("q", "Quit"),
]

POINTER_HELP: list[tuple[str, str]] = [
    ("Click", "Open details (toggle selection when selecting)"),
    ("Drag", "Move a card to another position or column"),
]


class HelpModal(WipboardModalScreen[None]):
    """Keybinding reference."""

    BINDINGS = HELP_BINDINGS

    def compose(self) -> ComposeResult:
        with Vertical(id="help-container"):
            yield Label("wipboard Help", classes="modal-title")
            yield Rule(line_style="heavy")
            with VerticalScroll():
                yield Static("Navigation", classes="help-section-title")
                yield from self._rows(BOARD_NAVIGATION_HELP)
                yield Static("Actions", classes="help-section-title")
                yield from self._rows(ACTION_HELP)
                yield Static("Mouse", classes="help-section-title")
                yield from self._rows(POINTER_HELP)
                yield Static(
                    "Only a limited number of tasks may be In Progress at once. "
                    "Time is tracked automatically while a task is In Progress.",
                    classes="help-note",
                )
        yield Footer(show_command_palette=False)

    def _rows(self, rows: list[tuple[str, str]]) -> ComposeResult:
        for key, desc in rows:
            yield Horizontal(
                Label(key, classes="help-key", markup=False),
                Label(desc, classes="help-desc"),
                classes="help-row",
            )

    def action_close(self) -> None:
        self.dismiss(None)
