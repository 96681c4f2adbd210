"""F12 viewer for the in-memory log buffer."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from textual.containers import Vertical
from textual.reactive import reactive
from textual.widgets import Footer, Label, RichLog, Rule

from wipboard.core.debug_log import (
    LogEntry,
    clear_log_buffer,
    export_logs_to_file,
    get_buffer_generation,
    log_buffer,
)
from wipboard.core.paths import ensure_directories, get_debug_log_path
from wipboard.tui.keybindings import DEBUG_LOG_BINDINGS
from wipboard.tui.ui.modals.base import WipboardModalScreen

if TYPE_CHECKING:
    from textual.app import ComposeResult

logger = logging.getLogger(__name__)

POLL_SECONDS = 0.5

LEVEL_STYLES = {
    "DEBUG": "dim",
    "INFO": "blue",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold red",
}


def format_entry(entry: LogEntry) -> str:
    """Render one buffered record as Rich markup."""
    stamp = f"{datetime.fromtimestamp(entry.timestamp):%H:%M:%S}"
    style = LEVEL_STYLES.get(entry.group, "white")
    message = entry.message.replace("[", r"\[")
    return f"[{style}]{stamp} \\[{entry.group}][/{style}] {message}"


class DebugLogModal(WipboardModalScreen[None]):
    """Tail of the log buffer, polled while open."""

    BINDINGS = DEBUG_LOG_BINDINGS

    warnings_only = reactive(False, init=False)

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._shown = 0
        self._generation = get_buffer_generation()

    def compose(self) -> ComposeResult:
        with Vertical(id="debug-log-container"):
            yield Label("Debug Log", classes="modal-title")
            yield Label("[dim]All levels[/dim]", classes="modal-subtitle", id="debug-log-filter")
            yield Rule()
            yield RichLog(id="debug-log", markup=True, wrap=True, auto_scroll=True)
        yield Footer(show_command_palette=False)

    @property
    def _rich_log(self) -> RichLog:
        return self.query_one("#debug-log", RichLog)

    def on_mount(self) -> None:
        self._poll()
        self.set_interval(POLL_SECONDS, self._poll)

    def _visible(self, entry: LogEntry) -> bool:
        return not self.warnings_only or entry.group not in ("DEBUG", "INFO")

    def _rewrite(self) -> None:
        self._rich_log.clear()
        self._shown = 0
        self._poll()

    def _poll(self) -> None:
        generation = get_buffer_generation()
        entries = list(log_buffer)
        if generation != self._generation or len(entries) < self._shown:
            # Cleared, or the ring buffer wrapped: start over.
            self._generation = generation
            self._rich_log.clear()
            self._shown = 0
        for entry in entries[self._shown :]:
            if self._visible(entry):
                self._rich_log.write(format_entry(entry))
        self._shown = len(entries)

    def watch_warnings_only(self, warnings_only: bool) -> None:
        label = "Warnings and errors" if warnings_only else "All levels"
        self.query_one("#debug-log-filter", Label).update(f"[dim]{label}[/dim]")
        self._rewrite()

    def action_toggle_warnings(self) -> None:
        self.warnings_only = not self.warnings_only

    def action_close(self) -> None:
        self.dismiss(None)

    def action_clear_logs(self) -> None:
        clear_log_buffer()
        self._rewrite()

    def action_save_logs(self) -> None:
        path = get_debug_log_path()
        try:
            ensure_directories()
            count = export_logs_to_file(path)
        except OSError as exc:
            logger.warning("Could not export debug log to %s: %s", path, exc)
            self.notify(f"Could not export log: {exc}", severity="error")
            return
        self.notify(f"Saved {count} entries to {path}")
