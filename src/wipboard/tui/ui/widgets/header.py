"""Header widget for the wipboard TUI."""

from __future__ import annotations

from typing import TYPE_CHECKING

from textual.reactive import reactive
from textual.widget import Widget
from textual.widgets import Label

from wipboard.tui.ui.utils import safe_query_one

if TYPE_CHECKING:
    from textual.app import ComposeResult

    from wipboard.core.board.projection import BoardProgress, FilterCriteria

HEADER_SEPARATOR = "│"
LOGO = "▤ wipboard"


def describe_criteria(criteria: FilterCriteria) -> str:
    """Short summary of the active sort and filters."""
    arrow = "↓" if criteria.sort_order == "desc" else "↑"
    parts = [f"sort {criteria.sort_key.replace('_', ' ')} {arrow}"]
    if criteria.priority is not None:
        parts.append(f"priority {criteria.priority}")
    if criteria.status is not None:
        parts.append(f"status {criteria.status.label}")
    if criteria.search_text.strip():
        parts.append(f'"{criteria.search_text.strip()}"')
    return " · ".join(parts)


class BoardHeader(Widget):
    """Header showing the project, progress, tracked time and view state.

    Layout:
    ┃ ▤ wipboard  Personal │ 3/10 done (30%) │ 2h 5m │ sort created at ↓ │ SELECT 2 ┃
    """

    project_name: reactive[str] = reactive("")
    progress_text: reactive[str] = reactive("")
    time_text: reactive[str] = reactive("")
    view_text: reactive[str] = reactive("")
    selection_text: reactive[str] = reactive("")

    def compose(self) -> ComposeResult:
        yield Label(LOGO, classes="header-logo")
        yield Label("", id="header-project", classes="header-title")
        yield Label("", classes="header-spacer")
        yield Label("", id="header-selection", classes="header-selection")
        yield Label("", id="header-view", classes="header-view")
        yield Label(HEADER_SEPARATOR, classes="header-sep")
        yield Label("", id="header-progress", classes="header-stats")
        yield Label(HEADER_SEPARATOR, classes="header-sep")
        yield Label("", id="header-time", classes="header-stats")
        yield Label(HEADER_SEPARATOR, classes="header-sep")
        yield Label("? help", classes="header-help")

    def _set(self, selector: str, text: str) -> None:
        if label := safe_query_one(self, selector, Label):
            label.update(text)

    def watch_project_name(self, name: str) -> None:
        self._set("#header-project", name)

    def watch_progress_text(self, text: str) -> None:
        self._set("#header-progress", text)

    def watch_time_text(self, text: str) -> None:
        self._set("#header-time", text)

    def watch_view_text(self, text: str) -> None:
        self._set("#header-view", text)

    def watch_selection_text(self, text: str) -> None:
        self._set("#header-selection", text)
        if label := safe_query_one(self, "#header-selection", Label):
            label.display = bool(text)

    def update_progress(self, progress: BoardProgress) -> None:
        self.progress_text = (
            f"{progress.completed}/{progress.total} done ({progress.completion_percent}%)"
        )
        self.time_text = f"⏱ {progress.time_label}"

    def update_view(self, criteria: FilterCriteria) -> None:
        self.view_text = describe_criteria(criteria)

    def update_selection(self, selecting: bool, count: int) -> None:
        self.selection_text = f"SELECT {count}" if selecting else ""
