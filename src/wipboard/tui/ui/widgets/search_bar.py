"""Search bar shown above the board while filtering by text."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from textual.containers import Horizontal
from textual.message import Message
from textual.reactive import reactive
from textual.widgets import Input, Label

from wipboard.tui.ui.utils import safe_query_one

if TYPE_CHECKING:
    from textual.app import ComposeResult


class SearchBar(Horizontal):
    """Text filter for the board; hidden until ``is_visible`` is set."""

    can_focus = False

    is_visible: reactive[bool] = reactive(False)

    @dataclass
    class QueryChanged(Message):
        query: str

    def compose(self) -> ComposeResult:
        yield Label("/", classes="search-prompt")
        yield Input(placeholder="Search title or description...", id="search-input")

    @property
    def search_text(self) -> str:
        inp = safe_query_one(self, "#search-input", Input)
        return inp.value if inp is not None else ""

    def on_mount(self) -> None:
        self._set_input_enabled(False)

    def _set_input_enabled(self, enabled: bool) -> None:
        inp = safe_query_one(self, "#search-input", Input)
        if inp is None:
            return
        # A hidden input must not take focus away from the board.
        inp.can_focus = enabled
        if enabled:
            inp.focus()
        else:
            inp.blur()

    def on_input_changed(self, event: Input.Changed) -> None:
        event.stop()
        self.post_message(self.QueryChanged(event.value))

    def watch_is_visible(self, is_visible: bool) -> None:
        self.set_class(is_visible, "visible")
        self._set_input_enabled(is_visible)
        if not is_visible and self.search_text:
            self.clear()

    def clear(self) -> None:
        if inp := safe_query_one(self, "#search-input", Input):
            inp.value = ""
