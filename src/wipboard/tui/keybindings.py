"""Keybindings for the wipboard TUI.

Board navigation keys (arrows, tab, digits, enter/space, m, escape, ctrl+a)
are routed to the board's navigator by ``BoardScreen.on_key`` rather than
bound here; the bindings below cover the remaining actions.
"""

from __future__ import annotations

from textual.binding import Binding, BindingType

# =============================================================================
# App Bindings
# =============================================================================

APP_BINDINGS: list[BindingType] = [
    Binding("q", "quit", "Quit"),
    Binding("f1", "show_help", "Help", key_display="F1", priority=True),
    Binding("question_mark", "show_help", "", show=False, key_display="?"),
    Binding("ctrl+p", "command_palette", "Palette", show=False),
    Binding("f12", "toggle_debug_log", "Debug", show=False),
]

# =============================================================================
# Board Bindings
# =============================================================================

BOARD_BINDINGS: list[BindingType] = [
    Binding("q", "quit", "Quit", priority=True),
    Binding("n", "new_task", "New"),
    Binding("e", "edit_task", "Edit"),
    Binding("x", "delete_task", "Delete"),
    Binding("t", "toggle_timer", "Timer"),
    Binding("slash", "toggle_search", "Search", key_display="/"),
    Binding("s", "cycle_sort", "Sort"),
    Binding("o", "toggle_sort_order", "Order", show=False),
    Binding("p", "cycle_priority_filter", "Priority", show=False),
    Binding("b", "bulk_edit", "Bulk", show=False),
    Binding("r", "refresh_board", "Refresh", show=False),
    Binding("ctrl+c", "interrupt", "", show=False),
]

# Keys the board screen forwards to the navigator, shown in the help modal.
BOARD_NAVIGATION_HELP: list[tuple[str, str]] = [
    ("Arrows / Tab", "Move focus between cards and columns"),
    ("Shift+Up / Shift+Down", "Reorder focused card"),
    ("1 / 2 / 3", "Move focused card to column"),
    ("Enter / Space", "Open details (toggle selection when selecting)"),
    ("m", "Enter selection mode"),
    ("Ctrl+A", "Select or deselect all visible tasks"),
    ("Escape", "Leave selection mode or clear focus"),
]

# =============================================================================
# Modal Bindings
# =============================================================================

CONFIRM_BINDINGS: list[BindingType] = [
    Binding("y", "confirm", "Yes"),
    Binding("n", "cancel", "No"),
    Binding("escape", "cancel", "Cancel"),
]

HELP_BINDINGS: list[BindingType] = [
    Binding("escape", "close", "Close"),
    Binding("q", "close", "Close", show=False),
]

DEBUG_LOG_BINDINGS: list[BindingType] = [
    Binding("escape", "close", "Close"),
    Binding("f12", "close", "Close", show=False),
    Binding("c", "clear_logs", "Clear"),
    Binding("s", "save_logs", "Save"),
    Binding("w", "toggle_warnings", "Warnings only"),
]

TASK_DETAILS_BINDINGS: list[BindingType] = [
    Binding("escape", "close_or_cancel", "Close/Cancel"),
    Binding("e", "toggle_edit", "Edit", show=False),
    Binding("d", "delete", "Delete", show=False),
    Binding("f2", "save", "Save", key_display="F2"),
    Binding("ctrl+s", "save", "Save", show=False),
]

BULK_EDIT_BINDINGS: list[BindingType] = [
    Binding("escape", "cancel", "Cancel"),
    Binding("f2", "apply", "Apply", key_display="F2"),
    Binding("ctrl+s", "apply", "Apply", show=False),
]
