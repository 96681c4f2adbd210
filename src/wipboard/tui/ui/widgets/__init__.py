"""Board widgets."""

from wipboard.tui.ui.widgets.card import TaskCard
from wipboard.tui.ui.widgets.column import BoardColumn
from wipboard.tui.ui.widgets.header import BoardHeader
from wipboard.tui.ui.widgets.search_bar import SearchBar

__all__ = ["BoardColumn", "BoardHeader", "SearchBar", "TaskCard"]
