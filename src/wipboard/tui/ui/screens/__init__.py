"""Screens."""

from wipboard.tui.ui.screens.board import BoardScreen

__all__ = ["BoardScreen"]
