"""Base screen class for wipboard screens."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from textual.screen import Screen

if TYPE_CHECKING:
    from wipboard.core.bootstrap import AppContext
    from wipboard.tui.app import WipboardApp


class WipboardScreen(Screen):
    @property
    def wipboard_app(self) -> WipboardApp:
        """Get the typed WipboardApp instance."""
        return cast("WipboardApp", self.app)

    @property
    def ctx(self) -> AppContext:
        """Get the application context for service access.

        Raises:
            RuntimeError: If AppContext is not initialized on the app.
        """
        ctx = getattr(self.app, "_ctx", None)
        if ctx is None:
            msg = "AppContext not initialized. Ensure bootstrap has completed."
            raise RuntimeError(msg)
        return ctx
