"""Base modal class for wipboard modals."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from textual.screen import ModalScreen

if TYPE_CHECKING:
    from wipboard.tui.app import WipboardApp


class WipboardModalScreen[ResultT](ModalScreen[ResultT]):
    @property
    def wipboard_app(self) -> WipboardApp:
        """Get the typed WipboardApp instance."""
        return cast("WipboardApp", self.app)
