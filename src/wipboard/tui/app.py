"""Main wipboard TUI application."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from textual.app import App, SystemCommand
from textual.signal import Signal

from wipboard.core.bootstrap import create_app_context
from wipboard.core.debug_log import setup_debug_logging
from wipboard.core.events import TaskTimeRecorded
from wipboard.core.time import utc_now
from wipboard.tui.keybindings import APP_BINDINGS
from wipboard.tui.ui.screens.board import BoardScreen

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from textual.screen import Screen

    from wipboard.core.bootstrap import AppContext
    from wipboard.core.config import WipboardConfig
    from wipboard.core.events import DomainEvent
    from wipboard.core.time import Clock

logger = logging.getLogger(__name__)


class WipboardApp(App):
    """wipboard TUI application - a WIP-limited personal task board."""

    TITLE = "wipboard"
    CSS_PATH = "styles/wipboard.tcss"

    BINDINGS = APP_BINDINGS

    def __init__(
        self,
        ctx: AppContext | None = None,
        *,
        db_path: str | Path | None = None,
        config_path: Path | None = None,
        config: WipboardConfig | None = None,
        memory: bool = False,
        project_name: str | None = None,
        clock: Clock = utc_now,
    ) -> None:
        """Use ``ctx`` when given; otherwise build one on mount from the other options."""
        super().__init__()
        # Published with a task id whenever the store changes a task behind the board's back.
        self.task_changed_signal: Signal[str] = Signal(self, "task_changed")
        self._ctx = ctx
        self._owns_ctx = ctx is None
        self._db_path = db_path
        self._config_path = config_path
        self._config = config
        self._memory = memory
        self._project_name = project_name
        self._clock = clock

    @property
    def ctx(self) -> AppContext:
        """Get the application context for service access."""
        assert self._ctx is not None, "AppContext not initialized"
        return self._ctx

    async def on_mount(self) -> None:
        setup_debug_logging()
        if self._ctx is None:
            self._ctx = await create_app_context(
                config=self._config,
                config_path=self._config_path,
                db_path=self._db_path,
                memory=self._memory,
                project_name=self._project_name,
                clock=self._clock,
            )
        self.ctx.event_bus.add_handler(self._on_time_recorded, TaskTimeRecorded)
        self.sub_title = self.ctx.project.name
        logger.info("Board ready for project %s", self.ctx.project.name)
        await self.push_screen(BoardScreen(clock=self._clock))

    def _on_time_recorded(self, event: DomainEvent) -> None:
        if isinstance(event, TaskTimeRecorded):
            self.task_changed_signal.publish(event.task_id)

    async def on_unmount(self) -> None:
        await self.cleanup()

    async def cleanup(self) -> None:
        """Cancel workers, then release the context if this app created it."""
        if self._ctx is not None:
            self._ctx.event_bus.remove_handler(self._on_time_recorded)

        self.workers.cancel_all()
        with contextlib.suppress(Exception, asyncio.CancelledError):
            await self.workers.wait_for_complete()

        if self._ctx is not None and self._owns_ctx:
            await self._ctx.close()
            self._ctx = None

    def get_system_commands(self, screen: Screen) -> Iterable[SystemCommand]:
        yield from super().get_system_commands(screen)
        yield SystemCommand("Help", "Open help", self.action_show_help)
        yield SystemCommand("Debug Log", "Open debug log viewer", self.action_toggle_debug_log)
        yield SystemCommand("Quit", "Exit wipboard", self.exit)

    def action_show_help(self) -> None:
        from wipboard.tui.ui.modals import HelpModal

        self.push_screen(HelpModal())

    def action_toggle_debug_log(self) -> None:
        """Open the debug log viewer (F12)."""
        from wipboard.tui.ui.modals import DebugLogModal

        if isinstance(self.screen, DebugLogModal):
            return
        self.push_screen(DebugLogModal())


def run() -> None:
    """Run the wipboard application."""
    app = WipboardApp()
    app.run()


if __name__ == "__main__":
    run()
