"""Modal components for the wipboard TUI."""

from wipboard.tui.ui.modals.bulk_edit import BulkEditModal
from wipboard.tui.ui.modals.confirm import ConfirmModal
from wipboard.tui.ui.modals.debug_log import DebugLogModal
from wipboard.tui.ui.modals.help import HelpModal
from wipboard.tui.ui.modals.task_details import ModalAction, TaskDetailsModal

__all__ = [
    "BulkEditModal",
    "ConfirmModal",
    "DebugLogModal",
    "HelpModal",
    "ModalAction",
    "TaskDetailsModal",
]
