"""Qt UI components for the presenter application."""

from .audience_window import AudienceWindow
from .dialog_helpers import (
    confirm_placement_permission,
    show_error,
    show_info,
    show_permission_recovery,
    show_popup_blocked,
)
from .presenter_window import PresenterWindow
from .qt_display_host import QtDisplayHost
from .qt_scheduler import QtScheduler

__all__ = [
    "AudienceWindow",
    "PresenterWindow",
    "QtDisplayHost",
    "QtScheduler",
    "confirm_placement_permission",
    "show_error",
    "show_info",
    "show_permission_recovery",
    "show_popup_blocked",
]
