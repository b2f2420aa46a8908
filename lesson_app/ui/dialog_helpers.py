"""Helper functions for common dialog patterns in the presenter UI."""

from __future__ import annotations

from typing import Sequence

from PySide6.QtGui import QFont, QGuiApplication
from PySide6.QtWidgets import QMessageBox, QWidget

from lesson_app.constants.ui_constants import (
    PERMISSION_PROMPT_MESSAGE,
    PERMISSION_PROMPT_TITLE,
    PERMISSION_RECOVERY_TITLE,
    POPUP_BLOCKED_MESSAGE,
    POPUP_BLOCKED_TITLE,
)


def _apply_optional_font(widget: QWidget, font_point_size: int | None) -> None:
    """Apply font size to a widget when requested."""
    if font_point_size is None or font_point_size <= 0:
        return

    font: QFont = widget.font()
    font.setPointSize(font_point_size)
    widget.setFont(font)


def confirm_placement_permission(parent: QWidget | None) -> bool:
    """Ask whether the audience window may be placed on the second display.

    Returns:
        True if the presenter allowed placement, False otherwise
    """
    reply = QMessageBox.question(
        parent,
        PERMISSION_PROMPT_TITLE,
        PERMISSION_PROMPT_MESSAGE,
        QMessageBox.Yes | QMessageBox.No,
        QMessageBox.Yes,
    )
    return reply == QMessageBox.Yes


def show_popup_blocked(parent: QWidget, url: str) -> None:
    """Explain that the audience window was blocked and copy its URL."""
    QGuiApplication.clipboard().setText(url)
    QMessageBox.warning(parent, POPUP_BLOCKED_TITLE, POPUP_BLOCKED_MESSAGE.format(url=url))


def show_permission_recovery(parent: QWidget, guidance: Sequence[str]) -> None:
    """Show the placement remediation text for the current permission state."""
    if not guidance:
        return
    if len(guidance) == 1:
        text = guidance[0]
    else:
        text = "\n".join(f"{number}. {step}" for number, step in enumerate(guidance, start=1))
    show_info(parent, PERMISSION_RECOVERY_TITLE, text)


def show_error(parent: QWidget, title: str, message: str) -> None:
    """Show error dialog.

    Args:
        parent: Parent widget for the dialog
        title: Dialog title
        message: Error message
    """
    QMessageBox.critical(parent, title, message)


def show_info(
    parent: QWidget,
    title: str,
    message: str,
    *,
    font_point_size: int | None = None,
) -> None:
    """Show information dialog.

    Args:
        parent: Parent widget for the dialog
        title: Dialog title
        message: Information message
    """
    msg_box = QMessageBox(parent)
    msg_box.setIcon(QMessageBox.Information)
    msg_box.setWindowTitle(title)
    msg_box.setText(message)
    msg_box.setStandardButtons(QMessageBox.Ok)
    _apply_optional_font(msg_box, font_point_size)
    if font_point_size is not None and font_point_size > 0:
        msg_box.setStyleSheet(
            f"QLabel {{ font-size: {font_point_size}pt; }}\n"
            f"QPushButton {{ font-size: {font_point_size}pt; }}"
        )
    msg_box.exec()
