"""Qt main window driving the lesson and the audience window."""

from __future__ import annotations

import logging
from typing import Sequence

from PySide6.QtCore import Qt
from PySide6.QtGui import QCloseEvent, QKeyEvent
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from lesson_app.constants.about import (
    APP_ABOUT_TEXT,
    APP_LICENSE,
    APP_NAME,
    APP_VERSION,
    HELP_TEXT,
)
from lesson_app.constants.sync_constants import ON_CALL_DISPLAY_SECONDS
from lesson_app.constants.ui_constants import (
    BUTTON_CLOSE_AUDIENCE,
    BUTTON_ENABLE_PLACEMENT,
    BUTTON_PERMISSION_HELP,
    PRESENTER_WINDOW_TITLE,
    STATUS_CONNECTED,
    STATUS_DISCONNECTED,
)
from lesson_app.core.models import ConnectionState, PermissionState, QuizQuestion, ScreenTarget
from lesson_app.core.services.display_placement import DisplayPlacementService
from lesson_app.core.services.presentation_controller import PresentationController
from lesson_app.styling.styles import Styles
from lesson_app.ui.components.cold_call_panel import ColdCallPanel
from lesson_app.ui.components.game_panel import GamePanel
from lesson_app.ui.components.slide_panel import SlidePanel
from lesson_app.ui.dialog_helpers import (
    show_info,
    show_permission_recovery,
    show_popup_blocked,
)
from lesson_app.ui.qt_display_host import QtDisplayHost
from lesson_app.ui.settings_dialog import SettingsDialog

logger = logging.getLogger(__name__)


class PresenterWindow(QMainWindow):
    """Main Qt window: slide navigation, cold calling, quiz and audience launch."""

    def __init__(
        self,
        controller: PresentationController,
        placement: DisplayPlacementService,
        display_host: QtDisplayHost,
        audience_url: str,
        questions: Sequence[QuizQuestion] = (),
        lesson_title: str = "",
    ) -> None:
        super().__init__()
        self.setWindowTitle(f"{PRESENTER_WINDOW_TITLE} - {lesson_title}" if lesson_title else PRESENTER_WINDOW_TITLE)

        self.controller = controller
        self.placement = placement
        self.display_host = display_host
        self.audience_url = audience_url

        self._ui_font_size: int = 10
        self._on_call_seconds: float = ON_CALL_DISPLAY_SECONDS

        self._build_ui(questions)
        self._apply_styles()

        self.controller.subscribe_connection(self._handle_connection_change)
        self.placement.subscribe(self._handle_placement_change)
        self._refresh_launch_controls()

    def _build_ui(self, questions: Sequence[QuizQuestion]) -> None:
        central_widget = QWidget(self)
        self.setCentralWidget(central_widget)

        root_layout = QVBoxLayout()
        central_widget.setLayout(root_layout)

        self._build_toolbar(root_layout)

        body_row = QHBoxLayout()
        self.slide_panel = SlidePanel(self.controller, self)
        body_row.addWidget(self.slide_panel, stretch=3)

        side_column = QVBoxLayout()
        self.cold_call_panel = ColdCallPanel(self.controller, self)
        side_column.addWidget(self.cold_call_panel)
        side_column.addStretch()
        body_row.addLayout(side_column, stretch=1)
        root_layout.addLayout(body_row, stretch=1)

        self.game_panel = GamePanel(self.controller, questions, self)
        root_layout.addWidget(self.game_panel)

    def _build_toolbar(self, layout: QVBoxLayout) -> None:
        button_row = QHBoxLayout()

        self.launch_button = QPushButton("", self)
        self.launch_button.clicked.connect(self._handle_launch)
        button_row.addWidget(self.launch_button)

        self.enable_placement_button = QPushButton(BUTTON_ENABLE_PLACEMENT, self)
        self.enable_placement_button.clicked.connect(self._handle_enable_placement)
        button_row.addWidget(self.enable_placement_button)

        self.permission_help_button = QPushButton(BUTTON_PERMISSION_HELP, self)
        self.permission_help_button.clicked.connect(self._handle_permission_help)
        button_row.addWidget(self.permission_help_button)

        self.close_audience_button = QPushButton(BUTTON_CLOSE_AUDIENCE, self)
        self.close_audience_button.clicked.connect(self.controller.close_audience)
        button_row.addWidget(self.close_audience_button)

        self.status_label = QLabel(STATUS_DISCONNECTED, self)
        button_row.addWidget(self.status_label)
        button_row.addStretch()

        self.about_button = QPushButton(f"About {APP_NAME}", self)
        self.about_button.clicked.connect(self._handle_about)
        button_row.addWidget(self.about_button)

        self.help_button = QPushButton("Help", self)
        self.help_button.clicked.connect(self._handle_help)
        button_row.addWidget(self.help_button)

        self.settings_button = QPushButton("Settings", self)
        self.settings_button.clicked.connect(self._handle_settings)
        button_row.addWidget(self.settings_button)

        layout.addLayout(button_row)

    # --- Audience window ---

    def _handle_launch(self) -> None:
        outcome = self.placement.launch(self.audience_url)
        if outcome.blocked:
            show_popup_blocked(self, outcome.url)

    def _handle_enable_placement(self) -> None:
        if not self.placement.request_permission():
            show_permission_recovery(self, self.placement.guidance())

    def _handle_permission_help(self) -> None:
        show_permission_recovery(self, self.placement.guidance())

    def _handle_connection_change(self, _state: ConnectionState) -> None:
        self._refresh_launch_controls()

    def _handle_placement_change(self, _state: PermissionState, _target: ScreenTarget | None) -> None:
        self._refresh_launch_controls()

    def _refresh_launch_controls(self) -> None:
        connected = self.controller.is_connected
        permission = self.placement.permission_state
        self.launch_button.setText(self.placement.launch_label(connected))
        self.launch_button.setEnabled(not connected)
        self.close_audience_button.setEnabled(connected)
        self.enable_placement_button.setVisible(permission is PermissionState.PROMPT)
        self.permission_help_button.setVisible(permission is PermissionState.DENIED)
        self.status_label.setText(STATUS_CONNECTED if connected else STATUS_DISCONNECTED)
        self.status_label.setStyleSheet(Styles.get_status_style(connected))

    # --- Keyboard navigation ---

    def keyPressEvent(self, event: QKeyEvent) -> None:
        key = event.key()
        if key in (Qt.Key_Right, Qt.Key_PageDown, Qt.Key_Space):
            self.controller.advance()
        elif key in (Qt.Key_Left, Qt.Key_PageUp):
            self.controller.retreat()
        else:
            super().keyPressEvent(event)

    # --- Dialogs ---

    def _handle_about(self) -> None:
        details = (
            f"{APP_NAME} v{APP_VERSION}\n"
            f"License: {APP_LICENSE}\n\n"
            f"{APP_ABOUT_TEXT}\n\n"
            f"Audience URL: {self.audience_url}"
        )
        show_info(self, f"About {APP_NAME}", details)

    def _handle_help(self) -> None:
        show_info(self, f"{APP_NAME} Help", HELP_TEXT)

    def _handle_settings(self) -> None:
        permission = self.placement.permission_state
        dialog = SettingsDialog(
            self,
            self._ui_font_size,
            permission is PermissionState.GRANTED,
            self.display_host.open_in_browser,
            self.placement.cached_labels,
            self.placement.preferred_label,
            self._on_call_seconds,
        )
        if dialog.exec():
            self._ui_font_size = dialog.get_ui_font_size()
            self._on_call_seconds = dialog.get_on_call_seconds()
            self.cold_call_panel.set_on_call_seconds(self._on_call_seconds)
            self.display_host.open_in_browser = dialog.get_open_in_browser()
            if permission is not PermissionState.UNAVAILABLE:
                self.display_host.set_permission(dialog.get_allow_placement())
            self.placement.preferred_label = dialog.get_preferred_display()
            self._apply_styles()
            self._refresh_launch_controls()

    def _apply_styles(self) -> None:
        self.setStyleSheet(Styles.get_main_window_style())

        ui_style = f"font-size: {self._ui_font_size}pt;"
        buttons = [
            self.enable_placement_button,
            self.permission_help_button,
            self.close_audience_button,
            self.about_button,
            self.help_button,
            self.settings_button,
        ]
        for button in buttons:
            button.setStyleSheet(ui_style)
        self.launch_button.setStyleSheet(Styles.get_primary_button_style() + ui_style)
        self.slide_panel.apply_font_size(self._ui_font_size)

    def closeEvent(self, event: QCloseEvent) -> None:
        logger.info("Presenter closing; releasing audience channel")
        self.controller.close_audience()
        self.controller.dispose()
        self.placement.dispose()
        super().closeEvent(event)
