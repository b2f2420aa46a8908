"""Settings dialog for configuring presenter preferences."""

from __future__ import annotations

from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QDialog,
    QDoubleSpinBox,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QSpinBox,
    QVBoxLayout,
)

_ANY_DISPLAY = "First secondary display"


class SettingsDialog(QDialog):
    """Dialog for configuring presenter and audience-placement settings."""

    def __init__(
        self,
        parent=None,
        ui_font_size: int = 10,
        allow_placement: bool = False,
        open_in_browser: bool = False,
        display_labels: list[str] | None = None,
        preferred_display: str | None = None,
        on_call_seconds: float = 3.0,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle("Settings")
        self.setModal(True)
        self.setMinimumWidth(420)

        self._ui_font_size = ui_font_size
        self._allow_placement = allow_placement
        self._open_in_browser = open_in_browser
        self._display_labels = list(display_labels or [])
        self._preferred_display = preferred_display
        self._on_call_seconds = on_call_seconds

        self._build_ui()

    def _build_ui(self) -> None:
        layout = QVBoxLayout()
        self.setLayout(layout)

        font_group = QGroupBox("Presenter")
        font_layout = QVBoxLayout()
        font_group.setLayout(font_layout)

        ui_font_row = QHBoxLayout()
        ui_font_label = QLabel("UI Font Size (buttons, notes):")
        self.ui_font_spinbox = QSpinBox()
        self.ui_font_spinbox.setRange(8, 24)
        self.ui_font_spinbox.setValue(self._ui_font_size)
        self.ui_font_spinbox.setSuffix(" pt")
        ui_font_row.addWidget(ui_font_label)
        ui_font_row.addStretch()
        ui_font_row.addWidget(self.ui_font_spinbox)
        font_layout.addLayout(ui_font_row)

        on_call_row = QHBoxLayout()
        on_call_label = QLabel("Highlight called-on student for:")
        on_call_label.setToolTip("How long the presenter view marks a student as on call.")
        self.on_call_spinbox = QDoubleSpinBox()
        self.on_call_spinbox.setRange(0.5, 60.0)
        self.on_call_spinbox.setSingleStep(0.5)
        self.on_call_spinbox.setValue(self._on_call_seconds)
        self.on_call_spinbox.setSuffix(" s")
        on_call_row.addWidget(on_call_label)
        on_call_row.addStretch()
        on_call_row.addWidget(self.on_call_spinbox)
        font_layout.addLayout(on_call_row)

        layout.addWidget(font_group)

        display_group = QGroupBox("Audience Window")
        display_layout = QVBoxLayout()
        display_group.setLayout(display_layout)

        self.placement_checkbox = QCheckBox("Allow automatic placement on a second display")
        self.placement_checkbox.setToolTip(
            "When enabled, the audience window opens directly on the projector or external monitor."
        )
        self.placement_checkbox.setChecked(self._allow_placement)
        display_layout.addWidget(self.placement_checkbox)

        display_row = QHBoxLayout()
        display_label = QLabel("Preferred display:")
        self.display_combo = QComboBox()
        self.display_combo.addItem(_ANY_DISPLAY)
        self.display_combo.addItems(self._display_labels)
        if self._preferred_display in self._display_labels:
            self.display_combo.setCurrentText(self._preferred_display)
        display_row.addWidget(display_label)
        display_row.addStretch()
        display_row.addWidget(self.display_combo)
        display_layout.addLayout(display_row)

        self.browser_checkbox = QCheckBox("Open the audience view in the system browser")
        self.browser_checkbox.setToolTip(
            "Use the web relay instead of a Qt window, e.g. when the projector is driven by another machine."
        )
        self.browser_checkbox.setChecked(self._open_in_browser)
        display_layout.addWidget(self.browser_checkbox)

        layout.addWidget(display_group)

        button_row = QHBoxLayout()
        button_row.addStretch()

        self.cancel_button = QPushButton("Cancel")
        self.cancel_button.clicked.connect(self.reject)  # type: ignore[arg-type]
        button_row.addWidget(self.cancel_button)

        self.apply_button = QPushButton("Apply")
        self.apply_button.clicked.connect(self.accept)  # type: ignore[arg-type]
        self.apply_button.setDefault(True)
        button_row.addWidget(self.apply_button)

        layout.addLayout(button_row)

    def get_ui_font_size(self) -> int:
        """Get the selected UI font size."""
        return self.ui_font_spinbox.value()

    def get_on_call_seconds(self) -> float:
        return self.on_call_spinbox.value()

    def get_allow_placement(self) -> bool:
        """Get whether auto-placement on a second display is allowed."""
        return self.placement_checkbox.isChecked()

    def get_preferred_display(self) -> str | None:
        text = self.display_combo.currentText()
        return None if text == _ANY_DISPLAY else text

    def get_open_in_browser(self) -> bool:
        return self.browser_checkbox.isChecked()
