"""Component for targeted questioning of graded students."""

from __future__ import annotations

from PySide6.QtWidgets import (
    QComboBox,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from lesson_app.constants.ui_constants import (
    BUTTON_MARK_ASKED,
    BUTTON_SELECT_STUDENT,
    BUTTON_SKIP_STUDENT,
    NO_GRADED_STUDENTS,
    ROTATION_PROGRESS_TEMPLATE,
)
from lesson_app.core.services.presentation_controller import PresentationController
from lesson_app.styling.styles import Styles


class ColdCallPanel(QGroupBox):
    """Shows who is next in the rotation and announces them on request."""

    def __init__(self, controller: PresentationController, parent: QWidget | None = None) -> None:
        super().__init__("Targeted Questioning", parent)
        self.controller = controller
        self._on_call_seconds: float | None = None
        self._build_ui()
        self.controller.subscribe(lambda _snapshot: self.refresh())
        self.controller.subscribe_on_call(self._show_on_call)
        self.refresh()

    def _build_ui(self) -> None:
        layout = QVBoxLayout()
        self.setLayout(layout)

        button_row = QHBoxLayout()
        self.select_button = QPushButton("", self)
        self.select_button.setStyleSheet(Styles.get_primary_button_style())
        self.select_button.clicked.connect(self._handle_select)
        button_row.addWidget(self.select_button, stretch=1)

        self.skip_button = QPushButton(BUTTON_SKIP_STUDENT, self)
        self.skip_button.clicked.connect(self._handle_skip)
        button_row.addWidget(self.skip_button)
        layout.addLayout(button_row)

        asked_row = QHBoxLayout()
        self.student_combo = QComboBox(self)
        asked_row.addWidget(self.student_combo, stretch=1)
        self.mark_asked_button = QPushButton(BUTTON_MARK_ASKED, self)
        self.mark_asked_button.clicked.connect(self._handle_mark_asked)
        asked_row.addWidget(self.mark_asked_button)
        layout.addLayout(asked_row)

        self.progress_label = QLabel("", self)
        layout.addWidget(self.progress_label)

        self.on_call_label = QLabel("", self)
        self.on_call_label.setStyleSheet(Styles.get_on_call_style())
        layout.addWidget(self.on_call_label)

    def set_on_call_seconds(self, seconds: float) -> None:
        self._on_call_seconds = seconds

    def refresh(self) -> None:
        selection = self.controller.next_student()
        rotation = self.controller.rotation
        self._refresh_roster(rotation.shuffled_roster)
        if selection is None:
            self.select_button.setText(NO_GRADED_STUDENTS)
            self.select_button.setEnabled(False)
            self.skip_button.setEnabled(False)
            self.progress_label.setText("")
            return
        asked = sum(1 for name in rotation.shuffled_roster if self.controller.is_student_asked(name))
        self.select_button.setText(BUTTON_SELECT_STUDENT.format(name=selection.name))
        self.select_button.setToolTip(f"Grade: {selection.grade}")
        self.select_button.setEnabled(True)
        self.skip_button.setEnabled(True)
        self.progress_label.setText(
            ROTATION_PROGRESS_TEMPLATE.format(asked=asked, total=rotation.total)
        )

    def _handle_select(self) -> None:
        self.controller.select_student(self._on_call_seconds)
        self.refresh()

    def _handle_skip(self) -> None:
        self.controller.skip_student()
        self.refresh()

    def _handle_mark_asked(self) -> None:
        name = self.student_combo.currentData()
        if name:
            self.controller.mark_student_asked(name)
            self.refresh()

    def _refresh_roster(self, names: tuple[str, ...]) -> None:
        current = self.student_combo.currentData()
        self.student_combo.blockSignals(True)
        self.student_combo.clear()
        for name in sorted(names):
            label = f"{name} (asked)" if self.controller.is_student_asked(name) else name
            self.student_combo.addItem(label, name)
        index = self.student_combo.findData(current)
        if index >= 0:
            self.student_combo.setCurrentIndex(index)
        self.student_combo.blockSignals(False)
        self.mark_asked_button.setEnabled(bool(names))

    def _show_on_call(self, name: str | None) -> None:
        self.on_call_label.setText(f"On call: {name}" if name else "")
