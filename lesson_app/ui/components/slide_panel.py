"""Component showing the current slide, its notes and the navigation controls."""

from __future__ import annotations

from PySide6.QtWebEngineWidgets import QWebEngineView
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QPlainTextEdit,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from lesson_app.constants.ui_constants import BUTTON_NEXT, BUTTON_PREVIOUS
from lesson_app.core.models import PresentationSnapshot
from lesson_app.core.services.presentation_controller import PresentationController
from lesson_app.core.slide_renderer import renderer
from lesson_app.styling.styles import Styles


class SlidePanel(QWidget):
    """Presenter-side preview of what the audience currently sees."""

    def __init__(self, controller: PresentationController, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.controller = controller
        self._build_ui()
        self.controller.subscribe(self.refresh)
        self.refresh(self.controller.snapshot)

    def _build_ui(self) -> None:
        layout = QVBoxLayout()
        self.setLayout(layout)

        header_row = QHBoxLayout()
        self.position_label = QLabel("", self)
        self.position_label.setStyleSheet(Styles.get_large_label_style())
        header_row.addWidget(self.position_label)
        header_row.addStretch()
        self.reader_label = QLabel("", self)
        header_row.addWidget(self.reader_label)
        layout.addLayout(header_row)

        self.preview_view = QWebEngineView(self)
        layout.addWidget(self.preview_view, stretch=3)

        self.notes_view = QPlainTextEdit(self)
        self.notes_view.setReadOnly(True)
        self.notes_view.setPlaceholderText("No speaker notes for this slide.")
        layout.addWidget(self.notes_view, stretch=1)

        nav_row = QHBoxLayout()
        self.previous_button = QPushButton(BUTTON_PREVIOUS, self)
        self.previous_button.clicked.connect(self.controller.retreat)
        nav_row.addWidget(self.previous_button)
        nav_row.addStretch()
        self.next_button = QPushButton(BUTTON_NEXT, self)
        self.next_button.clicked.connect(self.controller.advance)
        nav_row.addWidget(self.next_button)
        layout.addLayout(nav_row)

    def refresh(self, snapshot: PresentationSnapshot) -> None:
        slide = snapshot.current_slide
        if slide is None:
            return
        total = len(snapshot.slides)
        self.position_label.setText(
            f"Slide {snapshot.current_index + 1} of {total} · "
            f"{snapshot.visible_bullets}/{slide.bullet_count} bullets"
        )
        self.preview_view.setHtml(renderer.wrap_with_mathjax(renderer.render_slide(snapshot)))
        self.notes_view.setPlainText(slide.speaker_notes)

        reader = self.controller.current_reader
        self.reader_label.setText(f"Reader: {reader}" if reader else "")

        at_start = snapshot.current_index == 0 and snapshot.visible_bullets == 0
        at_end = snapshot.current_index == total - 1 and snapshot.visible_bullets >= slide.bullet_count
        self.previous_button.setEnabled(not at_start)
        self.next_button.setEnabled(not at_end)

    def apply_font_size(self, size: int) -> None:
        style = f"font-size: {size}pt;"
        for widget in (self.notes_view, self.previous_button, self.next_button, self.reader_label):
            widget.setStyleSheet(style)
