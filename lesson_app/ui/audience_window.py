"""Qt audience window shown on the projector."""

from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtGui import QCloseEvent
from PySide6.QtWebEngineWidgets import QWebEngineView
from PySide6.QtWidgets import QVBoxLayout, QWidget

from lesson_app.constants.ui_constants import (
    AUDIENCE_WINDOW_TITLE,
    DEFAULT_AUDIENCE_HEIGHT,
    DEFAULT_AUDIENCE_WIDTH,
)
from lesson_app.core.broadcast_bus import BroadcastBus
from lesson_app.core.models import AudienceView
from lesson_app.core.scheduler import Scheduler
from lesson_app.core.services.audience_receiver import AudienceReceiver
from lesson_app.core.slide_renderer import renderer
from lesson_app.core.sync_settings import DEFAULT_SETTINGS, SyncSettings


class AudienceWindow(QWidget):
    """Mirrors the presenter through an ``AudienceReceiver``.

    Also acts as the window handle returned to the placement service, so it
    exposes ``closed``, ``move_to`` and ``resize_to``.
    """

    def __init__(
        self,
        bus: BroadcastBus,
        scheduler: Scheduler,
        settings: SyncSettings = DEFAULT_SETTINGS,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent, Qt.Window)
        self.setWindowTitle(AUDIENCE_WINDOW_TITLE)
        self.setAttribute(Qt.WA_DeleteOnClose, True)
        self.resize(DEFAULT_AUDIENCE_WIDTH, DEFAULT_AUDIENCE_HEIGHT)
        self._closed = False

        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)
        self.setLayout(layout)
        self.web_view = QWebEngineView(self)
        layout.addWidget(self.web_view)

        self.receiver = AudienceReceiver(bus, scheduler, settings=settings, on_close=self.close)
        self.receiver.subscribe(self._render)
        self._render(self.receiver.view)
        self.receiver.mount()

    @property
    def closed(self) -> bool:
        return self._closed

    def move_to(self, left: int, top: int) -> None:
        self.move(left, top)

    def resize_to(self, width: int, height: int) -> None:
        self.resize(width, height)

    def _render(self, view: AudienceView) -> None:
        self.web_view.setHtml(renderer.render_view(view, title=AUDIENCE_WINDOW_TITLE))

    def keyPressEvent(self, event) -> None:
        if event.key() == Qt.Key_F11:
            if self.isFullScreen():
                self.showNormal()
            else:
                self.showFullScreen()
            return
        super().keyPressEvent(event)

    def closeEvent(self, event: QCloseEvent) -> None:
        self.receiver.unmount()
        self._closed = True
        super().closeEvent(event)
