"""``DisplayHost`` implementation on top of ``QGuiApplication`` screens."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable, Sequence
import webbrowser

from PySide6.QtGui import QGuiApplication

from lesson_app.core.models import PermissionState, ScreenInfo, ScreenTarget
from lesson_app.core.services.display_placement import DisplayHost, DisplayHostError, WindowHandle

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _BrowserWindow:
    """Handle for an audience page opened in the system browser."""

    closed: bool = False

    def move_to(self, left: int, top: int) -> None:
        pass

    def resize_to(self, width: int, height: int) -> None:
        pass


class QtDisplayHost(DisplayHost):
    """Reports Qt screens; placement permission is a presenter preference.

    ``window_factory`` builds the in-process audience window. With
    ``open_in_browser`` set, the relay URL goes to the system browser instead,
    which may refuse to open it.
    """

    def __init__(
        self,
        window_factory: Callable[[], WindowHandle],
        ask_permission: Callable[[], bool],
        allow_placement: bool | None = None,
    ) -> None:
        self._window_factory = window_factory
        self._ask_permission = ask_permission
        if allow_placement is None:
            self._permission = PermissionState.PROMPT
        else:
            self._permission = PermissionState.GRANTED if allow_placement else PermissionState.DENIED
        self.open_in_browser = False
        self._permission_callbacks: list[Callable[[PermissionState], None]] = []

    @property
    def supports_placement(self) -> bool:
        return QGuiApplication.instance() is not None

    def is_extended(self) -> bool:
        return len(QGuiApplication.screens()) > 1

    def query_permission(self) -> PermissionState:
        return self._permission

    def request_permission(self) -> PermissionState:
        allowed = self._ask_permission()
        self._permission = PermissionState.GRANTED if allowed else PermissionState.DENIED
        return self._permission

    def set_permission(self, allowed: bool) -> None:
        """Change the preference from settings; listeners see it as a host event."""
        state = PermissionState.GRANTED if allowed else PermissionState.DENIED
        if state is self._permission:
            return
        self._permission = state
        for callback in list(self._permission_callbacks):
            callback(state)

    def get_screens(self) -> Sequence[ScreenInfo]:
        primary = QGuiApplication.primaryScreen()
        if primary is None:
            raise DisplayHostError("No screens reported by Qt.")
        screens = []
        for screen in QGuiApplication.screens():
            geometry = screen.availableGeometry()
            screens.append(
                ScreenInfo(
                    avail_left=geometry.x(),
                    avail_top=geometry.y(),
                    avail_width=geometry.width(),
                    avail_height=geometry.height(),
                    is_primary=screen == primary,
                    label=screen.name() or screen.model(),
                )
            )
        return screens

    def open_window(self, url: str, target: ScreenTarget | None) -> WindowHandle | None:
        if self.open_in_browser:
            logger.info("Opening audience page in the system browser: %s", url)
            if not webbrowser.open(url, new=1):
                return None
            return _BrowserWindow()

        window = self._window_factory()
        window.show()  # type: ignore[attr-defined]
        return window

    def on_permission_change(self, callback: Callable[[PermissionState], None]) -> Callable[[], None]:
        self._permission_callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._permission_callbacks:
                self._permission_callbacks.remove(callback)

        return unsubscribe

    def on_screens_change(self, callback: Callable[[], None]) -> Callable[[], None]:
        app = QGuiApplication.instance()

        def forward(*_args: object) -> None:
            callback()

        app.screenAdded.connect(forward)
        app.screenRemoved.connect(forward)
        app.primaryScreenChanged.connect(forward)

        def unsubscribe() -> None:
            app.screenAdded.disconnect(forward)
            app.screenRemoved.disconnect(forward)
            app.primaryScreenChanged.disconnect(forward)

        return unsubscribe
