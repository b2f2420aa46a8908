"""Placement of the audience window on a secondary display.

The service talks to a ``DisplayHost``: the Qt host in the desktop app, a fake
in tests. Geometry is fetched ahead of time (on initialise, on a permission
grant, on screen changes and on polls) so that ``launch`` can run
synchronously inside the user's click without asking the host anything.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import logging
from typing import Callable, Protocol, Sequence

from lesson_app.constants.sync_constants import DEFAULT_DISPLAY_LABEL
from lesson_app.constants.ui_constants import (
    LAUNCH_LABEL_CONNECTED,
    LAUNCH_LABEL_DEFAULT,
    LAUNCH_LABEL_EXTERNAL,
    LAUNCH_LABEL_LOADING,
    PERMISSION_PROMPT_MESSAGE,
    PERMISSION_RECOVERY_STEPS,
)
from lesson_app.core.models import LaunchOutcome, PermissionState, ScreenInfo, ScreenTarget
from lesson_app.core.scheduler import PeriodicTask, Scheduler

logger = logging.getLogger(__name__)

StateListener = Callable[[PermissionState, "ScreenTarget | None"], None]


class DisplayHostError(RuntimeError):
    """Raised by a host when a query or permission request fails."""


class WindowHandle(Protocol):
    """Window returned by ``DisplayHost.open_window``."""

    @property
    def closed(self) -> bool:
        ...

    def move_to(self, left: int, top: int) -> None:
        ...

    def resize_to(self, width: int, height: int) -> None:
        ...


class DisplayHost(ABC):
    """Capability object describing the machine's displays."""

    @property
    @abstractmethod
    def supports_placement(self) -> bool:
        """Whether the host can report multiple screens at all."""

    @abstractmethod
    def is_extended(self) -> bool:
        """Whether more than one screen is connected."""

    @abstractmethod
    def query_permission(self) -> PermissionState:
        ...

    @abstractmethod
    def request_permission(self) -> PermissionState:
        ...

    @abstractmethod
    def get_screens(self) -> Sequence[ScreenInfo]:
        ...

    @abstractmethod
    def open_window(self, url: str, target: ScreenTarget | None) -> WindowHandle | None:
        """Open the audience window; ``None`` means the host refused."""

    @abstractmethod
    def on_permission_change(self, callback: Callable[[PermissionState], None]) -> Callable[[], None]:
        ...

    @abstractmethod
    def on_screens_change(self, callback: Callable[[], None]) -> Callable[[], None]:
        ...


class DisplayPlacementService:
    """Permission state machine plus a cache of the secondary display geometry."""

    def __init__(self, host: DisplayHost | None, preferred_label: str | None = None) -> None:
        self._host = host
        self._preferred_label = preferred_label
        self._permission = PermissionState.UNAVAILABLE
        self._cache: dict[str, ScreenTarget] = {}
        self._target: ScreenTarget | None = None
        self._initialized = False
        self._host_unsubscribes: list[Callable[[], None]] = []
        self._listeners: list[StateListener] = []
        self._poll_task: PeriodicTask | None = None

    # --- Observable state ---

    @property
    def permission_state(self) -> PermissionState:
        return self._permission

    @property
    def secondary_screen(self) -> ScreenTarget | None:
        return self._target

    @property
    def is_available(self) -> bool:
        return self._permission is not PermissionState.UNAVAILABLE

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def preferred_label(self) -> str | None:
        return self._preferred_label

    @preferred_label.setter
    def preferred_label(self, label: str | None) -> None:
        self._preferred_label = label
        self._select_target()

    @property
    def cached_labels(self) -> list[str]:
        return list(self._cache)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --- Lifecycle ---

    def initialize(self) -> PermissionState:
        if self._initialized:
            return self._permission
        self._initialized = True

        host = self._host
        if host is None or not host.supports_placement:
            logger.info("Window placement not supported; using default launch")
            self._set_permission(PermissionState.UNAVAILABLE)
            return self._permission

        # Listen even with one screen so a projector plugged in later is noticed.
        self._host_unsubscribes.append(host.on_permission_change(self.handle_permission_change))
        self._host_unsubscribes.append(host.on_screens_change(self.handle_screens_change))

        if self._safe_is_extended():
            self._check_permission()
        else:
            logger.info("Single display detected; no secondary screen")
            self._set_permission(PermissionState.UNAVAILABLE)
        return self._permission

    def request_permission(self) -> bool:
        """Ask the host for placement permission; must follow a user action."""
        if self._host is None or self._permission is PermissionState.UNAVAILABLE:
            return False
        try:
            state = self._host.request_permission()
        except DisplayHostError as exc:
            logger.warning("Permission request failed: %s", exc)
            state = PermissionState.DENIED

        if state is PermissionState.GRANTED:
            self._set_permission(state)
            self._refresh_cache()
            return self._permission is PermissionState.GRANTED
        self._set_permission(PermissionState.DENIED)
        self._clear_cache()
        return False

    def handle_permission_change(self, state: PermissionState) -> None:
        """Host-driven permission transition, possibly a revocation."""
        if not self._host_unsubscribes or self._permission is PermissionState.UNAVAILABLE:
            return
        if state is PermissionState.GRANTED:
            self._set_permission(state)
            self._refresh_cache()
        else:
            self._clear_cache()
            self._set_permission(state)

    def handle_screens_change(self) -> None:
        """Re-detect the display layout after a screen was added or removed."""
        if not self._host_unsubscribes:
            return
        if not self._safe_is_extended():
            if self._permission is not PermissionState.UNAVAILABLE:
                logger.info("Secondary display disconnected")
            self._clear_cache()
            self._set_permission(PermissionState.UNAVAILABLE)
        elif self._permission is PermissionState.UNAVAILABLE:
            logger.info("Secondary display connected; checking permission")
            self._check_permission()
        elif self._permission is PermissionState.GRANTED:
            self._refresh_cache()

    def poll(self) -> None:
        """Re-check layout, permission and geometry for hosts without change events."""
        if self._host is None or not self._host_unsubscribes:
            return
        if not self._safe_is_extended() or self._permission is PermissionState.UNAVAILABLE:
            self.handle_screens_change()
            return
        try:
            state = self._host.query_permission()
        except DisplayHostError as exc:
            logger.debug("Permission poll failed: %s", exc)
            return
        if state is not self._permission:
            self.handle_permission_change(state)
        elif state is PermissionState.GRANTED:
            self._refresh_cache()

    def start_polling(self, scheduler: Scheduler, interval: float) -> None:
        if self._poll_task is not None:
            return
        self._poll_task = PeriodicTask(scheduler, interval, self.poll)
        self._poll_task.start()

    def stop_polling(self) -> None:
        if self._poll_task is not None:
            self._poll_task.stop()
            self._poll_task = None

    def dispose(self) -> None:
        self.stop_polling()
        for unsubscribe in self._host_unsubscribes:
            unsubscribe()
        self._host_unsubscribes.clear()
        self._listeners.clear()

    # --- Launch ---

    def launch(self, url: str) -> LaunchOutcome:
        """Open the audience window using only cached geometry.

        A host that returns no window, or one that is already closed, means the
        popup was blocked. That is reported separately from a permission
        denial.
        """
        target = self._target
        if self._host is None:
            logger.warning("No display host; audience must be opened manually at %s", url)
            return LaunchOutcome(blocked=True, url=url)

        window = self._host.open_window(url, target)
        if not window or window.closed:
            logger.warning("Audience window was blocked; fallback URL %s", url)
            return LaunchOutcome(blocked=True, url=url)

        if target is not None:
            try:
                window.move_to(target.left, target.top)
                window.resize_to(target.width, target.height)
            except DisplayHostError as exc:
                logger.debug("Could not position audience window: %s", exc)
        logger.info(
            "Launched audience window on %s",
            target.label if target is not None else "the default display",
        )
        return LaunchOutcome(blocked=False, url=url, target=target)

    def launch_label(self, connected: bool) -> str:
        if not self._initialized:
            return LAUNCH_LABEL_LOADING
        if connected:
            return LAUNCH_LABEL_CONNECTED
        if self._target is not None:
            return LAUNCH_LABEL_EXTERNAL.format(label=self._target.label)
        return LAUNCH_LABEL_DEFAULT

    def guidance(self) -> tuple[str, ...]:
        """Remediation text for the current permission state."""
        if self._permission is PermissionState.DENIED:
            return PERMISSION_RECOVERY_STEPS
        if self._permission is PermissionState.PROMPT:
            return (PERMISSION_PROMPT_MESSAGE,)
        return ()

    # --- Internals ---

    def _check_permission(self) -> None:
        try:
            state = self._host.query_permission() if self._host else PermissionState.UNAVAILABLE
        except DisplayHostError as exc:
            logger.warning("Permission query failed (%s); assuming prompt", exc)
            state = PermissionState.PROMPT
        self._set_permission(state)
        if state is PermissionState.GRANTED:
            self._refresh_cache()

    def _safe_is_extended(self) -> bool:
        try:
            return bool(self._host and self._host.is_extended())
        except DisplayHostError as exc:
            logger.warning("Could not detect extended display: %s", exc)
            return False

    def _refresh_cache(self) -> None:
        if self._host is None:
            return
        try:
            screens = list(self._host.get_screens())
        except DisplayHostError as exc:
            logger.warning("Screen details unavailable (%s); treating as revoked", exc)
            self._clear_cache()
            self._set_permission(PermissionState.DENIED)
            return

        self._cache = {}
        for screen in screens:
            if screen.is_primary:
                continue
            label = screen.label or DEFAULT_DISPLAY_LABEL
            self._cache.setdefault(
                label,
                ScreenTarget(
                    left=screen.avail_left,
                    top=screen.avail_top,
                    width=screen.avail_width,
                    height=screen.avail_height,
                    label=label,
                ),
            )
        self._select_target()

    def _select_target(self) -> None:
        previous = self._target
        if self._preferred_label and self._preferred_label in self._cache:
            self._target = self._cache[self._preferred_label]
        else:
            self._target = next(iter(self._cache.values()), None)
        if self._target != previous:
            self._notify()

    def _clear_cache(self) -> None:
        self._cache = {}
        if self._target is not None:
            self._target = None
            self._notify()

    def _set_permission(self, state: PermissionState) -> None:
        if state is self._permission:
            return
        logger.info("Display permission: %s -> %s", self._permission.value, state.value)
        self._permission = state
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._permission, self._target)
