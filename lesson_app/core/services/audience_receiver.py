"""Audience-side mirror of the presenter's broadcast state."""

from __future__ import annotations

from dataclasses import replace
import logging
from typing import Callable

from lesson_app.core.broadcast_bus import BroadcastBus, ChannelHandle
from lesson_app.core.messages import (
    CloseAudience,
    GameClose,
    GameStateUpdate,
    Heartbeat,
    HeartbeatAck,
    Message,
    StateRequest,
    StateUpdate,
    StudentClear,
    StudentSelect,
    parse_message,
)
from lesson_app.core.models import AudienceView, BannerPhase, NameBanner
from lesson_app.core.scheduler import Scheduler, TaskHandle
from lesson_app.core.sync_settings import DEFAULT_SETTINGS, SyncSettings

logger = logging.getLogger(__name__)

ViewListener = Callable[[AudienceView], None]


class AudienceReceiver:
    """Renders strictly the latest message per stream.

    Holds no authoritative state; everything comes from the presenter. On mount
    it asks for a full resync and shows the waiting screen until one arrives.
    """

    def __init__(
        self,
        bus: BroadcastBus,
        scheduler: Scheduler,
        *,
        settings: SyncSettings = DEFAULT_SETTINGS,
        on_close: Callable[[], None] | None = None,
    ) -> None:
        self._bus = bus
        self._scheduler = scheduler
        self._settings = settings
        self._on_close = on_close
        self._view = AudienceView()
        self._listeners: list[ViewListener] = []
        self._handle: ChannelHandle | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._banner_timer: TaskHandle | None = None

    @property
    def view(self) -> AudienceView:
        return self._view

    @property
    def is_mounted(self) -> bool:
        return self._handle is not None

    def subscribe(self, listener: ViewListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def mount(self) -> None:
        if self._handle is not None:
            return
        self._handle = self._bus.open(self._settings.channel_name)
        self._unsubscribe = self._bus.subscribe(self._handle, self.handle_message)
        self._set_view(AudienceView())
        self._bus.publish(self._handle, StateRequest())
        logger.info("Audience mounted; requested presenter state")

    def unmount(self) -> None:
        if self._handle is None:
            return
        self._cancel_banner_timer()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._bus.close(self._handle)
        self._handle = None
        logger.info("Audience unmounted")

    def handle_message(self, raw: object) -> None:
        """Apply one incoming message; malformed input is dropped."""
        message = parse_message(raw)
        if message is None or self._handle is None:
            return

        if isinstance(message, StateUpdate):
            self._set_view(replace(self._view, snapshot=message.to_snapshot()))
        elif isinstance(message, GameStateUpdate):
            self._set_view(replace(self._view, game=message.to_game()))
        elif isinstance(message, GameClose):
            self._set_view(replace(self._view, game=None))
        elif isinstance(message, StudentSelect):
            self._show_banner(message.student_name)
        elif isinstance(message, StudentClear):
            self._cancel_banner_timer()
            self._set_view(replace(self._view, banner=None))
        elif isinstance(message, Heartbeat):
            self._bus.publish(self._handle, HeartbeatAck(timestamp=message.timestamp))
        elif isinstance(message, CloseAudience):
            logger.info("Presenter closed the audience window")
            if self._on_close is not None:
                self._on_close()
            self.unmount()

    # --- Banner timing ---

    def _show_banner(self, name: str) -> None:
        self._cancel_banner_timer()
        self._set_view(replace(self._view, banner=NameBanner(name=name)))
        self._banner_timer = self._scheduler.call_later(
            self._settings.banner_display_seconds, self._begin_banner_exit
        )

    def _begin_banner_exit(self) -> None:
        banner = self._view.banner
        if banner is None:
            return
        self._set_view(replace(self._view, banner=replace(banner, phase=BannerPhase.EXITING)))
        self._banner_timer = self._scheduler.call_later(
            self._settings.banner_exit_seconds, self._hide_banner
        )

    def _hide_banner(self) -> None:
        self._banner_timer = None
        self._set_view(replace(self._view, banner=None))

    def _cancel_banner_timer(self) -> None:
        if self._banner_timer is not None:
            self._banner_timer.cancel()
            self._banner_timer = None

    def _set_view(self, view: AudienceView) -> None:
        if view == self._view:
            return
        self._view = view
        for listener in list(self._listeners):
            listener(view)
