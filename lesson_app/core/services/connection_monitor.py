"""Heartbeat-based liveness of the audience window, seen from the presenter."""

from __future__ import annotations

import logging
from typing import Callable

from lesson_app.core.broadcast_bus import BroadcastBus, ChannelHandle
from lesson_app.core.messages import Heartbeat, HeartbeatAck, Message
from lesson_app.core.models import ConnectionState
from lesson_app.core.scheduler import PeriodicTask, Scheduler
from lesson_app.core.sync_settings import DEFAULT_SETTINGS, SyncSettings

logger = logging.getLogger(__name__)

ConnectionListener = Callable[[ConnectionState], None]


class ConnectionMonitor:
    """Derives ``ConnectionState`` from the time since the last ``HEARTBEAT_ACK``.

    Shares the presenter's channel handle; heartbeats are multiplexed with the
    state stream by message type.
    """

    def __init__(
        self,
        bus: BroadcastBus,
        handle: ChannelHandle,
        scheduler: Scheduler,
        settings: SyncSettings = DEFAULT_SETTINGS,
    ) -> None:
        self._bus = bus
        self._handle = handle
        self._scheduler = scheduler
        self._timeout = settings.heartbeat_timeout_seconds
        self._task = PeriodicTask(scheduler, settings.heartbeat_interval_seconds, self._tick)
        self._last_ack_at: float | None = None
        self._state = ConnectionState.DISCONNECTED
        self._listeners: list[ConnectionListener] = []
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def is_running(self) -> bool:
        return self._task.is_running

    def start(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self._bus.subscribe(self._handle, self._on_message)
        self._task.start()

    def stop(self) -> None:
        self._task.stop()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def reset(self) -> None:
        """Forget every observed ack, as on presenter teardown."""
        self.stop()
        self._last_ack_at = None
        self._set_state(ConnectionState.DISCONNECTED)

    def subscribe(self, listener: ConnectionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _tick(self) -> None:
        self._bus.publish(self._handle, Heartbeat(timestamp=self._timestamp_ms()))
        self._evaluate()

    def _on_message(self, message: Message) -> None:
        if isinstance(message, HeartbeatAck):
            self._last_ack_at = self._scheduler.now()
            self._evaluate()

    def _evaluate(self) -> None:
        if self._last_ack_at is None:
            self._set_state(ConnectionState.DISCONNECTED)
            return
        silence = self._scheduler.now() - self._last_ack_at
        if silence > self._timeout:
            self._set_state(ConnectionState.DISCONNECTED)
        else:
            self._set_state(ConnectionState.CONNECTED)

    def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        self._state = state
        if state is ConnectionState.CONNECTED:
            logger.info("Audience window connected")
        else:
            logger.warning("Audience window connection lost")
        for listener in list(self._listeners):
            listener(state)

    def _timestamp_ms(self) -> int:
        return int(self._scheduler.now() * 1000)
