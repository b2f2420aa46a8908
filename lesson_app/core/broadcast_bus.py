"""Process-wide named broadcast channels between presenter and audience.

Semantics follow a browser ``BroadcastChannel``: a message published on one
handle reaches every *other* open handle with the same channel name, at most
once, and is silently dropped when nobody listens. There is no buffering,
acknowledgment or retry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import itertools
import logging
from threading import Lock
from typing import Callable
from uuid import uuid4

from lesson_app.core.messages import Message, is_message

logger = logging.getLogger(__name__)

MessageCallback = Callable[[Message], None]
Dispatcher = Callable[[Callable[[], None]], object]


def _dispatch_immediately(callback: Callable[[], None]) -> None:
    callback()


@dataclass(eq=False)
class ChannelHandle:
    """One participant's open connection to a named channel."""

    channel_name: str
    handle_id: str = field(default_factory=lambda: uuid4().hex)
    closed: bool = False
    _subscribers: dict[int, MessageCallback] = field(default_factory=dict, repr=False)


class BroadcastBus:
    """Registry of open channel handles.

    Delivery is handed to ``dispatcher`` so the UI can run callbacks on its own
    event loop; the default calls subscribers synchronously.
    """

    def __init__(self, dispatcher: Dispatcher | None = None) -> None:
        self._dispatch = dispatcher or _dispatch_immediately
        self._channels: dict[str, list[ChannelHandle]] = {}
        self._lock = Lock()
        self._subscription_ids = itertools.count(1)

    def open(self, channel_name: str) -> ChannelHandle:
        if not channel_name:
            raise ValueError("Channel name must not be empty.")
        handle = ChannelHandle(channel_name=channel_name)
        with self._lock:
            self._channels.setdefault(channel_name, []).append(handle)
        logger.debug("Opened handle %s on channel %r", handle.handle_id, channel_name)
        return handle

    def publish(self, handle: ChannelHandle, message: Message) -> None:
        if not is_message(message):
            raise TypeError(f"Expected a protocol message, got {type(message).__name__}.")
        if handle.closed:
            logger.warning("Publish on closed handle %s ignored", handle.handle_id)
            return
        with self._lock:
            peers = [
                peer
                for peer in self._channels.get(handle.channel_name, [])
                if peer is not handle and not peer.closed
            ]
            deliveries = [
                (peer, callback)
                for peer in peers
                for callback in list(peer._subscribers.values())
            ]
        for peer, callback in deliveries:
            self._dispatch(self._make_delivery(peer, callback, message))

    def subscribe(self, handle: ChannelHandle, callback: MessageCallback) -> Callable[[], None]:
        if handle.closed:
            logger.warning("Subscribe on closed handle %s ignored", handle.handle_id)
            return lambda: None
        subscription_id = next(self._subscription_ids)
        with self._lock:
            handle._subscribers[subscription_id] = callback

        def unsubscribe() -> None:
            with self._lock:
                handle._subscribers.pop(subscription_id, None)

        return unsubscribe

    def close(self, handle: ChannelHandle) -> None:
        with self._lock:
            if handle.closed:
                return
            handle.closed = True
            handle._subscribers.clear()
            peers = self._channels.get(handle.channel_name, [])
            if handle in peers:
                peers.remove(handle)
            if not peers:
                self._channels.pop(handle.channel_name, None)
        logger.debug("Closed handle %s on channel %r", handle.handle_id, handle.channel_name)

    def open_handle_count(self, channel_name: str) -> int:
        with self._lock:
            return len(self._channels.get(channel_name, []))

    @staticmethod
    def _make_delivery(
        peer: ChannelHandle, callback: MessageCallback, message: Message
    ) -> Callable[[], None]:
        def deliver() -> None:
            # The peer may have closed between publish and dispatch.
            if not peer.closed:
                callback(message)

        return deliver

