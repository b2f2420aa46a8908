"""Shared fixtures: a virtual clock, an in-process bus and a fake display host."""

from __future__ import annotations

import random
from typing import Callable, Sequence

import pytest

from lesson_app.core.broadcast_bus import BroadcastBus, ChannelHandle
from lesson_app.core.messages import Message
from lesson_app.core.models import (
    PermissionState,
    ScreenInfo,
    ScreenTarget,
    Slide,
    StudentWithGrade,
)
from lesson_app.core.scheduler import ManualScheduler
from lesson_app.core.services.display_placement import DisplayHost, DisplayHostError
from lesson_app.core.sync_settings import DEFAULT_SETTINGS


class Probe:
    """Extra participant on the channel that records what it hears."""

    def __init__(self, bus: BroadcastBus, channel_name: str = DEFAULT_SETTINGS.channel_name) -> None:
        self.bus = bus
        self.handle: ChannelHandle = bus.open(channel_name)
        self.received: list[Message] = []
        bus.subscribe(self.handle, self.received.append)

    def publish(self, message: Message) -> None:
        self.bus.publish(self.handle, message)

    def of_type(self, message_type: str) -> list[Message]:
        return [message for message in self.received if message.type == message_type]

    def types(self) -> list[str]:
        return [message.type for message in self.received]

    def clear(self) -> None:
        self.received.clear()


class FakeWindow:
    def __init__(self, closed: bool = False) -> None:
        self.closed = closed
        self.position: tuple[int, int] | None = None
        self.size: tuple[int, int] | None = None

    def move_to(self, left: int, top: int) -> None:
        self.position = (left, top)

    def resize_to(self, width: int, height: int) -> None:
        self.size = (width, height)


class FakeDisplayHost(DisplayHost):
    """Scriptable host that counts every query made against it."""

    def __init__(
        self,
        screens: Sequence[ScreenInfo] = (),
        permission: PermissionState = PermissionState.GRANTED,
        supports_placement: bool = True,
    ) -> None:
        self.screens = list(screens)
        self.permission = permission
        self.request_result = PermissionState.GRANTED
        self._supports = supports_placement
        self.fail_query = False
        self.fail_screens = False
        self.window: FakeWindow | None = FakeWindow()
        self.opened: list[tuple[str, ScreenTarget | None]] = []
        self.query_calls = 0
        self.screen_calls = 0
        self.permission_callbacks: list[Callable[[PermissionState], None]] = []
        self.screen_callbacks: list[Callable[[], None]] = []

    @property
    def supports_placement(self) -> bool:
        return self._supports

    def is_extended(self) -> bool:
        return len(self.screens) > 1

    def query_permission(self) -> PermissionState:
        self.query_calls += 1
        if self.fail_query:
            raise DisplayHostError("permission query timed out")
        return self.permission

    def request_permission(self) -> PermissionState:
        self.permission = self.request_result
        return self.permission

    def get_screens(self) -> Sequence[ScreenInfo]:
        self.screen_calls += 1
        if self.fail_screens:
            raise DisplayHostError("screen details revoked")
        return list(self.screens)

    def open_window(self, url: str, target: ScreenTarget | None) -> FakeWindow | None:
        self.opened.append((url, target))
        return self.window

    def on_permission_change(self, callback: Callable[[PermissionState], None]) -> Callable[[], None]:
        self.permission_callbacks.append(callback)
        return lambda: self.permission_callbacks.remove(callback)

    def on_screens_change(self, callback: Callable[[], None]) -> Callable[[], None]:
        self.screen_callbacks.append(callback)
        return lambda: self.screen_callbacks.remove(callback)

    def emit_permission(self, state: PermissionState) -> None:
        self.permission = state
        for callback in list(self.permission_callbacks):
            callback(state)

    def emit_screens_changed(self) -> None:
        for callback in list(self.screen_callbacks):
            callback()


PRIMARY = ScreenInfo(avail_left=0, avail_top=0, avail_width=1920, avail_height=1040, is_primary=True, label="Built-in")
PROJECTOR = ScreenInfo(avail_left=1920, avail_top=0, avail_width=1280, avail_height=720, is_primary=False, label="HDMI-1")


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def bus() -> BroadcastBus:
    return BroadcastBus()


@pytest.fixture
def probe(bus: BroadcastBus) -> Probe:
    return Probe(bus)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def slides() -> list[Slide]:
    return [
        Slide(
            id="intro",
            title="Intro",
            content=("First **point**", "Second point"),
            speaker_notes="STUDENT READS: the title 👉 first 👉 second",
        ),
        Slide(id="quote", title="Quote"),
        Slide(id="wrap", title="Wrap up", content=("Summary",), speaker_notes="Recap 👉 summary"),
    ]


@pytest.fixture
def students() -> list[StudentWithGrade]:
    return [
        StudentWithGrade("Ada", "A"),
        StudentWithGrade("Grace", "B"),
        StudentWithGrade("Linus", "C"),
        StudentWithGrade("Margaret"),
    ]


@pytest.fixture
def display_host() -> FakeDisplayHost:
    return FakeDisplayHost(screens=[PRIMARY, PROJECTOR])
