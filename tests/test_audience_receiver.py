"""Audience-side mirroring, banner timing and heartbeat echo."""

import logging

import pytest

from lesson_app.core.messages import (
    CloseAudience,
    GameClose,
    GameStateUpdate,
    Heartbeat,
    HeartbeatAck,
    StateRequest,
    StateUpdate,
    StudentClear,
    StudentSelect,
)
from lesson_app.core.models import BannerPhase, GameMode, GameState, PresentationSnapshot
from lesson_app.core.services.audience_receiver import AudienceReceiver


@pytest.fixture
def receiver(bus, scheduler):
    receiver = AudienceReceiver(bus, scheduler)
    receiver.mount()
    return receiver


@pytest.fixture
def snapshot(slides):
    return PresentationSnapshot(current_index=0, visible_bullets=1, slides=tuple(slides))


class TestMount:
    def test_mount_requests_state_and_waits(self, bus, scheduler, probe):
        receiver = AudienceReceiver(bus, scheduler)
        receiver.mount()

        assert probe.received == [StateRequest()]
        assert receiver.view.waiting
        assert receiver.is_mounted

    def test_state_update_replaces_snapshot(self, receiver, probe, snapshot):
        probe.publish(StateUpdate.from_snapshot(snapshot))

        assert receiver.view.snapshot == snapshot
        assert not receiver.view.waiting

    def test_out_of_range_index_keeps_waiting_screen(self, receiver, probe, slides):
        probe.publish(
            StateUpdate.from_snapshot(
                PresentationSnapshot(current_index=9, visible_bullets=0, slides=tuple(slides))
            )
        )

        assert receiver.view.waiting

    def test_malformed_raw_input_is_dropped(self, receiver, snapshot, probe, caplog):
        probe.publish(StateUpdate.from_snapshot(snapshot))

        with caplog.at_level(logging.WARNING):
            receiver.handle_message({"type": "STATE_UPDATE", "currentIndex": "two"})

        assert receiver.view.snapshot == snapshot

    def test_raw_wire_dicts_are_accepted(self, receiver, snapshot):
        receiver.handle_message(StateUpdate.from_snapshot(snapshot).to_wire())
        assert receiver.view.snapshot == snapshot

    def test_unmounted_receiver_ignores_messages(self, receiver, snapshot):
        receiver.unmount()

        receiver.handle_message(StateUpdate.from_snapshot(snapshot))

        assert receiver.view.snapshot is None
        assert not receiver.is_mounted

    def test_listeners_notified_only_on_change(self, receiver, probe, snapshot):
        views = []
        receiver.subscribe(views.append)

        probe.publish(StateUpdate.from_snapshot(snapshot))
        probe.publish(StateUpdate.from_snapshot(snapshot))

        assert len(views) == 1


class TestGameMirroring:
    def test_game_overlay_follows_updates_and_close(self, receiver, probe):
        game = GameState(mode=GameMode.SUMMARY)

        probe.publish(GameStateUpdate.from_game(game))
        assert receiver.view.game == game

        probe.publish(GameClose())
        assert receiver.view.game is None
        assert not receiver.view.in_game


class TestBanner:
    def test_banner_shows_then_exits_then_hides(self, receiver, probe, scheduler):
        probe.publish(StudentSelect(student_name="Ada"))
        assert receiver.view.banner.name == "Ada"
        assert receiver.view.banner.phase is BannerPhase.SHOWING

        scheduler.advance(3.0)
        assert receiver.view.banner.phase is BannerPhase.EXITING

        scheduler.advance(0.5)
        assert receiver.view.banner is None

    def test_new_selection_restarts_timer(self, receiver, probe, scheduler):
        probe.publish(StudentSelect(student_name="Ada"))
        scheduler.advance(2.0)
        probe.publish(StudentSelect(student_name="Grace"))

        scheduler.advance(2.0)

        assert receiver.view.banner.name == "Grace"
        assert receiver.view.banner.phase is BannerPhase.SHOWING

    def test_clear_hides_immediately(self, receiver, probe, scheduler):
        probe.publish(StudentSelect(student_name="Ada"))

        probe.publish(StudentClear())

        assert receiver.view.banner is None
        assert scheduler.pending_count() == 0


class TestControlMessages:
    def test_heartbeat_is_echoed_with_same_timestamp(self, receiver, probe):
        probe.publish(Heartbeat(timestamp=42))

        assert probe.received[-1] == HeartbeatAck(timestamp=42)

    def test_close_command_closes_window_and_releases_channel(self, bus, scheduler, probe):
        closed = []
        receiver = AudienceReceiver(bus, scheduler, on_close=lambda: closed.append(True))
        receiver.mount()

        probe.publish(CloseAudience())

        assert closed == [True]
        assert not receiver.is_mounted
        assert bus.open_handle_count("lesson-presentation") == 1
