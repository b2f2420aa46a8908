"""Presenter-side owner of the canonical slide and game state."""

from __future__ import annotations

from dataclasses import replace
import logging
import random
from typing import Callable, Sequence

from lesson_app.core.broadcast_bus import BroadcastBus, ChannelHandle
from lesson_app.core.messages import (
    CloseAudience,
    GameClose,
    GameStateUpdate,
    Message,
    StateRequest,
    StateUpdate,
    StudentClear,
    StudentSelect,
)
from lesson_app.core.models import (
    ConnectionState,
    GameState,
    PresentationSnapshot,
    Slide,
    StudentSelection,
    StudentWithGrade,
)
from lesson_app.core.scheduler import Scheduler, TaskHandle
from lesson_app.core.services.connection_monitor import ConnectionListener, ConnectionMonitor
from lesson_app.core.services import speaker_rotation
from lesson_app.core.services.speaker_rotation import RotationState
from lesson_app.core.sync_settings import DEFAULT_SETTINGS, SyncSettings

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[PresentationSnapshot], None]
OnCallListener = Callable[[str | None], None]


class PresentationController:
    """Publishes every presenter mutation to the audience window.

    The snapshot is replaced, never mutated in place, and each change is
    published synchronously as a full ``STATE_UPDATE``. The audience asks for a
    resync with ``STATE_REQUEST`` whenever it (re)mounts.
    """

    def __init__(
        self,
        bus: BroadcastBus,
        scheduler: Scheduler,
        slides: Sequence[Slide],
        students: Sequence[StudentWithGrade] = (),
        *,
        initial_index: int = 0,
        settings: SyncSettings = DEFAULT_SETTINGS,
        rng: random.Random | None = None,
    ) -> None:
        if not slides:
            raise ValueError("A presentation needs at least one slide.")
        if not 0 <= initial_index < len(slides):
            raise IndexError(f"Slide index {initial_index} out of range")

        self._bus = bus
        self._scheduler = scheduler
        self._settings = settings
        self._rng = rng or random.Random()
        self._students: tuple[StudentWithGrade, ...] = tuple(students)

        self._snapshot = PresentationSnapshot(
            current_index=initial_index,
            visible_bullets=0,
            slides=tuple(slides),
        )
        self._game: GameState | None = None
        self._game_was_open = False

        self._rotation = speaker_rotation.initialize_rotation(self._students, self._rng)
        self._reading_assignments = speaker_rotation.assign_readers(
            self._snapshot.slides,
            [student.name for student in self._students],
            self._rng,
        )
        self._on_call: str | None = None
        self._on_call_timer: TaskHandle | None = None

        self._listeners: list[SnapshotListener] = []
        self._on_call_listeners: list[OnCallListener] = []
        self._handle: ChannelHandle = bus.open(settings.channel_name)
        self._unsubscribe = bus.subscribe(self._handle, self._on_message)
        self._monitor = ConnectionMonitor(bus, self._handle, scheduler, settings)
        self._monitor.start()
        self._disposed = False

        self._publish_snapshot()

    # --- Observable state ---

    @property
    def snapshot(self) -> PresentationSnapshot:
        return self._snapshot

    @property
    def current_slide(self) -> Slide:
        return self._snapshot.slides[self._snapshot.current_index]

    @property
    def game(self) -> GameState | None:
        return self._game

    @property
    def connection_state(self) -> ConnectionState:
        return self._monitor.state

    @property
    def is_connected(self) -> bool:
        return self._monitor.is_connected

    @property
    def rotation(self) -> RotationState:
        return self._rotation

    @property
    def on_call(self) -> str | None:
        return self._on_call

    @property
    def reading_assignments(self) -> dict[tuple[int, int], str]:
        return dict(self._reading_assignments)

    @property
    def current_reader(self) -> str | None:
        """Student assigned to read the bullet that was revealed last."""
        if self._snapshot.visible_bullets == 0:
            return None
        key = (self._snapshot.current_index, self._snapshot.visible_bullets)
        return self._reading_assignments.get(key)

    @property
    def disposed(self) -> bool:
        return self._disposed

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def subscribe_on_call(self, listener: OnCallListener) -> Callable[[], None]:
        self._on_call_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._on_call_listeners:
                self._on_call_listeners.remove(listener)

        return unsubscribe

    def subscribe_connection(self, listener: ConnectionListener) -> Callable[[], None]:
        return self._monitor.subscribe(listener)

    # --- Navigation ---

    def advance(self) -> bool:
        """Reveal the next bullet, or move to the next slide once all are shown."""
        snapshot = self._snapshot
        if snapshot.visible_bullets < self.current_slide.bullet_count:
            self._set_snapshot(replace(snapshot, visible_bullets=snapshot.visible_bullets + 1))
            return True
        if snapshot.current_index < len(snapshot.slides) - 1:
            self._set_snapshot(
                replace(snapshot, current_index=snapshot.current_index + 1, visible_bullets=0)
            )
            return True
        return False

    def retreat(self) -> bool:
        """Hide the last bullet, or go back to the fully revealed previous slide."""
        snapshot = self._snapshot
        if snapshot.visible_bullets > 0:
            self._set_snapshot(replace(snapshot, visible_bullets=snapshot.visible_bullets - 1))
            return True
        if snapshot.current_index > 0:
            previous = snapshot.slides[snapshot.current_index - 1]
            self._set_snapshot(
                replace(
                    snapshot,
                    current_index=snapshot.current_index - 1,
                    visible_bullets=previous.bullet_count,
                )
            )
            return True
        return False

    def jump_to(self, index: int) -> None:
        if not 0 <= index < len(self._snapshot.slides):
            raise IndexError(f"Slide index {index} out of range")
        self._set_snapshot(replace(self._snapshot, current_index=index, visible_bullets=0))

    # --- Games ---

    def open_game(self, game: GameState) -> None:
        if self._game is not None:
            self._publish_game_close()
        self._game = game
        self._game_was_open = True
        self._publish(GameStateUpdate.from_game(game))
        logger.info("Opened %s game with %d question(s)", game.game_type, len(game.questions))

    def update_game(self, **changes: object) -> GameState:
        if self._game is None:
            raise RuntimeError("No game is currently open.")
        self._game = replace(self._game, **changes)
        self._publish(GameStateUpdate.from_game(self._game))
        return self._game

    def close_game(self) -> None:
        self._game = None
        self._publish_game_close()

    # --- Cold calling ---

    def next_student(self) -> StudentSelection | None:
        return speaker_rotation.next_student(self._rotation, self._students)

    def select_student(
        self, duration: float | None = None
    ) -> StudentSelection | None:
        """Call on the next student and announce them on the audience window.

        ``duration`` is how long the presenter keeps the student marked as on
        call; the audience banner has its own fixed timing.
        """
        selection = self.next_student()
        if selection is None:
            return None
        self._rotation = speaker_rotation.advance_rotation(self._rotation, self._students, self._rng)
        self._publish(StudentSelect(student_name=selection.name))
        self._set_on_call(selection.name, duration)
        return selection

    def skip_student(self) -> None:
        self._rotation = speaker_rotation.advance_rotation(self._rotation, self._students, self._rng)

    def mark_student_asked(self, name: str) -> None:
        self._rotation = speaker_rotation.mark_asked(self._rotation, name)

    def is_student_asked(self, name: str) -> bool:
        return speaker_rotation.is_asked(self._rotation, name)

    # --- Audience window ---

    def close_audience(self) -> None:
        self._publish(CloseAudience())

    def dispose(self) -> None:
        """Tear down: close any open game, stop heartbeats and release the channel."""
        if self._disposed:
            return
        if self._game is not None:
            self.close_game()
        self._cancel_on_call()
        self._monitor.reset()
        self._unsubscribe()
        self._bus.close(self._handle)
        self._listeners.clear()
        self._on_call_listeners.clear()
        self._disposed = True

    # --- Internals ---

    def _on_message(self, message: Message) -> None:
        if isinstance(message, StateRequest):
            logger.info("Audience requested state; resending snapshot")
            self._publish_snapshot()
            if self._game is not None:
                self._publish(GameStateUpdate.from_game(self._game))

    def _set_snapshot(self, snapshot: PresentationSnapshot) -> None:
        slide_changed = snapshot.current_index != self._snapshot.current_index
        self._snapshot = snapshot
        self._publish_snapshot()
        if slide_changed:
            self._publish(StudentClear())
            self._cancel_on_call()
            self._rotation = speaker_rotation.initialize_rotation(self._students, self._rng)
        for listener in list(self._listeners):
            listener(snapshot)

    def _publish_snapshot(self) -> None:
        self._publish(StateUpdate.from_snapshot(self._snapshot))

    def _publish_game_close(self) -> None:
        if not self._game_was_open:
            return
        self._game_was_open = False
        self._publish(GameClose())
        logger.info("Closed game")

    def _publish(self, message: Message) -> None:
        if self._disposed:
            logger.warning("Ignoring %s after dispose", message.type)
            return
        self._bus.publish(self._handle, message)

    def _set_on_call(self, name: str, duration: float | None) -> None:
        self._cancel_on_call()
        seconds = self._settings.on_call_display_seconds if duration is None else duration
        if seconds > 0:
            self._on_call_timer = self._scheduler.call_later(seconds, self._cancel_on_call)
        self._update_on_call(name)

    def _cancel_on_call(self) -> None:
        if self._on_call_timer is not None:
            self._on_call_timer.cancel()
            self._on_call_timer = None
        self._update_on_call(None)

    def _update_on_call(self, name: str | None) -> None:
        if name == self._on_call:
            return
        self._on_call = name
        for listener in list(self._on_call_listeners):
            listener(name)
