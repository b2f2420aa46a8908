"""Presenter-side state publication, resync and game lifecycle."""

import pytest

from lesson_app.core.messages import GameClose, GameStateUpdate, StudentSelect
from lesson_app.core.models import ConnectionState, GameMode, GameState, QuizQuestion, StudentWithGrade
from lesson_app.core.services.audience_receiver import AudienceReceiver
from lesson_app.core.services.presentation_controller import PresentationController

QUIZ = GameState(
    mode=GameMode.PLAY,
    questions=(
        QuizQuestion("Which gas do plants release?", ("CO2", "O2"), 1),
        QuizQuestion("Energy source?", ("Soil", "Light"), 1),
    ),
)


@pytest.fixture
def controller(bus, scheduler, slides, students, rng, probe):
    controller = PresentationController(bus, scheduler, slides, students, rng=rng)
    probe.clear()
    yield controller
    controller.dispose()


def last_snapshot(probe):
    return probe.of_type("STATE_UPDATE")[-1].to_snapshot()


class TestNavigation:
    def test_initial_snapshot_is_published(self, bus, scheduler, slides, probe):
        controller = PresentationController(bus, scheduler, slides)

        assert probe.types() == ["STATE_UPDATE"]
        assert last_snapshot(probe) == controller.snapshot

    def test_advance_reveals_bullets_then_moves_on(self, controller, probe):
        controller.advance()
        controller.advance()
        assert (controller.snapshot.current_index, controller.snapshot.visible_bullets) == (0, 2)

        controller.advance()

        assert (controller.snapshot.current_index, controller.snapshot.visible_bullets) == (1, 0)
        assert len(probe.of_type("STATE_UPDATE")) == 3
        assert last_snapshot(probe) == controller.snapshot

    def test_advance_at_end_publishes_nothing(self, controller, probe):
        controller.jump_to(2)
        controller.advance()
        probe.clear()

        assert controller.advance() is False
        assert probe.received == []

    def test_retreat_returns_to_fully_revealed_previous_slide(self, controller):
        controller.jump_to(1)

        controller.retreat()

        assert controller.snapshot.current_index == 0
        assert controller.snapshot.visible_bullets == 2

    def test_retreat_at_start_is_noop(self, controller, probe):
        assert controller.retreat() is False
        assert probe.received == []

    def test_jump_out_of_range_raises(self, controller):
        with pytest.raises(IndexError):
            controller.jump_to(3)
        with pytest.raises(IndexError):
            controller.jump_to(-1)

    def test_slide_change_clears_banner_but_bullet_reveal_does_not(self, controller, probe):
        controller.advance()
        assert probe.of_type("STUDENT_CLEAR") == []

        controller.jump_to(2)

        assert probe.types()[-2:] == ["STATE_UPDATE", "STUDENT_CLEAR"]

    def test_listeners_see_each_snapshot(self, controller):
        seen = []
        controller.subscribe(seen.append)

        controller.advance()

        assert seen == [controller.snapshot]

    def test_empty_presentation_is_rejected(self, bus, scheduler):
        with pytest.raises(ValueError):
            PresentationController(bus, scheduler, [])


class TestResync:
    def test_late_audience_converges_to_presenter_state(self, bus, scheduler, controller):
        controller.advance()
        controller.jump_to(2)
        controller.advance()

        receiver = AudienceReceiver(bus, scheduler)
        receiver.mount()

        assert receiver.view.snapshot == controller.snapshot
        assert not receiver.view.waiting

    def test_state_request_also_resends_open_game(self, bus, scheduler, controller):
        controller.open_game(QUIZ)
        controller.update_game(is_answer_revealed=True)

        receiver = AudienceReceiver(bus, scheduler)
        receiver.mount()

        assert receiver.view.game == controller.game
        assert receiver.view.in_game

    def test_remount_after_missed_updates(self, bus, scheduler, controller):
        receiver = AudienceReceiver(bus, scheduler)
        receiver.mount()
        receiver.unmount()
        controller.jump_to(1)

        receiver.mount()

        assert receiver.view.snapshot.current_index == 1


class TestGameLifecycle:
    def test_open_publishes_game_state(self, controller, probe):
        controller.open_game(QUIZ)

        assert probe.received == [GameStateUpdate.from_game(QUIZ)]

    def test_close_publishes_exactly_once(self, controller, probe):
        controller.open_game(QUIZ)
        controller.close_game()
        controller.close_game()

        assert probe.types().count("GAME_CLOSE") == 1
        assert controller.game is None

    def test_close_without_game_publishes_nothing(self, controller, probe):
        controller.close_game()
        assert probe.received == []

    def test_reopening_closes_previous_game_first(self, controller, probe):
        controller.open_game(QUIZ)
        controller.open_game(GameState(mode=GameMode.LOADING))

        assert probe.types() == ["GAME_STATE_UPDATE", "GAME_CLOSE", "GAME_STATE_UPDATE"]

    def test_dispose_closes_open_game(self, bus, scheduler, slides, probe):
        controller = PresentationController(bus, scheduler, slides)
        controller.open_game(QUIZ)

        controller.dispose()

        assert probe.received[-1] == GameClose()

    def test_dispose_without_game_sends_no_close(self, bus, scheduler, slides, probe):
        controller = PresentationController(bus, scheduler, slides)
        controller.dispose()

        assert probe.of_type("GAME_CLOSE") == []

    def test_update_applies_partial_change(self, controller, probe):
        controller.open_game(QUIZ)

        updated = controller.update_game(current_question_index=1)

        assert updated.current_question_index == 1
        assert updated.questions == QUIZ.questions
        assert probe.received[-1].to_game() == updated

    def test_update_without_game_raises(self, controller):
        with pytest.raises(RuntimeError):
            controller.update_game(is_answer_revealed=True)


class TestColdCall:
    def test_select_publishes_name_and_marks_on_call(self, controller, probe, scheduler):
        expected = controller.next_student()

        selection = controller.select_student(2.0)

        assert selection == expected
        assert probe.received == [StudentSelect(student_name=selection.name)]
        assert controller.on_call == selection.name
        scheduler.advance(2.0)
        assert controller.on_call is None

    def test_reselect_cancels_earlier_timer(self, controller, scheduler):
        controller.select_student(5.0)
        scheduler.advance(3.0)
        second = controller.select_student(5.0)

        scheduler.advance(3.0)
        assert controller.on_call == second.name
        scheduler.advance(2.0)
        assert controller.on_call is None

    def test_on_call_listeners(self, controller, scheduler):
        changes = []
        controller.subscribe_on_call(changes.append)

        selection = controller.select_student()
        scheduler.advance(10.0)

        assert changes == [selection.name, None]

    def test_select_cycles_through_graded_students(self, controller):
        names = {controller.select_student().name for _ in range(3)}
        assert names == {"Ada", "Grace", "Linus"}

    def test_skip_moves_past_student_without_announcing(self, controller, probe):
        first = controller.next_student()

        controller.skip_student()

        assert controller.next_student() != first
        assert probe.received == []

    def test_no_graded_students(self, bus, scheduler, slides, probe):
        controller = PresentationController(bus, scheduler, slides, [StudentWithGrade("Ungraded")])
        probe.clear()

        assert controller.select_student() is None
        assert probe.received == []

    def test_slide_change_clears_on_call_and_reshuffles(self, controller):
        controller.select_student(30.0)
        controller.select_student(30.0)

        controller.jump_to(1)

        assert controller.on_call is None
        assert controller.rotation.cursor == 0

    def test_mark_student_asked(self, controller):
        assert not controller.is_student_asked("Grace")

        controller.mark_student_asked("Grace")

        assert controller.is_student_asked("Grace")
        assert controller.rotation.cursor == 0

    def test_selected_student_counts_as_asked(self, controller):
        selection = controller.select_student()
        assert controller.is_student_asked(selection.name)


class TestReadingAssignments:
    def test_current_reader_follows_revealed_bullet(self, controller):
        assert controller.current_reader is None

        controller.advance()

        assert controller.current_reader == controller.reading_assignments[(0, 1)]

    def test_all_students_share_reading_slots(self, controller):
        assert set(controller.reading_assignments.values()) <= {"Ada", "Grace", "Linus", "Margaret"}
        assert len(controller.reading_assignments) == 4


class TestTeardown:
    def test_dispose_releases_channel_and_timers(self, bus, scheduler, slides):
        controller = PresentationController(bus, scheduler, slides)
        controller.select_student()

        controller.dispose()
        controller.dispose()

        assert bus.open_handle_count("lesson-presentation") == 0
        assert scheduler.pending_count() == 0
        assert controller.disposed

    def test_close_audience_command(self, controller, probe):
        controller.close_audience()
        assert probe.types() == ["CLOSE_AUDIENCE"]

    def test_heartbeats_connect_mounted_audience(self, bus, scheduler, controller):
        AudienceReceiver(bus, scheduler).mount()

        scheduler.advance(3.0)

        assert controller.is_connected

    def test_connection_state_starts_disconnected(self, controller):
        assert controller.connection_state is ConnectionState.DISCONNECTED

