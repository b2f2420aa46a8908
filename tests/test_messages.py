"""Validation of the presenter/audience wire protocol."""

import json
import logging

from lesson_app.core.messages import (
    GameStateUpdate,
    Heartbeat,
    StateRequest,
    StateUpdate,
    StudentSelect,
    is_message,
    parse_message,
)
from lesson_app.core.models import GameMode, GameState, PresentationSnapshot, QuizQuestion


class TestParseMessage:
    def test_parses_camel_case_dict(self):
        message = parse_message({"type": "STUDENT_SELECT", "studentName": "Ada"})

        assert isinstance(message, StudentSelect)
        assert message.student_name == "Ada"

    def test_parses_json_text(self):
        raw = json.dumps({"type": "HEARTBEAT", "timestamp": 1700000000000})

        message = parse_message(raw)

        assert isinstance(message, Heartbeat)
        assert message.timestamp == 1700000000000

    def test_message_instances_pass_through(self):
        request = StateRequest()
        assert parse_message(request) is request

    def test_unknown_tag_is_dropped_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="lesson_app.core.messages"):
            assert parse_message({"type": "SELF_DESTRUCT"}) is None
        assert "Dropping malformed message" in caplog.text

    def test_missing_payload_is_dropped(self):
        assert parse_message({"type": "STUDENT_SELECT"}) is None
        assert parse_message({"type": "STUDENT_SELECT", "studentName": ""}) is None
        assert parse_message({"type": "STATE_UPDATE", "currentIndex": -1, "visibleBullets": 0, "slides": []}) is None

    def test_invalid_json_is_dropped(self):
        assert parse_message("{not json") is None

    def test_unknown_extra_fields_are_ignored(self):
        message = parse_message({"type": "HEARTBEAT_ACK", "timestamp": 5, "tabId": "x"})
        assert message is not None
        assert message.type == "HEARTBEAT_ACK"


class TestWireFormat:
    def test_wire_uses_camel_case_names(self):
        assert StudentSelect(student_name="Ada").to_wire() == {
            "type": "STUDENT_SELECT",
            "studentName": "Ada",
        }

    def test_state_update_carries_full_snapshot(self, slides):
        snapshot = PresentationSnapshot(current_index=2, visible_bullets=1, slides=tuple(slides))

        wire = StateUpdate.from_snapshot(snapshot).to_wire()

        assert wire["currentIndex"] == 2
        assert wire["visibleBullets"] == 1
        assert wire["slides"][0]["speakerNotes"] == slides[0].speaker_notes
        assert parse_message(wire).to_snapshot() == snapshot

    def test_game_update_serializes_mode_as_text(self):
        game = GameState(
            mode=GameMode.PLAY,
            questions=(QuizQuestion("2 + 2?", ("3", "4"), 1),),
            is_answer_revealed=True,
        )

        wire = GameStateUpdate.from_game(game).to_wire()

        assert wire["mode"] == "play"
        assert wire["isAnswerRevealed"] is True
        assert wire["questions"][0]["correctOptionIndex"] == 1
        assert parse_message(wire).to_game() == game

    def test_is_message(self):
        assert is_message(StateRequest())
        assert not is_message({"type": "STATE_REQUEST"})
