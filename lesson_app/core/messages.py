"""Wire protocol exchanged between the presenter and audience windows.

Every message is a frozen pydantic model tagged by ``type``. Python code uses
snake_case attributes; the wire format uses the camelCase aliases that the
browser audience page reads.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from lesson_app.core.models import (
    GameMode,
    GameState,
    PresentationSnapshot,
    QuizQuestion,
    Slide,
)

logger = logging.getLogger(__name__)


class _WireModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> dict[str, Any]:
        """Plain JSON-compatible dict using the camelCase wire names."""
        return self.model_dump(mode="json", by_alias=True)


class SlidePayload(_WireModel):
    id: str
    title: str
    content: list[str] = Field(default_factory=list)
    speaker_notes: str = ""
    image_url: str | None = None
    layout: str | None = None
    has_question_flag: bool = False

    @classmethod
    def from_slide(cls, slide: Slide) -> "SlidePayload":
        return cls(
            id=slide.id,
            title=slide.title,
            content=list(slide.content),
            speaker_notes=slide.speaker_notes,
            image_url=slide.image_url,
            layout=slide.layout,
            has_question_flag=slide.has_question_flag,
        )

    def to_slide(self) -> Slide:
        return Slide(
            id=self.id,
            title=self.title,
            content=tuple(self.content),
            speaker_notes=self.speaker_notes,
            image_url=self.image_url,
            layout=self.layout,
            has_question_flag=self.has_question_flag,
        )


class QuestionPayload(_WireModel):
    question: str
    options: list[str]
    correct_option_index: int
    explanation: str = ""


class StateRequest(_WireModel):
    type: Literal["STATE_REQUEST"] = "STATE_REQUEST"


class StateUpdate(_WireModel):
    type: Literal["STATE_UPDATE"] = "STATE_UPDATE"
    current_index: int = Field(ge=0)
    visible_bullets: int = Field(ge=0)
    slides: list[SlidePayload]

    @classmethod
    def from_snapshot(cls, snapshot: PresentationSnapshot) -> "StateUpdate":
        return cls(
            current_index=snapshot.current_index,
            visible_bullets=snapshot.visible_bullets,
            slides=[SlidePayload.from_slide(slide) for slide in snapshot.slides],
        )

    def to_snapshot(self) -> PresentationSnapshot:
        return PresentationSnapshot(
            current_index=self.current_index,
            visible_bullets=self.visible_bullets,
            slides=tuple(payload.to_slide() for payload in self.slides),
        )


class GameStateUpdate(_WireModel):
    type: Literal["GAME_STATE_UPDATE"] = "GAME_STATE_UPDATE"
    mode: GameMode
    questions: list[QuestionPayload] = Field(default_factory=list)
    current_question_index: int = Field(default=0, ge=0)
    is_answer_revealed: bool = False
    game_type: str = "quick-quiz"

    @classmethod
    def from_game(cls, game: GameState) -> "GameStateUpdate":
        return cls(
            mode=game.mode,
            questions=[
                QuestionPayload(
                    question=q.question,
                    options=list(q.options),
                    correct_option_index=q.correct_option_index,
                    explanation=q.explanation,
                )
                for q in game.questions
            ],
            current_question_index=game.current_question_index,
            is_answer_revealed=game.is_answer_revealed,
            game_type=game.game_type,
        )

    def to_game(self) -> GameState:
        return GameState(
            mode=self.mode,
            questions=tuple(
                QuizQuestion(
                    question=q.question,
                    options=tuple(q.options),
                    correct_option_index=q.correct_option_index,
                    explanation=q.explanation,
                )
                for q in self.questions
            ),
            current_question_index=self.current_question_index,
            is_answer_revealed=self.is_answer_revealed,
            game_type=self.game_type,
        )


class GameClose(_WireModel):
    type: Literal["GAME_CLOSE"] = "GAME_CLOSE"


class StudentSelect(_WireModel):
    type: Literal["STUDENT_SELECT"] = "STUDENT_SELECT"
    student_name: str = Field(min_length=1)


class StudentClear(_WireModel):
    type: Literal["STUDENT_CLEAR"] = "STUDENT_CLEAR"


class CloseAudience(_WireModel):
    type: Literal["CLOSE_AUDIENCE"] = "CLOSE_AUDIENCE"


class Heartbeat(_WireModel):
    type: Literal["HEARTBEAT"] = "HEARTBEAT"
    timestamp: float


class HeartbeatAck(_WireModel):
    type: Literal["HEARTBEAT_ACK"] = "HEARTBEAT_ACK"
    timestamp: float


Message = Annotated[
    Union[
        StateRequest,
        StateUpdate,
        GameStateUpdate,
        GameClose,
        StudentSelect,
        StudentClear,
        CloseAudience,
        Heartbeat,
        HeartbeatAck,
    ],
    Field(discriminator="type"),
]

MESSAGE_TYPES: tuple[type[_WireModel], ...] = (
    StateRequest,
    StateUpdate,
    GameStateUpdate,
    GameClose,
    StudentSelect,
    StudentClear,
    CloseAudience,
    Heartbeat,
    HeartbeatAck,
)

_MESSAGE_ADAPTER: TypeAdapter[Message] = TypeAdapter(Message)


def is_message(value: object) -> bool:
    return isinstance(value, MESSAGE_TYPES)


def parse_message(raw: object) -> Message | None:
    """Validate an untrusted payload; return ``None`` for anything malformed.

    Anything on the channel name can publish, including stray tabs, so the tag
    and payload shape are checked before a message reaches a handler.
    """
    if is_message(raw):
        return raw  # type: ignore[return-value]
    try:
        if isinstance(raw, (str, bytes, bytearray)):
            return _MESSAGE_ADAPTER.validate_json(raw)
        return _MESSAGE_ADAPTER.validate_python(raw)
    except ValidationError as exc:
        logger.warning("Dropping malformed message: %s", exc.errors(include_url=False))
        return None
