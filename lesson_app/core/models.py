"""Domain models shared by the presenter and audience sides."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True, slots=True)
class Slide:
    """Read-only lesson slide; bullets are revealed progressively."""

    id: str
    title: str
    content: tuple[str, ...] = ()
    speaker_notes: str = ""
    image_url: str | None = None
    layout: str | None = None
    has_question_flag: bool = False

    @property
    def bullet_count(self) -> int:
        return len(self.content)


@dataclass(frozen=True, slots=True)
class PresentationSnapshot:
    """Complete presenter state, sufficient to render the audience view."""

    current_index: int
    visible_bullets: int
    slides: tuple[Slide, ...]

    @property
    def current_slide(self) -> Slide | None:
        if 0 <= self.current_index < len(self.slides):
            return self.slides[self.current_index]
        return None


class GameMode(str, Enum):
    """Phase of a mini-game as seen by the audience."""

    LOADING = "loading"
    PLAY = "play"
    SUMMARY = "summary"


@dataclass(frozen=True, slots=True)
class QuizQuestion:
    """Multiple-choice question shown during a mini-game."""

    question: str
    options: tuple[str, ...]
    correct_option_index: int
    explanation: str = ""


@dataclass(frozen=True, slots=True)
class GameState:
    """Mirrored game state; produced by the presenter, never by the audience."""

    mode: GameMode = GameMode.LOADING
    questions: tuple[QuizQuestion, ...] = ()
    current_question_index: int = 0
    is_answer_revealed: bool = False
    game_type: str = "quick-quiz"

    @property
    def current_question(self) -> QuizQuestion | None:
        if 0 <= self.current_question_index < len(self.questions):
            return self.questions[self.current_question_index]
        return None


class ConnectionState(str, Enum):
    """Derived audience liveness as observed by the presenter."""

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


class PermissionState(str, Enum):
    """Window-placement permission as reported by the display host."""

    UNAVAILABLE = "unavailable"
    PROMPT = "prompt"
    GRANTED = "granted"
    DENIED = "denied"


@dataclass(frozen=True, slots=True)
class ScreenInfo:
    """Raw description of one connected display reported by the host."""

    avail_left: int
    avail_top: int
    avail_width: int
    avail_height: int
    is_primary: bool
    label: str = ""


@dataclass(frozen=True, slots=True)
class ScreenTarget:
    """Usable area of a secondary display, cached while permission is granted."""

    left: int
    top: int
    width: int
    height: int
    label: str


@dataclass(frozen=True, slots=True)
class StudentWithGrade:
    """Roster entry; students without a grade are left out of targeted questioning."""

    name: str
    grade: str | None = None


class BannerPhase(str, Enum):
    SHOWING = "showing"
    EXITING = "exiting"


@dataclass(frozen=True, slots=True)
class NameBanner:
    """Transient cold-call banner on the audience window."""

    name: str
    phase: BannerPhase = BannerPhase.SHOWING


@dataclass(frozen=True, slots=True)
class AudienceView:
    """Everything the audience window needs to render one frame."""

    snapshot: PresentationSnapshot | None = None
    game: GameState | None = None
    banner: NameBanner | None = None

    @property
    def waiting(self) -> bool:
        return self.snapshot is None or self.snapshot.current_slide is None

    @property
    def in_game(self) -> bool:
        return self.game is not None


@dataclass(frozen=True, slots=True)
class StudentSelection:
    """Result of picking the next student for a targeted question."""

    name: str
    grade: str


@dataclass(slots=True)
class LaunchOutcome:
    """Result of opening the audience window."""

    blocked: bool
    url: str
    target: ScreenTarget | None = None

    @property
    def opened(self) -> bool:
        return not self.blocked
