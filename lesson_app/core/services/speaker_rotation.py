"""Fair rotation of which student is "on call".

Two flavours share the same shuffle:

* reading slots: every read-aloud point in the lesson gets a name up front;
* targeted questioning: a cursor walks a shuffled list of graded students and
  reshuffles when everyone has been asked.

All functions are pure apart from the ``random.Random`` they are given, so a
seeded generator makes every result reproducible.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import random
import re
from typing import Sequence, TypeVar

from lesson_app.core.models import Slide, StudentSelection, StudentWithGrade

T = TypeVar("T")

SEGMENT_MARKER = "👉"
_STUDENT_READS = re.compile(r"STUDENT\s*READS?:?", re.IGNORECASE)


def fisher_yates(items: Sequence[T], rng: random.Random) -> list[T]:
    """Return a uniformly shuffled copy of ``items``."""
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


def assign_reading_slots(
    roster: Sequence[str],
    slot_count: int,
    rng: random.Random | None = None,
) -> list[str]:
    """Assign a name to each of ``slot_count`` slots.

    Each pass over the roster is a fresh shuffle, so nobody repeats until
    everyone has read. When a pass would start with the name that ended the
    previous one, its first and last entries are swapped.
    """
    if slot_count < 0:
        raise ValueError("Slot count must not be negative.")
    names = [name for name in roster if name]
    if not names or slot_count == 0:
        return []
    rng = rng or random.Random()

    sequence: list[str] = []
    while len(sequence) < slot_count:
        round_ = fisher_yates(names, rng)
        if sequence and len(names) > 1 and round_[0] == sequence[-1]:
            round_[0], round_[-1] = round_[-1], round_[0]
        sequence.extend(round_)
    return sequence[:slot_count]


def reading_slots(slides: Sequence[Slide]) -> list[tuple[int, int]]:
    """Return the ``(slide_index, segment_index)`` read-aloud points of a lesson.

    Speaker notes are split on the segment marker; segment 0 is the intro and
    only counts when it explicitly asks a student to read. Every bullet adds a
    slot for its segment (1-based) as well.
    """
    slots: set[tuple[int, int]] = set()
    for slide_index, slide in enumerate(slides):
        segments = (slide.speaker_notes or "").split(SEGMENT_MARKER)
        for segment_index, segment in enumerate(segments):
            if segment_index > 0 or _STUDENT_READS.search(segment):
                slots.add((slide_index, segment_index))
        for bullet_number in range(1, slide.bullet_count + 1):
            slots.add((slide_index, bullet_number))
    return sorted(slots)


def assign_readers(
    slides: Sequence[Slide],
    roster: Sequence[str],
    rng: random.Random | None = None,
) -> dict[tuple[int, int], str]:
    """Map every read-aloud point of the lesson to a student name."""
    slots = reading_slots(slides)
    names = assign_reading_slots(roster, len(slots), rng)
    return dict(zip(slots, names))


@dataclass(frozen=True, slots=True)
class RotationState:
    """Cursor over a shuffled list of graded students."""

    shuffled_roster: tuple[str, ...] = ()
    cursor: int = 0
    asked: frozenset[str] = field(default_factory=frozenset)

    @property
    def total(self) -> int:
        return len(self.shuffled_roster)

    @property
    def is_empty(self) -> bool:
        return not self.shuffled_roster


def _graded_names(students: Sequence[StudentWithGrade]) -> list[str]:
    return [student.name for student in students if student.grade is not None]


def initialize_rotation(
    students: Sequence[StudentWithGrade],
    rng: random.Random | None = None,
) -> RotationState:
    names = _graded_names(students)
    if not names:
        return RotationState()
    return RotationState(shuffled_roster=tuple(fisher_yates(names, rng or random.Random())))


def next_student(
    state: RotationState,
    students: Sequence[StudentWithGrade],
) -> StudentSelection | None:
    """Peek at the student the cursor points to, or ``None`` if there is none."""
    if state.is_empty or state.cursor >= state.total:
        return None
    name = state.shuffled_roster[state.cursor]
    student = next((s for s in students if s.name == name), None)
    if student is None or student.grade is None:
        return None
    return StudentSelection(name=name, grade=student.grade)


def advance_rotation(
    state: RotationState,
    students: Sequence[StudentWithGrade],
    rng: random.Random | None = None,
) -> RotationState:
    """Move past the current student; reshuffle once everyone has been asked."""
    if state.is_empty:
        return state
    new_cursor = state.cursor + 1
    if new_cursor >= state.total:
        return initialize_rotation(students, rng)
    return replace(
        state,
        cursor=new_cursor,
        asked=state.asked | {state.shuffled_roster[state.cursor]},
    )


def mark_asked(state: RotationState, name: str) -> RotationState:
    """Record a voluntary answer without moving the cursor."""
    if name in state.asked:
        return state
    return replace(state, asked=state.asked | {name})


def is_asked(state: RotationState, name: str) -> bool:
    if name in state.asked:
        return True
    try:
        return state.shuffled_roster.index(name) < state.cursor
    except ValueError:
        return False
