"""Fairness of reading-slot assignment and targeted cold-call cycling."""

from collections import Counter
import random

import pytest

from lesson_app.core.models import Slide, StudentWithGrade
from lesson_app.core.services.speaker_rotation import (
    advance_rotation,
    assign_readers,
    assign_reading_slots,
    fisher_yates,
    initialize_rotation,
    is_asked,
    mark_asked,
    next_student,
    reading_slots,
)


class TestAssignReadingSlots:
    @pytest.mark.parametrize("seed", range(25))
    def test_everyone_reads_equally_and_never_twice_in_a_row(self, seed):
        sequence = assign_reading_slots(["A", "B", "C"], 6, random.Random(seed))

        assert Counter(sequence) == {"A": 2, "B": 2, "C": 2}
        assert all(left != right for left, right in zip(sequence, sequence[1:]))

    def test_partial_pass_keeps_counts_within_one(self, rng):
        sequence = assign_reading_slots(["A", "B", "C", "D"], 10, rng)

        counts = Counter(sequence)
        assert len(sequence) == 10
        assert max(counts.values()) - min(counts.values()) <= 1

    def test_single_student_reads_everything(self, rng):
        assert assign_reading_slots(["Solo"], 3, rng) == ["Solo", "Solo", "Solo"]

    def test_empty_roster_or_no_slots(self, rng):
        assert assign_reading_slots([], 4, rng) == []
        assert assign_reading_slots(["A"], 0, rng) == []

    def test_negative_slot_count_is_rejected(self, rng):
        with pytest.raises(ValueError):
            assign_reading_slots(["A"], -1, rng)

    def test_same_seed_gives_same_sequence(self):
        roster = ["A", "B", "C", "D", "E"]
        assert assign_reading_slots(roster, 12, random.Random(7)) == assign_reading_slots(
            roster, 12, random.Random(7)
        )


def test_fisher_yates_returns_permutation_without_mutating(rng):
    items = [1, 2, 3, 4, 5]

    shuffled = fisher_yates(items, rng)

    assert sorted(shuffled) == items
    assert items == [1, 2, 3, 4, 5]


class TestReadingSlots:
    def test_slots_come_from_notes_and_bullets(self, slides):
        assert reading_slots(slides) == [
            (0, 0),
            (0, 1),
            (0, 2),
            (2, 1),
        ]

    def test_intro_without_reading_cue_is_skipped(self):
        slide = Slide(id="s", title="T", speaker_notes="Say hello 👉 a 👉 b 👉 c")
        assert reading_slots([slide]) == [(0, 1), (0, 2), (0, 3)]

    def test_reading_cue_is_case_insensitive(self):
        slide = Slide(id="s", title="T", speaker_notes="student read: the quote")
        assert reading_slots([slide]) == [(0, 0)]

    def test_assign_readers_covers_every_slot(self, slides, rng):
        readers = assign_readers(slides, ["Ada", "Grace"], rng)

        assert sorted(readers) == reading_slots(slides)
        assert set(readers.values()) <= {"Ada", "Grace"}


class TestTargetedRotation:
    def test_only_graded_students_are_in_rotation(self, students, rng):
        state = initialize_rotation(students, rng)

        assert sorted(state.shuffled_roster) == ["Ada", "Grace", "Linus"]
        assert state.cursor == 0

    def test_next_student_reports_grade(self, students, rng):
        state = initialize_rotation(students, rng)

        selection = next_student(state, students)

        assert selection.name == state.shuffled_roster[0]
        assert selection.grade == {"Ada": "A", "Grace": "B", "Linus": "C"}[selection.name]

    def test_everyone_is_asked_before_reshuffle(self, students, rng):
        state = initialize_rotation(students, rng)
        seen = []
        for _ in range(3):
            seen.append(next_student(state, students).name)
            state = advance_rotation(state, students, rng)

        assert sorted(seen) == ["Ada", "Grace", "Linus"]
        assert state.cursor == 0
        assert state.asked == frozenset()

    def test_advance_records_asked_student(self, students, rng):
        state = initialize_rotation(students, rng)
        first = state.shuffled_roster[0]

        state = advance_rotation(state, students, rng)

        assert is_asked(state, first)
        assert first in state.asked

    def test_mark_asked_does_not_move_cursor(self, students, rng):
        state = initialize_rotation(students, rng)
        volunteer = state.shuffled_roster[-1]

        state = mark_asked(state, volunteer)

        assert state.cursor == 0
        assert is_asked(state, volunteer)
        assert mark_asked(state, volunteer) is state

    def test_no_graded_students(self, rng):
        roster = [StudentWithGrade("Ungraded")]
        state = initialize_rotation(roster, rng)

        assert state.is_empty
        assert next_student(state, roster) is None
        assert advance_rotation(state, roster, rng) is state
        assert not is_asked(state, "Ungraded")
