"""Loading of lesson files for the desktop entry point.

A lesson file is JSON using the same camelCase field names as the wire
protocol::

    {
      "title": "Photosynthesis",
      "slides": [
        {"id": "s1", "title": "Intro", "content": ["Light", "Water"],
         "speakerNotes": "STUDENT READS: ... 👉 first point 👉 second point"}
      ],
      "students": [{"name": "Ada", "grade": "A"}, {"name": "Linus"}],
      "quiz": [
        {"question": "What is $2 + 2$?", "options": ["3", "4"],
         "correctOptionIndex": 1}
      ]
    }

Only ``slides`` is required.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from lesson_app.core.messages import QuestionPayload, SlidePayload
from lesson_app.core.models import QuizQuestion, Slide, StudentWithGrade


class LessonImportError(Exception):
    """Raised when a lesson definition cannot be parsed."""


class _StudentEntry(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(min_length=1)
    grade: str | None = None


class _LessonFile(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = ""
    slides: list[SlidePayload] = Field(min_length=1)
    students: list[_StudentEntry] = Field(default_factory=list)
    quiz: list[QuestionPayload] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_questions(self) -> "_LessonFile":
        for number, question in enumerate(self.quiz, start=1):
            if not 0 <= question.correct_option_index < len(question.options):
                raise ValueError(f"Quiz question {number} has no valid correct option.")
        return self


@dataclass(slots=True)
class ImportedLesson:
    """Container for a parsed lesson and its optional roster and quiz."""

    source_path: Path
    title: str
    slides: list[Slide]
    students: list[StudentWithGrade]
    questions: list[QuizQuestion]


def load_lesson_from_file(file_path: Path) -> ImportedLesson:
    text = file_path.read_text(encoding="utf-8")
    try:
        parsed = _LessonFile.model_validate_json(text)
    except ValidationError as exc:
        raise LessonImportError(_summarize(exc)) from exc

    return ImportedLesson(
        source_path=file_path,
        title=parsed.title or file_path.stem,
        slides=[payload.to_slide() for payload in parsed.slides],
        students=[StudentWithGrade(name=s.name.strip(), grade=s.grade) for s in parsed.students],
        questions=[
            QuizQuestion(
                question=q.question,
                options=tuple(q.options),
                correct_option_index=q.correct_option_index,
                explanation=q.explanation,
            )
            for q in parsed.quiz
        ],
    )


def _summarize(exc: ValidationError) -> str:
    first = exc.errors(include_url=False)[0]
    location = ".".join(str(part) for part in first["loc"]) or "lesson"
    return f"Invalid lesson file ({location}): {first['msg']}"
