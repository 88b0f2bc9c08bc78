from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterator

PRIMARY_LOCALE = "ar"
SECONDARY_LOCALE = "ru"


@dataclass(frozen=True)
class LocalizedText:
    """Двуязычное поле: основной текст (ar) и необязательный перевод (ru)."""

    primary: str
    secondary: str | None = None

    def resolve(self, locale: str) -> str:
        if locale == SECONDARY_LOCALE and self.secondary:
            return self.secondary
        return self.primary


class LessonType(str, Enum):
    VIDEO = "VIDEO"
    PDF = "PDF"
    ARTICLE = "ARTICLE"


@dataclass(frozen=True)
class Lesson:
    id: int
    unit_id: int
    order: int
    title: LocalizedText
    type: LessonType = LessonType.ARTICLE
    duration: int = 0  # minutes
    is_free: bool = False
    video_url: str | None = None
    pdf_url: str | None = None
    content: LocalizedText | None = None

    def source(self, locale: str) -> str | None:
        # заполнено только поле, соответствующее типу урока
        if self.type is LessonType.VIDEO:
            return self.video_url
        if self.type is LessonType.PDF:
            return self.pdf_url
        return self.content.resolve(locale) if self.content else None


@dataclass(frozen=True)
class QuizQuestion:
    id: int
    order: int
    text: LocalizedText
    options: tuple[LocalizedText, ...]
    correct_index: int

    def __post_init__(self):
        if not 2 <= len(self.options) <= 4:
            raise ValueError(f"question {self.id}: expected 2-4 options, got {len(self.options)}")
        if not 0 <= self.correct_index < len(self.options):
            raise ValueError(f"question {self.id}: correct_index {self.correct_index} out of range")


@dataclass(frozen=True)
class Quiz:
    id: int
    unit_id: int
    title: LocalizedText
    passing_score: int = 70
    questions: tuple[QuizQuestion, ...] = ()

    @property
    def answer_key(self) -> list[int]:
        return [q.correct_index for q in sorted(self.questions, key=lambda q: q.order)]


@dataclass(frozen=True)
class Unit:
    id: int
    order: int
    title: LocalizedText
    lessons: tuple[Lesson, ...] = ()
    quiz: Quiz | None = None


@dataclass(frozen=True)
class Course:
    id: int
    slug: str
    title: LocalizedText
    description: LocalizedText | None = None
    units: tuple[Unit, ...] = ()

    def ordered_units(self) -> list[Unit]:
        return sorted(self.units, key=lambda u: u.order)

    def ordered_lessons(self) -> Iterator[Lesson]:
        """Уроки в объявленном порядке: сначала порядок юнита, затем урока."""
        for unit in self.ordered_units():
            yield from sorted(unit.lessons, key=lambda lesson: lesson.order)

    def quizzes(self) -> list[Quiz]:
        return [u.quiz for u in self.ordered_units() if u.quiz is not None]

    def find_quiz(self, quiz_id: int) -> Quiz | None:
        return next((q for q in self.quizzes() if q.id == quiz_id), None)

    @property
    def lesson_ids(self) -> list[int]:
        return [lesson.id for lesson in self.ordered_lessons()]

    @property
    def quiz_ids(self) -> list[int]:
        return [q.id for q in self.quizzes()]


@dataclass(frozen=True)
class Enrollment:
    id: int | None
    user_id: str
    course_id: int
    current_lesson_id: int | None = None
    enrolled_at: datetime | None = None
    last_accessed_at: datetime | None = None
    completed_at: datetime | None = None


@dataclass(frozen=True)
class ProgressFacts:
    """Сырые факты из хранилища; процент считает сервис."""

    is_enrolled: bool = False
    enrollment: Enrollment | None = None
    completed_lessons: list[int] = field(default_factory=list)
    passed_quizzes: list[int] = field(default_factory=list)
