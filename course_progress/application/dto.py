from dataclasses import dataclass, field
from datetime import datetime

@dataclass
class ProgressSnapshot:
    is_enrolled: bool = False
    enrollment_id: int | None = None
    progress: int = 0
    current_lesson_id: int | None = None
    completed_lessons: list[int] = field(default_factory=list)
    passed_quizzes: list[int] = field(default_factory=list)
    completed: bool = False
    already_enrolled: bool = False

@dataclass
class QuizResult:
    score: int
    passed: bool
    progress: int
    course_completed: bool

@dataclass
class EnrolledCourseDTO:
    course_id: int
    slug: str
    title: str
    title_ru: str | None
    progress: int
    current_lesson_id: int | None
    total_lessons: int
    enrolled_at: datetime | None

@dataclass
class CertificateStatus:
    eligible: bool
    progress: int
    quizzes_total: int
    quizzes_passed: int

@dataclass
class StudentProgressDTO:
    user_id: str
    enrolled_at: datetime | None
    last_accessed_at: datetime | None
    completed_at: datetime | None
    progress: int
    completed_lessons: int
