from datetime import datetime
from pydantic import BaseModel, Field

class ErrorResp(BaseModel):
    success: bool = False
    error: str
    detail: str | None = None

class ProgressResp(BaseModel):
    success: bool = True
    is_enrolled: bool
    enrollment_id: int | None = None
    progress: int
    current_lesson_id: int | None = None
    completed_lessons: list[int] = []
    passed_quizzes: list[int] = []
    completed: bool = False
    already_enrolled: bool = False
    class Config: from_attributes = True

class CompleteLessonReq(BaseModel):
    completed: bool = True
    watch_time: int | None = Field(default=None, ge=0)

class QuizAttemptReq(BaseModel):
    course_id: int
    answers: list[int]

class QuizResultResp(BaseModel):
    success: bool = True
    score: int
    passed: bool
    progress: int
    course_completed: bool
    class Config: from_attributes = True

class EnrolledCourseOut(BaseModel):
    course_id: int
    slug: str
    title: str
    title_ru: str | None = None
    progress: int
    current_lesson_id: int | None = None
    total_lessons: int
    enrolled_at: datetime | None = None
    class Config: from_attributes = True

class MyCoursesResp(BaseModel):
    success: bool = True
    courses: list[EnrolledCourseOut]

class CertificateResp(BaseModel):
    success: bool = True
    eligible: bool
    progress: int
    quizzes_total: int
    quizzes_passed: int
    class Config: from_attributes = True

class StudentOut(BaseModel):
    user_id: str
    enrolled_at: datetime | None = None
    last_accessed_at: datetime | None = None
    completed_at: datetime | None = None
    progress: int
    completed_lessons: int
    class Config: from_attributes = True

class StudentsResp(BaseModel):
    success: bool = True
    course_id: int
    students: list[StudentOut]

class OutlineLesson(BaseModel):
    id: int
    order: int
    title: str
    type: str
    duration: int
    is_free: bool
    source: str | None = None
    completed: bool = False
    locked: bool = True

class OutlineQuiz(BaseModel):
    id: int
    title: str
    passing_score: int
    questions: int
    passed: bool = False

class OutlineUnit(BaseModel):
    id: int
    order: int
    title: str
    lessons: list[OutlineLesson]
    quiz: OutlineQuiz | None = None

class OutlineResp(BaseModel):
    success: bool = True
    id: int
    slug: str
    locale: str
    title: str
    description: str | None = None
    units: list[OutlineUnit]
    progress: ProgressResp
