from fastapi import Depends
from sqlalchemy.orm import Session

from ...application.use_cases.course_progress import CourseProgressService
from ...config import settings
from ...infrastructure.db import get_db
from ...infrastructure.repositories import CourseContentRepository, EnrollmentRepository


def get_progress_service(db: Session = Depends(get_db)) -> CourseProgressService:
    return CourseProgressService(
        enrollments=EnrollmentRepository(db),
        content=CourseContentRepository(db),
        quizzes_count_toward_progress=settings.QUIZZES_COUNT_TOWARD_PROGRESS,
    )
