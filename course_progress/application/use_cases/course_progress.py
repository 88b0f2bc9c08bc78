from dataclasses import replace
from typing import Sequence

import structlog

from ...domain.entities import Course, Enrollment, ProgressFacts
from ...domain.errors import AlreadyEnrolled, NotEnrolled, QuizNotFound, Unauthenticated
from ...domain.grading import grade_quiz
from ...domain.progress import course_progress, next_lesson_id
from ..dto import (
    CertificateStatus, EnrolledCourseDTO, ProgressSnapshot, QuizResult, StudentProgressDTO,
)

logger = structlog.get_logger()


class IEnrollmentStore:
    def enroll(self, user_id: str, course_id: int) -> Enrollment: ...
    def get_enrollment(self, user_id: str, course_id: int) -> Enrollment | None: ...
    def get_progress(self, user_id: str, course: Course) -> ProgressFacts: ...
    def set_lesson_complete(self, user_id: str, lesson_id: int, completed: bool,
                            watch_time: int | None = None) -> None: ...
    def record_quiz_attempt(self, user_id: str, quiz_id: int, course_id: int,
                            score: int, passed: bool) -> None: ...
    def update_enrollment(self, enrollment: Enrollment, current_lesson_id: int | None,
                          completed: bool) -> Enrollment: ...
    def list_enrollments(self, user_id: str) -> list[Enrollment]: ...
    def list_course_enrollments(self, course_id: int) -> list[Enrollment]: ...


class ICourseContentStore:
    def get_course(self, course_id: int) -> Course: ...
    def get_course_id_for_lesson(self, lesson_id: int) -> int: ...


class CourseProgressService:
    """Запись на курс, отметка уроков и сдача тестов юнитов.

    Идентификатор пользователя передаётся явно в каждый вызов; сервис
    не аутентифицирует и доверяет переданному `user_id`.
    """

    def __init__(self, enrollments: IEnrollmentStore, content: ICourseContentStore,
                 quizzes_count_toward_progress: bool = False):
        self.enrollments = enrollments
        self.content = content
        self.quizzes_count_toward_progress = quizzes_count_toward_progress

    @staticmethod
    def _require_user(user_id: str | None) -> str:
        if not user_id:
            raise Unauthenticated("login required")
        return user_id

    @staticmethod
    def can_access_lesson(is_free: bool, is_enrolled: bool) -> bool:
        # бесплатные уроки открыты всем, остальные - только записавшимся
        return is_free or is_enrolled

    def _progress(self, course: Course, facts: ProgressFacts) -> int:
        return course_progress(course, facts.completed_lessons, facts.passed_quizzes,
                               quizzes_count=self.quizzes_count_toward_progress)

    def _snapshot(self, course: Course, facts: ProgressFacts,
                  already_enrolled: bool = False) -> ProgressSnapshot:
        if not facts.is_enrolled:
            return ProgressSnapshot()
        progress = self._progress(course, facts)
        return ProgressSnapshot(
            is_enrolled=True,
            enrollment_id=facts.enrollment.id,
            progress=progress,
            current_lesson_id=facts.enrollment.current_lesson_id,
            completed_lessons=list(facts.completed_lessons),
            passed_quizzes=list(facts.passed_quizzes),
            completed=progress == 100,
            already_enrolled=already_enrolled,
        )

    def enroll_in_course(self, user_id: str | None, course_id: int) -> ProgressSnapshot:
        user_id = self._require_user(user_id)
        course = self.content.get_course(course_id)
        try:
            enrollment = self.enrollments.enroll(user_id, course.id)
            already_enrolled = False
        except AlreadyEnrolled as e:
            # повторная запись - успех без новой строки
            enrollment = e.enrollment
            already_enrolled = True
        logger.info("course_enrolled", user_id=user_id, course_id=course.id,
                    enrollment_id=enrollment.id, already_enrolled=already_enrolled)
        facts = self.enrollments.get_progress(user_id, course)
        return self._snapshot(course, facts, already_enrolled=already_enrolled)

    def get_progress(self, user_id: str | None, course_id: int) -> ProgressSnapshot:
        return self.progress_for_course(user_id, self.content.get_course(course_id))

    def progress_for_course(self, user_id: str | None, course: Course) -> ProgressSnapshot:
        """Прогресс по уже загруженной структуре курса (например, из кэша оглавления)."""
        if not user_id:
            return ProgressSnapshot()
        return self._snapshot(course, self.enrollments.get_progress(user_id, course))

    def complete_lesson_and_advance(self, user_id: str | None, lesson_id: int,
                                    completed: bool = True,
                                    watch_time: int | None = None) -> ProgressSnapshot:
        user_id = self._require_user(user_id)
        course = self.content.get_course(self.content.get_course_id_for_lesson(lesson_id))
        enrollment = self.enrollments.get_enrollment(user_id, course.id)
        if enrollment is None:
            raise NotEnrolled(f"user is not enrolled in course {course.id}")

        self.enrollments.set_lesson_complete(user_id, lesson_id, completed, watch_time)
        facts = self.enrollments.get_progress(user_id, course)
        pointer = next_lesson_id(course, facts.completed_lessons)
        progress = self._progress(course, facts)
        enrollment = self.enrollments.update_enrollment(
            facts.enrollment, current_lesson_id=pointer, completed=progress == 100
        )
        logger.info("lesson_progress_updated", user_id=user_id, course_id=course.id,
                    lesson_id=lesson_id, completed=completed, progress=progress,
                    current_lesson_id=pointer)
        return self._snapshot(course, replace(facts, enrollment=enrollment))

    def submit_quiz_attempt(self, user_id: str | None, quiz_id: int, course_id: int,
                            answers: Sequence[int]) -> QuizResult:
        user_id = self._require_user(user_id)
        course = self.content.get_course(course_id)
        quiz = course.find_quiz(quiz_id)
        if quiz is None:
            raise QuizNotFound(f"quiz {quiz_id} not found in course {course_id}")
        if self.enrollments.get_enrollment(user_id, course.id) is None:
            raise NotEnrolled(f"user is not enrolled in course {course.id}")

        # оценка до записи: некорректная отправка ничего не сохраняет
        grade = grade_quiz(quiz.answer_key, list(answers), quiz.passing_score)
        self.enrollments.record_quiz_attempt(user_id, quiz.id, course.id, grade.score, grade.passed)

        facts = self.enrollments.get_progress(user_id, course)
        progress = self._progress(course, facts)
        self.enrollments.update_enrollment(
            facts.enrollment,
            current_lesson_id=facts.enrollment.current_lesson_id,
            completed=progress == 100,
        )
        logger.info("quiz_attempt_recorded", user_id=user_id, course_id=course.id,
                    quiz_id=quiz.id, score=grade.score, passed=grade.passed, progress=progress)
        return QuizResult(score=grade.score, passed=grade.passed, progress=progress,
                          course_completed=progress == 100)

    def list_my_courses(self, user_id: str | None) -> list[EnrolledCourseDTO]:
        user_id = self._require_user(user_id)
        result = []
        for enrollment in self.enrollments.list_enrollments(user_id):
            course = self.content.get_course(enrollment.course_id)
            facts = self.enrollments.get_progress(user_id, course)
            result.append(EnrolledCourseDTO(
                course_id=course.id,
                slug=course.slug,
                title=course.title.primary,
                title_ru=course.title.secondary,
                progress=self._progress(course, facts),
                current_lesson_id=enrollment.current_lesson_id,
                total_lessons=len(course.lesson_ids),
                enrolled_at=enrollment.enrolled_at,
            ))
        return result

    def certificate_status(self, user_id: str | None, course_id: int) -> CertificateStatus:
        user_id = self._require_user(user_id)
        course = self.content.get_course(course_id)
        facts = self.enrollments.get_progress(user_id, course)
        quiz_ids = set(course.quiz_ids)
        passed = len(quiz_ids.intersection(facts.passed_quizzes))
        progress = self._progress(course, facts) if facts.is_enrolled else 0
        return CertificateStatus(
            eligible=facts.is_enrolled and progress == 100 and passed == len(quiz_ids),
            progress=progress,
            quizzes_total=len(quiz_ids),
            quizzes_passed=passed,
        )

    def course_students(self, course_id: int) -> list[StudentProgressDTO]:
        course = self.content.get_course(course_id)
        rows = []
        for enrollment in self.enrollments.list_course_enrollments(course.id):
            facts = self.enrollments.get_progress(enrollment.user_id, course)
            rows.append(StudentProgressDTO(
                user_id=enrollment.user_id,
                enrolled_at=enrollment.enrolled_at,
                last_accessed_at=enrollment.last_accessed_at,
                completed_at=enrollment.completed_at,
                progress=self._progress(course, facts),
                completed_lessons=len(facts.completed_lessons),
            ))
        return rows
