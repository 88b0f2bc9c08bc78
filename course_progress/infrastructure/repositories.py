from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from .models import (
    CourseORM, EnrollmentORM, LessonORM, LessonProgressORM, QuizAttemptORM, QuizORM,
    UnitORM, utcnow,
)
from ..domain.entities import (
    Course, Enrollment, Lesson, LessonType, LocalizedText, ProgressFacts, Quiz,
    QuizQuestion, Unit,
)
from ..domain.errors import (
    AlreadyEnrolled, ContentInvalid, CourseNotFound, LessonNotFound, NotEnrolled,
)
from ..application.use_cases.course_progress import ICourseContentStore, IEnrollmentStore


def _text(primary: str | None, secondary: str | None) -> LocalizedText | None:
    if primary is None:
        return None
    return LocalizedText(primary, secondary)


def lesson_to_domain(row: LessonORM) -> Lesson:
    return Lesson(
        id=row.id,
        unit_id=row.unit_id,
        order=row.order,
        title=LocalizedText(row.title, row.title_ru),
        type=LessonType(row.type),
        duration=row.duration or 0,
        is_free=bool(row.is_free),
        video_url=row.video_url,
        pdf_url=row.pdf_url,
        content=_text(row.content, row.content_ru),
    )


def quiz_to_domain(row: QuizORM) -> Quiz:
    questions = []
    for q in row.questions:
        options_ru = q.options_ru or []
        # перевод вариантов берём только если он полный
        if len(options_ru) != len(q.options):
            options_ru = [None] * len(q.options)
        questions.append(QuizQuestion(
            id=q.id,
            order=q.order,
            text=LocalizedText(q.question, q.question_ru),
            options=tuple(LocalizedText(a, b) for a, b in zip(q.options, options_ru)),
            correct_index=q.correct_index,
        ))
    return Quiz(
        id=row.id,
        unit_id=row.unit_id,
        title=LocalizedText(row.title, row.title_ru),
        passing_score=row.passing_score,
        questions=tuple(questions),
    )


def course_to_domain(row: CourseORM) -> Course:
    return Course(
        id=row.id,
        slug=row.slug,
        title=LocalizedText(row.title, row.title_ru),
        description=_text(row.description, row.description_ru),
        units=tuple(
            Unit(
                id=u.id,
                order=u.order,
                title=LocalizedText(u.title, u.title_ru),
                lessons=tuple(lesson_to_domain(lesson) for lesson in u.lessons),
                quiz=quiz_to_domain(u.quiz) if u.quiz is not None else None,
            )
            for u in row.units
        ),
    )


def enrollment_to_domain(row: EnrollmentORM) -> Enrollment:
    return Enrollment(
        id=row.id,
        user_id=row.user_id,
        course_id=row.course_id,
        current_lesson_id=row.current_lesson_id,
        enrolled_at=row.enrolled_at,
        last_accessed_at=row.last_accessed_at,
        completed_at=row.completed_at,
    )


class CourseContentRepository(ICourseContentStore):
    """Чтение структуры курса. Запись - только через админку."""

    def __init__(self, db: Session): self.db = db

    def get_course(self, course_id: int) -> Course:
        q = (select(CourseORM)
             .where(CourseORM.id == course_id)
             .options(
                 selectinload(CourseORM.units).selectinload(UnitORM.lessons),
                 selectinload(CourseORM.units)
                 .selectinload(UnitORM.quiz)
                 .selectinload(QuizORM.questions),
             ))
        row = self.db.execute(q).scalar_one_or_none()
        if row is None:
            raise CourseNotFound(f"course {course_id} not found")
        try:
            return course_to_domain(row)
        except ValueError as e:
            # битая строка из админки (тип урока, варианты ответа)
            raise ContentInvalid(f"course {course_id}: {e}") from e

    def get_course_id_for_lesson(self, lesson_id: int) -> int:
        q = (select(UnitORM.course_id)
             .join(LessonORM, LessonORM.unit_id == UnitORM.id)
             .where(LessonORM.id == lesson_id))
        course_id = self.db.execute(q).scalar_one_or_none()
        if course_id is None:
            raise LessonNotFound(f"lesson {lesson_id} not found")
        return course_id


class EnrollmentRepository(IEnrollmentStore):
    def __init__(self, db: Session): self.db = db

    def _find(self, user_id: str, course_id: int) -> EnrollmentORM | None:
        q = select(EnrollmentORM).where(EnrollmentORM.user_id == user_id,
                                        EnrollmentORM.course_id == course_id)
        return self.db.execute(q).scalar_one_or_none()

    def get_enrollment(self, user_id: str, course_id: int) -> Enrollment | None:
        row = self._find(user_id, course_id)
        return enrollment_to_domain(row) if row else None

    def enroll(self, user_id: str, course_id: int) -> Enrollment:
        existing = self._find(user_id, course_id)
        if existing:
            raise AlreadyEnrolled(enrollment_to_domain(existing))
        row = EnrollmentORM(user_id=user_id, course_id=course_id, current_lesson_id=None)
        try:
            self.db.add(row); self.db.commit()
        except IntegrityError:
            # параллельная запись уже вставила строку: уникальный индекс (user_id, course_id)
            self.db.rollback()
            existing = self._find(user_id, course_id)
            if existing is None:
                raise
            raise AlreadyEnrolled(enrollment_to_domain(existing))
        self.db.refresh(row)
        return enrollment_to_domain(row)

    def get_progress(self, user_id: str, course: Course) -> ProgressFacts:
        row = self._find(user_id, course.id)
        if row is None:
            return ProgressFacts()
        completed = []
        if course.lesson_ids:
            q = (select(LessonProgressORM.lesson_id)
                 .where(LessonProgressORM.user_id == user_id,
                        LessonProgressORM.lesson_id.in_(course.lesson_ids),
                        LessonProgressORM.completed.is_(True)))
            done = set(self.db.execute(q).scalars())
            # в объявленном порядке курса
            completed = [lid for lid in course.lesson_ids if lid in done]
        passed = []
        if course.quiz_ids:
            q = (select(QuizAttemptORM.quiz_id)
                 .where(QuizAttemptORM.user_id == user_id,
                        QuizAttemptORM.quiz_id.in_(course.quiz_ids),
                        QuizAttemptORM.passed.is_(True))
                 .distinct())
            ok = set(self.db.execute(q).scalars())
            passed = [qid for qid in course.quiz_ids if qid in ok]
        return ProgressFacts(
            is_enrolled=True,
            enrollment=enrollment_to_domain(row),
            completed_lessons=completed,
            passed_quizzes=passed,
        )

    def _upsert_lesson_progress(self, user_id: str, lesson_id: int, completed: bool,
                                watch_time: int | None) -> None:
        row = self.db.execute(
            select(LessonProgressORM).where(LessonProgressORM.user_id == user_id,
                                            LessonProgressORM.lesson_id == lesson_id)
        ).scalar_one_or_none()
        if row is None:
            row = LessonProgressORM(user_id=user_id, lesson_id=lesson_id)
            self.db.add(row)
        row.completed = completed
        row.completed_at = utcnow() if completed else None
        if watch_time is not None:
            row.watch_time = watch_time
        self.db.commit()

    def set_lesson_complete(self, user_id: str, lesson_id: int, completed: bool,
                            watch_time: int | None = None) -> None:
        if self.db.get(LessonORM, lesson_id) is None:
            raise LessonNotFound(f"lesson {lesson_id} not found")
        try:
            self._upsert_lesson_progress(user_id, lesson_id, completed, watch_time)
        except IntegrityError:
            # гонка двух отметок одного урока: повторяем как обновление
            self.db.rollback()
            self._upsert_lesson_progress(user_id, lesson_id, completed, watch_time)

    def record_quiz_attempt(self, user_id: str, quiz_id: int, course_id: int,
                            score: int, passed: bool) -> None:
        self.db.add(QuizAttemptORM(user_id=user_id, quiz_id=quiz_id, course_id=course_id,
                                   score=score, passed=passed))
        self.db.commit()

    def update_enrollment(self, enrollment: Enrollment, current_lesson_id: int | None,
                          completed: bool) -> Enrollment:
        row = self._find(enrollment.user_id, enrollment.course_id)
        if row is None:
            raise NotEnrolled(f"user is not enrolled in course {enrollment.course_id}")
        row.current_lesson_id = current_lesson_id
        row.last_accessed_at = utcnow()
        if completed and row.completed_at is None:
            row.completed_at = utcnow()
        elif not completed:
            row.completed_at = None
        self.db.commit(); self.db.refresh(row)
        return enrollment_to_domain(row)

    def list_enrollments(self, user_id: str) -> list[Enrollment]:
        q = (select(EnrollmentORM)
             .where(EnrollmentORM.user_id == user_id)
             .order_by(EnrollmentORM.last_accessed_at.desc(), EnrollmentORM.id.desc()))
        return [enrollment_to_domain(r) for r in self.db.execute(q).scalars()]

    def list_course_enrollments(self, course_id: int) -> list[Enrollment]:
        q = (select(EnrollmentORM)
             .where(EnrollmentORM.course_id == course_id)
             .order_by(EnrollmentORM.enrolled_at, EnrollmentORM.id))
        return [enrollment_to_domain(r) for r in self.db.execute(q).scalars()]
