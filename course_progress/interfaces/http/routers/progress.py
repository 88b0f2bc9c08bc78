from fastapi import APIRouter, Depends

from ....application.use_cases.course_progress import CourseProgressService
from ....infrastructure.metrics import enrollments_total, lesson_updates_total, quiz_attempts_total
from ..authz import get_optional_user_id, get_user_id
from ..dependencies import get_progress_service
from ..schemas import (
    CertificateResp, CompleteLessonReq, EnrolledCourseOut, MyCoursesResp, ProgressResp,
    QuizAttemptReq, QuizResultResp,
)

router = APIRouter(prefix="/api/progress", tags=["progress"])

@router.get("/health")
def health(): return {"status": "ok"}

@router.post("/courses/{course_id}/enroll", response_model=ProgressResp)
def enroll(
    course_id: int,
    user_id: str = Depends(get_user_id),
    service: CourseProgressService = Depends(get_progress_service),
):
    # повторная запись идемпотентна: success=true, already_enrolled=true
    snapshot = service.enroll_in_course(user_id, course_id)
    if not snapshot.already_enrolled:
        enrollments_total.inc()
    return ProgressResp.model_validate(snapshot)

@router.get("/courses/{course_id}", response_model=ProgressResp)
def course_progress(
    course_id: int,
    user_id: str | None = Depends(get_optional_user_id),
    service: CourseProgressService = Depends(get_progress_service),
):
    return ProgressResp.model_validate(service.get_progress(user_id, course_id))

@router.post("/lessons/{lesson_id}/complete", response_model=ProgressResp)
def complete_lesson(
    lesson_id: int,
    payload: CompleteLessonReq | None = None,
    user_id: str = Depends(get_user_id),
    service: CourseProgressService = Depends(get_progress_service),
):
    # тело необязательно: по умолчанию отмечаем урок пройденным
    payload = payload or CompleteLessonReq()
    snapshot = service.complete_lesson_and_advance(
        user_id, lesson_id, completed=payload.completed, watch_time=payload.watch_time
    )
    lesson_updates_total.labels(completed=str(payload.completed).lower()).inc()
    return ProgressResp.model_validate(snapshot)

@router.post("/quizzes/{quiz_id}/attempts", response_model=QuizResultResp)
def submit_quiz(
    quiz_id: int,
    payload: QuizAttemptReq,
    user_id: str = Depends(get_user_id),
    service: CourseProgressService = Depends(get_progress_service),
):
    result = service.submit_quiz_attempt(user_id, quiz_id, payload.course_id, payload.answers)
    quiz_attempts_total.labels(passed=str(result.passed).lower()).inc()
    return QuizResultResp.model_validate(result)

@router.get("/my", response_model=MyCoursesResp)
def my_courses(
    user_id: str = Depends(get_user_id),
    service: CourseProgressService = Depends(get_progress_service),
):
    courses = service.list_my_courses(user_id)
    return MyCoursesResp(courses=[EnrolledCourseOut.model_validate(c) for c in courses])

@router.get("/courses/{course_id}/certificate", response_model=CertificateResp)
def certificate(
    course_id: int,
    user_id: str = Depends(get_user_id),
    service: CourseProgressService = Depends(get_progress_service),
):
    return CertificateResp.model_validate(service.certificate_status(user_id, course_id))
