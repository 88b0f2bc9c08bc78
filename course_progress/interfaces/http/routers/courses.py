from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ....application.use_cases.course_progress import CourseProgressService
from ....domain.entities import PRIMARY_LOCALE, Course, Lesson, LocalizedText, Quiz, Unit
from ....infrastructure.cache import get_cache, outline_key, set_cache
from ....infrastructure.db import get_db
from ....infrastructure.metrics import cache_hits_total, cache_misses_total
from ....infrastructure.repositories import CourseContentRepository
from ..authz import get_optional_user_id
from ..dependencies import get_progress_service
from ..schemas import OutlineResp, ProgressResp

router = APIRouter(prefix="/api/courses", tags=["courses"])


def build_outline(course: Course, locale: str) -> dict:
    """Локализованная структура курса без пользовательских отметок."""
    return {
        "id": course.id,
        "slug": course.slug,
        "locale": locale,
        "title": course.title.resolve(locale),
        "description": course.description.resolve(locale) if course.description else None,
        "units": [
            {
                "id": unit.id,
                "order": unit.order,
                "title": unit.title.resolve(locale),
                "lessons": [
                    {
                        "id": lesson.id,
                        "order": lesson.order,
                        "title": lesson.title.resolve(locale),
                        "type": lesson.type.value,
                        "duration": lesson.duration,
                        "is_free": lesson.is_free,
                        "source": lesson.source(locale),
                    }
                    for lesson in sorted(unit.lessons, key=lambda lesson: lesson.order)
                ],
                "quiz": {
                    "id": unit.quiz.id,
                    "title": unit.quiz.title.resolve(locale),
                    "passing_score": unit.quiz.passing_score,
                    "questions": len(unit.quiz.questions),
                } if unit.quiz else None,
            }
            for unit in course.ordered_units()
        ],
    }


def apply_progress(outline: dict, progress: ProgressResp) -> dict:
    completed = set(progress.completed_lessons)
    passed = set(progress.passed_quizzes)
    for unit in outline["units"]:
        for lesson in unit["lessons"]:
            lesson["completed"] = lesson["id"] in completed
            lesson["locked"] = not CourseProgressService.can_access_lesson(
                lesson["is_free"], progress.is_enrolled
            )
            if lesson["locked"]:
                # закрытый урок: ссылку на материал не отдаём
                lesson["source"] = None
        if unit["quiz"]:
            unit["quiz"]["passed"] = unit["quiz"]["id"] in passed
    outline["progress"] = progress.model_dump()
    return outline


def outline_to_course(outline: dict) -> Course:
    """Скелет курса из закэшированного оглавления: id и порядок, без материалов."""
    return Course(
        id=outline["id"],
        slug=outline["slug"],
        title=LocalizedText(outline["title"]),
        units=tuple(
            Unit(
                id=unit["id"],
                order=unit["order"],
                title=LocalizedText(unit["title"]),
                lessons=tuple(
                    Lesson(id=lesson["id"], unit_id=unit["id"], order=lesson["order"],
                           title=LocalizedText(lesson["title"]))
                    for lesson in unit["lessons"]
                ),
                quiz=Quiz(id=unit["quiz"]["id"], unit_id=unit["id"],
                          title=LocalizedText(unit["quiz"]["title"]),
                          passing_score=unit["quiz"]["passing_score"])
                if unit["quiz"] else None,
            )
            for unit in outline["units"]
        ),
    )


@router.get("/{course_id}/outline", response_model=OutlineResp)
def course_outline(
    course_id: int,
    locale: str = Query(PRIMARY_LOCALE, pattern="^(ar|ru)$"),
    user_id: str | None = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
    service: CourseProgressService = Depends(get_progress_service),
):
    cache_key = outline_key(course_id, locale)
    outline = get_cache(cache_key)
    if outline:
        cache_hits_total.inc()
        course = outline_to_course(outline)
    else:
        cache_misses_total.inc()
        course = CourseContentRepository(db).get_course(course_id)
        outline = build_outline(course, locale)
        set_cache(cache_key, outline)

    # курс уже загружен или восстановлен из кэша: повторно не читаем
    progress = ProgressResp.model_validate(service.progress_for_course(user_id, course))
    return apply_progress(outline, progress)
