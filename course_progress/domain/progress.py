from typing import Iterable

from .entities import Course


def percent(part: int, whole: int) -> int:
    """round(100 * part / whole), половина округляется вверх; whole=0 -> 0."""
    if whole == 0:
        return 0
    # целочисленно, чтобы 0.5 не превращалось в банковское округление
    return (200 * part + whole) // (2 * whole)


def calculate_progress(total: int, completed: int) -> int:
    if total < 0:
        raise ValueError("total must be >= 0")
    if not 0 <= completed <= total:
        raise ValueError(f"completed must be within [0, {total}], got {completed}")
    return percent(completed, total)


def course_progress(course: Course, completed_lessons: Iterable[int],
                    passed_quizzes: Iterable[int] = (),
                    quizzes_count: bool = False) -> int:
    lesson_ids = set(course.lesson_ids)
    done = len(lesson_ids.intersection(completed_lessons))
    total = len(lesson_ids)
    if quizzes_count:
        quiz_ids = set(course.quiz_ids)
        total += len(quiz_ids)
        done += len(quiz_ids.intersection(passed_quizzes))
    return calculate_progress(total, done)


def next_lesson_id(course: Course, completed_lessons: Iterable[int]) -> int | None:
    """Первый незавершённый урок в объявленном порядке (юнит, затем урок)."""
    completed = set(completed_lessons)
    for lesson in course.ordered_lessons():
        if lesson.id not in completed:
            return lesson.id
    return None
