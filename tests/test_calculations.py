import pytest

from course_progress.domain.entities import Course, Lesson, LocalizedText, Quiz, Unit
from course_progress.domain.errors import MalformedSubmission
from course_progress.domain.grading import grade_quiz
from course_progress.domain.progress import (
    calculate_progress, course_progress, next_lesson_id, percent,
)


def _course(with_quiz: bool = False) -> Course:
    t = LocalizedText("x")
    quiz = Quiz(id=100, unit_id=2, title=t) if with_quiz else None
    return Course(
        id=1, slug="c", title=t,
        units=(
            # юниты и уроки намеренно не по порядку
            Unit(id=2, order=2, title=t, lessons=(Lesson(id=3, unit_id=2, order=1, title=t),), quiz=quiz),
            Unit(id=1, order=1, title=t, lessons=(
                Lesson(id=20, unit_id=1, order=2, title=t),
                Lesson(id=10, unit_id=1, order=1, title=t),
            )),
        ),
    )


# --- ProgressCalculator

def test_progress_zero_lessons_is_zero():
    """Пустой курс не делит на ноль"""
    assert calculate_progress(0, 0) == 0


def test_progress_bounds_and_monotonic():
    """Процент в [0, 100], 100 при C=T и не убывает по C"""
    for total in range(1, 25):
        values = [calculate_progress(total, c) for c in range(total + 1)]
        assert values[0] == 0
        assert values[-1] == 100
        assert all(0 <= v <= 100 for v in values)
        assert values == sorted(values)


def test_progress_three_lessons():
    assert [calculate_progress(3, c) for c in range(4)] == [0, 33, 67, 100]


def test_progress_rounds_half_up():
    """1/8 = 12.5% -> 13, как Math.round, а не банковское округление"""
    assert calculate_progress(8, 1) == 13
    assert percent(1, 200) == 1


@pytest.mark.parametrize("total,completed", [(-1, 0), (3, 4), (3, -1)])
def test_progress_rejects_invalid_counts(total, completed):
    with pytest.raises(ValueError):
        calculate_progress(total, completed)


def test_course_progress_ignores_quizzes_by_default():
    course = _course(with_quiz=True)
    assert course_progress(course, [10, 20, 3], passed_quizzes=[]) == 100


def test_course_progress_counts_quizzes_when_enabled():
    course = _course(with_quiz=True)
    assert course_progress(course, [10, 20, 3], [], quizzes_count=True) == 75
    assert course_progress(course, [10, 20, 3], [100], quizzes_count=True) == 100


def test_course_progress_ignores_foreign_lessons():
    assert course_progress(_course(), [10, 999]) == 33


def test_next_lesson_follows_declared_order():
    course = _course()
    assert next_lesson_id(course, []) == 10
    assert next_lesson_id(course, [10]) == 20
    assert next_lesson_id(course, [10, 20]) == 3
    # порядок объявления, а не порядок завершения
    assert next_lesson_id(course, [3, 20]) == 10
    assert next_lesson_id(course, [3, 20, 10]) is None


# --- QuizGrader

def test_grade_three_of_four_passes():
    grade = grade_quiz([0, 1, 2, 3], [0, 1, 2, 0], passing_score=70)
    assert grade.score == 75
    assert grade.passed is True
    assert grade.correct == 3


def test_grade_two_of_four_fails():
    grade = grade_quiz([0, 1, 2, 3], [0, 1, 0, 0], passing_score=70)
    assert grade.score == 50
    assert grade.passed is False


def test_grade_exact_threshold_passes():
    grade = grade_quiz([0] * 10, [0] * 7 + [1] * 3, passing_score=70)
    assert grade.score == 70
    assert grade.passed is True


def test_grade_empty_quiz_fails_closed():
    """Тест без вопросов не засчитывается даже при пороге 0"""
    grade = grade_quiz([], [], passing_score=0)
    assert grade.score == 0
    assert grade.passed is False


def test_grade_length_mismatch_is_malformed():
    with pytest.raises(MalformedSubmission):
        grade_quiz([0, 1, 2, 3], [0, 1, 2], passing_score=70)


def test_grade_rejects_invalid_passing_score():
    with pytest.raises(ValueError):
        grade_quiz([0], [0], passing_score=101)
