from dataclasses import dataclass
from typing import Sequence

from .errors import MalformedSubmission
from .progress import percent


@dataclass(frozen=True)
class QuizGrade:
    score: int
    passed: bool
    correct: int
    total: int


def grade_quiz(answer_key: Sequence[int], submitted: Sequence[int], passing_score: int) -> QuizGrade:
    if not 0 <= passing_score <= 100:
        raise ValueError(f"passing_score must be within [0, 100], got {passing_score}")
    if len(submitted) != len(answer_key):
        raise MalformedSubmission(
            f"expected {len(answer_key)} answers, got {len(submitted)}"
        )
    total = len(answer_key)
    if total == 0:
        # тест без вопросов не может быть пройден
        return QuizGrade(score=0, passed=False, correct=0, total=0)
    correct = sum(1 for expected, given in zip(answer_key, submitted) if expected == given)
    score = percent(correct, total)
    return QuizGrade(score=score, passed=score >= passing_score, correct=correct, total=total)
