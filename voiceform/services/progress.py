"""Completion progress over the set of answers (pure functions)."""

import math
from collections.abc import Iterable, Mapping

from voiceform.core.models import Answer, Question


def count_answered(answers: Iterable[Answer]) -> int:
    """Number of answers with non-blank text or at least one clip."""
    return sum(1 for answer in answers if answer.is_answered)


def progress(answers: Iterable[Answer], total_questions: int) -> float:
    """Completion percentage, clamped to [0, 100]."""
    if total_questions <= 0:
        return 0.0
    ratio = 100 * count_answered(answers) / total_questions
    return min(100.0, max(0.0, ratio))


def display_progress(value: float) -> int:
    """Progress as shown to the user: rounded half up to the nearest integer."""
    return math.floor(min(100.0, max(0.0, value)) + 0.5)


def unanswered_questions(
    questions: Iterable[Question], answers: Mapping[str, Answer]
) -> list[str]:
    """Keys of questions with no answer or an empty one, in question order."""
    missing = []
    for question in questions:
        answer = answers.get(question.id)
        if answer is None or not answer.is_answered:
            missing.append(question.id)
    return missing
