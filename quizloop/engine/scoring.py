"""
quizloop.engine.scoring — Practice Scoring, Skill Gaps & K-Factor
==================================================================

Pure functions, no I/O.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from quizloop.engine.question_bank import Question

__all__ = ["Answer", "calculate_score", "identify_skill_gaps", "k_factor"]


@dataclass(frozen=True, slots=True)
class Answer:
    question_id: str
    selected_answer: int


def calculate_score(questions: Sequence[Question], answers: Iterable[Answer]) -> int:
    """Percentage of *questions* answered correctly, rounded half-up.

    Answers referencing unknown question ids count as incorrect; an
    empty question list scores 0.
    """
    if not questions:
        return 0

    correct_by_id = {q.id: q.correct_answer for q in questions}
    correct = sum(
        1 for a in answers
        if a.question_id in correct_by_id
        and a.selected_answer == correct_by_id[a.question_id]
    )
    # round() is banker's rounding; the score rounds .5 up
    return math.floor(correct * 100 / len(questions) + 0.5)


def identify_skill_gaps(questions: Sequence[Question], answers: Iterable[Answer]) -> list[str]:
    """Skills with at least one incorrect answer, in first-miss order, no duplicates."""
    by_id = {q.id: q for q in questions}
    gaps: dict[str, None] = {}
    for answer in answers:
        question = by_id.get(answer.question_id)
        if question is None:
            continue
        if answer.selected_answer != question.correct_answer and question.skill:
            gaps.setdefault(question.skill, None)
    return list(gaps)


def k_factor(invites_sent: int, users: int, fvm_reached: int) -> float:
    """Viral coefficient = invites per user × invite→FVM conversion.

    ``k_factor(25, 10, 14) == 1.4``.  Zero users or zero invites give 0.
    """
    if users == 0 or invites_sent == 0:
        return 0.0
    invites_per_user = invites_sent / users
    conversion_rate = fvm_reached / invites_sent
    return invites_per_user * conversion_rate
