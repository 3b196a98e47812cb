"""
quizloop.engine.challenge — Challenge Generator
================================================

Turns a practice result into the 5-question buddy challenge and the
text the inviter shares.  Deterministic: the same result always yields
the same skill, questions, and copy.

Privacy: only the inviter's first name ever reaches share-facing text.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from quizloop.constants import CHALLENGE_ESTIMATED_TIME, CHALLENGE_QUESTION_COUNT
from quizloop.database.records import PracticeResultRecord
from quizloop.engine.question_bank import QUESTION_BANK, Question
from quizloop.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

__all__ = [
    "ChallengePayload",
    "first_name",
    "generate_challenge",
    "generate_share_copy",
    "identify_weakest_skill",
    "score_tier",
    "select_challenge_questions",
]

HIGH_SCORE = 80
MEDIUM_SCORE = 60


@dataclass(frozen=True, slots=True)
class ChallengePayload:
    skill: str
    questions: tuple[Question, ...]
    share_copy: str
    inviter_score: int
    estimated_time: str = CHALLENGE_ESTIMATED_TIME


def first_name(full_name: str) -> str:
    """First whitespace-separated token of *full_name*."""
    parts = full_name.split()
    return parts[0] if parts else ""


def identify_weakest_skill(
    skill_gaps: Sequence[str],
    catalog: Mapping[str, Sequence[Question]] = QUESTION_BANK,
) -> str:
    """The first listed gap; with no gaps, the catalog's first skill."""
    if skill_gaps:
        return skill_gaps[0]
    for skill in catalog:
        return skill
    raise ValidationError("No skills available in question bank")


def select_challenge_questions(
    skill: str,
    count: int = CHALLENGE_QUESTION_COUNT,
    catalog: Mapping[str, Sequence[Question]] = QUESTION_BANK,
) -> tuple[Question, ...]:
    """First *count* catalog questions for *skill*, in catalog order.

    Raises
    ------
    NotFoundError
        If *skill* is not in the catalog.
    """
    questions = catalog.get(skill)
    if questions is None:
        raise NotFoundError(f'Skill "{skill}" not found in question bank')

    selected = tuple(q for q in questions if q.skill == skill)[:count]
    if len(selected) < count:
        logger.warning(
            "Only %d questions available for skill %r, using all available",
            len(selected), skill,
        )
    return selected


def score_tier(score: int) -> str:
    """``high`` (≥80), ``medium`` (60–79) or ``low`` (below 60)."""
    if score >= HIGH_SCORE:
        return "high"
    if score >= MEDIUM_SCORE:
        return "medium"
    return "low"


def generate_share_copy(score: int, skill: str, full_name: str) -> str:
    """Share text for the inviter's score tier.

    Callers gate on the minimum share score first; anything below 60 is
    treated as the low tier.  Only the first name is used.
    """
    name = first_name(full_name)
    tier = score_tier(score)
    if tier == "high":
        return f"{name} just crushed {skill} with {score}%! Think you can beat that? 😎"
    if tier == "medium":
        return f"{name} got {score}% on {skill}. Can you do better?"
    return f"{skill} is tough! {name} got {score}%. Want to practice together?"


def generate_challenge(result: PracticeResultRecord, inviter_full_name: str) -> ChallengePayload:
    """Build the full challenge for *result*.

    Raises
    ------
    ValidationError
        If the result has no score or its skill gaps are not a list.
    """
    if result.score is None:
        raise ValidationError("Practice result must have a score")
    if not isinstance(result.skill_gaps, (list, tuple)):
        raise ValidationError("Practice result must have skill_gaps array")

    skill = identify_weakest_skill(result.skill_gaps)
    questions = select_challenge_questions(skill)
    share_copy = generate_share_copy(result.score, skill, inviter_full_name)

    return ChallengePayload(
        skill=skill,
        questions=questions,
        share_copy=share_copy,
        inviter_score=result.score,
    )
