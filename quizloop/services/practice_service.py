"""
quizloop.services.practice_service — Practice Test Completion
==============================================================

Grades a submitted practice test against the fixed 10-question test,
stores the result as completed, and reports whether the share prompt
should be offered.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.orm import Session

from quizloop.constants import PRACTICE_TEST_LENGTH, is_valid_email
from quizloop.database.models import PracticeResult, User
from quizloop.engine.question_bank import get_test_questions
from quizloop.engine.scoring import Answer, calculate_score, identify_skill_gaps
from quizloop.errors import ConflictError, ValidationError
from quizloop.services.analytics_service import increment_counter

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)

DEFAULT_STUDENT_NAME = "Student"
MAX_USER_ID_LENGTH = 64


@dataclass(frozen=True, slots=True)
class PracticeOutcome:
    result_id: str
    score: int
    skill_gaps: list[str]
    should_show_invite: bool


def validate_answers(answers: Sequence[Answer], expected_ids: set[str]) -> None:
    """Exactly one answer per practice question, each an option index 0–3."""
    if len(answers) != PRACTICE_TEST_LENGTH:
        raise ValidationError(f"answers array must have exactly {PRACTICE_TEST_LENGTH} items")

    seen: set[str] = set()
    for answer in answers:
        if not answer.question_id:
            raise ValidationError("Each answer must have a valid questionId (string)")
        if not 0 <= answer.selected_answer <= 3:
            raise ValidationError("Each answer must have selectedAnswer as number 0-3")
        if answer.question_id in seen:
            raise ValidationError("Duplicate questionId found in answers array")
        seen.add(answer.question_id)
        if answer.question_id not in expected_ids:
            raise ValidationError(f'Question ID "{answer.question_id}" is not valid')


def _ensure_user(session: Session, user_id: str, name: str | None, email: str | None) -> None:
    if session.get(User, user_id) is not None:
        return

    if email and session.scalar(select(User.id).where(User.email == email)) is not None:
        raise ConflictError("Email is already registered", code="email_in_use")

    session.add(User(
        id=user_id,
        name=(name or "").strip() or DEFAULT_STUDENT_NAME,
        email=email or f"user_{user_id}@temp.local",
    ))
    session.flush()
    increment_counter(session, "total_users")
    logger.info("Created user %s on first practice completion", user_id)


def complete_practice(
    engine: Engine,
    user_id: str,
    answers: Sequence[Answer],
    name: str | None = None,
    email: str | None = None,
    *,
    min_share_score: int = 50,
) -> PracticeOutcome:
    """Grade *answers* and store the completed result for *user_id*.

    Raises
    ------
    ValidationError
        Missing user id, malformed answers, or a malformed email.
    ConflictError
        A new user's email already belongs to someone else.
    """
    user_id = (user_id or "").strip()
    if not user_id or len(user_id) > MAX_USER_ID_LENGTH:
        raise ValidationError("userId is required and must be a non-empty string")
    email = (email or "").strip() or None
    if email is not None and not is_valid_email(email):
        raise ValidationError("Invalid email format")

    questions = get_test_questions()
    validate_answers(answers, {q.id for q in questions})

    score = calculate_score(questions, answers)
    skill_gaps = identify_skill_gaps(questions, answers)

    with Session(engine) as session:
        _ensure_user(session, user_id, name, email)
        result = PracticeResult(
            user_id=user_id,
            score=score,
            skill_gaps=skill_gaps,
            completed_at=datetime.now(UTC),
        )
        session.add(result)
        session.commit()
        result_id = result.id

    logger.info("Practice result %s stored for user %s (score %d)", result_id, user_id, score)
    return PracticeOutcome(
        result_id=result_id,
        score=score,
        skill_gaps=skill_gaps,
        should_show_invite=score >= min_share_score,
    )
