"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session

from quizloop.database.engine import init_db
from quizloop.database.models import Invite, PracticeResult, User
from quizloop.database.records import ChallengeData
from quizloop.engine.question_bank import QUESTION_BANK

FIXED_NOW = datetime(2026, 3, 10, 15, 0, 0, tzinfo=UTC)


@pytest.fixture
def db_engine(tmp_path) -> Engine:
    """File-backed SQLite engine with all QuizLoop tables and seeded counters.

    A file (not ``sqlite://``) so that concurrent ``asyncio.to_thread``
    reads each get their own pooled connection.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'quizloop.db'}",
        echo=False,
        connect_args={"check_same_thread": False},
    )
    init_db(engine)
    yield engine
    engine.dispose()


# ---------------------------------------------------------------------------
# Row factories
# ---------------------------------------------------------------------------
def make_user(
    engine: Engine,
    user_id: str = "user-1",
    name: str = "Alice Smith",
    email: str | None = None,
) -> str:
    with Session(engine) as session:
        session.add(User(id=user_id, name=name, email=email or f"{user_id}@example.com"))
        session.commit()
    return user_id


def make_result(
    engine: Engine,
    user_id: str = "user-1",
    score: int = 85,
    skill_gaps: list[str] | None = None,
    *,
    result_id: str = "result-1",
    completed_at: datetime | None = FIXED_NOW,
) -> str:
    with Session(engine) as session:
        session.add(PracticeResult(
            id=result_id,
            user_id=user_id,
            score=score,
            skill_gaps=["Algebra"] if skill_gaps is None else skill_gaps,
            completed_at=completed_at,
        ))
        session.commit()
    return result_id


def challenge_dict(skill: str = "Algebra", inviter_name: str = "Alice", score: int = 85) -> dict:
    return ChallengeData(
        skill=skill,
        questions=QUESTION_BANK[skill][:5],
        share_copy=f"{inviter_name} got {score}% on {skill}. Can you do better?",
        inviter_name=inviter_name,
        inviter_score=score,
    ).to_dict()


def make_invite(
    engine: Engine,
    inviter_id: str = "user-1",
    *,
    short_code: str = "abc123",
    created_at: datetime | None = None,
    invitee_id: str | None = None,
    accepted_at: datetime | None = None,
    opened_at: datetime | None = None,
) -> str:
    with Session(engine) as session:
        invite = Invite(
            short_code=short_code,
            inviter_id=inviter_id,
            loop_type="buddy_challenge",
            opened_at=opened_at,
            invitee_id=invitee_id,
            accepted_at=accepted_at,
            challenge_data=challenge_dict(),
        )
        if created_at is not None:
            invite.created_at = created_at
        session.add(invite)
        session.commit()
        return invite.id


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------
@pytest.fixture
def client(db_engine):
    """TestClient wired to the per-test SQLite engine and default config."""
    from fastapi.testclient import TestClient

    from quizloop.api.deps import get_config, get_engine
    from quizloop.api.main import app
    from quizloop.config import QuizLoopConfig

    app.dependency_overrides[get_engine] = lambda: db_engine
    app.dependency_overrides[get_config] = lambda: QuizLoopConfig(base_url="https://quiz.test")
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
