"""
quizloop.database.records — Validated Read Boundary
====================================================

ORM rows are converted to frozen records right after every read.  The
conversion checks types and ranges and normalises timestamps to UTC, so
nothing downstream ever sees a half-populated or mistyped row.  A row
that fails validation raises :class:`~quizloop.errors.StoreError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from quizloop.database.engine import as_utc
from quizloop.database.models import Invite, PracticeResult, User
from quizloop.engine.question_bank import Question
from quizloop.errors import StoreError

__all__ = [
    "ChallengeData",
    "InviteRecord",
    "PracticeResultRecord",
    "UserRecord",
]


def _opt_utc(value: datetime | None) -> datetime | None:
    return as_utc(value) if value is not None else None


def _require(condition: bool, table: str, row_id: Any, detail: str) -> None:
    if not condition:
        raise StoreError(f"Malformed {table} row {row_id!r}: {detail}")


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class UserRecord:
    id: str
    email: str
    name: str
    xp: int
    created_at: datetime | None

    @classmethod
    def from_row(cls, row: User) -> UserRecord:
        _require(isinstance(row.name, str) and row.name.strip() != "", "users", row.id, "name")
        return cls(
            id=row.id,
            email=row.email,
            name=row.name,
            xp=row.xp or 0,
            created_at=_opt_utc(row.created_at),
        )


# ---------------------------------------------------------------------------
# Practice results
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class PracticeResultRecord:
    id: str
    user_id: str
    score: int
    skill_gaps: tuple[str, ...]
    completed_at: datetime | None

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    @classmethod
    def from_row(cls, row: PracticeResult) -> PracticeResultRecord:
        _require(
            isinstance(row.score, int) and 0 <= row.score <= 100,
            "practice_results", row.id, f"score={row.score!r}",
        )
        gaps = row.skill_gaps if row.skill_gaps is not None else []
        _require(
            isinstance(gaps, list) and all(isinstance(s, str) for s in gaps),
            "practice_results", row.id, "skill_gaps must be a list of strings",
        )
        return cls(
            id=row.id,
            user_id=row.user_id,
            score=row.score,
            skill_gaps=tuple(gaps),
            completed_at=_opt_utc(row.completed_at),
        )


# ---------------------------------------------------------------------------
# Invites
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ChallengeData:
    """Challenge embedded in an invite.  ``inviter_name`` is a first name only."""

    skill: str
    questions: tuple[Question, ...]
    share_copy: str
    inviter_name: str
    inviter_score: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "skill": self.skill,
            "questions": [q.to_dict() for q in self.questions],
            "share_copy": self.share_copy,
            "inviter_name": self.inviter_name,
            "inviter_score": self.inviter_score,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChallengeData:
        return cls(
            skill=str(data["skill"]),
            questions=tuple(Question.from_dict(q) for q in data["questions"]),
            share_copy=str(data["share_copy"]),
            inviter_name=str(data["inviter_name"]),
            inviter_score=int(data["inviter_score"]),
        )


@dataclass(frozen=True, slots=True)
class InviteRecord:
    id: str
    short_code: str
    inviter_id: str
    loop_type: str
    practice_result_id: str | None
    created_at: datetime | None
    opened_at: datetime | None
    invitee_id: str | None
    accepted_at: datetime | None
    fvm_reached_at: datetime | None
    challenge: ChallengeData

    @property
    def is_accepted(self) -> bool:
        return self.invitee_id is not None

    @classmethod
    def from_row(cls, row: Invite) -> InviteRecord:
        _require(
            (row.invitee_id is None) == (row.accepted_at is None),
            "invites", row.id, "invitee_id and accepted_at must be set together",
        )
        _require(isinstance(row.challenge_data, dict), "invites", row.id, "challenge_data")
        try:
            challenge = ChallengeData.from_dict(row.challenge_data)
        except (KeyError, TypeError, ValueError) as exc:
            raise StoreError(f"Malformed invites row {row.id!r}: challenge_data ({exc})") from exc
        return cls(
            id=row.id,
            short_code=row.short_code,
            inviter_id=row.inviter_id,
            loop_type=row.loop_type,
            practice_result_id=row.practice_result_id,
            created_at=_opt_utc(row.created_at),
            opened_at=_opt_utc(row.opened_at),
            invitee_id=row.invitee_id,
            accepted_at=_opt_utc(row.accepted_at),
            fvm_reached_at=_opt_utc(row.fvm_reached_at),
            challenge=challenge,
        )
