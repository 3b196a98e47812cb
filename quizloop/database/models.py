"""
quizloop.database.models — SQLAlchemy 2.0 Data Models
======================================================

Tables:
- users              — Students and invitees (created on first contact)
- practice_results   — Graded practice tests, immutable once written
- invites            — Buddy-challenge invites with embedded challenge data
- decisions          — Append-only orchestrator audit trail
- analytics_counters — Singleton funnel counters, incremented in-transaction
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# JSONB on PostgreSQL, plain JSON everywhere else (SQLite in tests)
JSONDocument = JSON().with_variant(JSONB(), "postgresql")


def new_id() -> str:
    return uuid.uuid4().hex


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all QuizLoop ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class EventType(enum.StrEnum):
    """Events that can ask the orchestrator for a decision."""
    PRACTICE_COMPLETED = "practice_completed"
    INVITE_REQUESTED = "invite_requested"


class ReasonCode(enum.StrEnum):
    """Structured outcome of a decision, stored next to the rationale.

    Callers branch on this, never on the human-readable rationale.
    """
    ELIGIBLE = "eligible"
    NO_COMPLETION = "no_completion"
    RATE_LIMITED = "rate_limited"
    COOLDOWN = "cooldown"
    SCORE_TOO_LOW = "score_too_low"
    SYSTEM_ERROR = "system_error"


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    xp: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    practice_results: Mapped[list[PracticeResult]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} name={self.name!r}>"


# ---------------------------------------------------------------------------
# PracticeResult: one graded practice test
# ---------------------------------------------------------------------------
class PracticeResult(Base):
    __tablename__ = "practice_results"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    skill_gaps: Mapped[list] = mapped_column(JSONDocument, nullable=False, default=list)
    # Presence of completed_at is the signal of a valid completion
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    user: Mapped[User] = relationship(back_populates="practice_results")

    __table_args__ = (
        Index("ix_practice_results_user", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<PracticeResult id={self.id} user={self.user_id} score={self.score}>"


# ---------------------------------------------------------------------------
# Invite: a buddy challenge reachable through its short code
# ---------------------------------------------------------------------------
class Invite(Base):
    """Funnel record for one challenge link.

    Lifecycle: created → opened (first visit only) → accepted (exactly
    once, sets invitee_id) → fvm_reached.  ``accepted_at`` is set iff
    ``invitee_id`` is set.
    """
    __tablename__ = "invites"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    short_code: Mapped[str] = mapped_column(String(8), nullable=False, unique=True)
    inviter_id: Mapped[str] = mapped_column(String(64), nullable=False)
    loop_type: Mapped[str] = mapped_column(String(50), nullable=False)
    practice_result_id: Mapped[str | None] = mapped_column(
        String(64), ForeignKey("practice_results.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    opened_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    invitee_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    fvm_reached_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    challenge_data: Mapped[dict] = mapped_column(JSONDocument, nullable=False)

    __table_args__ = (
        # Rate-limit count and last-invite lookup both filter on inviter + time
        Index("ix_invites_inviter_created", "inviter_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Invite id={self.id} code={self.short_code!r} inviter={self.inviter_id}>"


# ---------------------------------------------------------------------------
# Decision: append-only orchestrator audit trail
# ---------------------------------------------------------------------------
class Decision(Base):
    __tablename__ = "decisions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    event_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    decision: Mapped[str] = mapped_column(String(50), nullable=False)
    reason_code: Mapped[str] = mapped_column(String(30), nullable=False)
    rationale: Mapped[str] = mapped_column(Text, nullable=False)
    features_used: Mapped[list] = mapped_column(JSONDocument, nullable=False, default=list)
    context: Mapped[dict] = mapped_column(JSONDocument, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_decisions_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Decision id={self.id} user={self.user_id} decision={self.decision}>"


# ---------------------------------------------------------------------------
# AnalyticsCounters: singleton funnel counters
# ---------------------------------------------------------------------------
class AnalyticsCounters(Base):
    """Monotonic funnel counters.

    Only ever changed with SQL-side ``col = col + 1`` inside the same
    transaction as the state change being counted.
    """
    __tablename__ = "analytics_counters"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    total_users: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_invites_sent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_invites_opened: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_invites_accepted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_fvm_reached: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return (
            f"<AnalyticsCounters users={self.total_users} "
            f"sent={self.total_invites_sent} fvm={self.total_fvm_reached}>"
        )
