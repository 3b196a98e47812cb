"""
quizloop.services.invite_service — Invite Lifecycle
====================================================

Create → open → accept → FVM reached.  Each transition and its funnel
counter increment commit together in one session.

Opening and accepting are guarded by conditional updates
(``opened_at IS NULL`` / ``invitee_id IS NULL``), so concurrent requests
cannot double-count an open or accept an invite twice.  Accepting stamps
a missing ``opened_at`` in the same transaction, keeping
``opened_at <= accepted_at``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from quizloop.constants import CHALLENGE_ESTIMATED_TIME, LOOP_TYPE_BUDDY_CHALLENGE, is_valid_email
from quizloop.database.engine import run_db
from quizloop.database.models import EventType, Invite, ReasonCode, User, new_id
from quizloop.database.records import ChallengeData, InviteRecord, UserRecord
from quizloop.engine.challenge import first_name, generate_challenge
from quizloop.engine.events import LoopEvent
from quizloop.errors import (
    ConflictError,
    CooldownError,
    EligibilityError,
    ForbiddenError,
    NotEligibleError,
    NotFoundError,
    RateLimitedError,
    ScoreTooLowError,
    StoreError,
    ValidationError,
)
from quizloop.services.analytics_service import increment_counter
from quizloop.services.orchestrator import LoopOrchestrator, load_practice_result
from quizloop.services.short_codes import (
    DEFAULT_MAX_RETRIES,
    ShortCodeAllocator,
    is_valid_code,
    normalize_code,
)

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ShareCard:
    text: str
    inviter_name: str
    score: int
    skill: str


@dataclass(frozen=True, slots=True)
class InviteCreated:
    invite_id: str
    short_code: str
    share_url: str
    share_card: ShareCard


@dataclass(frozen=True, slots=True)
class InvitePreview:
    invite: InviteRecord
    inviter_first_name: str
    first_open: bool

    @property
    def call_to_action(self) -> str:
        return f"Beat {self.inviter_first_name}'s score!"

    @property
    def estimated_time(self) -> str:
        return CHALLENGE_ESTIMATED_TIME


@dataclass(frozen=True, slots=True)
class AcceptedInvite:
    user_id: str
    invite_id: str
    challenge: ChallengeData

    @property
    def redirect_url(self) -> str:
        return f"/challenge/{self.invite_id}"


# Denial reason → error raised to the caller of create_invite
_DENIALS: dict[ReasonCode, tuple[type[EligibilityError], str]] = {
    ReasonCode.RATE_LIMITED: (RateLimitedError, "You can only send 3 challenges per day"),
    ReasonCode.COOLDOWN: (CooldownError, "Please wait before sending another challenge"),
    ReasonCode.SCORE_TOO_LOW: (
        ScoreTooLowError, "Score must be at least 50% to challenge friends"
    ),
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def load_user(engine: Engine, user_id: str) -> UserRecord | None:
    with Session(engine) as session:
        row = session.get(User, user_id)
        return UserRecord.from_row(row) if row is not None else None


def find_invite(session: Session, code: str) -> Invite | None:
    """Case-insensitive lookup by short code."""
    return session.scalar(
        select(Invite).where(Invite.short_code == normalize_code(code)).limit(1)
    )


def _insert_invite(
    engine: Engine,
    short_code: str,
    inviter_id: str,
    practice_result_id: str,
    challenge: ChallengeData,
) -> str:
    with Session(engine) as session:
        invite = Invite(
            short_code=short_code,
            inviter_id=inviter_id,
            loop_type=LOOP_TYPE_BUDDY_CHALLENGE,
            practice_result_id=practice_result_id,
            challenge_data=challenge.to_dict(),
        )
        session.add(invite)
        session.flush()
        increment_counter(session, "total_invites_sent")
        session.commit()
        return invite.id


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------
async def create_invite(
    engine: Engine,
    orchestrator: LoopOrchestrator,
    allocator: ShortCodeAllocator,
    user_id: str,
    result_id: str,
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> InviteCreated:
    """Create a buddy-challenge invite for *user_id*'s practice result.

    Raises
    ------
    NotFoundError
        Unknown practice result or inviter.
    ForbiddenError
        The result belongs to another user.
    ValidationError
        The result is not completed.
    EligibilityError
        The orchestrator declined; the subclass follows the reason code.
    CollisionExhaustedError
        No unique short code could be allocated.
    """
    result = await run_db(load_practice_result, engine, result_id)
    if result is None:
        raise NotFoundError("Practice result not found")
    if result.user_id != user_id:
        raise ForbiddenError("Practice result does not belong to user")
    if not result.is_completed:
        raise ValidationError("Practice result not completed")

    outcome = await orchestrator.decide(
        user_id,
        LoopEvent(
            type=EventType.INVITE_REQUESTED,
            result_id=result_id,
            score=result.score,
            skill_gaps=result.skill_gaps,
        ),
    )
    if not outcome.should_trigger:
        error_cls, message = _DENIALS.get(
            outcome.reason,
            (NotEligibleError, "You are not eligible to create a challenge at this time"),
        )
        raise error_cls(message)

    inviter = await run_db(load_user, engine, user_id)
    if inviter is None:
        raise NotFoundError("User not found")

    payload = generate_challenge(result, inviter.name)
    inviter_first = first_name(inviter.name)
    challenge = ChallengeData(
        skill=payload.skill,
        questions=payload.questions,
        share_copy=payload.share_copy,
        inviter_name=inviter_first,
        inviter_score=result.score,
    )

    short_code = await run_db(allocator.generate_unique, max_retries)
    try:
        invite_id = await run_db(
            _insert_invite, engine, short_code, user_id, result_id, challenge
        )
    except IntegrityError as exc:
        # Another request took the code between check and insert
        raise StoreError("Failed to create invite, please try again") from exc

    logger.info("Invite %s created by user %s (%s)", short_code, user_id, payload.skill)
    return InviteCreated(
        invite_id=invite_id,
        short_code=short_code,
        share_url=allocator.build_share_url(short_code),
        share_card=ShareCard(
            text=payload.share_copy,
            inviter_name=inviter_first,
            score=result.score,
            skill=payload.skill,
        ),
    )


# ---------------------------------------------------------------------------
# Open
# ---------------------------------------------------------------------------
def resolve_invite(engine: Engine, code: str) -> InvitePreview:
    """Look up an invite for the public preview page.

    Does not stamp ``opened_at``; callers schedule :func:`stamp_opened`
    when ``first_open`` is true.
    """
    if not is_valid_code(code):
        raise ValidationError("Invalid invite code format", code="invalid_code")

    with Session(engine) as session:
        row = find_invite(session, code)
        if row is None:
            raise NotFoundError("Challenge not found or expired")
        invite = InviteRecord.from_row(row)
        inviter = session.get(User, invite.inviter_id)
        if inviter is None:
            logger.error("Inviter %s of invite %s not found", invite.inviter_id, invite.id)
            raise StoreError("Challenge data is incomplete", code="data_error")
        inviter_name = UserRecord.from_row(inviter).name

    return InvitePreview(
        invite=invite,
        inviter_first_name=first_name(inviter_name),
        first_open=invite.opened_at is None,
    )


def stamp_opened(engine: Engine, invite_id: str) -> bool:
    """Record the first open of *invite_id*.

    Returns ``True`` if this call stamped it.  Failures are logged, never
    raised.
    """
    try:
        with Session(engine) as session:
            stamped = session.execute(
                update(Invite)
                .where(Invite.id == invite_id, Invite.opened_at.is_(None))
                .values(opened_at=func.now())
                .execution_options(synchronize_session=False)
            ).rowcount
            if stamped:
                increment_counter(session, "total_invites_opened")
            session.commit()
            return bool(stamped)
    except SQLAlchemyError:
        logger.exception("Failed to record open of invite %s", invite_id)
        return False


# ---------------------------------------------------------------------------
# Accept
# ---------------------------------------------------------------------------
def _find_or_create_user(session: Session, name: str, email: str | None) -> User:
    if email:
        existing = session.scalar(select(User).where(User.email == email).limit(1))
        if existing is not None:
            return existing

    user_id = new_id()
    user = User(id=user_id, name=name, email=email or f"user_{user_id}@temp.local")
    session.add(user)
    session.flush()
    increment_counter(session, "total_users")
    return user


def accept_invite(engine: Engine, code: str, name: str, email: str | None = None) -> AcceptedInvite:
    """Accept an invite as *name*, creating the invitee on first contact.

    Raises
    ------
    ValidationError
        Missing name or malformed email.
    NotFoundError
        Unknown code.
    ConflictError
        Already accepted (``already_accepted``); nothing is changed.
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("Name is required")
    email = (email or "").strip() or None
    if email is not None and not is_valid_email(email):
        raise ValidationError("Invalid email format")

    with Session(engine) as session:
        row = find_invite(session, code)
        if row is None:
            raise NotFoundError("Challenge not found")
        invite = InviteRecord.from_row(row)
        if invite.is_accepted:
            raise ConflictError(
                "This challenge has already been accepted", code="already_accepted"
            )

        try:
            user = _find_or_create_user(session, name, email)
            # An invite accepted without a preview counts as opened first
            opened = session.execute(
                update(Invite)
                .where(Invite.id == invite.id, Invite.opened_at.is_(None))
                .values(opened_at=func.now())
                .execution_options(synchronize_session=False)
            ).rowcount
            if opened:
                increment_counter(session, "total_invites_opened")
            accepted = session.execute(
                update(Invite)
                .where(Invite.id == invite.id, Invite.invitee_id.is_(None))
                .values(invitee_id=user.id, accepted_at=func.now())
                .execution_options(synchronize_session=False)
            ).rowcount
            if not accepted:
                session.rollback()
                raise ConflictError(
                    "This challenge has already been accepted", code="already_accepted"
                )
            increment_counter(session, "total_invites_accepted")
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise StoreError("Failed to accept challenge") from exc
        user_id = user.id

    logger.info("Invite %s accepted by user %s", invite.short_code, user_id)
    return AcceptedInvite(user_id=user_id, invite_id=invite.id, challenge=invite.challenge)


# ---------------------------------------------------------------------------
# First value moment
# ---------------------------------------------------------------------------
def mark_fvm_reached(engine: Engine, invite_id: str) -> None:
    """Stamp ``fvm_reached_at`` on an accepted invite, once."""
    with Session(engine) as session:
        row = session.get(Invite, invite_id)
        if row is None:
            raise NotFoundError("Challenge not found")
        if row.invitee_id is None:
            raise ConflictError("Challenge has not been accepted", code="not_accepted")

        stamped = session.execute(
            update(Invite)
            .where(Invite.id == invite_id, Invite.fvm_reached_at.is_(None))
            .values(fvm_reached_at=func.now())
            .execution_options(synchronize_session=False)
        ).rowcount
        if not stamped:
            raise ConflictError("First value moment already recorded", code="already_reached")
        increment_counter(session, "total_fvm_reached")
        session.commit()

    logger.info("Invite %s reached first value moment", invite_id)

