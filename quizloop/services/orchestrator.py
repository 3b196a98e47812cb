"""
quizloop.services.orchestrator — Buddy-Challenge Decision Service
==================================================================

Loads the facts the eligibility rules need, runs the pure rule pipeline
from :mod:`quizloop.engine.rules`, and appends the outcome to the
decision log.

Fail-closed: any error while loading facts becomes a ``SYSTEM_ERROR``
skip, and an audit-log fault only changes the returned decision id.
The caller always gets a decision back.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from quizloop.constants import FEATURE_ERROR_FALLBACK
from quizloop.database.engine import as_utc, run_db
from quizloop.database.models import Invite, PracticeResult, ReasonCode
from quizloop.database.records import PracticeResultRecord
from quizloop.engine.events import LoopEvent
from quizloop.engine.rules import (
    EligibilityFacts,
    EligibilityPolicy,
    Trace,
    Verdict,
    evaluate,
    start_of_utc_day,
)
from quizloop.services.decision_logger import DecisionContext, DecisionLogger

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)

SYSTEM_ERROR_RATIONALE = "System error, defaulting to skip"
DEFAULT_BUDGET_MS = 150.0


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Fact loaders (synchronous, run through run_db)
# ---------------------------------------------------------------------------
def load_practice_result(engine: Engine, result_id: str) -> PracticeResultRecord | None:
    with Session(engine) as session:
        row = session.get(PracticeResult, result_id)
        return PracticeResultRecord.from_row(row) if row is not None else None


def count_invites_since(engine: Engine, user_id: str, since: datetime) -> int:
    """Invites created by *user_id* at or after *since*."""
    with Session(engine) as session:
        return session.scalar(
            select(func.count())
            .select_from(Invite)
            .where(Invite.inviter_id == user_id, Invite.created_at >= since)
        ) or 0


def last_invite_at(engine: Engine, user_id: str) -> datetime | None:
    """``created_at`` of the user's most recent invite, UTC."""
    with Session(engine) as session:
        created = session.scalar(
            select(Invite.created_at)
            .where(Invite.inviter_id == user_id)
            .order_by(Invite.created_at.desc())
            .limit(1)
        )
    return as_utc(created) if created is not None else None


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class DecisionOutcome:
    verdict: Verdict
    decision_id: str

    @property
    def should_trigger(self) -> bool:
        return self.verdict.should_trigger

    @property
    def reason(self) -> ReasonCode:
        return self.verdict.reason


class LoopOrchestrator:
    """Decides whether a user event should trigger the buddy challenge."""

    def __init__(
        self,
        engine: Engine,
        *,
        decision_logger: DecisionLogger | None = None,
        policy: EligibilityPolicy | None = None,
        clock: Callable[[], datetime] = _utcnow,
        budget_ms: float = DEFAULT_BUDGET_MS,
    ) -> None:
        self.engine = engine
        self.decision_logger = decision_logger or DecisionLogger(engine)
        self.policy = policy or EligibilityPolicy()
        self.clock = clock
        self.budget_ms = budget_ms

    async def _load_facts(
        self, user_id: str, event: LoopEvent, now: datetime, trace: Trace
    ) -> EligibilityFacts:
        """Load the rule inputs, recording values in *trace* as they arrive.

        A failure part way through leaves the values already loaded in
        *trace* for the error-fallback audit row.
        """
        result = await run_db(load_practice_result, self.engine, event.result_id)
        if result is None or not result.is_completed:
            # Completion stage will skip; history is never consulted
            return EligibilityFacts(now=now, practice_result=result, event_score=event.score)
        trace.score = event.score if event.score is not None else result.score

        invites_today, last_at = await asyncio.gather(
            run_db(count_invites_since, self.engine, user_id, start_of_utc_day(now)),
            run_db(last_invite_at, self.engine, user_id),
            return_exceptions=True,
        )
        if not isinstance(invites_today, BaseException):
            trace.invites_today = invites_today
        for outcome in (invites_today, last_at):
            if isinstance(outcome, BaseException):
                raise outcome
        return EligibilityFacts(
            now=now,
            practice_result=result,
            event_score=event.score,
            invites_today=invites_today,
            last_invite_at=last_at,
        )

    async def decide(self, user_id: str, event: LoopEvent) -> DecisionOutcome:
        """Evaluate *event* for *user_id*, log the decision, return it.

        Never raises for data or store faults.
        """
        started = time.perf_counter()
        now = self.clock()

        trace = Trace()
        try:
            facts = await self._load_facts(user_id, event, now, trace)
            verdict, trace = evaluate(facts, self.policy, trace=trace)
        except Exception:
            logger.exception("Decision failed for user %s, result %s", user_id, event.result_id)
            verdict = Verdict(
                should_trigger=False,
                reason=ReasonCode.SYSTEM_ERROR,
                rationale=SYSTEM_ERROR_RATIONALE,
                features_used=(FEATURE_ERROR_FALLBACK,),
            )

        context = DecisionContext(
            user_id=user_id,
            event_type=str(event.type),
            event_id=event.result_id,
            score=trace.score,
            invites_today=trace.invites_today,
            last_invite_hours_ago=trace.last_invite_hours_ago,
        )
        decision_id = await run_db(self.decision_logger.log, verdict, context)

        elapsed_ms = (time.perf_counter() - started) * 1000
        if elapsed_ms > self.budget_ms:
            logger.warning(
                "Decision for user %s took %.1fms (budget %.0fms)",
                user_id, elapsed_ms, self.budget_ms,
            )

        if verdict.reason in (ReasonCode.RATE_LIMITED, ReasonCode.COOLDOWN):
            logger.warning("User %s denied: %s", user_id, verdict.rationale)
        return DecisionOutcome(verdict=verdict, decision_id=decision_id)
