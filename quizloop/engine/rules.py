"""
quizloop.engine.rules — Eligibility Rule Pipeline
==================================================

Pure evaluation of the buddy-challenge eligibility rules.
No DB I/O inside the engine: the orchestrator service loads the facts,
this module decides.

Pipeline stages (fixed order, first Skip is terminal):
  Completion → Score → Rate limit → Cooldown → Score threshold → Trigger

Each stage returns :data:`PROCEED` or a :class:`Skip`.  Stages append the
feature tags they consult to the :class:`Trace`, which also collects the
context values written to the decision log.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from quizloop.constants import (
    FEATURE_COMPLETION_CHECK,
    FEATURE_INVITE_COUNT_TODAY,
    FEATURE_LAST_INVITE,
    FEATURE_PRACTICE_SCORE,
    LOOP_TYPE_BUDDY_CHALLENGE,
)
from quizloop.database.models import ReasonCode
from quizloop.database.records import PracticeResultRecord

__all__ = [
    "PROCEED",
    "RULES",
    "EligibilityFacts",
    "EligibilityPolicy",
    "Proceed",
    "Skip",
    "Trace",
    "Verdict",
    "evaluate",
    "hours_since",
    "start_of_utc_day",
]


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class EligibilityPolicy:
    """Tunable limits; defaults are the production rules."""

    daily_invite_limit: int = 3
    cooldown_hours: float = 1.0
    min_share_score: int = 50


@dataclass(frozen=True, slots=True)
class EligibilityFacts:
    """Everything the rules look at, loaded by the orchestrator."""

    now: datetime
    practice_result: PracticeResultRecord | None
    event_score: int | None = None
    invites_today: int = 0
    last_invite_at: datetime | None = None


# ---------------------------------------------------------------------------
# Stage outcomes
# ---------------------------------------------------------------------------
class Proceed:
    """Stage passed; continue with the next one."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "PROCEED"


PROCEED = Proceed()


@dataclass(frozen=True, slots=True)
class Skip:
    """Stage failed; evaluation stops with this reason."""

    reason: ReasonCode
    rationale: str


@dataclass
class Trace:
    """Mutable accumulator threaded through the stages."""

    features_used: list[str] = field(default_factory=list)
    score: int | None = None
    invites_today: int | None = None
    last_invite_hours_ago: float | None = None


@dataclass(frozen=True, slots=True)
class Verdict:
    """Final output of the pipeline."""

    should_trigger: bool
    reason: ReasonCode
    rationale: str
    features_used: tuple[str, ...]
    loop_type: str | None = None


# ---------------------------------------------------------------------------
# Time helpers
# ---------------------------------------------------------------------------
def start_of_utc_day(now: datetime) -> datetime:
    """00:00:00.000 UTC of the day containing *now* (tz-aware UTC)."""
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def hours_since(then: datetime, now: datetime) -> float:
    return (now - then).total_seconds() / 3600.0


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------
Stage = Callable[[EligibilityFacts, EligibilityPolicy, Trace], Proceed | Skip]


def check_completion(
    facts: EligibilityFacts, policy: EligibilityPolicy, trace: Trace
) -> Proceed | Skip:
    """Stage 1: the practice result must exist and carry completed_at."""
    trace.features_used.append(FEATURE_COMPLETION_CHECK)
    result = facts.practice_result
    if result is None or not result.is_completed:
        return Skip(ReasonCode.NO_COMPLETION, "No practice test completion found")
    return PROCEED


def resolve_score(
    facts: EligibilityFacts, policy: EligibilityPolicy, trace: Trace
) -> Proceed | Skip:
    """Stage 2: the event's score wins over the stored one."""
    if facts.event_score is not None:
        trace.score = facts.event_score
    elif facts.practice_result is not None:
        trace.score = facts.practice_result.score
    trace.features_used.append(FEATURE_PRACTICE_SCORE)
    return PROCEED


def check_rate_limit(
    facts: EligibilityFacts, policy: EligibilityPolicy, trace: Trace
) -> Proceed | Skip:
    """Stage 3: at most ``daily_invite_limit`` invites per UTC day."""
    trace.features_used.append(FEATURE_INVITE_COUNT_TODAY)
    trace.invites_today = facts.invites_today
    limit = policy.daily_invite_limit
    if facts.invites_today >= limit:
        return Skip(
            ReasonCode.RATE_LIMITED,
            f"Rate limit reached ({facts.invites_today}/{limit} invites today)",
        )
    return PROCEED


def check_cooldown(
    facts: EligibilityFacts, policy: EligibilityPolicy, trace: Trace
) -> Proceed | Skip:
    """Stage 4: the previous invite must be at least ``cooldown_hours`` old.

    Exactly ``cooldown_hours`` passes.
    """
    trace.features_used.append(FEATURE_LAST_INVITE)
    if facts.last_invite_at is None:
        return PROCEED

    elapsed = hours_since(facts.last_invite_at, facts.now)
    trace.last_invite_hours_ago = elapsed
    if elapsed < policy.cooldown_hours:
        minutes = math.floor(elapsed * 60)
        return Skip(
            ReasonCode.COOLDOWN,
            f"Cooldown period active (last invite {minutes} minutes ago)",
        )
    return PROCEED


def check_score_threshold(
    facts: EligibilityFacts, policy: EligibilityPolicy, trace: Trace
) -> Proceed | Skip:
    """Stage 5: low scores are not worth sharing."""
    if trace.score is not None and trace.score < policy.min_share_score:
        return Skip(
            ReasonCode.SCORE_TOO_LOW,
            f"Score too low ({trace.score}%), may discourage sharing",
        )
    return PROCEED


RULES: tuple[Stage, ...] = (
    check_completion,
    resolve_score,
    check_rate_limit,
    check_cooldown,
    check_score_threshold,
)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------
def _trigger_rationale(trace: Trace, policy: EligibilityPolicy) -> str:
    text = (
        f"User scored {trace.score}% on practice test, "
        f"{trace.invites_today}/{policy.daily_invite_limit} invites used today"
    )
    if trace.last_invite_hours_ago is not None:
        minutes = math.floor(trace.last_invite_hours_ago * 60)
        return f"{text}, last invite {minutes} minutes ago"
    return f"{text}, no previous invites"


def evaluate(
    facts: EligibilityFacts,
    policy: EligibilityPolicy | None = None,
    *,
    stages: tuple[Stage, ...] = RULES,
    trace: Trace | None = None,
) -> tuple[Verdict, Trace]:
    """Run *stages* in order and return the verdict plus the trace.

    A caller-supplied *trace* is filled in place.  This is a PURE
    function with no DB I/O.
    """
    policy = policy or EligibilityPolicy()
    trace = trace if trace is not None else Trace()

    for stage in stages:
        outcome = stage(facts, policy, trace)
        if isinstance(outcome, Skip):
            return Verdict(
                should_trigger=False,
                reason=outcome.reason,
                rationale=outcome.rationale,
                features_used=tuple(trace.features_used),
            ), trace

    return Verdict(
        should_trigger=True,
        reason=ReasonCode.ELIGIBLE,
        rationale=_trigger_rationale(trace, policy),
        features_used=tuple(trace.features_used),
        loop_type=LOOP_TYPE_BUDDY_CHALLENGE,
    ), trace
