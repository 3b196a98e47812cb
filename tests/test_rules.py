"""
tests/test_rules.py — Eligibility Rule Pipeline Tests
======================================================
Pure tests for quizloop.engine.rules: stage boundaries, stage order,
feature tags and rationale text.  No database.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from quizloop.database.models import ReasonCode
from quizloop.database.records import PracticeResultRecord
from quizloop.engine.rules import (
    PROCEED,
    EligibilityFacts,
    EligibilityPolicy,
    Skip,
    Trace,
    check_cooldown,
    evaluate,
    hours_since,
    start_of_utc_day,
)

NOW = datetime(2026, 3, 10, 15, 0, 0, tzinfo=UTC)


def _result(score: int = 85, completed: bool = True, gaps=("Algebra",)) -> PracticeResultRecord:
    return PracticeResultRecord(
        id="result-1",
        user_id="user-1",
        score=score,
        skill_gaps=tuple(gaps),
        completed_at=NOW - timedelta(minutes=5) if completed else None,
    )


def _facts(**overrides) -> EligibilityFacts:
    values = {
        "now": NOW,
        "practice_result": _result(),
        "event_score": None,
        "invites_today": 0,
        "last_invite_at": None,
    }
    values.update(overrides)
    return EligibilityFacts(**values)


# ===========================================================================
# Time helpers
# ===========================================================================
class TestTimeHelpers:
    def test_start_of_utc_day(self):
        assert start_of_utc_day(NOW) == datetime(2026, 3, 10, tzinfo=UTC)

    def test_hours_since(self):
        assert hours_since(NOW - timedelta(minutes=90), NOW) == pytest.approx(1.5)


# ===========================================================================
# Completion stage
# ===========================================================================
class TestCompletion:
    def test_missing_result_skips(self):
        verdict, _ = evaluate(_facts(practice_result=None))
        assert verdict.should_trigger is False
        assert verdict.reason == ReasonCode.NO_COMPLETION
        assert verdict.rationale == "No practice test completion found"
        assert verdict.features_used == ("practice_completion_check",)
        assert verdict.loop_type is None

    def test_incomplete_result_skips(self):
        verdict, _ = evaluate(_facts(practice_result=_result(completed=False)))
        assert verdict.reason == ReasonCode.NO_COMPLETION


# ===========================================================================
# Rate limit stage
# ===========================================================================
class TestRateLimit:
    @pytest.mark.parametrize("count", [0, 1, 2])
    def test_under_limit_passes(self, count):
        verdict, _ = evaluate(_facts(invites_today=count))
        assert verdict.should_trigger is True

    @pytest.mark.parametrize("count", [3, 4, 10])
    def test_at_or_over_limit_skips(self, count):
        verdict, trace = evaluate(_facts(invites_today=count))
        assert verdict.reason == ReasonCode.RATE_LIMITED
        assert verdict.rationale == f"Rate limit reached ({count}/3 invites today)"
        assert trace.invites_today == count

    def test_custom_limit(self):
        policy = EligibilityPolicy(daily_invite_limit=5)
        verdict, _ = evaluate(_facts(invites_today=4), policy)
        assert verdict.should_trigger is True


# ===========================================================================
# Cooldown stage
# ===========================================================================
class TestCooldown:
    def test_thirty_minutes_ago_skips(self):
        verdict, _ = evaluate(_facts(last_invite_at=NOW - timedelta(minutes=30)))
        assert verdict.reason == ReasonCode.COOLDOWN
        assert verdict.rationale == "Cooldown period active (last invite 30 minutes ago)"

    def test_minutes_are_floored(self):
        verdict, _ = evaluate(_facts(last_invite_at=NOW - timedelta(minutes=59, seconds=59)))
        assert verdict.rationale == "Cooldown period active (last invite 59 minutes ago)"

    def test_exactly_one_hour_passes(self):
        verdict, _ = evaluate(_facts(last_invite_at=NOW - timedelta(hours=1)))
        assert verdict.should_trigger is True

    def test_just_under_one_hour_skips(self):
        verdict, _ = evaluate(_facts(last_invite_at=NOW - timedelta(minutes=59, seconds=59)))
        assert verdict.should_trigger is False

    def test_tag_recorded_without_previous_invite(self):
        trace = Trace()
        outcome = check_cooldown(_facts(), EligibilityPolicy(), trace)
        assert outcome is PROCEED
        assert trace.features_used == ["last_invite_timestamp"]
        assert trace.last_invite_hours_ago is None


# ===========================================================================
# Score threshold stage
# ===========================================================================
class TestScoreThreshold:
    def test_below_fifty_skips(self):
        verdict, _ = evaluate(_facts(practice_result=_result(score=49)))
        assert verdict.reason == ReasonCode.SCORE_TOO_LOW
        assert verdict.rationale == "Score too low (49%), may discourage sharing"

    def test_exactly_fifty_passes(self):
        verdict, _ = evaluate(_facts(practice_result=_result(score=50)))
        assert verdict.should_trigger is True

    def test_event_score_overrides_stored_score(self):
        verdict, trace = evaluate(_facts(practice_result=_result(score=90), event_score=40))
        assert trace.score == 40
        assert verdict.reason == ReasonCode.SCORE_TOO_LOW

    def test_event_score_zero_is_used(self):
        _, trace = evaluate(_facts(practice_result=_result(score=90), event_score=0))
        assert trace.score == 0


# ===========================================================================
# Ordering & trigger
# ===========================================================================
class TestPipeline:
    def test_rate_limit_checked_before_cooldown(self):
        verdict, _ = evaluate(_facts(
            invites_today=3,
            last_invite_at=NOW - timedelta(minutes=10),
        ))
        assert verdict.reason == ReasonCode.RATE_LIMITED

    def test_cooldown_checked_before_score(self):
        verdict, _ = evaluate(_facts(
            practice_result=_result(score=20),
            last_invite_at=NOW - timedelta(minutes=10),
        ))
        assert verdict.reason == ReasonCode.COOLDOWN

    def test_trigger_without_previous_invites(self):
        verdict, _ = evaluate(_facts(invites_today=0))
        assert verdict.should_trigger is True
        assert verdict.reason == ReasonCode.ELIGIBLE
        assert verdict.loop_type == "buddy_challenge"
        assert verdict.rationale == (
            "User scored 85% on practice test, 0/3 invites used today, no previous invites"
        )
        assert verdict.features_used == (
            "practice_completion_check",
            "practice_score",
            "invite_count_today",
            "last_invite_timestamp",
        )

    def test_trigger_with_previous_invite(self):
        verdict, _ = evaluate(_facts(
            invites_today=1,
            last_invite_at=NOW - timedelta(hours=2),
        ))
        assert verdict.rationale == (
            "User scored 85% on practice test, 1/3 invites used today, "
            "last invite 120 minutes ago"
        )

    def test_custom_stage_list(self):
        def always_skip(facts, policy, trace):
            return Skip(ReasonCode.SYSTEM_ERROR, "nope")

        verdict, _ = evaluate(_facts(), stages=(always_skip,))
        assert verdict.rationale == "nope"
