"""
quizloop.constants — Shared Constants & Helpers
================================================

Single source of truth for the loop identifiers, feature tags recorded in
the decision log, and the short-code format.  Import from here instead of
repeating string literals across services and routes.
"""

from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Loop identity
# ---------------------------------------------------------------------------
LOOP_TYPE_BUDDY_CHALLENGE = "buddy_challenge"

DECISION_TRIGGER = "trigger_buddy_challenge"
DECISION_SKIP = "skip"

# Singleton row in analytics_counters
ANALYTICS_COUNTERS_ID = "global"

# ---------------------------------------------------------------------------
# Feature tags: names of the rule stages consulted for a decision
# ---------------------------------------------------------------------------
FEATURE_COMPLETION_CHECK = "practice_completion_check"
FEATURE_PRACTICE_SCORE = "practice_score"
FEATURE_INVITE_COUNT_TODAY = "invite_count_today"
FEATURE_LAST_INVITE = "last_invite_timestamp"
FEATURE_ERROR_FALLBACK = "error_fallback"

# ---------------------------------------------------------------------------
# Short codes
# ---------------------------------------------------------------------------
SHORT_CODE_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"
SHORT_CODE_LENGTH = 6
SHORT_CODE_PATTERN = re.compile(r"^[a-z0-9]{6,8}$")

# ---------------------------------------------------------------------------
# Challenge
# ---------------------------------------------------------------------------
CHALLENGE_QUESTION_COUNT = 5
CHALLENGE_ESTIMATED_TIME = "2 min"
PRACTICE_TEST_LENGTH = 10

_EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(value: str) -> bool:
    """Loose ``local@domain.tld`` check used on the accept form."""
    return bool(_EMAIL_REGEX.match(value))
