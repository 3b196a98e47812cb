"""
quizloop.errors — Error Hierarchy
==================================

Every failure the API can report is a :class:`QuizLoopError` carrying a
machine-readable ``code`` and the HTTP status it maps to.  A single
FastAPI handler renders them as ``{"error": code, "message": message}``.

Eligibility denials from the orchestrator are *not* raised inside the
rule engine (they are skip decisions); the invite service converts a
denial into one of the :class:`EligibilityError` subclasses when a caller
explicitly asked to create an invite.
"""

from __future__ import annotations


class QuizLoopError(Exception):
    """Base exception for all QuizLoop errors."""

    code: str = "server_error"
    http_status: int = 500
    # Replaces the message in responses when set
    public_message: str | None = None

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_response(self) -> dict[str, str]:
        """Convert to the REST error envelope."""
        return {"error": self.code, "message": self.public_message or self.message}


# ─── Caller errors (400-level) ──────────────────────────────────

class ValidationError(QuizLoopError):
    """Malformed caller input.  Never retried."""
    code = "bad_request"
    http_status = 400


class ForbiddenError(QuizLoopError):
    code = "forbidden"
    http_status = 403


class NotFoundError(QuizLoopError):
    """A referenced entity does not exist."""
    code = "not_found"
    http_status = 404


class ConflictError(QuizLoopError):
    """State transition already happened (e.g. invite already accepted)."""
    code = "conflict"
    http_status = 409


# ─── Eligibility denials ────────────────────────────────────────

class EligibilityError(QuizLoopError):
    """The orchestrator declined to trigger the loop."""
    code = "not_eligible"
    http_status = 403


class RateLimitedError(EligibilityError):
    code = "rate_limit_exceeded"
    http_status = 429


class CooldownError(EligibilityError):
    code = "cooldown_period"
    http_status = 403


class ScoreTooLowError(EligibilityError):
    code = "score_too_low"
    http_status = 400


class NotEligibleError(EligibilityError):
    """Any other denial, including a system-error fallback."""


# ─── Infrastructure errors (500-level) ──────────────────────────

class CollisionExhaustedError(QuizLoopError):
    """Every short-code attempt collided.  The whole request may be retried."""
    code = "server_error"
    http_status = 500
    public_message = "Failed to generate unique invite code. Please try again."


class StoreError(QuizLoopError):
    """Database fault or a stored row that fails validation."""
    code = "server_error"
    http_status = 500
    public_message = "An unexpected error occurred. Please try again."
