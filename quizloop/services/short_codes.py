"""
quizloop.services.short_codes — Short-Code Allocator
=====================================================

Codes are 6 characters from ``a-z0-9`` drawn with the non-cryptographic
``random`` module (36⁶ ≈ 2.2 billion codes, so a given pair collides with
probability ≈ 4.6×10⁻¹⁰).  Collisions are resolved by retrying against
the database up to a fixed bound.

Codes are always lowercased before storage and lookup.
"""

from __future__ import annotations

import logging
import random

from sqlalchemy import Engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from quizloop.constants import SHORT_CODE_ALPHABET, SHORT_CODE_LENGTH, SHORT_CODE_PATTERN
from quizloop.database.models import Invite
from quizloop.errors import CollisionExhaustedError

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 5


def normalize_code(code: str) -> str:
    """Normalize a short code for case-insensitive lookup."""
    return code.strip().lower()


def is_valid_code(code: str) -> bool:
    """True if *code* matches ``^[a-z0-9]{6,8}$`` after normalisation."""
    return bool(SHORT_CODE_PATTERN.match(normalize_code(code)))


class ShortCodeAllocator:
    """Mints short codes that are unique across ``invites.short_code``."""

    def __init__(
        self,
        engine: Engine,
        *,
        base_url: str = "http://localhost:3000",
        rng: random.Random | None = None,
        length: int = SHORT_CODE_LENGTH,
    ) -> None:
        self.engine = engine
        self.base_url = base_url.rstrip("/")
        self.rng = rng or random.Random()
        self.length = length

    normalize = staticmethod(normalize_code)
    is_valid_format = staticmethod(is_valid_code)

    def generate(self) -> str:
        """A random lowercase code; uniqueness is not checked."""
        return "".join(self.rng.choice(SHORT_CODE_ALPHABET) for _ in range(self.length))

    def check_unique(self, code: str) -> bool:
        """True if no invite uses *code* (case-insensitive).

        A database error counts as a collision so the caller retries.
        """
        normalized = normalize_code(code)
        try:
            with Session(self.engine) as session:
                existing = session.scalar(
                    select(Invite.id).where(Invite.short_code == normalized).limit(1)
                )
        except SQLAlchemyError:
            logger.exception("Short code uniqueness check failed for %r", normalized)
            return False
        return existing is None

    def generate_unique(self, max_retries: int = DEFAULT_MAX_RETRIES) -> str:
        """Generate a code that doesn't already exist in the database.

        Raises
        ------
        CollisionExhaustedError
            If all *max_retries* attempts collide.
        """
        for attempt in range(1, max_retries + 1):
            code = self.generate()
            if self.check_unique(code):
                return code
            logger.warning(
                "Short code collision detected (attempt %d/%d)", attempt, max_retries
            )
        raise CollisionExhaustedError(
            f"Could not generate unique short code after {max_retries} attempts"
        )

    def build_share_url(self, code: str) -> str:
        return f"{self.base_url}/invite/{normalize_code(code)}"
