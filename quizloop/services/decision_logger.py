"""
quizloop.services.decision_logger — Append-Only Decision Audit Log
===================================================================

One ``decisions`` row per orchestrator invocation, triggered or skipped.
Rows are only ever inserted; nothing here updates or deletes.

A write failure never propagates: the caller gets :data:`LOG_FAILED_ID`
back so the decision itself is never lost to an audit-log fault.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from quizloop.constants import DECISION_SKIP, DECISION_TRIGGER
from quizloop.database.models import Decision
from quizloop.engine.rules import Verdict

logger = logging.getLogger(__name__)

LOG_FAILED_ID = "log_failed"


@dataclass(frozen=True, slots=True)
class DecisionContext:
    """Who asked, about what, and the values the rules computed."""

    user_id: str
    event_type: str
    event_id: str | None = None
    score: int | None = None
    invites_today: int | None = None
    last_invite_hours_ago: float | None = None

    def context_document(self) -> dict[str, Any]:
        """Computed values only; keys that were never reached are omitted."""
        values = {
            "score": self.score,
            "invites_today": self.invites_today,
            "last_invite_hours_ago": self.last_invite_hours_ago,
        }
        return {k: v for k, v in values.items() if v is not None}


class DecisionLogger:
    """Writes decisions to the ``decisions`` table."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def log(self, verdict: Verdict, context: DecisionContext) -> str:
        """Persist *verdict* and return the new decision id.

        Returns :data:`LOG_FAILED_ID` instead of raising on any failure.
        """
        try:
            with Session(self.engine) as session:
                row = Decision(
                    user_id=context.user_id,
                    event_type=context.event_type,
                    event_id=context.event_id,
                    decision=DECISION_TRIGGER if verdict.should_trigger else DECISION_SKIP,
                    reason_code=verdict.reason.value,
                    rationale=verdict.rationale,
                    features_used=list(verdict.features_used),
                    context=context.context_document(),
                )
                session.add(row)
                session.commit()
                return row.id
        except Exception:
            logger.exception(
                "Failed to log decision for user %s (%s)", context.user_id, verdict.reason
            )
            return LOG_FAILED_ID

    def recent(self, user_id: str, limit: int = 20) -> list[Decision]:
        """Most recent decisions for *user_id*, newest first."""
        with Session(self.engine, expire_on_commit=False) as session:
            rows = session.scalars(
                select(Decision)
                .where(Decision.user_id == user_id)
                .order_by(Decision.created_at.desc(), Decision.id)
                .limit(limit)
            ).all()
            for row in rows:
                session.expunge(row)
            return list(rows)
