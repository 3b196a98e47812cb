"""
quizloop.services.analytics_service — Funnel Counters & K-Factor
=================================================================

The singleton ``analytics_counters`` row is only changed through
:func:`increment_counter`, which callers invoke inside the same session
(and therefore the same transaction) as the state change being counted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from quizloop.constants import ANALYTICS_COUNTERS_ID
from quizloop.database.engine import as_utc
from quizloop.database.models import AnalyticsCounters
from quizloop.engine.scoring import k_factor

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)

COUNTER_FIELDS = frozenset({
    "total_users",
    "total_invites_sent",
    "total_invites_opened",
    "total_invites_accepted",
    "total_fvm_reached",
})


@dataclass(frozen=True, slots=True)
class CounterSnapshot:
    total_users: int = 0
    total_invites_sent: int = 0
    total_invites_opened: int = 0
    total_invites_accepted: int = 0
    total_fvm_reached: int = 0
    last_updated: datetime | None = None

    @property
    def k_factor(self) -> float:
        return k_factor(self.total_invites_sent, self.total_users, self.total_fvm_reached)


def increment_counter(session: Session, field: str) -> None:
    """``field = field + 1`` on the singleton row, inside *session*'s transaction.

    Inserts the row first if it has never been seeded.  The caller commits.
    """
    if field not in COUNTER_FIELDS:
        raise ValueError(f"Unknown analytics counter: {field!r}")

    column = getattr(AnalyticsCounters, field)
    result = session.execute(
        update(AnalyticsCounters)
        .where(AnalyticsCounters.id == ANALYTICS_COUNTERS_ID)
        .values({column: column + 1, AnalyticsCounters.last_updated: func.now()})
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        logger.warning("Analytics counters row missing, creating it")
        counters = AnalyticsCounters(id=ANALYTICS_COUNTERS_ID)
        setattr(counters, field, 1)
        session.add(counters)
        session.flush()


def get_counters(engine: Engine) -> CounterSnapshot:
    """Current counter values; all zero if the row does not exist yet."""
    with Session(engine) as session:
        row = session.get(AnalyticsCounters, ANALYTICS_COUNTERS_ID)
        if row is None:
            return CounterSnapshot()
        return CounterSnapshot(
            total_users=row.total_users,
            total_invites_sent=row.total_invites_sent,
            total_invites_opened=row.total_invites_opened,
            total_invites_accepted=row.total_invites_accepted,
            total_fvm_reached=row.total_fvm_reached,
            last_updated=as_utc(row.last_updated) if row.last_updated else None,
        )


def get_k_factor(engine: Engine) -> float:
    return get_counters(engine).k_factor
