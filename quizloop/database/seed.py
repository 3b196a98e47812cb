"""
quizloop.database.seed — Analytics Counter Seeder
==================================================

Creates the singleton ``analytics_counters`` row so every later
increment is a plain ``UPDATE``.  Idempotent — an existing row is never
touched.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from quizloop.constants import ANALYTICS_COUNTERS_ID
from quizloop.database.models import AnalyticsCounters

logger = logging.getLogger(__name__)


def seed_analytics_counters(engine: Engine) -> bool:
    """Insert the zeroed counter row if missing.

    Returns ``True`` if a row was inserted.
    """
    with Session(engine) as session:
        if session.get(AnalyticsCounters, ANALYTICS_COUNTERS_ID) is not None:
            return False
        session.add(AnalyticsCounters(id=ANALYTICS_COUNTERS_ID))
        session.commit()
    logger.info("Seeded analytics counters row %r", ANALYTICS_COUNTERS_ID)
    return True
