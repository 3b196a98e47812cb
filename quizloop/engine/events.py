"""
quizloop.engine.events — LoopEvent
===================================

The event envelope the orchestrator decides on.  Route handlers and the
invite service normalise their input into a :class:`LoopEvent` before
asking for a decision.
"""

from __future__ import annotations

from dataclasses import dataclass

from quizloop.database.models import EventType

__all__ = ["EventType", "LoopEvent"]


@dataclass(frozen=True, slots=True)
class LoopEvent:
    """A user event that may trigger the buddy-challenge prompt.

    ``score`` overrides the stored practice score when given.
    ``skill_gaps`` is validated at the route but not read by the rules,
    and the decision log does not record it.
    """

    type: EventType
    result_id: str
    score: int | None = None
    skill_gaps: tuple[str, ...] | None = None
