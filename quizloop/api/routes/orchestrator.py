"""
quizloop.api.routes.orchestrator — Loop decision endpoint
===========================================================
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from quizloop.api.deps import get_orchestrator
from quizloop.database.models import EventType
from quizloop.engine.events import LoopEvent
from quizloop.errors import ValidationError
from quizloop.services.orchestrator import LoopOrchestrator

router = APIRouter(prefix="/orchestrator", tags=["orchestrator"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class EventIn(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: EventType
    result_id: str
    score: int | None = Field(default=None, ge=0, le=100)
    skill_gaps: list[str] | None = None


class DecideRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str
    event: EventIn


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@router.post("/decide")
async def decide(
    body: DecideRequest,
    orchestrator: Annotated[LoopOrchestrator, Depends(get_orchestrator)],
):
    """Decide whether to show the buddy-challenge prompt.

    Every rule outcome, including a skip, is a 200.
    """
    user_id = body.user_id.strip()
    if not user_id:
        raise ValidationError("userId is required and must be a non-empty string")
    result_id = body.event.result_id.strip()
    if not result_id:
        raise ValidationError("event.resultId is required and must be a non-empty string")

    event = LoopEvent(
        type=body.event.type,
        result_id=result_id,
        score=body.event.score,
        skill_gaps=tuple(body.event.skill_gaps) if body.event.skill_gaps is not None else None,
    )
    outcome = await orchestrator.decide(user_id, event)
    verdict = outcome.verdict

    response = {
        "shouldTrigger": verdict.should_trigger,
        "rationale": verdict.rationale,
        "reasonCode": verdict.reason.value,
        "features_used": list(verdict.features_used),
        "decisionId": outcome.decision_id,
    }
    if verdict.loop_type is not None:
        response["loopType"] = verdict.loop_type
    return response
