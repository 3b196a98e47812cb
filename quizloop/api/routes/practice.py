"""
quizloop.api.routes.practice — Practice test submission
=========================================================
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy import Engine

from quizloop.api.deps import get_config, get_engine
from quizloop.config import QuizLoopConfig
from quizloop.engine.scoring import Answer
from quizloop.services import practice_service

router = APIRouter(prefix="/practice", tags=["practice"])


class AnswerIn(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    question_id: str
    selected_answer: int


class PracticeCompleteRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str
    answers: list[AnswerIn]
    name: str | None = None
    email: str | None = None


@router.post("/complete")
def complete(
    body: PracticeCompleteRequest,
    engine: Annotated[Engine, Depends(get_engine)],
    config: Annotated[QuizLoopConfig, Depends(get_config)],
):
    outcome = practice_service.complete_practice(
        engine,
        body.user_id,
        [Answer(a.question_id, a.selected_answer) for a in body.answers],
        name=body.name,
        email=body.email,
        min_share_score=config.min_share_score,
    )
    return {
        "resultId": outcome.result_id,
        "score": outcome.score,
        "skillGaps": outcome.skill_gaps,
        "shouldShowInvite": outcome.should_show_invite,
    }
