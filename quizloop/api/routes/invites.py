"""
quizloop.api.routes.invites — Invite creation, preview & acceptance
=====================================================================

The preview endpoint is public and unauthenticated.  Its "opened" stamp
runs as a background task after the response is sent, so a slow or
failing write never delays the preview.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy import Engine

from quizloop.api.deps import get_allocator, get_config, get_engine, get_orchestrator
from quizloop.config import QuizLoopConfig
from quizloop.errors import ValidationError
from quizloop.services import invite_service
from quizloop.services.orchestrator import LoopOrchestrator
from quizloop.services.short_codes import ShortCodeAllocator

router = APIRouter(prefix="/invite", tags=["invites"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class InviteCreateRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str
    result_id: str


class AcceptRequest(BaseModel):
    name: str
    email: str | None = None


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@router.post("/create")
async def create_invite(
    body: InviteCreateRequest,
    engine: Annotated[Engine, Depends(get_engine)],
    config: Annotated[QuizLoopConfig, Depends(get_config)],
    orchestrator: Annotated[LoopOrchestrator, Depends(get_orchestrator)],
    allocator: Annotated[ShortCodeAllocator, Depends(get_allocator)],
):
    user_id = body.user_id.strip()
    result_id = body.result_id.strip()
    if not user_id:
        raise ValidationError("userId is required")
    if not result_id:
        raise ValidationError("resultId is required")

    created = await invite_service.create_invite(
        engine,
        orchestrator,
        allocator,
        user_id,
        result_id,
        max_retries=config.short_code_max_retries,
    )
    card = created.share_card
    return {
        "shortCode": created.short_code,
        "shareUrl": created.share_url,
        "shareCard": {
            "text": card.text,
            "inviterName": card.inviter_name,
            "score": card.score,
            "skill": card.skill,
        },
    }


@router.get("/{short_code}")
def resolve_invite(
    short_code: str,
    background_tasks: BackgroundTasks,
    engine: Annotated[Engine, Depends(get_engine)],
):
    preview = invite_service.resolve_invite(engine, short_code)
    if preview.first_open:
        background_tasks.add_task(invite_service.stamp_opened, engine, preview.invite.id)

    challenge = preview.invite.challenge
    return {
        "inviteId": preview.invite.id,
        "inviter": {"name": preview.inviter_first_name},
        "challenge": {
            "skill": challenge.skill,
            "questionCount": len(challenge.questions),
            "estimatedTime": preview.estimated_time,
            "inviterScore": challenge.inviter_score,
            "shareCopy": challenge.share_copy,
        },
        "callToAction": preview.call_to_action,
    }


@router.post("/{short_code}/accept")
def accept_invite(
    short_code: str,
    body: AcceptRequest,
    engine: Annotated[Engine, Depends(get_engine)],
):
    accepted = invite_service.accept_invite(engine, short_code, body.name, body.email)
    return {
        "userId": accepted.user_id,
        "inviteId": accepted.invite_id,
        "challenge": {
            "skill": accepted.challenge.skill,
            "questions": [q.to_dict() for q in accepted.challenge.questions],
            "inviterScore": accepted.challenge.inviter_score,
        },
        "redirectUrl": accepted.redirect_url,
    }
