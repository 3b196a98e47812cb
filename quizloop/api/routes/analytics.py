"""
quizloop.api.routes.analytics — Funnel counters & K-factor
============================================================
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy import Engine

from quizloop.api.deps import get_engine
from quizloop.services import analytics_service

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/k-factor")
def k_factor(engine: Annotated[Engine, Depends(get_engine)]):
    counters = analytics_service.get_counters(engine)
    return {
        "totalUsers": counters.total_users,
        "totalInvitesSent": counters.total_invites_sent,
        "totalInvitesOpened": counters.total_invites_opened,
        "totalInvitesAccepted": counters.total_invites_accepted,
        "totalFvmReached": counters.total_fvm_reached,
        "kFactor": round(counters.k_factor, 4),
        "lastUpdated": counters.last_updated.isoformat() if counters.last_updated else None,
    }
