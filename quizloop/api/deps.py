"""
quizloop.api.deps — FastAPI dependency injection
==================================================
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy import Engine

from quizloop.config import QuizLoopConfig, load_config
from quizloop.database.engine import create_db_engine
from quizloop.engine.rules import EligibilityPolicy
from quizloop.services.decision_logger import DecisionLogger
from quizloop.services.orchestrator import LoopOrchestrator
from quizloop.services.short_codes import ShortCodeAllocator


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> QuizLoopConfig:
    return load_config()


def get_orchestrator(
    engine: Annotated[Engine, Depends(get_engine)],
    config: Annotated[QuizLoopConfig, Depends(get_config)],
) -> LoopOrchestrator:
    return LoopOrchestrator(
        engine,
        decision_logger=DecisionLogger(engine),
        policy=EligibilityPolicy(
            daily_invite_limit=config.daily_invite_limit,
            cooldown_hours=config.cooldown_hours,
            min_share_score=config.min_share_score,
        ),
        budget_ms=config.decision_budget_ms,
    )


def get_allocator(
    engine: Annotated[Engine, Depends(get_engine)],
    config: Annotated[QuizLoopConfig, Depends(get_config)],
) -> ShortCodeAllocator:
    return ShortCodeAllocator(engine, base_url=config.base_url)
