"""
quizloop.config — YAML Configuration Loader
============================================

Reads ``config.yaml`` for runtime tuning: the public base URL used in
share links, the eligibility limits of the buddy challenge, and the
short-code retry bound.  Secrets (``DATABASE_URL``) come from the
environment, never from this file.

Usage::

    from quizloop.config import load_config

    cfg = load_config()            # reads ./config.yaml (or $QUIZLOOP_CONFIG)
    print(cfg.daily_invite_limit)  # 3
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class QuizLoopConfig:
    """Immutable configuration loaded from ``config.yaml``.

    Every field has a default so a fresh checkout runs without a config
    file; the defaults are the production eligibility rules.
    """

    base_url: str = "http://localhost:3000"

    # Eligibility rules
    daily_invite_limit: int = 3
    cooldown_hours: float = 1.0
    min_share_score: int = 50

    # Soft latency target for a single decision, in milliseconds
    decision_budget_ms: float = 150.0

    short_code_max_retries: int = 5

    cors_origins: tuple[str, ...] = field(default_factory=tuple)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path | None = None) -> QuizLoopConfig:
    """Read *path* and return a :class:`QuizLoopConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.  Defaults to
        ``$QUIZLOOP_CONFIG`` or ``config.yaml`` in the working directory.
        A missing file yields the built-in defaults.

    Raises
    ------
    ValueError
        If the file exists but does not contain a YAML mapping, or a
        value cannot be coerced to its field type.
    """
    config_path = Path(path or os.getenv("QUIZLOOP_CONFIG", DEFAULT_CONFIG_PATH))
    if not config_path.exists():
        logger.info("No config file at %s, using defaults", config_path.resolve())
        return QuizLoopConfig()

    with open(config_path, encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"{config_path} must contain a YAML mapping")

    defaults = QuizLoopConfig()
    try:
        return QuizLoopConfig(
            base_url=str(raw.get("base_url", defaults.base_url)).rstrip("/"),
            daily_invite_limit=int(raw.get("daily_invite_limit", defaults.daily_invite_limit)),
            cooldown_hours=float(raw.get("cooldown_hours", defaults.cooldown_hours)),
            min_share_score=int(raw.get("min_share_score", defaults.min_share_score)),
            decision_budget_ms=float(
                raw.get("decision_budget_ms", defaults.decision_budget_ms)
            ),
            short_code_max_retries=int(
                raw.get("short_code_max_retries", defaults.short_code_max_retries)
            ),
            cors_origins=tuple(
                str(origin).rstrip("/") for origin in raw.get("cors_origins") or ()
            ),
        )
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid value in {config_path}: {exc}") from exc
