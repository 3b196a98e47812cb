"""
QuizLoop — Practice-Quiz Viral Loop Backend
============================================
Decides when a student who just finished a practice test should be
prompted to challenge a friend, mints a shareable short link for the
challenge, and keeps an append-only audit trail of every decision.

Package layout::

    quizloop/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Shared constants (loop type, feature tags, code format)
    ├── errors.py          # Error hierarchy rendered by the API
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   ├── models.py      # ORM models (users, results, invites, decisions, counters)
    │   ├── records.py     # Validated read boundary: rows → frozen records
    │   └── seed.py        # Analytics counter seeding
    ├── engine/
    │   ├── events.py      # LoopEvent dataclass
    │   ├── rules.py       # Ordered eligibility rule pipeline (pure)
    │   ├── challenge.py   # Challenge generator + share copy (pure)
    │   ├── scoring.py     # Score, skill gaps, K-factor (pure)
    │   └── question_bank.py # Static question catalog
    ├── services/
    │   ├── orchestrator.py     # Loads history, runs rules, logs decisions
    │   ├── decision_logger.py  # Append-only decision audit log
    │   ├── short_codes.py      # Short-code allocator
    │   ├── invite_service.py   # Invite create / open / accept / FVM
    │   ├── practice_service.py # Practice test grading + persistence
    │   └── analytics_service.py # Counter snapshot + K-factor
    └── api/
        ├── main.py        # FastAPI app + error envelope
        ├── deps.py        # Dependency injection
        └── routes/        # Orchestrator, practice, invite, analytics endpoints
"""

__version__ = "0.1.0"
