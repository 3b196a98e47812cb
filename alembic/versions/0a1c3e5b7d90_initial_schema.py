"""Initial QuizLoop schema

Revision ID: 0a1c3e5b7d90
Revises:
Create Date: 2026-03-02 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0a1c3e5b7d90"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

JSONDocument = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    """Create users, practice results, invites, decisions and counters."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("xp", sa.Integer(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
    )

    op.create_table(
        "practice_results",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(64),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("skill_gaps", JSONDocument, nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_practice_results_user", "practice_results", ["user_id"])

    op.create_table(
        "invites",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("short_code", sa.String(8), nullable=False, unique=True),
        sa.Column("inviter_id", sa.String(64), nullable=False),
        sa.Column("loop_type", sa.String(50), nullable=False),
        sa.Column(
            "practice_result_id",
            sa.String(64),
            sa.ForeignKey("practice_results.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        sa.Column("opened_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("invitee_id", sa.String(64), nullable=True),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("fvm_reached_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("challenge_data", JSONDocument, nullable=False),
    )
    op.create_index(
        "ix_invites_inviter_created", "invites", ["inviter_id", "created_at"]
    )

    op.create_table(
        "decisions",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("event_id", sa.String(64), nullable=True),
        sa.Column("decision", sa.String(50), nullable=False),
        sa.Column("reason_code", sa.String(30), nullable=False),
        sa.Column("rationale", sa.Text(), nullable=False),
        sa.Column("features_used", JSONDocument, nullable=False),
        sa.Column("context", JSONDocument, nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
    )
    op.create_index(
        "ix_decisions_user_created", "decisions", ["user_id", "created_at"]
    )

    counters = op.create_table(
        "analytics_counters",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("total_users", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_invites_sent", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_invites_opened", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "total_invites_accepted", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column("total_fvm_reached", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "last_updated", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
    )
    op.bulk_insert(counters, [{"id": "global"}])


def downgrade() -> None:
    op.drop_table("analytics_counters")
    op.drop_index("ix_decisions_user_created", table_name="decisions")
    op.drop_table("decisions")
    op.drop_index("ix_invites_inviter_created", table_name="invites")
    op.drop_table("invites")
    op.drop_index("ix_practice_results_user", table_name="practice_results")
    op.drop_table("practice_results")
    op.drop_table("users")
