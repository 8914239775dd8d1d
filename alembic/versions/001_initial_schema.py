"""initial schema: contests, drivers, badges

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── Contest aggregate ──
    op.create_table(
        "contests",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("season", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("scoring_jsonb", postgresql.JSONB(), server_default="{}"),
        sa.Column("points_structure_jsonb", postgresql.JSONB(), server_default="[]"),
        sa.Column("rounds_jsonb", postgresql.JSONB(), server_default="[]"),
        sa.Column("competitors_jsonb", postgresql.JSONB(), server_default="[]"),
        sa.Column("champ_badges_jsonb", postgresql.JSONB(), server_default="[]"),
        sa.Column("settings_jsonb", postgresql.JSONB(), server_default="{}"),
        sa.Column("discovered_badges_jsonb", postgresql.JSONB(), server_default="[]"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_contests_created_at", "contests", ["created_at"])
    op.create_index("ix_contests_updated_at", "contests", ["updated_at"])

    # ── Drivers ──
    op.create_table(
        "drivers",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("attributes_jsonb", postgresql.JSONB(), server_default="{}"),
        sa.Column("stats_jsonb", postgresql.JSONB(), server_default="{}"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_drivers_updated_at", "drivers", ["updated_at"])

    # ── Badges: definitions → membership → per-user records ──
    op.create_table(
        "badges",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("awarded_how", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False, server_default=""),
        sa.Column("rarity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_badges_awarded_how", "badges", ["awarded_how"])

    op.create_table(
        "badge_awards",
        sa.Column("badge_id", sa.String(), sa.ForeignKey("badges.id"), primary_key=True),
        sa.Column("user_id", sa.String(), primary_key=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_badge_awards_user_id", "badge_awards", ["user_id"])

    op.create_table(
        "user_badges",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("badge_id", sa.String(), nullable=False),
        sa.Column("contest_id", sa.String(), nullable=False),
        sa.Column("round_index", sa.Integer(), nullable=False),
        sa.Column("awarded_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("user_id", "badge_id", "contest_id", name="uq_user_badges_user_badge_contest"),
    )
    op.create_index("ix_user_badges_user_id", "user_badges", ["user_id"])
    op.create_index("ix_user_badges_badge_id", "user_badges", ["badge_id"])
    op.create_index("ix_user_badges_contest_id", "user_badges", ["contest_id"])


def downgrade() -> None:
    op.drop_table("user_badges")
    op.drop_table("badge_awards")
    op.drop_table("badges")
    op.drop_table("drivers")
    op.drop_table("contests")
