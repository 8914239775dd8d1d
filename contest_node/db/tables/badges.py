"""Badge definitions, badge membership and per-user badge records."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from .contests import utc_now


class BadgeRow(SQLModel, table=True):
    __tablename__ = "badges"

    id: str = Field(primary_key=True)
    awarded_how: str = Field(index=True)
    name: str = Field(default="")
    rarity: int = Field(default=0)

    created_at: datetime = Field(default_factory=utc_now)


class BadgeAwardRow(SQLModel, table=True):
    """One member of a badge's earned-by set. Rows are only ever inserted."""
    __tablename__ = "badge_awards"

    badge_id: str = Field(primary_key=True, foreign_key="badges.id")
    user_id: str = Field(primary_key=True, index=True)

    created_at: datetime = Field(default_factory=utc_now)


class UserBadgeRow(SQLModel, table=True):
    __tablename__ = "user_badges"
    __table_args__ = (
        UniqueConstraint("user_id", "badge_id", "contest_id", name="uq_user_badges_user_badge_contest"),
    )

    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    badge_id: str = Field(index=True)
    contest_id: str = Field(index=True)
    round_index: int
    awarded_at: datetime = Field(default_factory=utc_now)
