"""Contest aggregate table."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Column
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ContestRow(SQLModel, table=True):
    __tablename__ = "contests"

    id: str = Field(primary_key=True)
    name: str
    season: int = Field(default=1)
    version: int = Field(default=0)

    scoring_jsonb: dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSONB),
    )
    # legacy [{position, points}] rendering of scoring_jsonb
    points_structure_jsonb: list[dict[str, Any]] = Field(
        default_factory=list, sa_column=Column(JSONB),
    )
    rounds_jsonb: list[dict[str, Any]] = Field(
        default_factory=list, sa_column=Column(JSONB),
    )
    competitors_jsonb: list[str] = Field(
        default_factory=list, sa_column=Column(JSONB),
    )
    champ_badges_jsonb: list[str] = Field(
        default_factory=list, sa_column=Column(JSONB),
    )
    settings_jsonb: dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSONB),
    )
    discovered_badges_jsonb: list[dict[str, Any]] = Field(
        default_factory=list, sa_column=Column(JSONB),
    )

    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now, index=True)
