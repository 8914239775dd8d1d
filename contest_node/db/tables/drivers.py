"""Driver profile table."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import Column
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from .contests import utc_now


class DriverRow(SQLModel, table=True):
    __tablename__ = "drivers"

    id: str = Field(primary_key=True)
    name: str

    attributes_jsonb: dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSONB),
    )
    stats_jsonb: dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSONB),
    )

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, index=True)
