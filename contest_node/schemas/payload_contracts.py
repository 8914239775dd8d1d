from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SettleRequestEnvelope(BaseModel):
    """Payload of a NOTIFY on the settle channel."""

    contest_id: str = Field(min_length=1)
    round_index: int = Field(ge=0)

    model_config = ConfigDict(extra="ignore")


class AwardEnvelope(BaseModel):
    badge_id: str
    user_id: str


class RoundSettledEnvelope(BaseModel):
    """Payload published on the settled channel once a settlement has committed."""

    contest_id: str
    round_index: int
    winner: str | None = None
    runner_up: str | None = None
    awards: list[AwardEnvelope] = Field(default_factory=list)


class BadgeDefinitionEnvelope(BaseModel):
    """One entry of the badge definitions seeded at migration time."""

    id: str = Field(min_length=1)
    awarded_how: str = Field(min_length=1)
    name: str = ""
    rarity: int = Field(default=0, ge=0)

    model_config = ConfigDict(extra="forbid")
