from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class Badge:
    id: str
    awarded_how: str                             # checker registry key
    name: str = ""
    rarity: int = 0
    awarded_to: set[str] = field(default_factory=set)


@dataclass(frozen=True)
class BadgeAward:
    badge_id: str
    user_id: str
    contest_id: str
    round_index: int
    awarded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
