from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date


@dataclass
class DriverAttributes:
    """Physical and personal traits used by attribute badges."""
    nationality: str = ""
    height_cm: float | None = None
    weight_kg: float | None = None
    birthday: date | None = None
    moustache: bool = False
    mullet: bool = False


@dataclass
class DriverStats:
    rounds_completed: int = 0
    rounds_won: int = 0                          # finished exactly at the target position
    champs_completed: int = 0
    champs_won: int = 0
    position_history: dict[str, int] = field(default_factory=dict)   # "7" -> times finished 7th
    pole_positions: int = 0
    top_three_finishes: int = 0
    form_score: float = 0.0                      # mean of the last three finishes, lower is better


@dataclass
class DriverProfile:
    id: str
    name: str
    attributes: DriverAttributes = field(default_factory=DriverAttributes)
    stats: DriverStats = field(default_factory=DriverStats)
