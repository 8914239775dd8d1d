"""Badge evaluation context: one competitor's view of a settled round."""
from __future__ import annotations

from dataclasses import dataclass, field

from contest_node.entities.contest import Contest, Round
from contest_node.scoring.rank import TARGET_POSITION


@dataclass(frozen=True)
class BadgeContext:
    """Passed to every badge checker. Built per competitor, never persisted."""

    competitor_id: str
    current_round: Round
    current_round_index: int
    contest: Contest
    all_rounds: list[Round] = field(default_factory=list)
    max_competitors: int = 0
    target_position: int = TARGET_POSITION
