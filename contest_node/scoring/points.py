"""Scoring configuration: a full position table or the tight winner/runner-up variant."""
from __future__ import annotations

import logging
from typing import Annotated, Any, Iterable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from contest_node.scoring.rank import TARGET_POSITION

logger = logging.getLogger(__name__)

# Legacy sentinel position marking the runner-up entry of a tight structure.
RUNNER_UP_SENTINEL = 0


class StandardScoring(BaseModel):
    """Points looked up by finishing position."""

    model_config = ConfigDict(frozen=True)

    mode: Literal["standard"] = "standard"
    table: dict[int, int] = Field(default_factory=dict)

    def points_for(self, position: int | None) -> int:
        if position is None:
            return 0
        return self.table.get(position, 0)

    def max_points(self) -> int:
        return max(self.table.values(), default=0)


class TightTargetScoring(BaseModel):
    """Only the exact target hit and the closest qualifying miss score."""

    model_config = ConfigDict(frozen=True)

    mode: Literal["tight"] = "tight"
    winner_points: int = Field(default=2, ge=0)
    runner_up_points: int = Field(default=1, ge=0)
    qualifying_rank: int = Field(default=TARGET_POSITION - 1, ge=1)

    def max_points(self) -> int:
        return max(self.winner_points, self.runner_up_points)


ScoringConfig = Annotated[Union[StandardScoring, TightTargetScoring], Field(discriminator="mode")]

_scoring_adapter: TypeAdapter[Any] = TypeAdapter(ScoringConfig)


def parse_scoring(payload: dict[str, Any]) -> StandardScoring | TightTargetScoring:
    return _scoring_adapter.validate_python(payload)


def scoring_from_points_structure(
    entries: Iterable[dict[str, Any]], target: int = TARGET_POSITION,
) -> StandardScoring | TightTargetScoring:
    """Build the scoring variant from a stored ``[{position, points}]`` list.

    Entries that are not integer position/points pairs are dropped with a
    warning, so a malformed structure scores zero rather than failing.
    """
    cleaned: list[tuple[int, int]] = []
    for entry in entries or []:
        try:
            position = int(entry["position"])
            points = int(entry["points"])
        except (KeyError, TypeError, ValueError):
            logger.warning("ignoring malformed points structure entry %r", entry)
            continue
        if position < 0 or points < 0:
            logger.warning("ignoring negative points structure entry %r", entry)
            continue
        cleaned.append((position, points))

    positions = [p for p, _ in cleaned]
    if len(cleaned) == 2 and RUNNER_UP_SENTINEL in positions:
        winner = next(pts for pos, pts in cleaned if pos != RUNNER_UP_SENTINEL)
        runner_up = next(pts for pos, pts in cleaned if pos == RUNNER_UP_SENTINEL)
        return TightTargetScoring(
            winner_points=winner, runner_up_points=runner_up, qualifying_rank=max(1, target - 1),
        )

    table: dict[int, int] = {}
    for position, points in cleaned:
        if position == RUNNER_UP_SENTINEL:
            continue
        table[position] = points
    return StandardScoring(table=table)


def points_structure_for(
    scoring: StandardScoring | TightTargetScoring, target: int = TARGET_POSITION,
) -> list[dict[str, int]]:
    if isinstance(scoring, TightTargetScoring):
        return [
            {"position": target, "points": scoring.winner_points},
            {"position": RUNNER_UP_SENTINEL, "points": scoring.runner_up_points},
        ]
    return [{"position": pos, "points": pts} for pos, pts in scoring.table.items()]
