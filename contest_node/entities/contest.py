from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from contest_node.scoring.points import ScoringConfig


class RoundStatus(StrEnum):
    WAITING = "waiting"
    COUNT_DOWN = "countDown"
    BETTING_OPEN = "betting_open"
    BETTING_CLOSED = "betting_closed"
    RESULTS = "results"
    COMPLETED = "completed"


# Statuses that carry a clock and are subject to the inactivity reset.
ACTIVE_STATUSES = frozenset({
    RoundStatus.COUNT_DOWN,
    RoundStatus.BETTING_OPEN,
    RoundStatus.BETTING_CLOSED,
    RoundStatus.RESULTS,
})


@dataclass
class CompetitorEntry:
    """One competitor's bet and standing for a single round."""
    competitor: str
    bet: str | None = None                       # driver id, None when no bet placed
    points: int = 0                              # earned this round
    total_points: int = 0                        # cumulative over the season
    position: int = 0                            # season standing after this round
    badges_awarded: list[str] = field(default_factory=list)
    bet_placed_at: datetime | None = None


@dataclass
class DriverEntry:
    """A contestant's true finish and derived points for a single round."""
    driver: str
    position_actual: int | None = None           # real finishing position, None until known
    points: int = 0
    total_points: int = 0
    position: int = 0                            # round rank by distance from the target
    position_drivers: int = 0                    # season standing among drivers


@dataclass
class TeamEntry:
    team: str
    drivers: list[str] = field(default_factory=list)
    points: int = 0
    total_points: int = 0
    position: int = 0
    position_constructors: int = 0


@dataclass
class Round:
    round: int
    status: RoundStatus = RoundStatus.WAITING
    status_changed_at: datetime | None = None
    results_processed: bool = False
    competitors: list[CompetitorEntry] = field(default_factory=list)
    drivers: list[DriverEntry] = field(default_factory=list)
    teams: list[TeamEntry] = field(default_factory=list)
    winner: str | None = None
    runner_up: str | None = None

    def competitor_entry(self, competitor_id: str) -> CompetitorEntry | None:
        return next((c for c in self.competitors if c.competitor == competitor_id), None)

    def driver_entry(self, driver_id: str | None) -> DriverEntry | None:
        if driver_id is None:
            return None
        return next((d for d in self.drivers if d.driver == driver_id), None)

    @property
    def is_scored(self) -> bool:
        return self.results_processed or self.status in (RoundStatus.RESULTS, RoundStatus.COMPLETED)


@dataclass
class ContestSettings:
    max_competitors: int = 24
    skip_count_down: bool = False
    skip_results: bool = False


@dataclass
class DiscoveredBadge:
    """First time a badge was earned in a contest."""
    badge: str
    discovered_by: str
    discovered_at: datetime


@dataclass
class Contest:
    """Aggregate root: rounds, roster and scoring configuration of one contest."""
    id: str
    name: str
    scoring: ScoringConfig
    rounds: list[Round] = field(default_factory=list)
    competitors: list[str] = field(default_factory=list)   # authoritative roster
    champ_badges: list[str] = field(default_factory=list)
    settings: ContestSettings = field(default_factory=ContestSettings)
    discovered_badges: list[DiscoveredBadge] = field(default_factory=list)
    season: int = 1
    version: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def active_round_index(self) -> int | None:
        """Index of the first round that is not completed."""
        for idx, round_ in enumerate(self.rounds):
            if round_.status != RoundStatus.COMPLETED:
                return idx
        return None
