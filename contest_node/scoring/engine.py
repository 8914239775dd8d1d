"""Round scoring: competitor, driver and team passes.

All three passes mutate the round in place. The team pass sums driver round
points, so it must run after the driver pass. A bet, finish or team member
pointing at something that is not in the round scores zero and ranks last
instead of raising.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Sequence, TypeVar

from contest_node.entities.contest import CompetitorEntry, Round
from contest_node.scoring.points import StandardScoring, TightTargetScoring
from contest_node.scoring.rank import TARGET_POSITION, rank_sort_key, resolve_rank

logger = logging.getLogger(__name__)

Scoring = StandardScoring | TightTargetScoring
E = TypeVar("E")


@dataclass
class _RankedBet:
    entry: CompetitorEntry
    finish: int | None
    rank: int | None


# ── competitors ──

def score_competitors(round_: Round, scoring: Scoring, target: int = TARGET_POSITION) -> None:
    """Score every competitor's bet and recompute season standings.

    Sets ``points``, accumulates ``total_points``, recomputes ``position``
    and fills ``round_.winner`` / ``round_.runner_up`` (cleared first).
    """
    round_.winner = None
    round_.runner_up = None

    finishes = {d.driver: d.position_actual for d in round_.drivers}
    ranked: list[_RankedBet] = []
    for entry in round_.competitors:
        finish = _bet_finish(entry, finishes)
        ranked.append(_RankedBet(entry=entry, finish=finish, rank=resolve_rank(finish, target)))
    ranked.sort(key=lambda bet: rank_sort_key(bet.rank))

    if isinstance(scoring, TightTargetScoring):
        _award_tight_competitors(round_, ranked, scoring)
    else:
        _award_standard_competitors(round_, ranked, scoring)

    for bet in ranked:
        bet.entry.total_points += bet.entry.points

    _assign_standings(
        round_.competitors,
        total=lambda c: c.total_points,
        previous=lambda c: c.position,
        assign=lambda c, pos: setattr(c, "position", pos),
    )


def _bet_finish(entry: CompetitorEntry, finishes: dict[str, int | None]) -> int | None:
    if entry.bet is None:
        return None
    if entry.bet not in finishes:
        logger.warning(
            "competitor %s bet on driver %s which is not in the round, scoring zero",
            entry.competitor, entry.bet,
        )
        return None
    return finishes[entry.bet]


def _award_standard_competitors(round_: Round, ranked: list[_RankedBet], scoring: StandardScoring) -> None:
    placed: list[str] = []
    for bet in ranked:
        bet.entry.points = scoring.points_for(bet.finish)
        if bet.entry.points > 0:
            placed.append(bet.entry.competitor)

    round_.winner = placed[0] if placed else None
    round_.runner_up = placed[1] if len(placed) > 1 else None


def _award_tight_competitors(round_: Round, ranked: list[_RankedBet], scoring: TightTargetScoring) -> None:
    for bet in ranked:
        bet.entry.points = 0

    # No exact hit means no winner this round; the runner-up is still awarded.
    exact = [bet for bet in ranked if bet.rank == 0]
    for bet in exact:
        bet.entry.points = scoring.winner_points
    if exact:
        round_.winner = exact[0].entry.competitor

    qualifying = [
        bet for bet in ranked
        if bet.rank is not None and 0 < bet.rank <= scoring.qualifying_rank
    ]
    if not qualifying:
        return

    best = qualifying[0].rank
    for bet in qualifying:
        if bet.rank == best:
            bet.entry.points = scoring.runner_up_points
    round_.runner_up = qualifying[0].entry.competitor


# ── drivers ──

def score_drivers(round_: Round, scoring: Scoring, target: int = TARGET_POSITION) -> None:
    """Score drivers by their own finish; independent of bets."""
    ranked = sorted(
        round_.drivers,
        key=lambda d: rank_sort_key(resolve_rank(d.position_actual, target)),
    )

    if isinstance(scoring, TightTargetScoring):
        for driver in ranked:
            driver.points = 0
        remaining = ranked
        if ranked and resolve_rank(ranked[0].position_actual, target) == 0:
            ranked[0].points = scoring.winner_points
            remaining = ranked[1:]
        runner_up = next((d for d in remaining if d.position_actual is not None), None)
        if runner_up is not None:
            runner_up.points = scoring.runner_up_points
    else:
        for driver in ranked:
            driver.points = scoring.points_for(driver.position_actual)

    for idx, driver in enumerate(ranked, start=1):
        driver.position = idx
        driver.total_points += driver.points

    _assign_standings(
        round_.drivers,
        total=lambda d: d.total_points,
        previous=lambda d: d.position_drivers,
        assign=lambda d, pos: setattr(d, "position_drivers", pos),
    )


# ── teams ──

def score_teams(round_: Round) -> None:
    """Sum member driver round points into each team."""
    driver_points = {d.driver: d.points for d in round_.drivers}
    for team in round_.teams:
        members = list(dict.fromkeys(team.drivers))
        missing = [m for m in members if m not in driver_points]
        if missing:
            logger.warning("team %s lists drivers %s not in the round, ignoring them", team.team, missing)
        team.points = sum(driver_points.get(m, 0) for m in members)

    ranked = sorted(round_.teams, key=lambda t: -t.points)
    for idx, team in enumerate(ranked, start=1):
        team.position = idx
        team.total_points += team.points

    _assign_standings(
        round_.teams,
        total=lambda t: t.total_points,
        previous=lambda t: t.position_constructors,
        assign=lambda t, pos: setattr(t, "position_constructors", pos),
    )


# ── standings ──

def _assign_standings(
    entries: Sequence[E],
    total: Callable[[E], int],
    previous: Callable[[E], int],
    assign: Callable[[E, int], None],
) -> None:
    """Order by total descending; ties keep the previous standing, then list order."""
    fallback = len(entries) + 1
    ordered = sorted(entries, key=lambda e: (-total(e), previous(e) or fallback))
    for idx, entry in enumerate(ordered, start=1):
        assign(entry, idx)

