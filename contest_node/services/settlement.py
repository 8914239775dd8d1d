from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from contest_node.badges.evaluator import BadgeEvaluator
from contest_node.badges.registry import BadgeRegistry
from contest_node.entities.badge import BadgeAward
from contest_node.entities.contest import (
    CompetitorEntry,
    Contest,
    DriverEntry,
    Round,
    TeamEntry,
)
from contest_node.entities.driver import DriverStats
from contest_node.errors import ContestNotFoundError, RoundAlreadySettledError, RoundIndexError
from contest_node.interfaces.badge_repository import BadgeRepository
from contest_node.interfaces.contest_repository import ContestRepository
from contest_node.interfaces.driver_repository import DriverRepository
from contest_node.interfaces.user_repository import UserRepository
from contest_node.schemas.payload_contracts import AwardEnvelope, RoundSettledEnvelope
from contest_node.scoring.engine import score_competitors, score_drivers, score_teams
from contest_node.scoring.rank import TARGET_POSITION
from contest_node.services.stats import aggregate_driver_stats

Notifier = Callable[[str, str], None]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SettlementResult:
    contest: Contest
    round_index: int
    winner: str | None
    runner_up: str | None
    awards: list[BadgeAward] = field(default_factory=list)
    driver_stats: dict[str, DriverStats] = field(default_factory=dict)

    def to_payload(self) -> str:
        return RoundSettledEnvelope(
            contest_id=self.contest.id,
            round_index=self.round_index,
            winner=self.winner,
            runner_up=self.runner_up,
            awards=[AwardEnvelope(badge_id=a.badge_id, user_id=a.user_id) for a in self.awards],
        ).model_dump_json()


class SettlementService:
    """Settles one round of a contest: scoring, carry-forward, stats, badges.

    Every step runs against a deep copy of the loaded contest and nothing is
    written until the whole pipeline has succeeded. The aggregate, driver
    career stats and badge membership then commit as one transaction; any
    failure up to that commit leaves the store exactly as it was. User-side
    badge records are committed after it, on their own.
    """

    def __init__(
        self,
        contest_repository: ContestRepository,
        driver_repository: DriverRepository,
        badge_repository: BadgeRepository,
        user_repository: UserRepository,
        badge_registry: BadgeRegistry | None = None,
        target_position: int = TARGET_POSITION,
        notifier: Notifier | None = None,
        settled_channel: str = "round_settled",
        clock: Callable[[], datetime] = utc_now,
    ):
        self.contest_repository = contest_repository
        self.driver_repository = driver_repository
        self.badge_repository = badge_repository
        self.user_repository = user_repository
        self.target_position = target_position
        self.notifier = notifier
        self.settled_channel = settled_channel
        self.clock = clock
        self.badge_evaluator = BadgeEvaluator(
            badge_repository=badge_repository,
            user_repository=user_repository,
            registry=badge_registry,
            target_position=target_position,
        )
        self.logger = logging.getLogger(__name__)

    def settle(
        self,
        contest_id: str,
        round_index: int,
        prepare: Callable[[Contest], None] | None = None,
    ) -> SettlementResult:
        """Settle one round. ``prepare`` runs on the staged copy before scoring,
        so its changes are committed together with the settlement."""
        stored = self.contest_repository.fetch(contest_id)
        if stored is None:
            raise ContestNotFoundError(contest_id)
        if not 0 <= round_index < len(stored.rounds):
            raise RoundIndexError(contest_id, round_index, len(stored.rounds))
        if stored.rounds[round_index].results_processed:
            raise RoundAlreadySettledError(
                f"round {round_index} of contest {contest_id!r} has already been settled"
            )

        contest = copy.deepcopy(stored)
        if prepare is not None:
            prepare(contest)
        now = self.clock()
        round_ = contest.rounds[round_index]
        next_round = contest.rounds[round_index + 1] if round_index + 1 < len(contest.rounds) else None

        # 1. roster into the next round
        if next_round is not None:
            next_round.competitors = prefill_competitors(contest.competitors, round_)

        # 2. competitors
        score_competitors(round_, contest.scoring, self.target_position)
        if next_round is not None:
            resync_competitors(next_round, round_)

        # 3. drivers
        score_drivers(round_, contest.scoring, self.target_position)
        if next_round is not None:
            carry_drivers(round_, next_round)

        # 4. teams
        score_teams(round_)
        if next_round is not None:
            carry_teams(round_, next_round)

        # 5. driver careers
        profiles = self.driver_repository.fetch_by_ids([d.driver for d in round_.drivers])
        driver_stats = aggregate_driver_stats(contest, round_index, profiles, self.target_position)

        # 6. badges
        round_.results_processed = True
        badges = self.badge_repository.fetch_by_ids(contest.champ_badges)
        batch = self.badge_evaluator.evaluate(contest, round_index, badges, profiles, now)
        self.badge_evaluator.apply(contest, batch)
        contest.updated_at = now

        # 7. one transaction: aggregate (version-checked), career stats, badge membership
        try:
            self.contest_repository.save(contest)
            if driver_stats:
                self.driver_repository.bulk_update_stats(driver_stats)
            self.badge_evaluator.flush_membership(batch)
            for repository in (self.contest_repository, self.driver_repository, self.badge_repository):
                repository.commit()
        except Exception:
            self._rollback()
            raise

        # 8. user-side badge records, committed on their own
        try:
            self.badge_evaluator.flush_user_records(batch)
            self.user_repository.commit()
        except Exception as exc:
            self._rollback(self.user_repository)
            self.logger.error(
                "Contest %s round %d is settled but %d user badge records were not written: %s",
                contest.id, round_index + 1, len(batch), exc,
            )
            raise

        result = SettlementResult(
            contest=contest,
            round_index=round_index,
            winner=round_.winner,
            runner_up=round_.runner_up,
            awards=list(batch.awards),
            driver_stats=driver_stats,
        )
        self.logger.info(
            "Settled contest %s round %d (winner=%s, runner_up=%s, awards=%d)",
            contest.id, round_index + 1, result.winner, result.runner_up, len(result.awards),
        )
        self._publish(result)
        return result

    def _rollback(self, *repositories) -> None:
        for repository in repositories or (self.contest_repository, self.driver_repository,
                                           self.badge_repository, self.user_repository):
            try:
                repository.rollback()
            except Exception as exc:
                self.logger.warning("Rollback failed for %s: %s", type(repository).__name__, exc)

    def _publish(self, result: SettlementResult) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier(self.settled_channel, result.to_payload())
        except Exception as exc:
            self.logger.warning("Settled notification failed for contest %s: %s", result.contest.id, exc)


# ── carry-forward ──

def prefill_competitors(roster: list[str], settled: Round) -> list[CompetitorEntry]:
    """Next-round entries for the contest roster, carrying standings from ``settled``.

    Competitors missing from the settled round start at zero, placed after
    everyone who was carried. Standings are renumbered without gaps.
    """
    entries = []
    for competitor_id in dict.fromkeys(roster):
        entry = CompetitorEntry(competitor=competitor_id)
        previous = settled.competitor_entry(competitor_id)
        if previous is not None:
            entry.total_points = previous.total_points
            entry.position = previous.position
        entries.append(entry)
    _renumber_standings(entries, settled)
    return entries


def resync_competitors(next_round: Round, settled: Round) -> None:
    for entry in next_round.competitors:
        previous = settled.competitor_entry(entry.competitor)
        if previous is not None:
            entry.total_points = previous.total_points
            entry.position = previous.position
    _renumber_standings(next_round.competitors, settled)


def _renumber_standings(entries: list[CompetitorEntry], settled: Round) -> None:
    """Carried competitors keep their settled order, renumbered 1..n; joiners follow."""
    carried = [e for e in entries if settled.competitor_entry(e.competitor) is not None]
    joiners = [e for e in entries if settled.competitor_entry(e.competitor) is None]
    # unranked (0) standings sort after ranked ones
    carried.sort(key=lambda e: (e.position <= 0, e.position))
    for position, entry in enumerate([*carried, *joiners], start=1):
        entry.position = position


def carry_drivers(settled: Round, next_round: Round) -> None:
    if not next_round.drivers:
        next_round.drivers = [
            DriverEntry(driver=d.driver, total_points=d.total_points, position_drivers=d.position_drivers)
            for d in settled.drivers
        ]
        return
    for entry in next_round.drivers:
        previous = settled.driver_entry(entry.driver)
        if previous is not None:
            entry.total_points = previous.total_points
            entry.position_drivers = previous.position_drivers
        entry.points = 0
        entry.position = 0


def carry_teams(settled: Round, next_round: Round) -> None:
    if not next_round.teams:
        next_round.teams = [
            TeamEntry(
                team=t.team,
                drivers=list(t.drivers),
                total_points=t.total_points,
                position_constructors=t.position_constructors,
            )
            for t in settled.teams
        ]
        return
    previous_by_id = {t.team: t for t in settled.teams}
    for entry in next_round.teams:
        previous = previous_by_id.get(entry.team)
        if previous is not None:
            entry.total_points = previous.total_points
            entry.position_constructors = previous.position_constructors
        entry.points = 0
        entry.position = 0
