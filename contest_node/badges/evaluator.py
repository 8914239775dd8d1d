"""Badge evaluation: check every competitor against every contest badge, write awards in bulk."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Mapping

from contest_node.badges.context import BadgeContext
from contest_node.badges.registry import BadgeRegistry, get_default_registry
from contest_node.entities.badge import Badge, BadgeAward
from contest_node.entities.contest import Contest, DiscoveredBadge
from contest_node.entities.driver import DriverProfile
from contest_node.interfaces.badge_repository import BadgeRepository
from contest_node.interfaces.user_repository import UserRepository
from contest_node.scoring.rank import TARGET_POSITION


@dataclass
class AwardBatch:
    """Awards queued during one evaluation pass, written by ``BadgeEvaluator.flush_membership`` and ``flush_user_records``."""
    contest_id: str
    round_index: int
    awards: list[BadgeAward] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.awards)

    def by_badge(self) -> dict[str, list[str]]:
        grouped: dict[str, list[str]] = {}
        for award in self.awards:
            grouped.setdefault(award.badge_id, []).append(award.user_id)
        return grouped


class BadgeEvaluator:
    def __init__(
        self,
        badge_repository: BadgeRepository,
        user_repository: UserRepository,
        registry: BadgeRegistry | None = None,
        target_position: int = TARGET_POSITION,
    ):
        self.badge_repository = badge_repository
        self.user_repository = user_repository
        self.registry = registry if registry is not None else get_default_registry()
        self.target_position = target_position
        self.logger = logging.getLogger(__name__)

    def evaluate(
        self,
        contest: Contest,
        round_index: int,
        badges: list[Badge],
        drivers: Mapping[str, DriverProfile] | None = None,
        now: datetime | None = None,
    ) -> AwardBatch:
        """Queue every newly earned badge for the round's competitors. Writes nothing."""
        now = now or datetime.now(timezone.utc)
        round_ = contest.rounds[round_index]
        batch = AwardBatch(contest_id=contest.id, round_index=round_index)

        unregistered = sorted({b.awarded_how for b in badges if b.awarded_how not in self.registry})
        for key in unregistered:
            self.logger.warning("badge checker %r not registered, skipping", key)
        checkable = [b for b in badges if b.awarded_how in self.registry]

        queued: set[tuple[str, str]] = set()
        for entry in round_.competitors:
            ctx = BadgeContext(
                competitor_id=entry.competitor,
                current_round=round_,
                current_round_index=round_index,
                contest=contest,
                all_rounds=contest.rounds,
                max_competitors=contest.settings.max_competitors,
                target_position=self.target_position,
            )
            for badge in checkable:
                key = (badge.id, entry.competitor)
                if entry.competitor in badge.awarded_to or key in queued:
                    continue
                if self.registry.check(badge.awarded_how, ctx, drivers):
                    queued.add(key)
                    batch.awards.append(BadgeAward(
                        badge_id=badge.id,
                        user_id=entry.competitor,
                        contest_id=contest.id,
                        round_index=round_index,
                        awarded_at=now,
                    ))
        return batch

    def apply(self, contest: Contest, batch: AwardBatch) -> None:
        """Record the batch on the in-memory aggregate (per-round badges, first discoveries)."""
        round_ = contest.rounds[batch.round_index]
        discovered = {d.badge for d in contest.discovered_badges}
        for award in batch.awards:
            entry = round_.competitor_entry(award.user_id)
            if entry is not None and award.badge_id not in entry.badges_awarded:
                entry.badges_awarded.append(award.badge_id)
            if award.badge_id not in discovered:
                discovered.add(award.badge_id)
                contest.discovered_badges.append(DiscoveredBadge(
                    badge=award.badge_id, discovered_by=award.user_id, discovered_at=award.awarded_at,
                ))

    def flush_membership(self, batch: AwardBatch) -> None:
        """Stage one bulk write adding each user to the badges they earned."""
        if batch.awards:
            self.badge_repository.add_awarded_to(batch.by_badge())

    def flush_user_records(self, batch: AwardBatch) -> None:
        """Stage one bulk write appending the awards to each user's record.

        Not part of the membership transaction. A failure here leaves
        membership recorded without the matching user record.
        """
        if not batch.awards:
            return
        self.user_repository.append_badges(batch.awards)
        self.logger.info(
            "Awarded %d badges for contest %s round %d",
            len(batch.awards), batch.contest_id, batch.round_index + 1,
        )
