"""Driver career statistics derived from a settled round."""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Mapping

from contest_node.entities.contest import Contest
from contest_node.entities.driver import DriverProfile, DriverStats
from contest_node.scoring.rank import TARGET_POSITION

logger = logging.getLogger(__name__)

FORM_WINDOW = 3


def aggregate_driver_stats(
    contest: Contest,
    round_index: int,
    profiles: Mapping[str, DriverProfile],
    target: int = TARGET_POSITION,
) -> dict[str, DriverStats]:
    """New stats for every driver of the round that has a stored profile.

    Returns fresh ``DriverStats`` objects keyed by driver id; ``profiles`` is
    not modified. Championship counters move only on the contest's final round.
    """
    round_ = contest.rounds[round_index]
    final_round = round_index == len(contest.rounds) - 1
    updated: dict[str, DriverStats] = {}

    for entry in round_.drivers:
        profile = profiles.get(entry.driver)
        if profile is None:
            logger.warning("no profile for driver %s, skipping career stats", entry.driver)
            continue

        stats = replace(profile.stats, position_history=dict(profile.stats.position_history))
        stats.rounds_completed += 1

        finish = entry.position_actual
        if finish is not None:
            key = str(finish)
            stats.position_history[key] = stats.position_history.get(key, 0) + 1
            if finish == target:
                stats.rounds_won += 1
            if finish == 1:
                stats.pole_positions += 1
            if finish <= 3:
                stats.top_three_finishes += 1

        recent = _recent_finishes(contest, round_index, entry.driver)
        if recent:
            stats.form_score = round(sum(recent) / len(recent), 2)

        if final_round:
            stats.champs_completed += 1
            if entry.position_drivers == 1:
                stats.champs_won += 1

        updated[entry.driver] = stats

    return updated


def _recent_finishes(contest: Contest, round_index: int, driver_id: str) -> list[int]:
    finishes: list[int] = []
    for idx in range(round_index, -1, -1):
        entry = contest.rounds[idx].driver_entry(driver_id)
        if entry is not None and entry.position_actual is not None:
            finishes.append(entry.position_actual)
            if len(finishes) == FORM_WINDOW:
                break
    return finishes
