"""Round and history lookups shared by badge checkers."""
from __future__ import annotations

import math
from datetime import date
from typing import Callable, Literal, Mapping

from contest_node.badges.context import BadgeContext
from contest_node.entities.contest import DriverEntry, Round
from contest_node.entities.driver import DriverProfile

# Minimum field sizes for placing badges to mean anything.
MIN_COMPETITORS_PODIUM = 4
MIN_COMPETITORS_TOP5 = 6
MIN_COMPETITORS_MIDDLE = 5
MIN_ROUNDS_CUMULATIVE = 3


def is_last_round(ctx: BadgeContext) -> bool:
    return ctx.current_round_index == len(ctx.all_rounds) - 1


def bet_driver(round_: Round, competitor_id: str) -> DriverEntry | None:
    entry = round_.competitor_entry(competitor_id)
    if entry is None or entry.bet is None:
        return None
    return round_.driver_entry(entry.bet)


def did_win(round_: Round, competitor_id: str) -> bool:
    return round_.winner == competitor_id


def did_runner_up(round_: Round, competitor_id: str) -> bool:
    return round_.runner_up == competitor_id


def did_score_points(round_: Round, competitor_id: str) -> bool:
    entry = round_.competitor_entry(competitor_id)
    return entry is not None and entry.points > 0


def did_place_bet(round_: Round, competitor_id: str) -> bool:
    entry = round_.competitor_entry(competitor_id)
    return entry is not None and entry.bet is not None


def is_in_top_n(round_: Round, competitor_id: str, n: int) -> bool:
    entry = round_.competitor_entry(competitor_id)
    return entry is not None and 0 < entry.position <= n


def is_last(round_: Round, competitor_id: str) -> bool:
    entry = round_.competitor_entry(competitor_id)
    if entry is None or not round_.competitors:
        return False
    return entry.position == max(c.position for c in round_.competitors)


def has_minimum_competitors(round_: Round, minimum: int) -> bool:
    return len(round_.competitors) >= minimum


def count_scored_rounds(ctx: BadgeContext) -> int:
    return sum(1 for r in ctx.all_rounds[: ctx.current_round_index + 1] if r.is_scored)


def count_rounds_played(ctx: BadgeContext) -> int:
    """Scored rounds up to the current one in which the competitor bet."""
    return sum(
        1 for r in ctx.all_rounds[: ctx.current_round_index + 1]
        if r.is_scored and did_place_bet(r, ctx.competitor_id)
    )


def count_in_season(ctx: BadgeContext, condition: Callable[[Round, str], bool]) -> int:
    return sum(
        1 for r in ctx.all_rounds[: ctx.current_round_index + 1]
        if r.is_scored and condition(r, ctx.competitor_id)
    )


def streak_length(ctx: BadgeContext, condition: Callable[[Round, str], bool]) -> int:
    """Consecutive scored rounds, walking back from the current one, that satisfy ``condition``."""
    streak = 0
    for idx in range(ctx.current_round_index, -1, -1):
        round_ = ctx.all_rounds[idx]
        if not round_.is_scored:
            continue
        if not condition(round_, ctx.competitor_id):
            break
        streak += 1
    return streak


def same_driver_streak(ctx: BadgeContext, require_points: bool = False) -> int:
    streak = 0
    last_driver: str | None = None
    for idx in range(ctx.current_round_index, -1, -1):
        round_ = ctx.all_rounds[idx]
        if not round_.is_scored:
            continue
        entry = round_.competitor_entry(ctx.competitor_id)
        if entry is None or entry.bet is None:
            break
        if require_points and entry.points == 0:
            break
        if last_driver is not None and entry.bet != last_driver:
            break
        last_driver = entry.bet
        streak += 1
    return streak


def unique_drivers_bet(ctx: BadgeContext, last_n: int) -> set[str]:
    drivers: set[str] = set()
    counted = 0
    for idx in range(ctx.current_round_index, -1, -1):
        if counted >= last_n:
            break
        round_ = ctx.all_rounds[idx]
        if not round_.is_scored:
            continue
        entry = round_.competitor_entry(ctx.competitor_id)
        if entry is not None and entry.bet is not None:
            drivers.add(entry.bet)
            counted += 1
    return drivers


def max_points_per_round(ctx: BadgeContext) -> int:
    return ctx.contest.scoring.max_points()


def previous_scored_round(ctx: BadgeContext) -> Round | None:
    if ctx.current_round_index == 0:
        return None
    prev = ctx.all_rounds[ctx.current_round_index - 1]
    return prev if prev.is_scored else None


def driver_with_extreme(
    round_: Round,
    stat: Literal["birthday", "height_cm", "weight_kg"],
    extreme: Literal["min", "max"],
    drivers: Mapping[str, DriverProfile],
) -> str | None:
    """Driver in the round with the lowest or highest value of an attribute."""
    best_id: str | None = None
    best_value = math.inf if extreme == "min" else -math.inf
    for entry in round_.drivers:
        profile = drivers.get(entry.driver)
        if profile is None:
            continue
        value = getattr(profile.attributes, stat)
        if value is None:
            continue
        if isinstance(value, date):
            value = value.toordinal()
        if (extreme == "min" and value < best_value) or (extreme == "max" and value > best_value):
            best_id, best_value = entry.driver, value
    return best_id
