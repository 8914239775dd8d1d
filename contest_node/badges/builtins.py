"""Builtin badge checkers, keyed by the badge's ``awarded_how`` discriminator."""
from __future__ import annotations

import math

from contest_node.badges import factories
from contest_node.badges.context import BadgeContext
from contest_node.badges.factories import NOT_EARNED, result
from contest_node.badges.helpers import (
    MIN_COMPETITORS_MIDDLE,
    MIN_COMPETITORS_PODIUM,
    MIN_COMPETITORS_TOP5,
    MIN_ROUNDS_CUMULATIVE,
    bet_driver,
    count_scored_rounds,
    did_place_bet,
    did_runner_up,
    did_score_points,
    did_win,
    has_minimum_competitors,
    is_in_top_n,
    is_last,
    is_last_round,
    max_points_per_round,
    previous_scored_round,
    same_driver_streak,
    unique_drivers_bet,
)
from contest_node.badges.registry import BadgeChecker, BadgeCheckResult


# ── round performance ──

def round_win(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
    return result(did_win(ctx.current_round, ctx.competitor_id))


def round_runner_up(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
    return result(did_runner_up(ctx.current_round, ctx.competitor_id))


def round_podium(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
    return result(
        has_minimum_competitors(ctx.current_round, MIN_COMPETITORS_PODIUM)
        and is_in_top_n(ctx.current_round, ctx.competitor_id, 3)
    )


def round_top_five(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
    return result(
        has_minimum_competitors(ctx.current_round, MIN_COMPETITORS_TOP5)
        and is_in_top_n(ctx.current_round, ctx.competitor_id, 5)
    )


def round_last(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
    return result(len(ctx.current_round.competitors) > 1 and is_last(ctx.current_round, ctx.competitor_id))


def round_middle(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
    if not has_minimum_competitors(ctx.current_round, MIN_COMPETITORS_MIDDLE):
        return NOT_EARNED
    entry = ctx.current_round.competitor_entry(ctx.competitor_id)
    middle = math.ceil(len(ctx.current_round.competitors) / 2)
    return result(entry is not None and entry.position == middle)


def first_round_win(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
    return result(ctx.current_round_index == 0 and did_win(ctx.current_round, ctx.competitor_id))


def final_round_win(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
    return result(is_last_round(ctx) and did_win(ctx.current_round, ctx.competitor_id))


def no_points(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
    return result(
        did_place_bet(ctx.current_round, ctx.competitor_id)
        and not did_score_points(ctx.current_round, ctx.competitor_id)
    )


def perfect_target(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
    if not did_win(ctx.current_round, ctx.competitor_id):
        return NOT_EARNED
    picked = bet_driver(ctx.current_round, ctx.competitor_id)
    return result(picked is not None and picked.position_actual == ctx.target_position)


def first_win_ever(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
    if not did_win(ctx.current_round, ctx.competitor_id):
        return NOT_EARNED
    earlier = ctx.all_rounds[: ctx.current_round_index]
    return result(not any(r.is_scored and did_win(r, ctx.competitor_id) for r in earlier))


def won_either_side_of_target(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
    if not did_win(ctx.current_round, ctx.competitor_id):
        return NOT_EARNED
    picked = bet_driver(ctx.current_round, ctx.competitor_id)
    sides = {ctx.target_position - 1, ctx.target_position + 1}
    return result(picked is not None and picked.position_actual in sides)


def full_field_win(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
    if not did_win(ctx.current_round, ctx.competitor_id):
        return NOT_EARNED
    competitors = ctx.current_round.competitors
    return result(len(competitors) > 1 and all(c.bet is not None for c in competitors))


def comeback_win(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
    """Won after standing last in the previous round."""
    if not did_win(ctx.current_round, ctx.competitor_id):
        return NOT_EARNED
    prev = previous_scored_round(ctx)
    return result(prev is not None and is_last(prev, ctx.competitor_id))


def photo_finish(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
    """Won the round while level on total points with second place."""
    if count_scored_rounds(ctx) < MIN_ROUNDS_CUMULATIVE or not did_win(ctx.current_round, ctx.competitor_id):
        return NOT_EARNED
    entry = ctx.current_round.competitor_entry(ctx.competitor_id)
    second = next((c for c in ctx.current_round.competitors if c.position == 2), None)
    if entry is None or second is None or second.competitor == ctx.competitor_id:
        return NOT_EARNED
    return result(entry.total_points == second.total_points)


def undercut(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
    """Gained three or more standing places in one round."""
    prev = previous_scored_round(ctx)
    if prev is None:
        return NOT_EARNED
    before = prev.competitor_entry(ctx.competitor_id)
    now = ctx.current_round.competitor_entry(ctx.competitor_id)
    if before is None or now is None:
        return NOT_EARNED
    return result(before.position - now.position >= 3)


def grid_penalty(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
    """Dropped from the lead to fifth or lower in one round."""
    prev = previous_scored_round(ctx)
    if prev is None:
        return NOT_EARNED
    before = prev.competitor_entry(ctx.competitor_id)
    now = ctx.current_round.competitor_entry(ctx.competitor_id)
    if before is None or now is None:
        return NOT_EARNED
    return result(before.position == 1 and now.position >= 5)


# ── points ──

def maximum_round_points(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
    entry = ctx.current_round.competitor_entry(ctx.competitor_id)
    maximum = max_points_per_round(ctx)
    return result(entry is not None and maximum > 0 and entry.points >= maximum)


def full_points_season(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
    """Scored in every round of the contest."""
    if not is_last_round(ctx):
        return NOT_EARNED
    scored = [r for r in ctx.all_rounds if r.is_scored]
    return result(bool(scored) and all(did_score_points(r, ctx.competitor_id) for r in scored))


# ── driver bets ──

def pole_position_win(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
    if not did_win(ctx.current_round, ctx.competitor_id):
        return NOT_EARNED
    picked = bet_driver(ctx.current_round, ctx.competitor_id)
    return result(picked is not None and picked.position_actual == 1)


def outside_target_win(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
    if not did_win(ctx.current_round, ctx.competitor_id):
        return NOT_EARNED
    picked = bet_driver(ctx.current_round, ctx.competitor_id)
    return result(
        picked is not None and picked.position_actual is not None
        and picked.position_actual > ctx.target_position
    )


def top_team_loss(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
    """Bet on a driver of the leading team and scored nothing."""
    entry = ctx.current_round.competitor_entry(ctx.competitor_id)
    if entry is None or entry.bet is None or entry.points > 0:
        return NOT_EARNED
    top = next((t for t in ctx.current_round.teams if t.position_constructors == 1), None)
    return result(top is not None and entry.bet in top.drivers)


def underdog_win(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
    """Won betting on a driver of the last-placed team."""
    if not did_win(ctx.current_round, ctx.competitor_id) or not ctx.current_round.teams:
        return NOT_EARNED
    entry = ctx.current_round.competitor_entry(ctx.competitor_id)
    worst = max(t.position_constructors for t in ctx.current_round.teams)
    bottom = next(t for t in ctx.current_round.teams if t.position_constructors == worst)
    return result(entry is not None and entry.bet in bottom.drivers)


def different_drivers(count: int) -> BadgeChecker:
    def check(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
        return result(len(unique_drivers_bet(ctx, count)) >= count)
    return check


def same_driver(count: int, require_points: bool = False) -> BadgeChecker:
    def check(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
        return result(same_driver_streak(ctx, require_points=require_points) >= count)
    return check


def bet_on_every_driver(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
    grid = {d.driver for d in ctx.current_round.drivers}
    if not grid:
        return NOT_EARNED
    picked = {
        entry.bet
        for r in ctx.all_rounds[: ctx.current_round_index + 1] if r.is_scored
        for entry in r.competitors
        if entry.competitor == ctx.competitor_id and entry.bet is not None
    }
    return result(grid <= picked)


def builtin_checkers() -> list[tuple[str, BadgeChecker]]:
    return [
        # round performance
        ("Round Win", round_win),
        ("Round Runner-Up", round_runner_up),
        ("Round Podium", round_podium),
        ("Round Top 5", round_top_five),
        ("Round Last", round_last),
        ("Round Middle", round_middle),
        ("First Round Win", first_round_win),
        ("Final Round Win", final_round_win),
        ("No Points", no_points),
        ("Perfect P10", perfect_target),
        ("First Win Ever", first_win_ever),
        ("Won With P9 or P11", won_either_side_of_target),
        ("Full Field Win", full_field_win),
        ("Comeback Win", comeback_win),
        ("Photo Finish", photo_finish),
        ("Undercut", undercut),
        ("Grid Penalty", grid_penalty),
        ("2 Round Wins", factories.win_count(2)),
        ("3 Round Wins", factories.win_count(3)),
        ("5 Round Wins", factories.win_count(5)),
        ("10 Round Wins", factories.win_count(10)),
        ("3x Runner-Up", factories.runner_up_count(3)),
        ("5x Runner-Up", factories.runner_up_count(5)),
        # streaks
        ("2 Win Streak", factories.win_streak(2)),
        ("3 Win Streak", factories.win_streak(3)),
        ("5 Win Streak", factories.win_streak(5)),
        ("6 Points Streak", factories.points_streak(6)),
        ("10 Points Streak", factories.points_streak(10)),
        ("3 No Points Streak", factories.no_points_streak(3)),
        ("5 No Points Streak", factories.no_points_streak(5)),
        ("3 No Bet Streak", factories.no_bet_streak(3)),
        ("Same Driver x3", same_driver(3)),
        ("Same Driver x5", same_driver(5)),
        ("Same Driver Points x2", same_driver(2, require_points=True)),
        # points
        ("6 Point Lead", factories.point_lead(6)),
        ("12 Point Lead", factories.point_lead(12)),
        ("24 Point Lead", factories.point_lead(24)),
        ("Tied With 2", factories.tied_with(2)),
        ("Tied With 3", factories.tied_with(3)),
        ("Double Digits", factories.points_milestone(10)),
        ("50 Points", factories.points_milestone(50)),
        ("100 Points", factories.points_milestone(100)),
        ("Quarter Season Points", factories.season_percentage(25)),
        ("Half Season Points", factories.season_percentage(50)),
        ("Maximum Round Points", maximum_round_points),
        ("Full Points Streak", full_points_season),
        # participation
        ("5 Rounds Played", factories.rounds_played(5)),
        ("10 Rounds Played", factories.rounds_played(10)),
        ("25 Rounds Played", factories.rounds_played(25)),
        # driver bets
        ("Pole Position Win", pole_position_win),
        ("Outside Top 10 Win", outside_target_win),
        ("Top Team Loss", top_team_loss),
        ("Underdog Win", underdog_win),
        ("6 Different Drivers", different_drivers(6)),
        ("10 Different Drivers", different_drivers(10)),
        ("Bet on Every Driver", bet_on_every_driver),
        ("Oldest Driver Win", factories.extreme_attribute_win("birthday", "min")),
        ("Youngest Driver Win", factories.extreme_attribute_win("birthday", "max")),
        ("Tallest Driver Win", factories.extreme_attribute_win("height_cm", "max")),
        ("Shortest Driver Win", factories.extreme_attribute_win("height_cm", "min")),
        ("Heaviest Driver Win", factories.extreme_attribute_win("weight_kg", "max")),
        ("Lightest Driver Win", factories.extreme_attribute_win("weight_kg", "min")),
        ("Moustache Win", factories.feature_win("moustache")),
        ("Mullet Win", factories.feature_win("mullet")),
        ("Moustache & Mullet", factories.feature_win("both")),
    ]
