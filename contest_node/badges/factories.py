"""Checker factories for badges that differ only by a threshold."""
from __future__ import annotations

from typing import Literal, Mapping

from contest_node.badges.context import BadgeContext
from contest_node.badges.helpers import (
    bet_driver,
    count_in_season,
    count_rounds_played,
    did_place_bet,
    did_runner_up,
    did_score_points,
    did_win,
    driver_with_extreme,
    max_points_per_round,
    streak_length,
)
from contest_node.badges.registry import BadgeChecker, BadgeCheckResult
from contest_node.entities.driver import DriverProfile

EARNED = BadgeCheckResult(earned=True)
NOT_EARNED = BadgeCheckResult(earned=False)


def result(earned: bool) -> BadgeCheckResult:
    return EARNED if earned else NOT_EARNED


def win_count(target: int) -> BadgeChecker:
    def check(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
        return result(count_in_season(ctx, did_win) >= target)
    return check


def runner_up_count(target: int) -> BadgeChecker:
    def check(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
        return result(count_in_season(ctx, did_runner_up) >= target)
    return check


def win_streak(length: int) -> BadgeChecker:
    def check(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
        return result(streak_length(ctx, did_win) >= length)
    return check


def points_streak(length: int) -> BadgeChecker:
    def check(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
        return result(streak_length(ctx, did_score_points) >= length)
    return check


def no_points_streak(length: int) -> BadgeChecker:
    def check(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
        return result(streak_length(ctx, lambda r, c: not did_score_points(r, c)) >= length)
    return check


def no_bet_streak(length: int) -> BadgeChecker:
    def check(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
        return result(streak_length(ctx, lambda r, c: not did_place_bet(r, c)) >= length)
    return check


def point_lead(lead: int) -> BadgeChecker:
    def check(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
        entry = ctx.current_round.competitor_entry(ctx.competitor_id)
        if entry is None or entry.position != 1:
            return NOT_EARNED
        second = next((c for c in ctx.current_round.competitors if c.position == 2), None)
        if second is None:
            return NOT_EARNED
        return result(entry.total_points - second.total_points >= lead)
    return check


def tied_with(others: int) -> BadgeChecker:
    def check(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
        entry = ctx.current_round.competitor_entry(ctx.competitor_id)
        if entry is None or entry.total_points == 0:
            return NOT_EARNED
        tied = sum(
            1 for c in ctx.current_round.competitors
            if c.total_points == entry.total_points and c.competitor != ctx.competitor_id
        )
        return result(tied >= others)
    return check


def points_milestone(milestone: int) -> BadgeChecker:
    def check(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
        entry = ctx.current_round.competitor_entry(ctx.competitor_id)
        return result(entry is not None and entry.total_points >= milestone)
    return check


def season_percentage(percentage: float) -> BadgeChecker:
    """Season total as a share of maximum points per round × number of rounds."""
    def check(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
        entry = ctx.current_round.competitor_entry(ctx.competitor_id)
        earnable = max_points_per_round(ctx) * len(ctx.all_rounds)
        if entry is None or earnable == 0:
            return NOT_EARNED
        return result(entry.total_points >= percentage / 100 * earnable)
    return check


def rounds_played(target: int) -> BadgeChecker:
    def check(ctx: BadgeContext, drivers=None) -> BadgeCheckResult:
        return result(count_rounds_played(ctx) >= target)
    return check


def extreme_attribute_win(
    stat: Literal["birthday", "height_cm", "weight_kg"],
    extreme: Literal["min", "max"],
) -> BadgeChecker:
    """Won the round betting on the driver with the extreme attribute value."""
    def check(ctx: BadgeContext, drivers: Mapping[str, DriverProfile] | None = None) -> BadgeCheckResult:
        if not drivers or not did_win(ctx.current_round, ctx.competitor_id):
            return NOT_EARNED
        picked = bet_driver(ctx.current_round, ctx.competitor_id)
        if picked is None:
            return NOT_EARNED
        return result(driver_with_extreme(ctx.current_round, stat, extreme, drivers) == picked.driver)
    return check


def feature_win(feature: Literal["moustache", "mullet", "both"]) -> BadgeChecker:
    def check(ctx: BadgeContext, drivers: Mapping[str, DriverProfile] | None = None) -> BadgeCheckResult:
        if not drivers or not did_win(ctx.current_round, ctx.competitor_id):
            return NOT_EARNED
        picked = bet_driver(ctx.current_round, ctx.competitor_id)
        profile = drivers.get(picked.driver) if picked else None
        if profile is None:
            return NOT_EARNED
        attrs = profile.attributes
        if feature == "both":
            return result(attrs.moustache and attrs.mullet)
        return result(bool(getattr(attrs, feature)))
    return check
