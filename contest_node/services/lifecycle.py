"""Round status state machine and the inactivity reset."""
from __future__ import annotations

import copy
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from contest_node.entities.contest import ACTIVE_STATUSES, Contest, ContestSettings, Round, RoundStatus
from contest_node.errors import (
    ContestNotFoundError,
    InvalidTransitionError,
    RoundIndexError,
    StaleContestError,
)
from contest_node.interfaces.contest_repository import ContestRepository
from contest_node.services.settlement import SettlementResult, SettlementService, utc_now

DEFAULT_ROUND_EXPIRY = timedelta(hours=24)

TRANSITIONS: dict[RoundStatus, frozenset[RoundStatus]] = {
    RoundStatus.WAITING: frozenset({RoundStatus.COUNT_DOWN}),
    RoundStatus.COUNT_DOWN: frozenset({RoundStatus.BETTING_OPEN, RoundStatus.WAITING}),
    RoundStatus.BETTING_OPEN: frozenset({RoundStatus.BETTING_CLOSED, RoundStatus.WAITING}),
    RoundStatus.BETTING_CLOSED: frozenset({RoundStatus.RESULTS, RoundStatus.WAITING}),
    RoundStatus.RESULTS: frozenset({RoundStatus.COMPLETED, RoundStatus.WAITING}),
    RoundStatus.COMPLETED: frozenset(),
}


def allowed_transitions(status: RoundStatus, settings: ContestSettings) -> frozenset[RoundStatus]:
    allowed = TRANSITIONS[status]
    if status == RoundStatus.WAITING and settings.skip_count_down:
        allowed = allowed | {RoundStatus.BETTING_OPEN}
    return allowed


def transition_round(contest: Contest, round_index: int, status: RoundStatus, now: datetime) -> Round:
    """Move the active round to ``status`` in place and stamp the change time."""
    if not 0 <= round_index < len(contest.rounds):
        raise RoundIndexError(contest.id, round_index, len(contest.rounds))
    active = contest.active_round_index()
    if active != round_index:
        raise InvalidTransitionError(
            f"round {round_index} of contest {contest.id!r} is not the active round ({active})"
        )
    round_ = contest.rounds[round_index]
    if status not in allowed_transitions(round_.status, contest.settings):
        raise InvalidTransitionError(
            f"cannot move round {round_index} of contest {contest.id!r} from {round_.status} to {status}"
        )
    round_.status = status
    round_.status_changed_at = now
    return round_


def check_round_expiry(contest: Contest, now: datetime, expiry: timedelta = DEFAULT_ROUND_EXPIRY) -> bool:
    """Reset the active round to waiting if its status has been idle for ``expiry``.

    Clears every bet in that round and leaves all other fields alone.
    Returns True when a reset happened.
    """
    idx = contest.active_round_index()
    if idx is None:
        return False
    round_ = contest.rounds[idx]
    if round_.status not in ACTIVE_STATUSES or round_.status_changed_at is None:
        return False
    if _ensure_utc(now) - _ensure_utc(round_.status_changed_at) < expiry:
        return False

    round_.status = RoundStatus.WAITING
    round_.status_changed_at = now
    for entry in round_.competitors:
        entry.bet = None
        entry.bet_placed_at = None
    return True


def _ensure_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


class RoundLifecycleService:
    def __init__(
        self,
        contest_repository: ContestRepository,
        settlement_service: SettlementService,
        round_expiry: timedelta = DEFAULT_ROUND_EXPIRY,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.contest_repository = contest_repository
        self.settlement_service = settlement_service
        self.round_expiry = round_expiry
        self.clock = clock
        self.logger = logging.getLogger(__name__)

    def advance(self, contest_id: str, round_index: int, status: RoundStatus) -> Contest:
        """Apply a status change; entering results settles the round.

        The move into results is staged on the settlement's copy and commits
        with it, so a failed settlement leaves the round where it was. A round
        already in results but never settled is settled again on request.
        """
        if status == RoundStatus.RESULTS:
            return self._enter_results(contest_id, round_index)

        contest = self._load(contest_id)
        transition_round(contest, round_index, status, self.clock())
        self._commit(contest)
        self.logger.info("Contest %s round %d -> %s", contest_id, round_index + 1, status)
        return contest

    def _enter_results(self, contest_id: str, round_index: int) -> Contest:
        stored = self._load(contest_id)
        now = self.clock()
        stranded = (
            0 <= round_index < len(stored.rounds)
            and stored.rounds[round_index].status == RoundStatus.RESULTS
            and not stored.rounds[round_index].results_processed
        )

        def enter_results(contest: Contest) -> None:
            transition_round(contest, round_index, RoundStatus.RESULTS, now)

        result: SettlementResult = self.settlement_service.settle(
            contest_id, round_index, prepare=None if stranded else enter_results,
        )
        contest = result.contest
        self.logger.info("Contest %s round %d -> %s", contest_id, round_index + 1, RoundStatus.RESULTS)

        if contest.settings.skip_results:
            transition_round(contest, round_index, RoundStatus.COMPLETED, self.clock())
            self._commit(contest)
            self.logger.info("Contest %s round %d -> %s", contest_id, round_index + 1, RoundStatus.COMPLETED)
        return contest

    def expire(self, contest_id: str) -> bool:
        contest = self._load(contest_id)
        if not check_round_expiry(contest, self.clock(), self.round_expiry):
            return False
        self._commit(contest)
        self.logger.info("Contest %s: active round idle past %s, reset to waiting", contest_id, self.round_expiry)
        return True

    def expire_all(self) -> int:
        reset = 0
        for contest_id in self.contest_repository.list_ids():
            try:
                if self.expire(contest_id):
                    reset += 1
            except StaleContestError as exc:
                self.logger.warning("Skipping expiry for contest %s: %s", contest_id, exc)
        return reset

    def _commit(self, contest: Contest) -> None:
        try:
            self.contest_repository.save(contest)
            self.contest_repository.commit()
        except Exception:
            self.contest_repository.rollback()
            raise

    def _load(self, contest_id: str) -> Contest:
        stored = self.contest_repository.fetch(contest_id)
        if stored is None:
            raise ContestNotFoundError(contest_id)
        return copy.deepcopy(stored)
