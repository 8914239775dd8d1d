from __future__ import annotations


class ContestNotFoundError(LookupError):
    def __init__(self, contest_id: str):
        super().__init__(f"contest {contest_id!r} not found")
        self.contest_id = contest_id


class RoundIndexError(IndexError):
    def __init__(self, contest_id: str, round_index: int, round_count: int):
        super().__init__(
            f"round index {round_index} out of range for contest {contest_id!r} "
            f"({round_count} rounds)"
        )
        self.contest_id = contest_id
        self.round_index = round_index


class RoundAlreadySettledError(RuntimeError):
    """The round's results were already processed; settling again would double-count totals."""


class InvalidTransitionError(ValueError):
    """Illegal round status change, or a change on a round that is not the active one."""


class StaleContestError(RuntimeError):
    """The stored contest version moved since it was loaded."""

    def __init__(self, contest_id: str, expected_version: int):
        super().__init__(
            f"contest {contest_id!r} was modified concurrently (expected version {expected_version})"
        )
        self.contest_id = contest_id
        self.expected_version = expected_version
