from __future__ import annotations

from abc import abstractmethod

from contest_node.entities.badge import Badge
from contest_node.interfaces.transactional import TransactionalRepository


class BadgeRepository(TransactionalRepository):
    @abstractmethod
    def fetch_by_ids(self, ids: list[str]) -> list[Badge]:
        raise NotImplementedError

    @abstractmethod
    def add_awarded_to(self, awarded: dict[str, list[str]]) -> None:
        """Append user ids to each badge's earned-by set. Existing members are left alone."""
        raise NotImplementedError
