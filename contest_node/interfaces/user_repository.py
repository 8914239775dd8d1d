from __future__ import annotations

from abc import abstractmethod

from contest_node.entities.badge import BadgeAward
from contest_node.interfaces.transactional import TransactionalRepository


class UserRepository(TransactionalRepository):
    @abstractmethod
    def append_badges(self, awards: list[BadgeAward]) -> None:
        raise NotImplementedError
