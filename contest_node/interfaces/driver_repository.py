from __future__ import annotations

from abc import abstractmethod

from contest_node.entities.driver import DriverProfile, DriverStats
from contest_node.interfaces.transactional import TransactionalRepository


class DriverRepository(TransactionalRepository):
    @abstractmethod
    def fetch_by_ids(self, ids: list[str]) -> dict[str, DriverProfile]:
        raise NotImplementedError

    @abstractmethod
    def bulk_update_stats(self, stats: dict[str, DriverStats]) -> None:
        raise NotImplementedError
