from __future__ import annotations

from abc import abstractmethod

from contest_node.entities.contest import Contest
from contest_node.interfaces.transactional import TransactionalRepository


class ContestRepository(TransactionalRepository):
    @abstractmethod
    def fetch(self, contest_id: str) -> Contest | None:
        raise NotImplementedError

    @abstractmethod
    def save(self, contest: Contest) -> None:
        """Stage the aggregate if its stored version still equals ``contest.version``.

        Raises ``StaleContestError`` otherwise. Bumps ``contest.version`` on
        success; the write is durable once ``commit()`` runs.
        """
        raise NotImplementedError

    @abstractmethod
    def list_ids(self) -> list[str]:
        raise NotImplementedError
