from __future__ import annotations

from abc import ABC


class TransactionalRepository(ABC):
    """Writes are staged until ``commit()``; ``rollback()`` discards them.

    Repositories built on one session share a transaction, so a commit on
    any of them makes all of their staged writes durable.
    """

    def commit(self) -> None:
        pass

    def rollback(self) -> None:
        pass
