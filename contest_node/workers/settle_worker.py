from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Callable

from pydantic import ValidationError

from contest_node.config.runtime import RuntimeSettings
from contest_node.db import (
    DBBadgeRepository,
    DBContestRepository,
    DBDriverRepository,
    DBUserRepository,
    create_session,
    listen,
    notify,
)
from contest_node.errors import (
    ContestNotFoundError,
    RoundAlreadySettledError,
    RoundIndexError,
    StaleContestError,
)
from contest_node.schemas import SettleRequestEnvelope
from contest_node.services.settlement import SettlementResult, SettlementService

Listener = Callable[..., AsyncIterator[tuple[str, str]]]

REJECTED = (ContestNotFoundError, RoundIndexError, RoundAlreadySettledError, StaleContestError)


def configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        force=True,
    )


class SettleWorker:
    """Settles rounds requested over NOTIFY, one at a time.

    A single consumer per process keeps settlements of the same contest from
    interleaving; the contest version check covers multiple processes.
    """

    def __init__(
        self,
        settlement_service: SettlementService,
        channel: str = "round_results",
        listener: Listener = listen,
        reconnect_seconds: float = 5.0,
    ):
        self.settlement_service = settlement_service
        self.channel = channel
        self.listener = listener
        self.reconnect_seconds = reconnect_seconds
        self.logger = logging.getLogger(__name__)
        self.stop_event = asyncio.Event()

    async def run(self) -> None:
        self.logger.info("settle worker listening on %s", self.channel)
        while not self.stop_event.is_set():
            consumer = asyncio.create_task(self._consume())
            stop = asyncio.create_task(self.stop_event.wait())
            done, pending = await asyncio.wait({consumer, stop}, return_when=asyncio.FIRST_COMPLETED)
            for p in pending:
                p.cancel()
                try:
                    await p
                except (asyncio.CancelledError, Exception):
                    pass
            if consumer in done and consumer.exception() is not None:
                exc = consumer.exception()
                self.logger.error("settle listener error: %s", exc, exc_info=exc)
                self._rollback_repositories()
            if self.stop_event.is_set():
                break
            try:
                await asyncio.wait_for(self.stop_event.wait(), timeout=self.reconnect_seconds)
            except asyncio.TimeoutError:
                pass

    async def shutdown(self) -> None:
        self.stop_event.set()

    async def _consume(self) -> None:
        async for _, payload in self.listener(self.channel):
            self.handle(payload)
            if self.stop_event.is_set():
                return

    def handle(self, payload: str) -> SettlementResult | None:
        try:
            request = SettleRequestEnvelope.model_validate_json(payload)
        except ValidationError as exc:
            self.logger.warning("ignoring malformed settle request %r: %s", payload, exc.errors()[0]["msg"])
            return None

        try:
            return self.settlement_service.settle(request.contest_id, request.round_index)
        except REJECTED as exc:
            self.logger.warning("settlement rejected: %s", exc)
        except Exception as exc:
            self.logger.exception("settlement of contest %s round %d failed: %s",
                                  request.contest_id, request.round_index, exc)
        self._rollback_repositories()
        return None

    def _rollback_repositories(self) -> None:
        service = self.settlement_service
        for name, repo in [("contest", service.contest_repository),
                           ("driver", service.driver_repository),
                           ("badge", service.badge_repository),
                           ("user", service.user_repository)]:
            rollback = getattr(repo, "rollback", None)
            if callable(rollback):
                try:
                    rollback()
                except Exception as exc:
                    self.logger.warning("Rollback failed for %s: %s", name, exc)


def build_service(settings: RuntimeSettings | None = None) -> SettlementService:
    settings = settings or RuntimeSettings.from_env()
    session = create_session()
    return SettlementService(
        contest_repository=DBContestRepository(session),
        driver_repository=DBDriverRepository(session),
        badge_repository=DBBadgeRepository(session),
        user_repository=DBUserRepository(session),
        target_position=settings.target_position,
        notifier=notify,
        settled_channel=settings.settled_channel,
    )


def build_worker() -> SettleWorker:
    settings = RuntimeSettings.from_env()
    return SettleWorker(build_service(settings), channel=settings.settle_channel)


async def main() -> None:
    configure_logging()
    logger = logging.getLogger(__name__)
    logger.info("settle worker bootstrap")

    worker = build_worker()
    await worker.run()


if __name__ == "__main__":
    asyncio.run(main())
