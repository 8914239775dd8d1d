from __future__ import annotations

import asyncio
import logging

from contest_node.config.runtime import RuntimeSettings
from contest_node.services.lifecycle import RoundLifecycleService
from contest_node.workers.settle_worker import build_service as build_settlement_service, configure_logging


class ExpiryWorker:
    """Periodically resets active rounds that have been idle past the expiry window."""

    def __init__(self, lifecycle_service: RoundLifecycleService, interval_seconds: int = 300):
        self.lifecycle_service = lifecycle_service
        self.interval_seconds = interval_seconds
        self.logger = logging.getLogger(__name__)
        self.stop_event = asyncio.Event()

    async def run(self) -> None:
        self.logger.info(
            "expiry worker started (interval=%ds, expiry=%s)",
            self.interval_seconds, self.lifecycle_service.round_expiry,
        )
        while not self.stop_event.is_set():
            try:
                self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                self.logger.exception("expiry loop error: %s", exc)
                self._rollback_repositories()
            try:
                await asyncio.wait_for(self.stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass

    def run_once(self) -> int:
        reset = self.lifecycle_service.expire_all()
        if reset:
            self.logger.info("Reset %d idle rounds", reset)
        return reset

    async def shutdown(self) -> None:
        self.stop_event.set()

    def _rollback_repositories(self) -> None:
        rollback = getattr(self.lifecycle_service.contest_repository, "rollback", None)
        if callable(rollback):
            try:
                rollback()
            except Exception as exc:
                self.logger.warning("Rollback failed for contest: %s", exc)


def build_worker() -> ExpiryWorker:
    settings = RuntimeSettings.from_env()
    settlement_service = build_settlement_service(settings)
    lifecycle_service = RoundLifecycleService(
        contest_repository=settlement_service.contest_repository,
        settlement_service=settlement_service,
        round_expiry=settings.round_expiry,
    )
    return ExpiryWorker(lifecycle_service, interval_seconds=settings.expiry_check_interval_seconds)


async def main() -> None:
    configure_logging()
    logger = logging.getLogger(__name__)
    logger.info("expiry worker bootstrap")

    worker = build_worker()
    await worker.run()


if __name__ == "__main__":
    asyncio.run(main())
