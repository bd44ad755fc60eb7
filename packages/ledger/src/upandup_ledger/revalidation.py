"""Background revalidation of verified credentials."""

import asyncio

import structlog

from upandup_core.errors import ConcurrencyError
from upandup_core.models import VerificationStatus
from upandup_ledger.ledger import CredentialLedger

logger = structlog.get_logger()


class CredentialRevalidator:
    """Periodically revalidates every worker holding verified credentials.

    Usage:
        revalidator = CredentialRevalidator(ledger, interval_seconds=3600)
        revalidator.start()
        ...
        await revalidator.stop()
    """

    def __init__(self, ledger: CredentialLedger, interval_seconds: float | None = None) -> None:
        self.ledger = ledger
        self.interval_seconds = (
            interval_seconds
            if interval_seconds is not None
            else ledger.settings.revalidation_interval_seconds
        )
        self._running = False
        self._stopped = asyncio.Event()
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def run_once(self) -> dict[str, int]:
        """Revalidate all workers once.

        Returns:
            Number of credentials expired per worker id (busy or failing
            workers are skipped and retried on the next pass)
        """
        verified = await self.ledger.store.credentials.list(
            verification_status=VerificationStatus.VERIFIED
        )
        worker_ids = sorted({c.worker_id for c in verified})

        expired: dict[str, int] = {}
        for worker_id in worker_ids:
            result = await self.ledger.revalidate_worker(worker_id)
            if isinstance(result.error, ConcurrencyError):
                logger.debug("Worker busy, revalidation skipped", worker_id=worker_id)
                continue
            if result.is_err:
                logger.warning(
                    "Worker revalidation failed", worker_id=worker_id, error=str(result.error)
                )
                continue
            expired[worker_id] = len(result.unwrap())

        logger.info(
            "Revalidation pass finished",
            workers=len(worker_ids),
            expired=sum(expired.values()),
        )
        return expired

    async def _run(self) -> None:
        while self._running:
            try:
                await self.run_once()
            except Exception as e:
                logger.error("Revalidation pass failed", error=str(e))
            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                continue

    def start(self) -> None:
        """Start the background task; must be called from a running loop."""
        if self._running:
            return
        self._running = True
        self._stopped.clear()
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background task and wait for it to finish."""
        self._running = False
        self._stopped.set()
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
