"""Per-worker serialization of lifecycle-mutating operations."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog

from upandup_core.errors import ConcurrencyError, ConcurrencyErrorKind

logger = structlog.get_logger()


class WorkerLockRegistry:
    """One ``asyncio.Lock`` per key, created on demand and dropped when idle.

    ``hold(key)`` waits up to ``wait_seconds`` for the lock. With a wait
    of 0 a held lock is refused immediately. Either way the caller gets
    ``ConcurrencyError(BUSY)`` instead of interleaving with the holder.
    """

    def __init__(self, wait_seconds: float = 10.0) -> None:
        if wait_seconds < 0:
            raise ValueError("wait_seconds must be >= 0")
        self.wait_seconds = wait_seconds
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def is_held(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)

    def _checkout(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._users[key] = self._users.get(key, 0) + 1
        return lock

    def _checkin(self, key: str) -> None:
        self._users[key] -= 1
        if self._users[key] == 0:
            del self._users[key]
            del self._locks[key]

    async def _acquire(self, key: str, lock: asyncio.Lock) -> None:
        if self.wait_seconds == 0:
            if lock.locked():
                raise ConcurrencyError(
                    ConcurrencyErrorKind.BUSY, f"{key} has an operation in flight", worker_id=key
                )
            await lock.acquire()
            return
        try:
            await asyncio.wait_for(lock.acquire(), timeout=self.wait_seconds)
        except asyncio.TimeoutError:
            logger.info("Worker busy", key=key, wait_seconds=self.wait_seconds)
            raise ConcurrencyError(
                ConcurrencyErrorKind.BUSY,
                f"{key} stayed busy for {self.wait_seconds}s",
                worker_id=key,
            )

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Hold the lock for ``key`` for the duration of the block.

        Raises:
            ConcurrencyError: BUSY if the lock could not be taken in time
        """
        lock = self._checkout(key)
        try:
            await self._acquire(key, lock)
        except BaseException:
            self._checkin(key)
            raise
        try:
            yield
        finally:
            lock.release()
            self._checkin(key)
