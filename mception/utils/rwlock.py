"""Async read-write lock.

Many readers may hold the lock at once; a writer holds it alone. Waiting
writers block new readers (writer preference) and are served in FIFO order.

Usage:
    lock = AsyncRWLock(name="server_config")

    async with lock.read_lock():
        value = shared_state["key"]

    async with lock.write_lock():
        shared_state["key"] = new_value
"""

import asyncio
from collections import deque
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from mception.observability.logging import get_logger

logger = get_logger(__name__)


class AsyncRWLock:
    """asyncio reader/writer lock built on ``asyncio.Condition``.

    There is no timeout or cancellation support beyond what asyncio gives
    any awaiting task: a cancelled waiter leaves the queue cleanly.
    """

    def __init__(self, name: str = "") -> None:
        self._name = name or f"AsyncRWLock-{id(self):x}"
        self._readers = 0
        self._writer_active = False
        self._writer_queue: deque[object] = deque()
        self._cond: asyncio.Condition | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def readers(self) -> int:
        """Number of readers currently holding the lock."""
        return self._readers

    @property
    def writer_active(self) -> bool:
        return self._writer_active

    def _get_cond(self) -> asyncio.Condition:
        # Created lazily so the lock can be built outside a running loop
        if self._cond is None:
            self._cond = asyncio.Condition()
        return self._cond

    async def acquire_read(self) -> None:
        """Acquire a shared (read) lock."""
        cond = self._get_cond()
        async with cond:
            while self._writer_active or self._writer_queue:
                await cond.wait()
            self._readers += 1

    async def release_read(self) -> None:
        """Release a shared (read) lock."""
        cond = self._get_cond()
        async with cond:
            if self._readers <= 0:
                logger.error("rwlock_release_read_without_reader", lock=self._name)
                return
            self._readers -= 1
            if self._readers == 0:
                cond.notify_all()

    async def acquire_write(self) -> None:
        """Acquire an exclusive (write) lock."""
        cond = self._get_cond()
        ticket = object()
        async with cond:
            self._writer_queue.append(ticket)
            try:
                while not (
                    self._writer_queue[0] is ticket
                    and self._readers == 0
                    and not self._writer_active
                ):
                    await cond.wait()
            except BaseException:
                self._writer_queue.remove(ticket)
                cond.notify_all()
                raise
            self._writer_queue.popleft()
            self._writer_active = True

    async def release_write(self) -> None:
        """Release an exclusive (write) lock."""
        cond = self._get_cond()
        async with cond:
            if not self._writer_active:
                logger.error("rwlock_release_write_without_writer", lock=self._name)
                return
            self._writer_active = False
            cond.notify_all()

    @asynccontextmanager
    async def read_lock(self) -> AsyncIterator[None]:
        """Hold the shared side for the duration of the block."""
        await self.acquire_read()
        try:
            yield
        finally:
            await self.release_read()

    @asynccontextmanager
    async def write_lock(self) -> AsyncIterator[None]:
        """Hold the exclusive side for the duration of the block."""
        await self.acquire_write()
        try:
            yield
        finally:
            await self.release_write()
