"""Optional global mutual exclusion around handler invocation."""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable

Job = Callable[[], Awaitable[Any] | Any]


async def _run(fn: Job) -> Any:
    outcome = fn()
    return await outcome if inspect.isawaitable(outcome) else outcome


class ExecutionScheduler:
    """Serialized mode: at most one job at a time, waiters admitted FIFO.

    asyncio.Lock wakes waiters in acquisition order, which gives the FIFO
    guarantee. With ``queued=False`` jobs run immediately and may interleave.
    """

    def __init__(self, queued: bool = False):
        self.queued = queued
        self._lock = asyncio.Lock() if queued else None
        self._waiting = 0
        self._running = 0

    @property
    def waiting(self) -> int:
        return self._waiting

    @property
    def running(self) -> int:
        return self._running

    async def run_exclusive(self, fn: Job) -> Any:
        if self._lock is None:
            self._running += 1
            try:
                return await _run(fn)
            finally:
                self._running -= 1

        self._waiting += 1
        try:
            await self._lock.acquire()
        finally:
            self._waiting -= 1
        self._running += 1
        try:
            return await _run(fn)
        finally:
            self._running -= 1
            self._lock.release()

    def status(self) -> dict[str, Any]:
        return {"queued": self.queued, "running": self._running, "waiting": self._waiting}
