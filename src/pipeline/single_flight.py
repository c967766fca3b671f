# src/pipeline/single_flight.py — v1
"""Per-key exclusive sections with shared results.

SingleFlight.do(key, fn) runs fn() at most once per key at a time. Every
caller that arrives while a call is running awaits the same task and sees the
same return value or the same exception. The work runs in its own task, so
one caller being cancelled does not cancel the work for the others; once all
callers have gone away the task is cancelled too.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class _Call(Generic[T]):
    task: asyncio.Task[T]
    waiters: int = 0

    @property
    def joinable(self) -> bool:
        return not self.task.done() and not self.task.cancelling()


class SingleFlight(Generic[T]):
    """Deduplicates concurrent calls that share a key."""

    def __init__(self) -> None:
        self._calls: dict[str, _Call[T]] = {}

    def in_flight(self, key: str) -> bool:
        call = self._calls.get(key)
        return call is not None and call.joinable

    def __len__(self) -> int:
        return len(self._calls)

    async def do(self, key: str, fn: Callable[[], Awaitable[T]]) -> T:
        """Run fn() for key, or join the call already running for it."""
        call = self._calls.get(key)
        if call is None or not call.joinable:
            call = _Call(asyncio.create_task(self._invoke(fn), name=f"flight:{key}"))
            self._calls[key] = call
            call.task.add_done_callback(lambda task, c=call: self._forget(key, c))
        else:
            logger.debug("Joining in-flight call for %s", key)

        call.waiters += 1
        try:
            return await asyncio.shield(call.task)
        finally:
            call.waiters -= 1
            if call.waiters == 0 and not call.task.done():
                logger.info("All callers for %s went away, cancelling", key)
                call.task.cancel()

    @staticmethod
    async def _invoke(fn: Callable[[], Awaitable[T]]) -> T:
        return await fn()

    def _forget(self, key: str, call: _Call[T]) -> None:
        if self._calls.get(key) is call:
            del self._calls[key]
        # Mark the outcome as observed even when every caller was cancelled.
        if not call.task.cancelled():
            call.task.exception()
