"""
Non-blocking stepping of awaitables.

An asyncio Task drives its coroutine by sending None into it and parking on
whatever future the coroutine yields. Pollable does the same, one step per
poll(), without creating a task: the awaitable runs inside whichever task
calls poll(), and a PENDING result tells the caller which future to wait on.

Key properties:
1. No task or thread is ever spawned
2. A blocked awaitable is not resumed until its future is done
3. Exceptions come back as Failed values, never raised from poll()
   (BaseExceptions such as CancelledError still propagate)
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Generic, TypeVar

from ..core.types import PENDING, Failed, Poll, Ready

T = TypeVar("T")


class Pollable(Generic[T]):
    """
    An awaitable that can be advanced without blocking.

    Usage:
        step = Pollable(fetch())
        while (result := step.poll()) is PENDING:
            await step.wait()
    """

    def __init__(self, awaitable: Awaitable[T]):
        self._iter = awaitable.__await__()
        self._waiter: asyncio.Future[Any] | None = None
        self._finished = False

    @property
    def waiter(self) -> asyncio.Future[Any] | None:
        """Future the awaitable is parked on (None after a bare yield)."""
        return self._waiter

    @property
    def finished(self) -> bool:
        return self._finished

    def poll(self) -> Poll[T]:
        if self._finished:
            raise RuntimeError("poll() called on a finished Pollable")
        if self._waiter is not None:
            if not self._waiter.done():
                return PENDING
            self._waiter = None

        try:
            yielded = self._iter.send(None)
        except StopIteration as stop:
            self._finished = True
            return Ready(stop.value)
        except Exception as e:
            self._finished = True
            return Failed(e)

        if yielded is None:
            # Bare yield, e.g. asyncio.sleep(0): resume on the next poll
            return PENDING

        if asyncio.isfuture(yielded):
            yielded._asyncio_future_blocking = False
            self._waiter = yielded
            return PENDING

        self.close()
        return Failed(RuntimeError(f"awaitable yielded unsupported value {yielded!r}"))

    async def wait(self) -> None:
        """Suspend until the next poll() can make progress."""
        if self._waiter is None:
            await asyncio.sleep(0)
        elif not self._waiter.done():
            await asyncio.wait([self._waiter])

    def close(self) -> None:
        """Abandon the awaitable, running its cleanup."""
        if self.finished:
            return
        self._finished = True
        self._waiter = None
        throw = getattr(self._iter, "throw", None)
        if throw is None:
            return
        # Same contract as coroutine.close(), but also unwinds async generator
        # __anext__() steps, whose own close() leaves the generator running
        try:
            throw(GeneratorExit())
        except (GeneratorExit, StopIteration, StopAsyncIteration):
            return
        raise RuntimeError("awaitable ignored GeneratorExit")

    def __repr__(self) -> str:
        state = "finished" if self._finished else "blocked" if self._waiter else "ready"
        return f"<Pollable {state}>"
