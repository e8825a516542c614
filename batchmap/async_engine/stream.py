"""
Async-iterator face of the batch adapter.

Key patterns:
- Items come out in source order, batch by batch
- Errors are raised from __anext__ (or yielded as Failed by results())
- The stream is fused: once finished it keeps raising StopAsyncIteration
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Callable, Generic, TypeVar

from ..core.config import BatchMapConfig
from ..core.protocols import BatchTransform
from ..core.types import DONE, PENDING, BatchMapStats, Failed, Ready
from .batch import BatchMap
from .source import SourceLike

T = TypeVar("T")
U = TypeVar("U")

logger = logging.getLogger(__name__)


async def drive(adapter: BatchMap[Any, U]) -> AsyncIterator[Ready[U] | Failed]:
    """
    Poll an adapter to completion, yielding every Ready and Failed outcome.

    Waits on the adapter's wake-up futures between PENDING polls.
    """
    while True:
        result = adapter.poll_next()
        if result is DONE:
            return
        if result is PENDING:
            await adapter.wait()
            continue
        yield result


class BatchMapStream(Generic[U]):
    """
    Async stream of transformed items.

    Usage:
        stream = batch_map(source, transform)
        async for item in stream:
            handle(item)

        # Or keep going past failures (needs ErrorPolicy.CONTINUE)
        async for outcome in stream.results():
            if isinstance(outcome, Failed):
                log(outcome.error)
    """

    def __init__(self, adapter: BatchMap[Any, U]):
        self.adapter = adapter

    @property
    def stats(self) -> BatchMapStats:
        return self.adapter.stats

    def is_terminated(self) -> bool:
        return self.adapter.is_terminated()

    def __aiter__(self) -> AsyncIterator[U]:
        return self

    async def __anext__(self) -> U:
        while True:
            result = self.adapter.poll_next()
            if isinstance(result, Ready):
                return result.value
            if isinstance(result, Failed):
                raise result.error
            if result is DONE:
                raise StopAsyncIteration
            await self.adapter.wait()

    async def results(self) -> AsyncIterator[Ready[U] | Failed]:
        """Tagged outcomes; failures are yielded instead of raised."""
        async for outcome in drive(self.adapter):
            yield outcome

    async def collect(self) -> list[U]:
        """Drain the stream into a list. Raises on the first failure."""
        return [item async for item in self]

    async def aclose(self) -> None:
        await self.adapter.aclose()

    async def __aenter__(self) -> BatchMapStream[U]:
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> bool:
        await self.aclose()
        return False

    def __repr__(self) -> str:
        return f"<BatchMapStream {self.adapter!r}>"


def batch_map(
    source: SourceLike[T],
    transform: BatchTransform[T, U] | Callable[[list[T]], Any],
    config: BatchMapConfig | None = None,
) -> BatchMapStream[U]:
    """
    Batch a source through a transform.

    Every poll drains whatever the source has ready into one batch (only when
    no batch is in flight), so batches grow when the transform is slow and
    shrink to single items when it keeps up.

    Args:
        source: Async iterable, plain iterable, or PollSource of items.
        transform: Called with a non-empty list of items; returns an awaitable
            (or a plain value) resolving to an iterable of output items.
        config: Name, error policy and invariant checking.

    Returns:
        A BatchMapStream yielding the transform's items in order.
    """
    adapter: BatchMap[T, U] = BatchMap(source, transform, config)
    logger.debug("Created %r", adapter)
    return BatchMapStream(adapter)
