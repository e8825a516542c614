"""Exhaustion-aware sources built from ordinary (async) iterables."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterable, AsyncIterator, Generic, Iterable, TypeVar, Union

from ..core.errors import SourceProtocolError
from ..core.protocols import PollSource
from ..core.types import DONE, PENDING, Failed, Poll
from ..utils.async_utils import is_async_iterable, iterate
from .poll import Pollable

T = TypeVar("T")

logger = logging.getLogger(__name__)


class IteratorSource(Generic[T]):
    """
    PollSource over an async iterator.

    One __anext__() step is kept across polls, so an item the iterator is
    still waiting on is picked up by a later poll instead of being lost.
    StopAsyncIteration terminates the source; after that every poll is DONE.
    """

    def __init__(self, iterable: AsyncIterable[T]):
        self._iterator: AsyncIterator[T] = iterable.__aiter__()
        self._step: Pollable[T] | None = None
        self._terminated = False

    @property
    def waiter(self) -> asyncio.Future[Any] | None:
        return self._step.waiter if self._step is not None else None

    def is_terminated(self) -> bool:
        return self._terminated

    def poll_next(self) -> Poll[T]:
        if self._terminated:
            return DONE
        if self._step is None:
            self._step = Pollable(self._iterator.__anext__())

        result = self._step.poll()
        if result is PENDING:
            return PENDING

        self._step = None
        if isinstance(result, Failed) and isinstance(result.error, StopAsyncIteration):
            self._terminated = True
            return DONE
        return result

    def close(self) -> None:
        """Stop polling, unwinding an __anext__() step that is still running."""
        if self._step is not None:
            self._step.close()
            self._step = None
        self._terminated = True

    async def aclose(self) -> None:
        """close(), then aclose() the iterator so its finally blocks run."""
        self.close()
        aclose = getattr(self._iterator, "aclose", None)
        if aclose is not None:
            await aclose()

    def __repr__(self) -> str:
        if self._step is not None and not self._step.finished:
            state = "stepping"
        else:
            state = "terminated" if self._terminated else "live"
        return f"<IteratorSource {type(self._iterator).__name__} {state}>"


SourceLike = Union[PollSource[T], AsyncIterable[T], Iterable[T]]


def as_source(source: SourceLike[T]) -> PollSource[T]:
    """Coerce a PollSource, async iterable or plain iterable into a PollSource."""
    if isinstance(source, PollSource):
        return source
    if is_async_iterable(source):
        return IteratorSource(source)
    if isinstance(source, Iterable) and not isinstance(source, (str, bytes)):
        logger.debug("Wrapping %s in an async iterator", type(source).__name__)
        return IteratorSource(iterate(source))
    raise SourceProtocolError(
        "source must be a PollSource, an async iterable or an iterable",
        source_type=type(source).__name__,
    )
