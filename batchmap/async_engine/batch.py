"""
Opportunistic batching of an async source through an async transform.

Whatever the source can hand over without blocking becomes one batch. The
batch goes to the transform, and the transform's results come back out one
item at a time in submission order. Only one batch is ever in flight, so
output order matches input order without sequence numbers.

The adapter is a plain state object: poll_next() does as much work as it can
without blocking and returns a tagged Poll. Something else (BatchMapStream,
drive(), or a caller's own loop) decides when to poll again.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Any, Callable, Generic, TypeVar

from ..core.config import BatchMapConfig, ErrorPolicy
from ..core.errors import TransformResultError
from ..core.protocols import BatchTransform
from ..core.types import DONE, PENDING, BatchMapStats, Failed, Poll, Ready
from ..utils.async_utils import maybe_await
from .poll import Pollable
from .source import SourceLike, as_source

T = TypeVar("T")
U = TypeVar("U")

logger = logging.getLogger(__name__)


class BatchMap(Generic[T, U]):
    """
    Batch adapter: source -> batches -> transform -> items.

    Usage:
        async def embed(texts: list[str]) -> list[Vector]:
            return await api.embed_batch(texts)

        adapter = BatchMap(texts, embed)
        while (result := adapter.poll_next()) is not DONE:
            if result is PENDING:
                await adapter.wait()
            else:
                handle(result)

    Errors from the source or the transform come back as Failed. What happens
    next depends on config.error_policy: FAIL_FAST (default) ends the
    sequence, CONTINUE drops the failed step and carries on.
    """

    def __init__(
        self,
        source: SourceLike[T],
        transform: BatchTransform[T, U] | Callable[[list[T]], Any],
        config: BatchMapConfig | None = None,
    ):
        self.config = config or BatchMapConfig()
        self.stats = BatchMapStats()
        self._source = as_source(source)
        self._transform = transform
        self._in: list[T] = []
        self._pending: Pollable[list[U]] | None = None
        self._out: deque[U] = deque()
        self._terminated = False

    # --- Poll protocol ---

    def poll_next(self) -> Poll[U]:
        """Advance as far as possible without blocking."""
        if self._terminated:
            return DONE
        result = self._advance()
        if self.config.strict:
            self._check_invariants()
        return result

    def is_terminated(self) -> bool:
        if self._terminated:
            return True
        if self.config.strict and self._pending is None:
            assert not self._in, "input buffered with no batch in flight"
        return self._source.is_terminated() and self._pending is None and not self._out

    def _advance(self) -> Poll[U]:
        if self._out:
            return self._emit()

        while True:
            failure = self._drain_source()
            if failure is not None:
                return self._fail(failure, "source")

            if self._in and self._pending is None:
                self._start_batch()
            if self._pending is None:
                break

            polled = self._pending.poll()
            if polled is PENDING:
                break
            self._pending = None
            if isinstance(polled, Failed):
                return self._fail(polled, "transform")

            self._out.extend(polled.value)
            self.stats.batches_completed += 1
            logger.debug(
                "%s: batch %d produced %d items",
                self.config.name,
                self.stats.batches_completed,
                len(polled.value),
                extra=self._log_fields(
                    batch=self.stats.batches_completed, size=len(polled.value)
                ),
            )
            # Items that arrived while that batch was in flight are submitted
            # now, but only polled once its results have been delivered
            if self._in:
                self._start_batch()
            if self._out or self._pending is None:
                break

        if self._out:
            return self._emit()

        if self._source.is_terminated() and self._pending is None:
            assert not self._in
            assert not self._out
            self._terminated = True
            logger.debug(
                "%s: finished after %d batches, %d items",
                self.config.name,
                self.stats.batches_started,
                self.stats.items_emitted,
                extra=self._log_fields(
                    batches=self.stats.batches_started, size=self.stats.items_emitted
                ),
            )
            return DONE

        return PENDING

    def _drain_source(self) -> Failed | None:
        """Pull every immediately available item into the input buffer."""
        while not self._source.is_terminated():
            polled = self._source.poll_next()
            if polled is PENDING or polled is DONE:
                return None
            if isinstance(polled, Failed):
                return polled
            self._in.append(polled.value)
            self.stats.items_received += 1
        return None

    def _start_batch(self) -> None:
        batch, self._in = self._in, []
        self.stats.record_batch(len(batch))
        logger.debug(
            "%s: starting batch %d with %d items",
            self.config.name,
            self.stats.batches_started,
            len(batch),
            extra=self._log_fields(batch=self.stats.batches_started, size=len(batch)),
        )
        self._pending = Pollable(self._invoke(batch))

    def _log_fields(self, **fields: Any) -> dict[str, Any]:
        """Structured fields attached to log records (see utils.logging_utils)."""
        return {"adapter": self.config.name, **fields}

    async def _invoke(self, batch: list[T]) -> list[U]:
        size = len(batch)
        result = await maybe_await(self._transform, batch)
        try:
            items = iter(result)
        except TypeError:
            raise TransformResultError(
                "transform result is not iterable",
                batch_size=size,
                result_type=type(result).__name__,
            ) from None
        return list(items)

    def _emit(self) -> Ready[U]:
        self.stats.items_emitted += 1
        return Ready(self._out.popleft())

    def _fail(self, failure: Failed, origin: str) -> Failed:
        if origin == "source":
            self.stats.source_failures += 1
        else:
            self.stats.batches_failed += 1
        logger.warning(
            "%s: %s failed: %r",
            self.config.name,
            origin,
            failure.error,
            extra=self._log_fields(origin=origin, batch=self.stats.batches_started),
        )

        if self.config.error_policy is ErrorPolicy.FAIL_FAST:
            self._shutdown()
        elif self._in and self._pending is None:
            self._start_batch()
        return failure

    # --- Driving ---

    def waiters(self) -> list[asyncio.Future[Any]]:
        """Futures the source and the in-flight batch are blocked on."""
        futures = []
        if not self._source.is_terminated() and self._source.waiter is not None:
            futures.append(self._source.waiter)
        if self._pending is not None and self._pending.waiter is not None:
            futures.append(self._pending.waiter)
        return futures

    async def wait(self) -> None:
        """Suspend until a poll_next() that returned PENDING can make progress."""
        if self._terminated:
            return
        blocked = []
        if not self._source.is_terminated():
            blocked.append(self._source.waiter)
        if self._pending is not None:
            blocked.append(self._pending.waiter)

        if not blocked:
            return
        if any(future is None for future in blocked):
            # Something is parked on a bare yield, only the event loop can help
            await asyncio.sleep(0)
            return
        await asyncio.wait(blocked, return_when=asyncio.FIRST_COMPLETED)

    def close(self) -> None:
        """Abandon the source, the in-flight batch and all buffered items."""
        if self._terminated:
            return
        logger.debug(
            "%s: closed with %d inputs and %d outputs buffered",
            self.config.name,
            len(self._in),
            len(self._out),
        )
        self._shutdown()

    async def aclose(self) -> None:
        """close(), then let the source finalize the iterator it wraps."""
        self.close()
        aclose_source = getattr(self._source, "aclose", None)
        if aclose_source is not None:
            await aclose_source()

    def _shutdown(self) -> None:
        self._terminated = True
        if self._pending is not None:
            self._pending.close()
            self._pending = None
        close_source = getattr(self._source, "close", None)
        if close_source is not None:
            close_source()
        self._in = []
        self._out.clear()

    # --- Introspection ---

    @property
    def has_pending_batch(self) -> bool:
        return self._pending is not None

    @property
    def buffered_inputs(self) -> int:
        return len(self._in)

    @property
    def buffered_outputs(self) -> int:
        return len(self._out)

    def _check_invariants(self) -> None:
        if self._pending is None and self._in:
            raise AssertionError(
                f"{self.config.name}: {len(self._in)} inputs buffered with no batch in flight"
            )
        if self._terminated and (self._in or self._out or self._pending is not None):
            raise AssertionError(f"{self.config.name}: terminated with work left")

    def __repr__(self) -> str:
        return (
            f"<BatchMap {self.config.name!r} inputs={len(self._in)} "
            f"pending={self._pending is not None} outputs={len(self._out)} "
            f"terminated={self.is_terminated()}>"
        )
