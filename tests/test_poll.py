"""
Tests for the polling primitives: Pollable and IteratorSource.
"""

import asyncio

import pytest

from batchmap import DONE, PENDING, Failed, PollSource, Ready, SourceProtocolError
from batchmap.async_engine import IteratorSource, Pollable, as_source


class _BadAwaitable:
    def __await__(self):
        yield 42


class TestPollable:
    """Tests for Pollable."""

    @pytest.mark.asyncio
    async def test_ready_on_first_poll(self):
        """An awaitable that never suspends is Ready immediately."""

        async def value():
            return 5

        step = Pollable(value())

        assert step.poll() == Ready(5)
        assert step.finished

    @pytest.mark.asyncio
    async def test_blocked_on_future(self):
        """A parked awaitable stays PENDING until its future resolves."""
        fut = asyncio.get_running_loop().create_future()

        async def wait_for_it():
            return await fut + 1

        step = Pollable(wait_for_it())

        assert step.poll() is PENDING
        assert step.waiter is fut
        assert step.poll() is PENDING

        fut.set_result(2)

        assert step.poll() == Ready(3)
        assert step.waiter is None

    @pytest.mark.asyncio
    async def test_exception_becomes_failed(self):
        """Exceptions are returned, not raised."""

        async def broken():
            raise ValueError("boom")

        result = Pollable(broken()).poll()

        assert isinstance(result, Failed)
        assert isinstance(result.error, ValueError)

    @pytest.mark.asyncio
    async def test_bare_yield(self):
        """asyncio.sleep(0) suspends without a waiter."""

        async def yields_once():
            await asyncio.sleep(0)
            return "done"

        step = Pollable(yields_once())

        assert step.poll() is PENDING
        assert step.waiter is None
        assert step.poll() == Ready("done")

    @pytest.mark.asyncio
    async def test_poll_after_finish_raises(self):
        """A finished Pollable cannot be polled again."""

        async def value():
            return 1

        step = Pollable(value())
        step.poll()

        with pytest.raises(RuntimeError):
            step.poll()

    @pytest.mark.asyncio
    async def test_unsupported_yield(self):
        """Yielding something other than a future fails the step."""
        result = Pollable(_BadAwaitable()).poll()

        assert isinstance(result, Failed)
        assert isinstance(result.error, RuntimeError)

    @pytest.mark.asyncio
    async def test_close_runs_cleanup(self):
        """close() unwinds the awaitable through its finally blocks."""
        fut = asyncio.get_running_loop().create_future()
        cleaned = []

        async def guarded():
            try:
                await fut
            finally:
                cleaned.append(True)

        step = Pollable(guarded())
        assert step.poll() is PENDING

        step.close()

        assert cleaned == [True]
        assert step.finished

    @pytest.mark.asyncio
    async def test_close_after_finish_is_noop(self):
        """close() on a finished Pollable leaves its result alone."""

        async def value():
            return 3

        step = Pollable(value())
        assert step.poll() == Ready(3)

        step.close()

        assert step.finished
        assert "finished" in repr(step)

    @pytest.mark.asyncio
    async def test_wait_until_ready(self):
        """wait() returns once the parked future is done."""
        loop = asyncio.get_running_loop()
        fut = loop.create_future()

        async def wait_for_it():
            return await fut

        step = Pollable(wait_for_it())
        assert step.poll() is PENDING

        loop.call_soon(fut.set_result, "ok")
        await step.wait()

        assert step.poll() == Ready("ok")


class TestIteratorSource:
    """Tests for IteratorSource and as_source."""

    @pytest.mark.asyncio
    async def test_immediate_items_then_done(self):
        """Items that need no waiting are Ready one after another."""

        async def items():
            yield 1
            yield 2

        source = IteratorSource(items())

        assert source.poll_next() == Ready(1)
        assert source.poll_next() == Ready(2)
        assert not source.is_terminated()
        assert source.poll_next() is DONE
        assert source.is_terminated()
        # Stays done
        assert source.poll_next() is DONE

    @pytest.mark.asyncio
    async def test_pending_item_not_lost(self):
        """An item still being produced is delivered by a later poll."""
        gate = asyncio.Event()

        async def items():
            await gate.wait()
            yield "late"

        source = IteratorSource(items())

        assert source.poll_next() is PENDING
        assert source.waiter is not None
        assert source.poll_next() is PENDING

        gate.set()

        assert source.poll_next() == Ready("late")
        assert source.poll_next() is DONE

    @pytest.mark.asyncio
    async def test_failure_then_exhausted(self):
        """An async generator that raised reports exhaustion afterwards."""

        async def items():
            yield 1
            raise ValueError("source broke")

        source = IteratorSource(items())

        assert source.poll_next() == Ready(1)
        failed = source.poll_next()
        assert isinstance(failed, Failed)
        assert isinstance(failed.error, ValueError)
        assert source.poll_next() is DONE

    @pytest.mark.asyncio
    async def test_close(self):
        """A closed source is terminated."""

        async def items():
            yield 1

        source = IteratorSource(items())
        source.close()

        assert source.is_terminated()
        assert source.poll_next() is DONE

    @pytest.mark.asyncio
    async def test_close_unwinds_parked_step(self):
        """close() mid-item runs the generator's finally and finishes it."""
        cleaned = []

        async def items():
            try:
                yield 1
                await asyncio.sleep(10)
                yield 2
            finally:
                cleaned.append(True)

        agen = items()
        source = IteratorSource(agen)
        assert source.poll_next() == Ready(1)
        assert source.poll_next() is PENDING
        assert "stepping" in repr(source)

        source.close()

        assert cleaned == [True]
        assert agen.ag_frame is None
        assert source.poll_next() is DONE

    @pytest.mark.asyncio
    async def test_aclose_between_items(self):
        """aclose() finalizes a generator suspended at a yield."""
        cleaned = []

        async def items():
            try:
                yield 1
                yield 2
            finally:
                cleaned.append(True)

        source = IteratorSource(items())
        assert source.poll_next() == Ready(1)

        await source.aclose()

        assert cleaned == [True]
        assert source.is_terminated()

    @pytest.mark.asyncio
    async def test_as_source_wraps_plain_iterable(self):
        """Lists become sources that never suspend."""
        source = as_source([1, 2, 3])

        assert isinstance(source, IteratorSource)
        assert [source.poll_next() for _ in range(4)] == [
            Ready(1),
            Ready(2),
            Ready(3),
            DONE,
        ]

    def test_as_source_passes_poll_source_through(self):
        """Objects already implementing PollSource are used as-is."""

        async def items():
            yield 1

        source = IteratorSource(items())

        assert isinstance(source, PollSource)
        assert as_source(source) is source

    @pytest.mark.parametrize("bad", [42, "text", None])
    def test_as_source_rejects_non_iterables(self, bad):
        """Non-iterables and strings are rejected."""
        with pytest.raises(SourceProtocolError) as exc_info:
            as_source(bad)

        assert exc_info.value.source_type == type(bad).__name__
