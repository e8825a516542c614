"""Poll results and runtime statistics - the tagged values every poll returns."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class Signal(str, Enum):
    """Untagged poll outcomes."""

    PENDING = "pending"  # Nothing right now, poll again after a wake-up
    DONE = "done"  # Finished, never poll again


PENDING = Signal.PENDING
DONE = Signal.DONE


@dataclass(frozen=True, slots=True)
class Ready(Generic[T]):
    """A produced item."""

    value: T


@dataclass(frozen=True, slots=True)
class Failed:
    """An error raised by the source or the transform, delivered in-band."""

    error: Exception


Poll = Union[Ready[T], Failed, Signal]


@dataclass
class BatchMapStats:
    """Runtime statistics for monitoring."""

    batches_started: int = 0
    batches_completed: int = 0
    batches_failed: int = 0
    source_failures: int = 0
    items_received: int = 0
    items_emitted: int = 0
    items_batched: int = 0  # Items handed to the transform so far
    largest_batch: int = 0

    @property
    def average_batch_size(self) -> float:
        if self.batches_started == 0:
            return 0.0
        return self.items_batched / self.batches_started

    def record_batch(self, size: int) -> None:
        self.batches_started += 1
        self.items_batched += size
        self.largest_batch = max(self.largest_batch, size)
