"""Protocols (interfaces) for the system - enables composition without inheritance."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Iterable, Protocol, TypeVar, Union, runtime_checkable

from .types import Poll

T = TypeVar("T")
T_contra = TypeVar("T_contra", contravariant=True)
U_co = TypeVar("U_co", covariant=True)


@runtime_checkable
class PollSource(Protocol[T]):
    """Exhaustion-aware source that can be polled without blocking."""

    @property
    def waiter(self) -> asyncio.Future[Any] | None:
        """Future the last PENDING poll is blocked on, if any."""
        ...

    def poll_next(self) -> Poll[T]:
        """Return Ready, Failed, PENDING, or DONE."""
        ...

    def is_terminated(self) -> bool:
        """True once the source has reported DONE."""
        ...


class BatchTransform(Protocol[T_contra, U_co]):
    """Maps one complete batch to an awaitable of output items."""

    def __call__(
        self, batch: list[T_contra]
    ) -> Union[Awaitable[Iterable[U_co]], Iterable[U_co]]:
        ...
