"""
Error hierarchy for batchmap.

Design:
- Errors raised by the source or the transform are passed through verbatim,
  never wrapped in these types
- These types cover misuse of the library itself
- Include context for debugging
"""

from __future__ import annotations

from typing import Any


class BatchMapError(Exception):
    """Base class for all batchmap errors."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message


class TransformResultError(BatchMapError):
    """Transform resolved to something that cannot be iterated."""

    def __init__(
        self,
        message: str,
        *,
        batch_size: int | None = None,
        result_type: str | None = None,
        **context: Any,
    ):
        super().__init__(
            message, batch_size=batch_size, result_type=result_type, **context
        )
        self.batch_size = batch_size
        self.result_type = result_type


class SourceProtocolError(BatchMapError):
    """Object passed as a source is neither iterable nor a PollSource."""

    def __init__(
        self,
        message: str,
        *,
        source_type: str | None = None,
        **context: Any,
    ):
        super().__init__(message, source_type=source_type, **context)
        self.source_type = source_type


class ConfigurationError(BatchMapError):
    """Invalid configuration."""

    pass
