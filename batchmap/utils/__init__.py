from .async_utils import is_async_iterable, iterate, maybe_await
from .logging_utils import bind_context, clear_context, setup_logging

__all__ = [
    "maybe_await",
    "iterate",
    "is_async_iterable",
    "setup_logging",
    "bind_context",
    "clear_context",
]
