import inspect
from typing import Any, AsyncIterator, Callable, Iterable, TypeVar

T = TypeVar("T")


async def maybe_await(func: Callable, *args, **kwargs):
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        return await result
    return result


async def iterate(iterable: Iterable[T]) -> AsyncIterator[T]:
    """Expose a plain iterable as an async iterator that never suspends."""
    for item in iterable:
        yield item


def is_async_iterable(obj: Any) -> bool:
    return callable(getattr(obj, "__aiter__", None))
