"""
batchmap - opportunistic batching for async streams.

Usage:

    import batchmap

    async def embed(texts: list[str]) -> list[list[float]]:
        return await client.embed(texts)

    async for vector in batchmap.batch_map(read_texts(), embed):
        store(vector)

Whatever the source has ready when a batch starts becomes that batch; there
is no size limit and no timer. One batch is in flight at a time, and items
come out in source order.

Low-level API (explicit polling):

    from batchmap import BatchMap, DONE, PENDING

    adapter = BatchMap(read_texts(), embed)
    while (result := adapter.poll_next()) is not DONE:
        if result is PENDING:
            await adapter.wait()
        else:
            handle(result)  # Ready(value) or Failed(error)
"""

# Adapter and streams
from .async_engine import (
    BatchMap,
    BatchMapStream,
    IteratorSource,
    Pollable,
    as_source,
    batch_map,
    drive,
)

# Poll results, protocols, config
from .core import (
    DONE,
    PENDING,
    BatchMapConfig,
    BatchMapStats,
    BatchTransform,
    ErrorPolicy,
    Failed,
    Poll,
    PollSource,
    Ready,
    Signal,
)

# Error types
from .core.errors import (
    BatchMapError,
    ConfigurationError,
    SourceProtocolError,
    TransformResultError,
)

# Logging
from .utils.logging_utils import setup_logging

__version__ = "0.1.0"

__all__ = [
    # Adapter
    "batch_map",
    "BatchMap",
    "BatchMapStream",
    "drive",
    # Sources
    "IteratorSource",
    "as_source",
    "Pollable",
    # Poll results
    "Poll",
    "Ready",
    "Failed",
    "Signal",
    "PENDING",
    "DONE",
    "BatchMapStats",
    # Protocols
    "PollSource",
    "BatchTransform",
    # Config
    "BatchMapConfig",
    "ErrorPolicy",
    # Errors
    "BatchMapError",
    "ConfigurationError",
    "SourceProtocolError",
    "TransformResultError",
    # Logging
    "setup_logging",
]
