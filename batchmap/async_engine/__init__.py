"""
Async engine - poll-driven batching.

This module provides the primitives that turn an async source into a batched
stream without spawning tasks:

    from batchmap.async_engine import batch_map, BatchMap, Pollable

    # Stream items, batched opportunistically
    async for vector in batch_map(texts, embed_batch):
        store(vector)

    # Drive the adapter by hand
    adapter = BatchMap(texts, embed_batch)
    async for outcome in drive(adapter):
        ...
"""

from .batch import BatchMap
from .poll import Pollable
from .source import IteratorSource, SourceLike, as_source
from .stream import BatchMapStream, batch_map, drive

__all__ = [
    # Adapter
    "BatchMap",
    "batch_map",
    # Streams
    "BatchMapStream",
    "drive",
    # Sources
    "IteratorSource",
    "SourceLike",
    "as_source",
    # Polling
    "Pollable",
]
