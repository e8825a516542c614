"""
Core abstractions for batchmap.

This module provides:
- Poll: tagged outcome of one non-blocking poll (Ready, Failed, PENDING, DONE)
- PollSource / BatchTransform: the two things an adapter is built from
- BatchMapConfig: adapter configuration and error policy
"""

from .config import BatchMapConfig, ErrorPolicy
from .errors import (
    BatchMapError,
    ConfigurationError,
    SourceProtocolError,
    TransformResultError,
)
from .protocols import BatchTransform, PollSource
from .types import DONE, PENDING, BatchMapStats, Failed, Poll, Ready, Signal

__all__ = [
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
]
