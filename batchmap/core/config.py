"""Adapter configuration."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import ConfigurationError


class ErrorPolicy(str, Enum):
    FAIL_FAST = "fail_fast"  # First failure terminates the adapter for good
    CONTINUE = "continue"  # Drop the failed step and keep polling


@dataclass
class BatchMapConfig:
    """Configuration for a batch adapter."""

    name: str = "batch_map"  # Label for logs and repr
    error_policy: ErrorPolicy = ErrorPolicy.FAIL_FAST
    strict: bool = True  # Check invariants after every poll

    def __post_init__(self):
        if not self.name:
            raise ConfigurationError("name must be a non-empty string")
        try:
            self.error_policy = ErrorPolicy(self.error_policy)
        except ValueError:
            raise ConfigurationError(
                "unknown error policy",
                error_policy=self.error_policy,
                allowed=[p.value for p in ErrorPolicy],
            ) from None
