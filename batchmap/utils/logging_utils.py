"""
Structured rendering of batchmap's log records.

Adapters log through stdlib ``logging.getLogger(__name__)`` and attach their
fields (``adapter``, ``batch``, ``size``, ``origin``, ``batches``) as record
extras. setup_logging() installs a structlog formatter on the ``batchmap``
logger that lifts those extras into key-value output, either for a console
or as one JSON object per line.
"""

import logging
import sys
from typing import IO, Any

import structlog
from structlog.typing import Processor

ROOT_LOGGER = "batchmap"

# Extras set by BatchMap._log_fields
ADAPTER_FIELDS = ("adapter", "batch", "batches", "size", "origin")


def setup_logging(
    level: str = "INFO",
    *,
    json: bool = False,
    force_colors: bool | None = None,
    stream: IO[str] | None = None,
) -> logging.Handler:
    """
    Render adapter records with their structured fields.

    Args:
        level: Log level for the ``batchmap`` namespace.
        json: One JSON object per record instead of console output.
        force_colors: Console colors on/off, or None to follow the stream.
        stream: Where to write. Defaults to stderr.

    Returns:
        The installed handler.
    """
    stream = stream if stream is not None else sys.stderr

    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(allow=ADAPTER_FIELDS),
        structlog.processors.TimeStamper(fmt="iso" if json else "%H:%M:%S"),
    ]

    renderer: Processor
    if json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=force_colors if force_colors is not None else stream.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger(ROOT_LOGGER)
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.propagate = False
    return handler


def bind_context(**kwargs: Any) -> None:
    """Add key-values (e.g. a job id) to every record rendered by setup_logging."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
