"""Logging configuration for the image host.

Modules log through :mod:`logging` with a dotted event name and ``extra``
fields; the root handler renders every record, stdlib or structlog, as one
JSON object per line.
"""

from __future__ import annotations

import logging
from typing import IO

import structlog

_SHARED_PROCESSORS: list[structlog.typing.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
]


def json_formatter() -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[*_SHARED_PROCESSORS, structlog.stdlib.ExtraAdder()],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(default=str),
        ],
    )


def configure_logging(level: str = "INFO", *, stream: IO[str] | None = None) -> logging.Handler | None:
    """Route stdlib and structlog records through a JSON formatter.

    Like :func:`logging.basicConfig`, a handler is only attached when the
    root logger has none yet, unless an explicit ``stream`` is given. The
    attached handler is returned.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    if stream is None and root.handlers:
        return None
    handler = logging.StreamHandler(stream)
    handler.setFormatter(json_formatter())
    root.addHandler(handler)
    return handler
