"""
Structured logging setup.

Modules log through structlog.get_logger(__name__) with key value context.
Nothing is configured on import. The CPI entry point calls setup_logging once,
which routes structlog through the standard library logging handlers.
"""

from __future__ import annotations

import logging
import os
import sys

import structlog

from cpi_orchestrator.core.config import LoggingConfig


def setup_logging(config: LoggingConfig | None = None) -> structlog.stdlib.BoundLogger:
    """
    Set up structured logging for the core.

    Returns a logger bound to the cpi_orchestrator name, handy for entry points.
    """
    config = config or LoggingConfig()

    handlers: list[logging.Handler] = []
    if config.destination in ("file", "both"):
        os.makedirs(config.log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(os.path.join(config.log_dir, config.filename)))
    if config.destination in ("stdout", "both"):
        handlers.append(logging.StreamHandler(sys.stdout))

    if config.renderer == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    for handler in handlers:
        handler.setFormatter(formatter)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, config.level.upper(), logging.INFO),
        handlers=handlers,
        force=True,
    )

    return structlog.get_logger("cpi_orchestrator")
