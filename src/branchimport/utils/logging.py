"""
Structured logging for ingestion runs, built on structlog.

Log lines go to stderr so that reports written to stdout (for example
``branchimport check --json``) stay machine-readable. Per-run values such
as ``run_id`` are bound with ``log_context`` and carried in context
variables, which keeps concurrent runs apart.
"""

import logging
import sys
from typing import Any, TextIO

import structlog

_BASE_PROCESSORS: tuple[structlog.types.Processor, ...] = (
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
)


def _render_chain(json_output: bool, target: TextIO) -> list[structlog.types.Processor]:
    if json_output:
        return [
            *_BASE_PROCESSORS,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [*_BASE_PROCESSORS, structlog.dev.ConsoleRenderer(colors=target.isatty())]


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    stream: TextIO | None = None,
) -> None:
    """
    Configure structured logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_output: Emit one JSON object per line instead of console text.
        stream: Target stream. Defaults to ``sys.stderr``.
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO
    target = stream or sys.stderr

    logging.basicConfig(format="%(message)s", stream=target, level=log_level)

    structlog.configure(
        processors=_render_chain(json_output, target),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=target),
        # reconfigured per CLI invocation, so bound loggers must not be cached
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Module logger; call as ``get_logger(__name__)``."""
    return structlog.get_logger(name)


def log_context(**kwargs: Any) -> structlog.contextvars.bound_contextvars:
    """
    Bind values to every log line emitted inside the block.

    Example:
        with log_context(run_id="a1b2c3d4", format="xml"):
            log.info("Extracted branches", count=12)
    """
    return structlog.contextvars.bound_contextvars(**kwargs)
