"""Structured logging setup for baseline.

Every module obtains its logger through :func:`get_logger` and emits
snake_case events with keyword fields::

    log = get_logger("detective")
    log.info("unrun_change_sets", file=filename, count=3)
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def _stderr_logger(*args: Any) -> structlog.PrintLogger:
    # Resolve sys.stderr per logger so redirected streams (CLI runners) are honoured.
    return structlog.PrintLogger(sys.stderr)


def setup_logging(json_output: bool = True, level: str = "INFO") -> None:
    """Configure structlog for the process.

    Args:
        json_output: Render events as JSON lines, otherwise as console text.
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR).
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> Any:
    """Get a logger bound to a component name.

    Args:
        name: Component name added to every event (e.g. "catalog").

    Returns:
        A structlog bound logger.
    """
    return structlog.get_logger(component=name)
