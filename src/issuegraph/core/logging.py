"""
Structured logging for issuegraph.

Events go to stderr as key/value lines (or JSON lines with ``json_output``)
so report output on stdout stays clean. Graph assembly logs one event per
round, per batched fetch and per dropped relation; ``report_context`` tags
everything logged during a report run with the report name::

    with report_context("roadmap"):
        logger.info("relations_round_started", round=1, frontier=12)
        # {"event": "relations_round_started", "report": "roadmap",
        #  "round": 1, "frontier": 12, "level": "info", "timestamp": "..."}
"""

from __future__ import annotations

import logging
import sys
from contextlib import AbstractContextManager
from typing import Any

import structlog

# request lines from the HTTP stack would drown the assembly events
_QUIET_LOGGERS = ("httpx", "httpcore")


def level_number(level: str) -> int:
    """Map a level name to its numeric value; unknown names mean INFO."""
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO


def configure_logging(*, level: str = "INFO", json_output: bool = False) -> None:
    """
    Configure structlog for the process.

    Safe to call more than once: the CLI calls it early for ``--log-level``
    and again once the config file's ``[logging]`` table is known. The last
    call wins and no output is duplicated.
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        processors += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_number(level)),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        # module-level loggers must pick up a reconfiguration
        cache_logger_on_first_use=False,
    )

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def report_context(report_name: str, **extra: Any) -> AbstractContextManager[Any]:
    """Bind ``report`` (and *extra*) to every event logged inside the block."""
    return structlog.contextvars.bound_contextvars(report=report_name, **extra)
