"""structlog setup for kubetriage.

Log lines are JSON on stderr. Every line emitted while a triage request is in
flight carries the request's namespace and selector through structlog
contextvars, so detector and ranker logs can be tied back to one run.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TextIO, cast

import structlog
from structlog.typing import FilteringBoundLogger

_VALID_LEVELS: frozenset[str] = frozenset({"debug", "info", "warning", "error"})


def setup_logging(level: str = "info", stream: TextIO | None = None) -> None:
    """Route kubetriage logs to *stream* (stderr by default) as JSON.

    stdout belongs to the CLI report; keeping logs off it means ``--json``
    output can be piped straight into ``jq``.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        cache_logger_on_first_use=True,
    )


def is_valid_level(level: str) -> bool:
    """Return True when *level* is one of the supported log level names."""
    return level.lower() in _VALID_LEVELS


@contextmanager
def triage_context(namespace: str, selector: str | None = None) -> Iterator[None]:
    """Bind the triage target to every log line emitted inside the block."""
    with structlog.contextvars.bound_contextvars(triage_namespace=namespace, triage_selector=selector):
        yield


def get_logger(component: str) -> FilteringBoundLogger:
    """Logger for one kubetriage component (``pipeline``, ``ranker``, ...)."""
    return cast(FilteringBoundLogger, structlog.get_logger(component=component))
