"""Structured JSON logger for pagelink.

Every log record is emitted as a single-line JSON object so that sync
decisions (link, refresh, auto-apply, staleness) can be followed in a log
pipeline without additional parsing.

Typical structured output::

    {"ts": "2025-07-01T12:00:00.123456+00:00", "level": "INFO",
     "logger": "pagelink.coordinator", "message": "remote change detected",
     "op": "refresh", "resource_id": "abc123", "status": "published"}

Usage::

    from pagelink.observability import get_logger

    log = get_logger("pagelink.catalog")
    log.info("pages listed", extra={"extra_fields": {"count": 3}})
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from pagelink.utils.redact import redact

LOG_LEVEL_ENV = "PAGELINK_LOG_LEVEL"


class StructuredFormatter(logging.Formatter):
    """Format log records as single-line JSON objects.

    Guaranteed keys are ``ts``, ``level``, ``logger`` and ``message``.
    Structured fields passed via ``extra={"extra_fields": {...}}`` are
    merged into the top-level object after redaction, so a stray
    ``token`` or ``access_token`` field is masked.  ``exc_info`` and
    ``stack_info`` are serialised when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra_fields: dict[str, Any] | None = getattr(
            record, "extra_fields", None
        )
        if extra_fields is not None:
            log_entry.update(redact(extra_fields))

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(log_entry, default=str)


# One handler per logger name so that ``get_logger`` is idempotent.
_configured_loggers: set[str] = set()


def get_logger(
    name: str = "pagelink",
    *,
    level: int | str | None = None,
    stream: Any | None = None,
) -> logging.Logger:
    """Get or create a structured JSON logger.

    Parameters
    ----------
    name:
        Logger name.  Defaults to ``"pagelink"``.
    level:
        Minimum log level, as an ``int`` or a case-insensitive string.
        Defaults to ``$PAGELINK_LOG_LEVEL``, else ``DEBUG``.
    stream:
        Output stream for the handler.  Defaults to ``sys.stderr``.

    Returns
    -------
    logging.Logger
        A logger with a :class:`StructuredFormatter` handler attached.
        Repeated calls with the same *name* return the same logger and do
        **not** add duplicate handlers.
    """
    logger = logging.getLogger(name)

    if name not in _configured_loggers:
        if level is None:
            level = os.environ.get(LOG_LEVEL_ENV) or logging.DEBUG
        resolved_level = (
            logging.getLevelName(level.upper())
            if isinstance(level, str)
            else level
        )
        logger.setLevel(resolved_level)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)

        # Parent loggers (e.g. root) would otherwise print the record again.
        logger.propagate = False

        _configured_loggers.add(name)

    return logger
