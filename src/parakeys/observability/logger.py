"""Structured JSON logger for parakeys.

Every record is one JSON object per line, so the change log of a
reconciliation run can be grepped or shipped to a log pipeline as is.

Typical output of a run::

    {"ts": "2026-03-02T09:14:05.120381+00:00", "level": "INFO",
     "logger": "parakeys.store", "message": "paragraph changed",
     "key": "guide:07", "old": "Helo", "new": "Hello"}

Usage::

    from parakeys.observability import get_logger

    log = get_logger("parakeys.reconciler")
    log.debug("plan ready", extra={"extra_fields": {"ops": 12}})
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any


class StructuredFormatter(logging.Formatter):
    """Format log records as single-line JSON objects.

    Guaranteed keys are ``ts`` (ISO-8601 UTC), ``level``, ``logger`` and
    ``message``.  Fields passed as ``extra={"extra_fields": {...}}`` are
    merged into the top-level object; exception and stack information is
    serialised when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra_fields: dict[str, Any] | None = getattr(record, "extra_fields", None)
        if extra_fields is not None:
            entry.update(extra_fields)

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


# One handler per logger name, so repeated ``get_logger`` calls from
# several modules never stack handlers.
_configured_loggers: set[str] = set()


def get_logger(
    name: str = "parakeys",
    *,
    level: int | str = logging.WARNING,
    stream: Any | None = None,
) -> logging.Logger:
    """Get or create a structured JSON logger.

    Parameters
    ----------
    name:
        Logger name.  Defaults to ``"parakeys"``.
    level:
        Minimum level, as an ``int`` or a case-insensitive name such as
        ``"DEBUG"``.  Only applied the first time *name* is configured.
    stream:
        Output stream for the handler.  Defaults to ``sys.stderr``.

    Returns
    -------
    logging.Logger
        The configured logger.  Repeated calls with the same *name* return
        the same logger without adding handlers.
    """
    logger = logging.getLogger(name)

    if name not in _configured_loggers:
        resolved_level = (
            logging.getLevelName(level.upper())
            if isinstance(level, str)
            else level
        )
        logger.setLevel(resolved_level)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)
        logger.propagate = False

        _configured_loggers.add(name)

    return logger
