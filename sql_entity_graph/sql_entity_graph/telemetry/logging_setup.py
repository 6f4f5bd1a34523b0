"""Logging configuration for command-line and embedded use.

With ``SQLGRAPH_STRUCTURED_LOGGING=true`` every record is emitted as a
single-line JSON object::

    {
        "timestamp": "2025-05-15T12:34:56.789012+00:00",
        "level": "DEBUG",
        "logger": "sql_entity_graph.graph.connectors",
        "message": "Adding function after type edge",
        "exc_info": "Traceback ..."  // present only on exceptions
    }
"""

from __future__ import annotations

import json
import logging
import traceback
from datetime import UTC, datetime
from typing import Any

from sql_entity_graph.config import Settings

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info and record.exc_info[0] is not None:
            payload["exc_info"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(payload, default=str, ensure_ascii=False)


def configure_logging(settings: Settings) -> logging.Logger:
    """Install a single stream handler on the ``sql_entity_graph`` logger.

    Returns the configured package logger.  Calling this more than once
    replaces the previously installed handler.
    """
    package_logger = logging.getLogger("sql_entity_graph")
    package_logger.handlers.clear()

    handler = logging.StreamHandler()
    if settings.structured_logging:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT))
    package_logger.addHandler(handler)

    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level)
    package_logger.setLevel(level)
    return package_logger
