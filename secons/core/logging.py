# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Structured JSON logging. Every logger lives under the ``secons`` hierarchy
and shares a single stdout handler.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from secons.core.config import settings

ROOT_LOGGER = "secons"

# ``extra=`` keys copied to the top level of the JSON line when present.
LIFTED_FIELDS = ("request_id", "uid", "path", "status_code", "duration_ms")


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "service": settings.SERVICE_NAME,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in LIFTED_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value
        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            entry["error"] = str(exc)
            entry["error_type"] = type(exc).__name__
        return json.dumps(entry, default=str)


def _root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        root.addHandler(handler)
        root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
        root.propagate = False
    return root


def get_logger(name: str | None = None) -> logging.Logger:
    """``get_logger(__name__)``; names outside the package are nested under it."""
    root = _root()
    if not name or name == ROOT_LOGGER:
        return root
    if name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return root.getChild(name)
