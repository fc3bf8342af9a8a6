"""JSON log lines for the dormseat package.

A single stdout handler sits on the package root logger ("dormseat");
module loggers carry no handlers of their own and propagate to it.

Each line is one JSON object:
    timestamp, level, logger, message  always
    requestId                          while a request is bound
    location                           WARNING and above (module:line)
    exception                          when exc_info is attached
plus whatever the caller passed as ``extra={"extra_fields": {...}}``.
"""

import json
import logging
import sys
import threading
from datetime import datetime, timezone
from typing import Any

from .request_context import get_request_id

ROOT_LOGGER = "dormseat"

_setup_lock = threading.Lock()


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = get_request_id()
        if request_id:
            payload["requestId"] = request_id

        if record.levelno >= logging.WARNING:
            payload["location"] = f"{record.module}:{record.lineno}"

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        fields = getattr(record, "extra_fields", None)
        if fields:
            payload.update(fields)

        return json.dumps(payload, default=str)


def _json_handler(root: logging.Logger) -> logging.Handler | None:
    for handler in root.handlers:
        if isinstance(handler.formatter, JsonFormatter):
            return handler
    return None


def configure_logging(level: str | int = logging.INFO) -> logging.Logger:
    """Install the JSON handler on the package logger and set its level.

    Safe to call repeatedly; later calls only change the level.
    """
    root = logging.getLogger(ROOT_LOGGER)
    with _setup_lock:
        if _json_handler(root) is None:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(JsonFormatter())
            root.addHandler(handler)
            root.propagate = False
        root.setLevel(level.upper() if isinstance(level, str) else level)
    return root


def get_logger(name: str) -> logging.Logger:
    """Module logger under the package root.

    Configures the root with defaults if nothing has yet.
    """
    root = logging.getLogger(ROOT_LOGGER)
    if _json_handler(root) is None:
        configure_logging()
    return logging.getLogger(name)
