"""
Logging setup for the wealthledger CLI and embedding applications.

- Level from settings (WEALTHLEDGER_LOG_LEVEL, default WARNING).
- Single-line JSON output when WEALTHLEDGER_LOG_JSON is set.
- Messages above DEBUG carry ids and actions only, never amounts or tax ids.
"""
import json
import logging
import sys
from typing import Any


def _json_serial(obj: Any):
    if hasattr(obj, "isoformat"):
        return obj.isoformat()
    return str(obj)


class JsonFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0]:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=_json_serial)


def configure_logging(level: str = "WARNING", use_json: bool = False) -> None:
    """Configure the root logger with a stderr handler."""
    resolved = getattr(logging, level.upper(), logging.WARNING)

    root = logging.getLogger()
    root.setLevel(resolved)
    # Avoid duplicate handlers when called more than once
    for h in root.handlers[:]:
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(resolved)
    if use_json:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
    root.addHandler(handler)

    # SQL echo stays off unless explicitly debugging
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if resolved <= logging.DEBUG else logging.WARNING
    )
