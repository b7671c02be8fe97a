"""JSON logging for the bridge: one object per line, to a rotating file and stdout."""

import json
import logging
import logging.config
import os
from datetime import datetime, timezone
from pathlib import Path

from .config import DEFAULT_LOG_PATH

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Third-party loggers held above the root level
QUIET_LOGGERS = {
    "nats": "WARNING",  # reconnect chatter
}


class JSONFormatter(logging.Formatter):
    """Renders a record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        # extra={"context": {...}} carries per-event fields
        context = getattr(record, "context", None)
        if context is not None:
            entry["context"] = context

        return json.dumps(entry, ensure_ascii=False, default=str)


def _handlers(log_file: str) -> dict:
    return {
        "file": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": log_file,
            "maxBytes": LOG_FILE_MAX_BYTES,
            "backupCount": LOG_FILE_BACKUPS,
            "formatter": "json",
            "encoding": "utf-8",
        },
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "stream": "ext://sys.stdout",
        },
    }


def setup_logging(log_level: str | None = None, log_file: str | None = None) -> None:
    """
    Route all logging through the JSON formatter.

    Args:
        log_level: Root level name; LOG_LEVEL or INFO when omitted.
        log_file: Rotating log file; LOG_FILE or logs/bridge.log when omitted.
    """
    level = (log_level or os.getenv("LOG_LEVEL") or "INFO").upper()
    path = Path(log_file or os.getenv("LOG_FILE") or DEFAULT_LOG_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"json": {"()": JSONFormatter}},
            "handlers": _handlers(str(path)),
            "loggers": {name: {"level": lvl} for name, lvl in QUIET_LOGGERS.items()},
            "root": {"level": level, "handlers": ["file", "console"]},
        }
    )


def get_logger(name: str) -> logging.Logger:
    """Module logger; call with __name__."""
    return logging.getLogger(name)
