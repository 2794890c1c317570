"""JSON log beside the state file, and exchange tracing for the session controller."""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


_LOGGER_NAME = "tictaclink"
LOG_FILE_NAME = "tictaclink.log"


def log_dir(state_file: Path) -> Path:
    path = state_file.parent / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


class JsonFormatter(logging.Formatter):
    """One JSON object per line; session trace fields are lifted to top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts_utc": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        for name in ("event", "phase", "crash_id"):
            if hasattr(record, name):
                payload[name] = getattr(record, name)
        fields = getattr(record, "fields", None)
        if isinstance(fields, dict):
            for key, value in fields.items():
                payload.setdefault(key, value)
        return json.dumps(payload, ensure_ascii=True, default=str)


def configure_logging(state_file: Path, verbose: bool = False, console: bool = True) -> logging.Logger:
    logger = logging.getLogger(_LOGGER_NAME)
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    handler = logging.handlers.TimedRotatingFileHandler(
        filename=str(log_dir(state_file) / LOG_FILE_NAME),
        when="midnight",
        backupCount=7,
        encoding="utf-8",
    )
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    if console:
        # Protocol traffic only reaches the terminal with --verbose.
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
        stream_handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        logger.addHandler(stream_handler)

    logger.info("logging configured", extra={"event": "logging_configured"})
    return logger


def get_logger() -> logging.Logger:
    return logging.getLogger(_LOGGER_NAME)


def trace(logger: logging.Logger, event: str, phase: str, level: int = logging.DEBUG, **fields: Any) -> None:
    message = event if not fields else f"{event} " + " ".join(f"{k}={v}" for k, v in fields.items())
    logger.log(level, message, extra={"event": event, "phase": phase, "fields": fields})


def install_crash_hooks() -> None:
    logger = get_logger()

    def _log_uncaught(exc_type, exc_value, exc_tb) -> None:
        crash_id = str(uuid.uuid4())
        logger.critical(
            f"uncaught exception crash_id={crash_id}",
            exc_info=(exc_type, exc_value, exc_tb),
            extra={"event": "uncaught_exception", "crash_id": crash_id},
        )

    sys.excepthook = _log_uncaught
