"""Logging configuration helpers for the bundler."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

_LOGGER_NAME = "dependabot_bundler"
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JsonLogFormatter(logging.Formatter):
    """Render each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def _close_handlers(logger: logging.Logger) -> None:
    """Detach and close all handlers currently bound to the logger."""
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def configure_logging(
    *,
    log_file: Path | None,
    verbose: bool,
    json_format: bool = False,
) -> logging.Logger:
    """Configure console and optional file logging and return the logger.

    Logging is reconfigured on every CLI invocation. When a log file is given
    it is truncated so each bundling run has an isolated log history. With
    json_format both handlers emit JSON lines for log collectors.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    _close_handlers(logger)

    level = logging.DEBUG if verbose else logging.INFO
    logger.setLevel(level)
    logger.propagate = False

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(
        JsonLogFormatter() if json_format else logging.Formatter("%(levelname)s: %(message)s")
    )
    logger.addHandler(console)

    if log_file is not None:
        log_path = log_file.expanduser().resolve()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
        handler.setLevel(level)
        handler.setFormatter(JsonLogFormatter() if json_format else logging.Formatter(_FORMAT))
        logger.addHandler(handler)
    return logger


def get_logger() -> logging.Logger:
    """Return the bundler logger (configured or with null handler)."""
    logger = logging.getLogger(_LOGGER_NAME)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return logger
