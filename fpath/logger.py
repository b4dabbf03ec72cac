"""JSON-lines logging for fpath.

Every record under the ``fpath`` logger is rendered as one JSON object per
line. :func:`log_event` attaches an ``action`` name and arbitrary fields;
plain ``logger.info(...)`` calls still come out as JSON with the logger
name standing in for the action.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

ROOT_LOGGER = "fpath"

_HOME = str(Path.home())
_MAX_BYTES = 10 * 1024 * 1024
_BACKUP_COUNT = 5


def _sanitize(value: str) -> str:
    """Shorten paths under the home directory to ``~/...``."""

    if not value.startswith(_HOME):
        return value
    remainder = value[len(_HOME):]
    if not remainder:
        return "~"
    if remainder.startswith(("/", "\\")):
        return f"~/{remainder[1:]}"
    # /home/userx is not inside /home/user
    return value


def _scrub(value: Any) -> Any:
    if isinstance(value, str):
        return _sanitize(value)
    if isinstance(value, dict):
        return {key: _scrub(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_scrub(item) for item in value]
    return value


class JsonFormatter(logging.Formatter):
    """Render a :class:`logging.LogRecord` as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "ts": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "action": getattr(record, "action", record.name),
            "message": _sanitize(record.getMessage()),
        }
        fields = getattr(record, "fields", None)
        if fields:
            payload.update(_scrub(fields))
        if record.exc_info:
            payload["traceback"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _build_handler(log_path: Path | None, max_bytes: int, backup_count: int) -> logging.Handler:
    if log_path is None:
        return logging.StreamHandler()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        log_path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )


def configure_logging(
    log_path: Path | None = None,
    *,
    level: int = logging.INFO,
    max_bytes: int = _MAX_BYTES,
    backup_count: int = _BACKUP_COUNT,
) -> logging.Logger:
    """Configure and return the ``fpath`` logger.

    Calling again without *log_path* only adjusts the level. With *log_path*
    any existing handlers are closed and replaced by a rotating file handler.
    """

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.propagate = False

    if logger.handlers and log_path is None:
        for existing in logger.handlers:
            existing.setLevel(level)
        return logger

    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()

    handler = _build_handler(log_path, max_bytes, backup_count)
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return ``fpath.<name>``, configuring the ``fpath`` logger on first use."""

    if not logging.getLogger(ROOT_LOGGER).handlers:
        configure_logging()
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def log_event(
    logger: logging.Logger,
    *,
    level: int,
    action: str,
    message: str,
    bytes_processed: int | None = None,
    duration_ms: float | None = None,
    extra: dict[str, Any] | None = None,
) -> None:
    """Log *message* under *action* with optional byte count, timing and fields."""

    if not logger.isEnabledFor(level):
        return

    fields: dict[str, Any] = {}
    if bytes_processed is not None:
        fields["bytes"] = bytes_processed
    if duration_ms is not None:
        fields["ms"] = round(duration_ms, 3)
    if extra:
        fields.update(extra)
    logger.log(level, "%s", message, extra={"action": action, "fields": fields})


__all__ = ["JsonFormatter", "ROOT_LOGGER", "configure_logging", "get_logger", "log_event"]
