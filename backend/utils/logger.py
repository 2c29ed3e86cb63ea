"""
Centralized logging for the DocuLingua backend.

- init_logging(): configure the root logger (console + rotating JSON file)
- get_logger(name): named logger under the ``doculingua`` namespace
- set_request_id / clear_request_id: correlation id carried on every record
"""
from __future__ import annotations
import contextvars
import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "doculingua"

# Attributes every LogRecord has; anything else came in through ``extra``
_RESERVED_ATTRS = frozenset((
    "name", "msg", "args", "levelname", "levelno", "pathname", "filename",
    "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName",
    "created", "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "message", "request_id", "request_id_part",
    "taskName",
))

request_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("request_id", default=None)

_initialized = False


def set_request_id(rid: Optional[str]) -> None:
    request_id.set(rid)


def clear_request_id() -> None:
    request_id.set(None)


class RequestIDFilter(logging.Filter):
    """Copy the current request id onto the record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id.get()
        return True


class ConsoleFormatter(logging.Formatter):
    """Human readable line, request id and extras appended when present."""

    def format(self, record: logging.LogRecord) -> str:
        rid = getattr(record, "request_id", None)
        extras = {k: v for k, v in record.__dict__.items() if k not in _RESERVED_ATTRS}
        parts = []
        if rid:
            parts.append(f"request_id={rid}")
        parts.extend(f"{k}={v}" for k, v in extras.items())
        record.request_id_part = f" [{' '.join(parts)}]" if parts else ""
        return super().format(record)


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "funcName": record.funcName,
            "line": record.lineno,
            "request_id": getattr(record, "request_id", None),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            try:
                json.dumps(value)
                payload[key] = value
            except (TypeError, ValueError):
                payload[key] = str(value)
        return json.dumps(payload, ensure_ascii=False)


def _resolve_level(level: Optional[int]) -> int:
    if level is not None:
        return level
    name = os.getenv("LOG_LEVEL", "INFO").upper()
    return getattr(logging, name, logging.INFO)


def init_logging(
    *,
    level: Optional[int] = None,
    log_dir: Optional[Path] = None,
    filename: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """
    Configure the root logger. Calling it again replaces the handlers.

    The file handler is skipped when no log directory is configured
    (``log_dir`` argument or LOG_DIR env var) or when it cannot be created.
    """
    global _initialized

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()

    chosen_level = _resolve_level(level)
    root.setLevel(chosen_level)
    request_filter = RequestIDFilter()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(chosen_level)
    console.setFormatter(ConsoleFormatter(
        "%(asctime)s %(levelname)s %(name)s: %(message)s%(request_id_part)s",
        "%Y-%m-%d %H:%M:%S",
    ))
    console.addFilter(request_filter)
    root.addHandler(console)

    target_dir = log_dir if log_dir is not None else os.getenv("LOG_DIR")
    if target_dir:
        target_dir = Path(target_dir)
        filename = filename or os.getenv("LOG_FILE", "doculingua.log")
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                str(target_dir / filename),
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
            file_handler.setLevel(chosen_level)
            file_handler.setFormatter(JsonFormatter())
            file_handler.addFilter(request_filter)
            root.addHandler(file_handler)
        except OSError:
            root.warning("Failed to initialize file handler for logging; continuing with console only", exc_info=True)

    _initialized = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return ``doculingua.<name>``; initializes logging on first use."""
    if not _initialized and not logging.getLogger().handlers:
        init_logging()
    if not name:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name.startswith(ROOT_LOGGER_NAME):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
