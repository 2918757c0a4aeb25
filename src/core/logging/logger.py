"""
Whitelist logging subsystem.

Records are emitted through a bounded queue and written by a listener
thread, so the progress, decay and whitelist loops never block on console
or file I/O.

Every record is enriched with the ambient `LogContext` (player_id, task,
operation, correlation_id, component). Context is captured by a filter on
the queue handler, i.e. on the emitting asyncio task, before the record
crosses threads.

Output
------
- console: JSON in production (or LOG_JSON=true), otherwise plain or
  coloured text
- optional daily JSON file under Config.LOGS_DIR (LOG_TO_FILE)

Extra fields passed via `logger.info("msg", extra={...})` land under
`"extra"` in JSON output.
"""

from __future__ import annotations

import json
import logging
import queue
import sys
import uuid
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from logging import Logger
from logging.handlers import QueueHandler, QueueListener, TimedRotatingFileHandler
from typing import Any, Dict, Optional

from src.core.config.config import Config

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DAILY_LOG_FILE = "slwhitelist_daily.json.log"
QUEUE_MAX_SIZE = 10_000

CONTEXT_FIELDS = ("player_id", "task", "operation", "correlation_id", "component")

_log_context: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})
_queue_listener: Optional[QueueListener] = None


def _log_level() -> int:
    return getattr(logging, str(Config.LOG_LEVEL).upper(), logging.INFO)


def _use_json() -> bool:
    if Config.LOG_JSON is None:
        return Config.is_production()
    return bool(Config.LOG_JSON)


# ============================================================================
# Filters & Formatters
# ============================================================================


class ContextFilter(logging.Filter):
    """Copy the ambient LogContext onto the record; explicit extras win."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        context = _log_context.get()
        for field in CONTEXT_FIELDS:
            if hasattr(record, field):
                continue
            value = context.get(field)
            if field == "component" and not value:
                value = record.name.split(".", 1)[0]
            setattr(record, field, value if value is not None else "N/A")
        return True


class ColoredFormatter(logging.Formatter):
    COLORS: Dict[str, str] = {
        "DEBUG": "\033[90m",
        "INFO": "\033[94m",
        "WARNING": "\033[93m",
        "ERROR": "\033[91m",
        "CRITICAL": "\033[91m\033[1m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        original = record.levelname
        color = self.COLORS.get(original)
        if color:
            record.levelname = f"{color}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


# Attributes every LogRecord carries; anything else came from `extra`
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value not in (None, "N/A"):
                payload[field] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS
            and key not in CONTEXT_FIELDS
            and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra

        return json.dumps(payload, ensure_ascii=False, default=str)


class DroppingQueueHandler(QueueHandler):
    """Queue handler that drops records instead of blocking when full."""

    def enqueue(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            try:
                sys.stderr.write("Whitelist logging queue full; dropping log record.\n")
            except Exception:
                pass


# ============================================================================
# Setup / Shutdown
# ============================================================================


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    if _use_json():
        handler.setFormatter(JSONFormatter())
    elif sys.stdout.isatty():
        handler.setFormatter(ColoredFormatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _daily_file_handler() -> logging.Handler:
    Config.LOGS_DIR.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        filename=str(Config.LOGS_DIR / DAILY_LOG_FILE),
        when="midnight",
        backupCount=1,
        encoding="utf-8",
        utc=True,
    )
    handler.setFormatter(JSONFormatter())
    return handler


def setup_logging() -> None:
    """Install the queue handler on the root logger. Idempotent."""
    global _queue_listener

    if _queue_listener is not None:
        return

    level = _log_level()
    handlers = [_console_handler()]
    if Config.LOG_TO_FILE:
        handlers.append(_daily_file_handler())
    for handler in handlers:
        handler.setLevel(level)

    log_queue: "queue.Queue[logging.LogRecord]" = queue.Queue(QUEUE_MAX_SIZE)
    _queue_listener = QueueListener(log_queue, *handlers, respect_handler_level=True)
    _queue_listener.start()

    queue_handler = DroppingQueueHandler(log_queue)
    queue_handler.setLevel(level)
    queue_handler.addFilter(ContextFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(queue_handler)

    for noisy in ("sqlalchemy.engine", "aiosqlite", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging initialized",
        extra={
            "environment": Config.ENVIRONMENT,
            "log_level": logging.getLevelName(level),
            "json": _use_json(),
            "file": Config.LOG_TO_FILE,
        },
    )


def shutdown_logging() -> None:
    """Flush queued records and detach every root handler."""
    global _queue_listener

    if _queue_listener is None:
        return

    logging.getLogger(__name__).info("Shutting down logging subsystem")
    listener, _queue_listener = _queue_listener, None
    listener.stop()

    root = logging.getLogger()
    for handler in list(root.handlers) + list(listener.handlers):
        handler.flush()
        handler.close()
        root.removeHandler(handler)


# ============================================================================
# Public API
# ============================================================================


def get_logger(name: str) -> Logger:
    return logging.getLogger(name)


class LogContext:
    """
    Scope logging context to one tick or one chat query.

    >>> async with LogContext(task="decay", operation="decay_tick"):
    ...     logger.info("Decay tick started")
    """

    def __init__(
        self,
        player_id: Optional[str] = None,
        task: Optional[str] = None,
        component: Optional[str] = None,
        operation: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.context: Dict[str, Any] = {
            "player_id": player_id,
            "task": task,
            "component": component,
            "operation": operation,
            "correlation_id": correlation_id or uuid.uuid4().hex[:8],
        }
        self._token: Optional[Token[Dict[str, Any]]] = None

    def __enter__(self) -> "LogContext":
        self._token = _log_context.set(self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None

    async def __aenter__(self) -> "LogContext":
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)


setup_logging()
