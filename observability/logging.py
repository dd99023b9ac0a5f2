"""Logging setup for the client and CLI.

Every record carries the id of the completion request it belongs to and the
user whose memory is being read or written, so one request's embed, search,
store and completion steps can be followed through a shared log file.

Handlers:
    - Console on stderr (stdout is reserved for streamed replies)
    - File in LOG_DIR, rotated by size or daily at midnight

Usage:
    >>> from observability.logging import setup_logging, set_request_context
    >>> setup_logging(config)
    >>> set_request_context(request_id="abc123", user_id="u1")
    >>> logger.info("Completion requested")  # line shows [abc123 u1]
"""

import contextvars
import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import TimedRotatingFileHandler, RotatingFileHandler
from typing import Any

LOG_FILE_NAME = "curo.log"

# Libraries whose INFO chatter would bury our own request logs
QUIET_LOGGERS = ("openai", "pinecone", "urllib3", "httpx", "httpcore", "asyncio")

request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="-")
user_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("user_id", default="-")


def set_request_context(request_id: str, user_id: str = "-") -> None:
    """Tag subsequent log records in this context with a request and user."""
    request_id_var.set(request_id)
    user_id_var.set(user_id)


def clear_context() -> None:
    request_id_var.set("-")
    user_id_var.set("-")


class ContextFilter(logging.Filter):
    """Copy the current request_id and user_id onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        record.user_id = user_id_var.get()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line.

    Fields: timestamp, level, logger, message, request_id, plus user_id when
    a user is set, source location for warnings and errors, and the
    formatted traceback when there is one.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
        }

        user_id = getattr(record, "user_id", "-")
        if user_id != "-":
            entry["user_id"] = user_id

        if record.levelno >= logging.WARNING:
            entry["source"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """Format: TIME [LEVEL] [request_id user_id] logger: message"""

    def __init__(self, include_date: bool = False):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] [%(request_id)s %(user_id)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S" if include_date else "%H:%M:%S",
        )


def _file_handler(config: Any) -> logging.Handler:
    """Open the rotating log file; raises OSError if LOG_DIR is unusable."""
    config.log_dir.mkdir(parents=True, exist_ok=True)
    path = config.log_dir / LOG_FILE_NAME

    if config.log_max_bytes > 0:
        return RotatingFileHandler(
            path,
            maxBytes=config.log_max_bytes,
            backupCount=config.log_backup_count,
            encoding="utf-8",
        )
    return TimedRotatingFileHandler(
        path,
        when="midnight",
        backupCount=config.log_backup_count,
        encoding="utf-8",
    )


def setup_logging(
    config: Any,
    verbose: bool = False,
) -> bool:
    """Replace the root logger's handlers with console and file handlers.

    Falls back to console-only logging when the log directory cannot be
    created or written.

    Args:
        config: Application configuration with logging settings
        verbose: Show DEBUG on the console regardless of LOG_LEVEL

    Returns:
        True if file logging is enabled, False if console-only
    """
    console_level = logging.DEBUG if verbose else getattr(logging, config.log_level, logging.INFO)
    as_json = config.log_format == "json"
    context_filter = ContextFilter()

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(JsonFormatter() if as_json else TextFormatter())
    console.addFilter(context_filter)
    root.addHandler(console)

    try:
        file_handler = _file_handler(config)
    except OSError as e:
        print(
            f"Warning: Cannot write to log directory '{config.log_dir}': {e}. "
            "Falling back to console-only logging.",
            file=sys.stderr,
        )
        file_logging_enabled = False
    else:
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JsonFormatter() if as_json else TextFormatter(include_date=True))
        file_handler.addFilter(context_filter)
        root.addHandler(file_handler)
        file_logging_enabled = True

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return file_logging_enabled
