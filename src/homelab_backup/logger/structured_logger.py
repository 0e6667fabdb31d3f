"""
Structured logger with console and file sinks.

Every record is written synchronously to the terminal and, when configured,
appended to a log file. Text output is one line per record:

    2026-10-17 02:00:00 [INFO] Backup completed successfully.
"""

import json
import logging
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, TextIO

from .interface import Logger

# Level tags as they appear in the log files
LEVEL_TAGS = {
    "DEBUG": "DEBUG",
    "INFO": "INFO",
    "WARNING": "WARN",
    "ERROR": "ERROR",
    "CRITICAL": "ERROR",
}

TEXT_FORMAT = "%(asctime)s [%(level_tag)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_RESERVED_KEYS = {
    "args", "asctime", "created", "exc_info", "exc_text", "filename",
    "funcName", "levelname", "levelno", "lineno", "module",
    "msecs", "message", "msg", "name", "pathname", "process",
    "processName", "relativeCreated", "stack_info", "thread",
    "threadName", "taskName",
}


class JsonFormatter(logging.Formatter):
    """JSON formatter for logging records.

    Formats log records as JSON objects suitable for ingestion by
    log aggregation systems.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": getattr(record, "level_tag", record.levelname),
            "message": record.getMessage(),
            "logger": record.name,
        }

        session_id = getattr(record, "session_id", None)
        if session_id:
            log_data["session_id"] = str(session_id)

        skip_keys = _RESERVED_KEYS | {"session_id", "level_tag"}
        for key, value in record.__dict__.items():
            if key not in skip_keys:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Text formatter that appends extra kwargs to the message."""

    def __init__(self, fmt: str = TEXT_FORMAT, datefmt: str = DATE_FORMAT):
        super().__init__(fmt=fmt, datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "level_tag"):
            record.level_tag = LEVEL_TAGS.get(record.levelname, record.levelname)
        s = super().format(record)

        skip_keys = _RESERVED_KEYS | {"session_id", "level_tag"}
        extra_args = {k: v for k, v in record.__dict__.items() if k not in skip_keys}
        if extra_args:
            s += " " + " ".join(f"{k}={v}" for k, v in extra_args.items())

        return s


class StructuredLogger(Logger):
    """Logger writing to the console and an optional log file.

    Example:
        logger = StructuredLogger(
            name="backup-truenas-config",
            log_file="/var/log/backup-truenas-config.log",
        )
        logger.info("Backup stored", path="/mnt/backups/nas-20261017020000.tar")
    """

    def __init__(
        self,
        name: str = "homelab-backup",
        level: int = logging.INFO,
        log_file: Optional[str] = None,
        json_format: bool = False,
        stream: Optional[TextIO] = None,
    ):
        """Initialize the structured logger.

        Args:
            name: Logger name (e.g., "backup-truenas-config")
            level: Logging level (logging.DEBUG, logging.INFO, etc.)
            log_file: Optional file path; parent directories are created
            json_format: If True, output logs as JSON; otherwise use text format
            stream: Console stream (default: stdout)
        """
        self._name = name
        self._session_id = str(uuid.uuid4())[:8]
        self._logger = logging.getLogger(name)
        self._logger.setLevel(level)

        # Clear existing handlers to avoid duplication if re-initialized
        if self._logger.hasHandlers():
            for handler in list(self._logger.handlers):
                handler.close()
            self._logger.handlers.clear()

        self._logger.propagate = False

        if json_format:
            formatter: logging.Formatter = JsonFormatter()
        else:
            formatter = TextFormatter()

        console_handler = logging.StreamHandler(stream or sys.stdout)
        console_handler.setFormatter(formatter)
        self._logger.addHandler(console_handler)

        self.log_file: Optional[Path] = None
        if log_file:
            try:
                path = Path(log_file)
                path.parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.FileHandler(path)
                file_handler.setFormatter(formatter)
                self._logger.addHandler(file_handler)
                self.log_file = path
            except OSError as e:
                # Fallback to console if file cannot be opened
                print(f"Failed to setup log file {log_file}: {e}", file=sys.stderr)

    def get_session_id(self) -> str:
        """Get the current session ID."""
        return self._session_id

    def _log(self, level: int, message: str, **kwargs: Any) -> None:
        """Internal logging method with extra kwargs handling."""
        extra = {
            "session_id": self._session_id,
            "level_tag": LEVEL_TAGS.get(logging.getLevelName(level), logging.getLevelName(level)),
        }

        for k, v in kwargs.items():
            if k not in _RESERVED_KEYS:
                extra[k] = v
            else:
                # Prefix reserved keys to preserve them but avoid collision
                extra[f"_{k}"] = v

        self._logger.log(level, message, extra=extra)

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log a debug message."""
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log an info message."""
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log a warning message."""
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        """Log an error message."""
        self._log(logging.ERROR, message, **kwargs)

    def close(self) -> None:
        """Flush and detach every handler."""
        for handler in list(self._logger.handlers):
            handler.flush()
            handler.close()
            self._logger.removeHandler(handler)
