"""
Logging configuration for the k3s-ui backend.

Application modules log through ``structlog`` event loggers
(``logger.warning("command.stderr", stderr=...)``). Those events are handed to
the stdlib ``logging`` tree configured here, so uvicorn and library output
share the same handlers: a console handler (colored on a TTY, JSON when
``LOG_JSON`` is set) and an optional rotating file handler.
"""
import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

import structlog

from k3sui.config import get_settings
from k3sui.core.request_context import request_id_var

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_CONFIGURED = False


class ContextFilter(logging.Filter):
    """Attach the current request id and service name to every record."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        rid = getattr(record, "request_id", None) or request_id_var.get()
        if rid is not None:
            record.request_id = rid
        if not hasattr(record, "service"):
            record.service = "k3s-ui"
        return True


class ColoredFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record):
        # Work on a copy so file handlers still see the plain level name
        record = logging.makeLogRecord(record.__dict__)
        log_color = self.COLORS.get(record.levelname, self.RESET)
        record.levelname = f"{log_color}{record.levelname}{self.RESET}"
        return super().format(record)


class JSONFormatter(logging.Formatter):
    """One JSON object per line: time, level, name, message plus extras.

    Values of keys that look like credentials are masked.
    """

    REDACT_KEYS = {"password", "secret", "token", "authorization", "kubeconfig"}
    _STANDARD_ATTRS = {
        "args", "asctime", "created", "exc_info", "exc_text", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs", "message", "msg", "name",
        "pathname", "process", "processName", "relativeCreated", "stack_info", "thread",
        "threadName", "taskName",
    }

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key in self._STANDARD_ATTRS:
                continue
            payload[key] = "***REDACTED***" if key.lower() in self.REDACT_KEYS else value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def _configure_structlog(json_output: bool) -> None:
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    renderer = structlog.processors.JSONRenderer() if json_output else structlog.processors.KeyValueRenderer(
        key_order=["event"], drop_missing=True
    )
    structlog.configure(
        processors=[*processors, renderer],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None, use_color: bool = True) -> logging.Logger:
    """Configure the root logger once and route structlog through it."""
    global _CONFIGURED
    logger = logging.getLogger("k3sui")
    if _CONFIGURED:
        return logger

    settings = get_settings()
    root = logging.getLogger()
    root.setLevel((level or settings.log_level).upper())

    for h in list(root.handlers):
        root.removeHandler(h)

    context_filter = ContextFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.addFilter(context_filter)
    if settings.log_json:
        console_handler.setFormatter(JSONFormatter(datefmt=LOG_DATE_FORMAT))
    elif use_color and sys.stdout.isatty():
        console_handler.setFormatter(ColoredFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    else:
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root.addHandler(console_handler)

    file_path = log_file or settings.log_file
    if file_path:
        Path(file_path).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(file_path, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8")
        file_handler.addFilter(context_filter)
        if settings.log_json:
            file_handler.setFormatter(JSONFormatter(datefmt=LOG_DATE_FORMAT))
        else:
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        root.addHandler(file_handler)

    for log_name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
        uv_logger = logging.getLogger(log_name)
        uv_logger.handlers = []
        uv_logger.propagate = True

    _configure_structlog(settings.log_json)

    _CONFIGURED = True
    return logger
