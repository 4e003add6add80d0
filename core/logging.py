"""
Logging Module - Centralized logging configuration
=================================================

This module provides logging setup and utilities including:
- Structured JSON logging
- File and console handlers
- Context-aware logging
"""

import contextvars
import logging
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional, Dict, Any
import json


ROOT_LOGGER_NAME = "portal_chat"

# Per-task fields (request path, session id) added to every record
_log_context: contextvars.ContextVar = contextvars.ContextVar(
    "portal_chat_log_context", default={}
)


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.

    Outputs log records as JSON objects for easy parsing and
    integration with log aggregation systems.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Fields passed through LoggerAdapter extra
        if hasattr(record, "context"):
            log_data["context"] = record.context

        return json.dumps(log_data, default=str)


class ColoredFormatter(logging.Formatter):
    """
    Colored console formatter for readable terminal output.

    Uses ANSI color codes to highlight different log levels.
    """

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"
    BOLD = "\033[1m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        formatted = (
            f"{color}{self.BOLD}[{record.levelname}]{self.RESET} "
            f"{timestamp} | {record.name}:{record.lineno} | "
            f"{record.getMessage()}"
        )

        context = getattr(record, "context", None)
        if context:
            pairs = " ".join(f"{k}={v}" for k, v in context.items())
            formatted += f" [{pairs}]"

        if record.exc_info:
            formatted += f"\n{self.formatException(record.exc_info)}"

        return formatted


class ContextFilter(logging.Filter):
    """
    Logging filter that adds the current task's context to records.

    Context set with log_context() is merged under the record's own
    ``context``; fields passed at the call site win. Attached to
    handlers so records from child loggers are covered too.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        current = _log_context.get()
        if current:
            context = dict(current)
            context.update(getattr(record, "context", None) or {})
            record.context = context
        return True


@contextmanager
def log_context(**fields) -> Iterator[None]:
    """
    Add fields to every record logged inside the block.

    Uses a context variable, so concurrent asyncio tasks keep
    separate contexts.

    Example:
        with log_context(path="/api/sessions"):
            logger.info("Session opened")  # includes path
    """
    token = _log_context.set({**_log_context.get(), **fields})
    try:
        yield
    finally:
        _log_context.reset(token)


class LoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that folds bound and per-call extras into one
    ``context`` dictionary on the record.

    Example:
        logger = get_logger("services.dialogue", component="controller")
        logger.info("Rule fired", extra={"rule": "isa-allowance-used"})
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        context = dict(self.extra)
        context.update(kwargs.pop("extra", None) or {})
        if context:
            kwargs["extra"] = {"context": context}
        return msg, kwargs


_loggers: Dict[str, logging.Logger] = {}
_configured = False
_file_logging = False


def _file_handlers(log_dir: str, json_format: bool) -> list:
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_path / "portal-chat.log", encoding="utf-8")
    if json_format:
        file_handler.setFormatter(JSONFormatter())
    else:
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
            )
        )

    error_handler = logging.FileHandler(log_path / "errors.log", encoding="utf-8")
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(JSONFormatter())

    return [file_handler, error_handler]


def setup_logging(
    log_dir: Optional[str] = None,
    log_level: str = "INFO",
    json_format: bool = False,
    console_output: bool = True
) -> None:
    """
    Set up logging configuration for the application.

    This should be called once at application startup. Later calls
    only add the file handlers, if the first call had no log_dir.

    Args:
        log_dir: Directory for log files (optional)
        log_level: Minimum log level to capture
        json_format: Use JSON format for file logs
        console_output: Also output to console (stderr)
    """
    global _configured, _file_logging

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    handlers = []

    if not _configured:
        root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
        root_logger.handlers.clear()

        if console_output:
            # stderr keeps the interactive chat output on stdout readable
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(ColoredFormatter())
            handlers.append(console_handler)

    if log_dir and not _file_logging:
        handlers.extend(_file_handlers(log_dir, json_format))
        _file_logging = True

    context_filter = ContextFilter()
    for handler in handlers:
        handler.addFilter(context_filter)
        root_logger.addHandler(handler)

    _configured = True


def get_logger(name: str, **extra) -> LoggerAdapter:
    """
    Get a logger instance for a module.

    Args:
        name: Logger name, nested under the application namespace
        **extra: Extra context to include in all log messages

    Returns:
        LoggerAdapter instance
    """
    if name.startswith(ROOT_LOGGER_NAME):
        full_name = name
    else:
        full_name = f"{ROOT_LOGGER_NAME}.{name}"

    if full_name not in _loggers:
        _loggers[full_name] = logging.getLogger(full_name)

    return LoggerAdapter(_loggers[full_name], extra)
