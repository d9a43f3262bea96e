"""
Structured logging configuration for the onshape_drafter package.

Provides:
- JSON formatter for machine-readable log files
- Console formatter for human-readable stderr output
- Timing helpers around remote calls (export, geometry, modify, poll)
- Context fields (document / element ids) attached to every record of a run

Usage:
    from onshape_drafter.logging_config import setup_logging, get_logger

    setup_logging(level=logging.INFO, json_file="drafter.log.json")

    logger = get_logger(__name__)
    logger.info("Submitting annotations", extra={"count": 3, "view_id": "a1b2"})
"""

import json
import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar, Union

F = TypeVar('F', bound=Callable[..., Any])

PACKAGE_LOGGER = "onshape_drafter"

# LogRecord attributes that are never treated as structured extras
_RESERVED_KEYS = frozenset({
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'pathname', 'process', 'processName', 'relativeCreated',
    'stack_info', 'exc_info', 'exc_text', 'thread', 'threadName',
    'taskName', 'message', 'asctime',
})


def _record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED_KEYS}


class JSONFormatter(logging.Formatter):
    """One JSON object per line.

    Output format:
        {"timestamp": "...", "level": "INFO", "logger": "...", "message": "...", ...}

    Fields passed through ``extra={}`` are copied into the object; values that
    are not JSON serializable are stored as their ``str()``.
    """

    def __init__(self, include_extra: bool = True):
        super().__init__()
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.levelno >= logging.WARNING or record.levelno <= logging.DEBUG:
            entry["location"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        if self.include_extra:
            for key, value in _record_extras(record).items():
                try:
                    json.dumps(value)
                    entry[key] = value
                except (TypeError, ValueError):
                    entry[key] = str(value)

        return json.dumps(entry, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """Console formatter with optional ANSI colors.

    Format: [TIME] LEVEL logger: message [key=value, ...]
    """

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
        'RESET': '\033[0m',
    }

    def __init__(self, use_colors: bool = True, show_extra: bool = True):
        super().__init__()
        self.use_colors = use_colors
        self.show_extra = show_extra

    def _format_extras(self, record: logging.LogRecord) -> str:
        parts = []
        for key, value in _record_extras(record).items():
            if isinstance(value, float):
                parts.append(f"{key}={value:.3g}")
            elif isinstance(value, (list, tuple)) and len(value) > 3:
                parts.append(f"{key}=[...{len(value)} items]")
            else:
                parts.append(f"{key}={value}")
        return " [" + ", ".join(parts) + "]" if parts else ""

    def format(self, record: logging.LogRecord) -> str:
        time_str = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        level = record.levelname
        if self.use_colors and level in self.COLORS:
            level_str = f"{self.COLORS[level]}{level:8}{self.COLORS['RESET']}"
        else:
            level_str = f"{level:8}"

        logger_name = record.name
        prefix = PACKAGE_LOGGER + "."
        if logger_name.startswith(prefix):
            logger_name = logger_name[len(prefix):]

        extra_str = self._format_extras(record) if self.show_extra else ""
        result = f"[{time_str}] {level_str} {logger_name}: {record.getMessage()}{extra_str}"

        if record.exc_info:
            result += "\n" + self.formatException(record.exc_info)

        return result


def setup_logging(
    level: int = logging.INFO,
    json_file: Optional[Union[str, Path]] = None,
    console: bool = True,
    use_colors: bool = True,
    root_logger: bool = False,
) -> logging.Logger:
    """Configure handlers for the package logger.

    Console output goes to stderr so that stdout only carries the run report.

    Args:
        level: Minimum log level
        json_file: Optional path for a JSON-lines log file
        console: Enable the stderr handler
        use_colors: Use ANSI colors on the console
        root_logger: Configure the root logger instead of ``onshape_drafter``

    Returns:
        The configured logger
    """
    logger = logging.getLogger("" if root_logger else PACKAGE_LOGGER)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(ConsoleFormatter(use_colors=use_colors))
        logger.addHandler(console_handler)

    if json_file:
        json_handler = logging.FileHandler(Path(json_file), encoding='utf-8')
        json_handler.setLevel(level)
        json_handler.setFormatter(JSONFormatter())
        logger.addHandler(json_handler)

    if not root_logger:
        logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module (typically ``__name__``)."""
    return logging.getLogger(name)


@contextmanager
def log_timing(
    logger: logging.Logger,
    operation: str,
    level: int = logging.DEBUG,
    **extra_fields: Any
) -> Iterator[Dict[str, Any]]:
    """Log start, completion and duration of an operation.

    Example:
        with log_timing(logger, "Fetching view geometry", view_id=view.view_id):
            geometry = get_view_geometry(client, ref, view.view_id)

    Yields:
        dict that the caller may fill with extra fields for the completion record
    """
    timing_info: Dict[str, Any] = {}
    start_time = time.perf_counter()

    logger.log(level, "Starting: %s", operation, extra={
        "event": "start",
        "operation": operation,
        **extra_fields
    })

    try:
        yield timing_info
    except Exception as exc:
        elapsed = time.perf_counter() - start_time
        logger.error("Failed: %s (%.3fs) - %s", operation, elapsed, exc, extra={
            "event": "error",
            "operation": operation,
            "elapsed_seconds": elapsed,
            "error": str(exc),
            **extra_fields
        })
        raise

    elapsed = time.perf_counter() - start_time
    timing_info['elapsed_seconds'] = elapsed
    logger.log(level, "Completed: %s (%.3fs)", operation, elapsed, extra={
        "event": "complete",
        "operation": operation,
        **extra_fields,
        **timing_info
    })


def timed(
    logger: Optional[logging.Logger] = None,
    level: int = logging.DEBUG,
    operation: Optional[str] = None,
) -> Callable[[F], F]:
    """Decorator form of :func:`log_timing`.

    The function's module logger and name are used when not given.
    """
    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            func_logger = logger or logging.getLogger(func.__module__)
            with log_timing(func_logger, operation or func.__name__, level):
                return func(*args, **kwargs)

        return wrapper  # type: ignore
    return decorator


class LogContext:
    """Attach common fields to every package log record inside a scope.

    Example:
        with LogContext(document_id=ref.document_id, element_id=ref.element_id):
            apply_annotations(...)
    """

    def __init__(self, **fields: Any):
        self.fields = fields
        self._filter: Optional[logging.Filter] = None

    def __enter__(self) -> 'LogContext':
        fields = self.fields

        class ContextFilter(logging.Filter):
            def filter(self, record: logging.LogRecord) -> bool:
                for key, value in fields.items():
                    setattr(record, key, value)
                return True

        self._filter = ContextFilter()
        # Logger filters do not see records propagated from child loggers,
        # so the handlers get the filter as well.
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        package_logger.addFilter(self._filter)
        for handler in package_logger.handlers:
            handler.addFilter(self._filter)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._filter:
            package_logger = logging.getLogger(PACKAGE_LOGGER)
            package_logger.removeFilter(self._filter)
            for handler in package_logger.handlers:
                handler.removeFilter(self._filter)


def configure_default_logging(verbose: bool = False,
                              json_file: Optional[Union[str, Path]] = None) -> logging.Logger:
    """INFO (or DEBUG when verbose) on the console, plus an optional JSON file."""
    level = logging.DEBUG if verbose else logging.INFO
    return setup_logging(level=level, json_file=json_file, console=True,
                         use_colors=sys.stderr.isatty())
