"""
Structured logging for parity runs.

Every line is one JSON object carrying the operation, the file digest and
artifact paths it concerns, so a run over thousands of files can be
filtered afterwards. Lines go to stderr; the report on stdout stays clean.
"""

import inspect
import json
import logging
import time
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Dict, Iterable, Optional

STRUCTURED_FIELDS = ("operation", "context", "duration_ms", "error")
CONTEXT_ARGS = ("file_id", "input_path")


def short_digest(file_id: Optional[str], length: int = 8) -> str:
    """
    Shorten a cache digest for log context.

    Example:
        >>> short_digest("0cc175b9c0f1b6a831c399e269772661")
        "0cc175b9"
    """
    if not file_id:
        return "unknown"

    return file_id[:length]


class JsonFormatter(logging.Formatter):
    """
    Render a LogRecord as a single JSON object.

    Structured fields ride on the record via ``extra``. Values JSON cannot
    encode (paths, enums) are stringified.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in STRUCTURED_FIELDS:
            value = getattr(record, name, None)
            if value is None or (name == "context" and not value):
                continue
            entry[name] = round(value, 2) if name == "duration_ms" else value

        if record.exc_info:
            entry["traceback"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


class StructuredLogger:
    """
    Logger that emits JSON lines with bound context.

    ``bind`` returns a child that adds its context to every line, which is
    how per-file loggers carry the digest and artifact paths.
    """

    def __init__(self, name: str, context: Optional[Dict[str, Any]] = None):
        self.logger = logging.getLogger(name)
        self.context: Dict[str, Any] = dict(context or {})

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(JsonFormatter())
            self.logger.addHandler(handler)
            self.logger.propagate = False

    def bind(self, **context: Any) -> "StructuredLogger":
        merged = dict(self.context)
        merged.update(context)
        return StructuredLogger(self.logger.name, merged)

    def _log(
        self,
        level: int,
        message: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        duration_ms: Optional[float] = None,
        error: Optional[str] = None,
        exc_info: bool = False,
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return

        merged = dict(self.context)
        if context:
            merged.update(context)

        self.logger.log(
            level,
            message,
            exc_info=exc_info,
            extra={
                "operation": operation,
                "context": merged,
                "duration_ms": duration_ms,
                "error": error,
            },
        )

    def debug(self, message: str, **fields: Any) -> None:
        self._log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        self._log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._log(logging.WARNING, message, **fields)

    def error(self, message: str, **fields: Any) -> None:
        self._log(logging.ERROR, message, **fields)

    def exception(self, message: str, **fields: Any) -> None:
        """Log at ERROR with the active exception's traceback."""
        self._log(logging.ERROR, message, exc_info=True, **fields)


def log_operation(operation_name: str, context_args: Iterable[str] = CONTEXT_ARGS):
    """
    Decorator logging start, completion and failure of a call with its duration.

    Arguments named in ``context_args`` are picked from the call, whether
    passed positionally or by keyword, and attached as context. Digests are
    shortened.

    Usage:
        @log_operation("compare_digest")
        def compare_digest(self, file_id):
            ...
    """
    context_args = tuple(context_args)

    def decorator(func):
        signature = inspect.signature(func)
        logger = StructuredLogger(func.__module__)

        @wraps(func)
        def wrapper(*args, **kwargs):
            arguments = signature.bind_partial(*args, **kwargs).arguments
            context: Dict[str, Any] = {"function": func.__qualname__}
            for name in context_args:
                value = arguments.get(name)
                if value is None:
                    continue
                context[name] = short_digest(value) if name == "file_id" else value

            logger.debug(f"Starting {operation_name}", operation=operation_name, context=context)

            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    f"Failed {operation_name}",
                    operation=operation_name,
                    context=context,
                    duration_ms=(time.perf_counter() - start_time) * 1000,
                    error=f"{type(e).__name__}: {e}",
                )
                raise

            logger.info(
                f"Completed {operation_name}",
                operation=operation_name,
                context=context,
                duration_ms=(time.perf_counter() - start_time) * 1000,
            )
            return result

        return wrapper

    return decorator


def get_logger(name: str, **context: Any) -> StructuredLogger:
    """Structured logger for ``name``, optionally with bound context."""
    return StructuredLogger(name, context)
