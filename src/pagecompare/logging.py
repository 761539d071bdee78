"""Structured logging for pagecompare.

Emits JSON records for CI log collectors and human-readable lines for local
runs. Includes a timing context manager for captures and a decorator for the
differs.
"""

import asyncio
import functools
import json
import logging
import os
import time
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

_log_format = os.environ.get("PAGECOMPARE_LOG_FORMAT", "text")
_log_level = os.environ.get("PAGECOMPARE_LOG_LEVEL", "INFO").upper()

logger = logging.getLogger("pagecompare")
logger.setLevel(getattr(logging, _log_level, logging.INFO))


class JsonFormatter(logging.Formatter):
    """Format log records as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extra_data: dict[str, Any] = getattr(record, "extra_data", {})
        log_data.update(extra_data)
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable format that appends structured fields as key=value."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extra_data: dict[str, Any] = getattr(record, "extra_data", {})
        if extra_data:
            fields = " ".join(f"{key}={value}" for key, value in extra_data.items())
            line = f"{line} [{fields}]"
        return line


# Avoid adding multiple handlers
if not logger.handlers:
    handler = logging.StreamHandler()
    if _log_format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            TextFormatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    logger.addHandler(handler)


def set_verbose(verbose: bool) -> None:
    """Switch the package logger to DEBUG, or back to the configured level."""
    if verbose:
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(getattr(logging, _log_level, logging.INFO))


def log_extra(message: str, level: int = logging.INFO, **extra: Any) -> None:
    """Log a message with extra structured data."""
    if not logger.isEnabledFor(level):
        return
    record = logging.LogRecord(
        name=logger.name,
        level=level,
        pathname="",
        lineno=0,
        msg=message,
        args=(),
        exc_info=None,
    )
    record.extra_data = extra  # noqa: B010
    logger.handle(record)


@asynccontextmanager
async def timed_operation(
    name: str,
    **context: Any,
) -> AsyncGenerator[dict[str, Any], None]:
    """Context manager that times an async operation and logs it.

    Usage:
        async with timed_operation("capture_screenshot", url=url) as ctx:
            snapshot = await do_capture()
            ctx["path"] = str(snapshot.path)
    """
    start = time.perf_counter()
    ctx: dict[str, Any] = {"operation": name, **context}

    try:
        yield ctx
        elapsed = time.perf_counter() - start
        ctx["duration_ms"] = round(elapsed * 1000, 2)
        ctx["success"] = True
        log_extra(f"{name} completed", logging.INFO, **ctx)
    except Exception as e:
        elapsed = time.perf_counter() - start
        ctx["duration_ms"] = round(elapsed * 1000, 2)
        ctx["success"] = False
        ctx["error"] = str(e)
        ctx["error_type"] = type(e).__name__
        log_extra(f"{name} failed", logging.ERROR, **ctx)
        raise


F = TypeVar("F", bound=Callable[..., Any])


def timed(func: F) -> F:
    """Decorator to time and log function execution."""
    if asyncio.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            start = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                _log_timing(func.__name__, start, error=e)
                raise
            _log_timing(func.__name__, start)
            return result

        return async_wrapper  # type: ignore[return-value]

    @functools.wraps(func)
    def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
        start = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            _log_timing(func.__name__, start, error=e)
            raise
        _log_timing(func.__name__, start)
        return result

    return sync_wrapper  # type: ignore[return-value]


def _log_timing(name: str, start: float, error: Exception | None = None) -> None:
    elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
    if error is None:
        log_extra(
            f"{name} completed",
            logging.DEBUG,
            operation=name,
            duration_ms=elapsed_ms,
            success=True,
        )
    else:
        log_extra(
            f"{name} failed",
            logging.ERROR,
            operation=name,
            duration_ms=elapsed_ms,
            success=False,
            error=str(error),
        )
