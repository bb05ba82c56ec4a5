"""Logging configuration using Loguru.

This module provides:
- Structured JSON logging for production
- Human-readable colorized output for development
- Request-scoped context (request ID, client ID) via a ContextVar
- Interception of standard library logging
- Masking of credential-bearing fields before they reach a sink
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

import orjson
from loguru import logger


if TYPE_CHECKING:
    from loguru import Logger, Record


_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})

# Extra fields whose values must never be written out
SENSITIVE_FIELDS = frozenset(
    {
        "api_key",
        "authorization",
        "key",
        "password",
        "refresh_token",
        "secret",
        "shared_secret",
        "token",
    }
)
MASK = "***"


class InterceptHandler(logging.Handler):
    """Redirect standard library logging records to Loguru.

    uvicorn and httpx log through the standard library.
    """

    def emit(self, record: logging.LogRecord) -> None:
        """Emit a log record by forwarding to Loguru."""
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def _scrub(extra: dict[str, Any]) -> dict[str, Any]:
    return {
        key: MASK if key.lower() in SENSITIVE_FIELDS and value else value
        for key, value in extra.items()
    }


def _patch_record(record: Record) -> None:
    """Merge request context into the record and mask secrets."""
    merged = {**_log_context.get(), **record["extra"]}
    record["extra"].clear()
    record["extra"].update(_scrub(merged))


def _format_json(record: Record) -> str:
    payload: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "logger": record["extra"].get("name", record["name"]),
        "function": record["function"],
        "line": record["line"],
        **{k: v for k, v in record["extra"].items() if k != "name"},
    }

    exc = record["exception"]
    if exc:
        payload["exception"] = {
            "type": exc.type.__name__ if exc.type else None,
            "value": str(exc.value) if exc.value else None,
        }

    # Loguru treats braces in the returned format string as fields
    line = orjson.dumps(payload, default=str).decode()
    record["extra"]["_json"] = line
    return "{extra[_json]}\n" + ("{exception}" if exc else "")


def _format_dev(record: Record) -> str:
    context = {k: v for k, v in record["extra"].items() if k != "name"}
    context_str = ""
    if context:
        context_str = " | " + " ".join(f"{k}={v}" for k, v in context.items())
        context_str = context_str.replace("{", "{{").replace("}", "}}")

    fmt = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{extra[name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan>"
        f"{context_str} - "
        "<level>{message}</level>\n"
    )
    if record["exception"]:
        fmt += "{exception}\n"
    return fmt


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    *,
    is_development: bool = False,
) -> None:
    """Configure Loguru logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format ("json" or "text")
        is_development: Enable development-friendly formatting
    """
    logger.remove()
    logger.configure(patcher=_patch_record, extra={"name": "zap_gateway"})

    if log_format == "json" and not is_development:
        logger.add(
            sys.stdout,
            format=_format_json,
            level=log_level.upper(),
            colorize=False,
            backtrace=False,
            diagnose=False,  # Never dump local variables (may hold secrets)
        )
    else:
        logger.add(
            sys.stdout,
            format=_format_dev,
            level=log_level.upper(),
            colorize=True,
            backtrace=True,
            diagnose=False,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for logger_name in [
        "uvicorn",
        "uvicorn.access",
        "uvicorn.error",
        "httpx",
        "httpcore",
        "asyncio",
    ]:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def get_logger(name: str) -> Logger:
    """Get a logger instance bound to a name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        A Loguru logger instance
    """
    return logger.bind(name=name)


def bind_context(**kwargs: Any) -> None:
    """Bind context variables for structured logging.

    Context variables are included in all subsequent log entries within
    the same async context (e.g., the request lifecycle).

    Example:
        bind_context(request_id="abc-123", client_id="ci-runner")
    """
    current = _log_context.get().copy()
    current.update(kwargs)
    _log_context.set(current)


def clear_context() -> None:
    """Clear all context variables.

    Called at the start of each request.
    """
    _log_context.set({})


def unbind_context(*keys: str) -> None:
    """Remove specific context variables."""
    current = _log_context.get().copy()
    for key in keys:
        current.pop(key, None)
    _log_context.set(current)


def get_context() -> dict[str, Any]:
    """Get a copy of the current logging context."""
    return _log_context.get().copy()


__all__ = [
    "bind_context",
    "clear_context",
    "get_context",
    "get_logger",
    "logger",
    "setup_logging",
    "unbind_context",
]
