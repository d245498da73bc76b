"""
Logging utilities for JSONDB_ENGINE.

Records emitted while a collection operation runs carry the collection name
(and operation) as structured ``extra`` fields, so an application can filter
or format them without parsing messages. The library never configures
handlers; applications decide where records go.
"""

import contextlib
import contextvars
import logging
from collections.abc import Iterator
from datetime import datetime
from typing import Any

_collection_context: contextvars.ContextVar[dict[str, Any] | None] = contextvars.ContextVar(
    "jsondb_collection_context", default=None
)


@contextlib.contextmanager
def collection_context(collection: str, **kwargs: Any) -> Iterator[dict[str, Any]]:
    """
    Attach collection context to every record logged inside the block.

    Nested blocks extend the outer context; the outer context is restored on
    exit. Context is per task, so concurrent operations do not mix.

    Usage:
        with collection_context("users", operation="collection.create"):
            logger.info("Validating document")
    """
    outer = _collection_context.get() or {}
    context = {**outer, "collection": collection, **kwargs}
    token = _collection_context.set(context)
    try:
        yield context
    finally:
        _collection_context.reset(token)


def get_logging_context() -> dict[str, Any]:
    """Return the context attached to records at this point (timestamp plus collection context)."""
    context: dict[str, Any] = {"timestamp": datetime.now().isoformat()}
    context.update(_collection_context.get() or {})
    return context


class ContextualLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds the current collection context to every record."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        context = get_logging_context()
        extra = kwargs.get("extra")
        if extra:
            context.update(extra)
        kwargs["extra"] = context
        return msg, kwargs


def get_logger(name: str) -> ContextualLoggerAdapter:
    """
    Get a contextual logger for a module.

    Args:
        name: Logger name (typically __name__)
    """
    return ContextualLoggerAdapter(logging.getLogger(name), {})


def log_operation(
    logger: logging.Logger | logging.LoggerAdapter,
    operation: str,
    level: int = logging.INFO,
    success: bool = True,
    duration_ms: float | None = None,
    **context: Any,
) -> None:
    """
    Log a store operation with structured context.

    Args:
        logger: Logger instance
        operation: Operation name (e.g. "collection.create")
        level: Log level
        success: Whether operation succeeded
        duration_ms: Operation duration in milliseconds
        **context: Additional context (count, error, ...)
    """
    log_context = get_logging_context()
    log_context.update({"operation": operation, "success": success})

    if duration_ms is not None:
        log_context["duration_ms"] = round(duration_ms, 2)

    log_context.update(context)

    message = f"Operation: {operation}" if success else f"Operation failed: {operation}"
    if duration_ms is not None:
        message += f" (duration: {duration_ms:.2f}ms)"

    logger.log(level, message, extra=log_context)
