"""
Observability components.

Provides structured logging and metrics collection for collection operations.
"""

from .logging import (
    ContextualLoggerAdapter,
    collection_context,
    get_logger,
    get_logging_context,
    log_operation,
)
from .metrics import (
    MetricsCollector,
    OperationMetrics,
    get_metrics_collector,
    record_operation,
    timed_operation,
)

__all__ = [
    # Metrics
    "MetricsCollector",
    "OperationMetrics",
    "get_metrics_collector",
    "record_operation",
    "timed_operation",
    # Logging
    "collection_context",
    "get_logging_context",
    "ContextualLoggerAdapter",
    "get_logger",
    "log_operation",
]
