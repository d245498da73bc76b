"""
Metrics collection for JSONDB_ENGINE.

Counts and times collection operations (create, find, update, delete) so an
application can see how its embedded store is being used.
"""

import functools
import inspect
import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..constants import MAX_TRACKED_METRICS

logger = logging.getLogger(__name__)


@dataclass
class OperationMetrics:
    """Metrics for a single operation."""

    operation_name: str
    count: int = 0
    total_duration_ms: float = 0.0
    min_duration_ms: float = float("inf")
    max_duration_ms: float = 0.0
    error_count: int = 0
    last_execution: datetime | None = None

    @property
    def avg_duration_ms(self) -> float:
        return self.total_duration_ms / self.count if self.count else 0.0

    @property
    def error_rate(self) -> float:
        """Error rate as a percentage."""
        return self.error_count / self.count * 100 if self.count else 0.0

    def record(self, duration_ms: float, success: bool = True) -> None:
        self.count += 1
        self.total_duration_ms += duration_ms
        self.min_duration_ms = min(self.min_duration_ms, duration_ms)
        self.max_duration_ms = max(self.max_duration_ms, duration_ms)
        if not success:
            self.error_count += 1
        self.last_execution = datetime.now()

    def merge(self, other: "OperationMetrics") -> None:
        """Fold another metric for the same operation into this one."""
        self.count += other.count
        self.total_duration_ms += other.total_duration_ms
        self.min_duration_ms = min(self.min_duration_ms, other.min_duration_ms)
        self.max_duration_ms = max(self.max_duration_ms, other.max_duration_ms)
        self.error_count += other.error_count
        if other.last_execution and (
            self.last_execution is None or other.last_execution > self.last_execution
        ):
            self.last_execution = other.last_execution

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation": self.operation_name,
            "count": self.count,
            "avg_duration_ms": round(self.avg_duration_ms, 2),
            "min_duration_ms": (
                round(self.min_duration_ms, 2) if self.count else 0.0
            ),
            "max_duration_ms": round(self.max_duration_ms, 2),
            "error_count": self.error_count,
            "error_rate_percent": round(self.error_rate, 2),
            "last_execution": self.last_execution.isoformat() if self.last_execution else None,
        }


class MetricsCollector:
    """
    Thread-safe collector of per-operation metrics.

    Metrics are keyed by operation name plus tags (for example
    ``collection.create[collection=users]``). The number of keys is bounded;
    the least recently used key is evicted first.
    """

    def __init__(self, max_metrics: int = MAX_TRACKED_METRICS):
        self._metrics: OrderedDict[str, OperationMetrics] = OrderedDict()
        self._lock = threading.Lock()
        self._max_metrics = max_metrics

    @staticmethod
    def _key(operation_name: str, tags: dict[str, Any]) -> str:
        if not tags:
            return operation_name
        tag_str = ",".join(f"{k}={v}" for k, v in sorted(tags.items()))
        return f"{operation_name}[{tag_str}]"

    def record_operation(
        self, operation_name: str, duration_ms: float, success: bool = True, **tags: Any
    ) -> None:
        """
        Record an operation execution.

        Args:
            operation_name: Name of the operation (e.g., "collection.create")
            duration_ms: Duration in milliseconds
            success: Whether the operation succeeded
            **tags: Additional tags (collection, etc.)
        """
        key = self._key(operation_name, tags)
        with self._lock:
            metric = self._metrics.get(key)
            if metric is None:
                if len(self._metrics) >= self._max_metrics:
                    self._metrics.popitem(last=False)
                metric = self._metrics[key] = OperationMetrics(operation_name=operation_name)
            else:
                self._metrics.move_to_end(key)
            metric.record(duration_ms, success)

    def get_metrics(self, operation_name: str | None = None) -> dict[str, Any]:
        """
        Get metrics, optionally only those whose key starts with ``operation_name``.
        """
        with self._lock:
            metrics = {
                key: metric.to_dict()
                for key, metric in self._metrics.items()
                if operation_name is None or key.startswith(operation_name)
            }
            total_operations = len(self._metrics)

        return {
            "timestamp": datetime.now().isoformat(),
            "metrics": metrics,
            "total_operations": total_operations,
        }

    def get_summary(self) -> dict[str, Any]:
        """Aggregate metrics by operation name, ignoring tags."""
        with self._lock:
            aggregated: dict[str, OperationMetrics] = {}
            for metric in self._metrics.values():
                name = metric.operation_name
                if name not in aggregated:
                    aggregated[name] = OperationMetrics(operation_name=name)
                aggregated[name].merge(metric)
            total_operations = len(self._metrics)

        return {
            "timestamp": datetime.now().isoformat(),
            "total_operations": total_operations,
            "summary": {name: m.to_dict() for name, m in aggregated.items()},
        }

    def get_operation_count(self, operation_name: str) -> int:
        """Total executions of an operation across all tag combinations."""
        with self._lock:
            return sum(
                m.count for m in self._metrics.values() if m.operation_name == operation_name
            )

    def reset(self) -> None:
        with self._lock:
            self._metrics.clear()


# Global metrics collector instance
_metrics_collector: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Get or create the global metrics collector."""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()
    return _metrics_collector


def record_operation(
    operation_name: str, duration_ms: float, success: bool = True, **tags: Any
) -> None:
    """Record an operation in the global metrics collector."""
    get_metrics_collector().record_operation(operation_name, duration_ms, success, **tags)


def timed_operation(operation_name: str, **tags: Any):
    """
    Decorator to time and record an async collection operation.

    When the decorated coroutine is a method of an object with a ``name``
    attribute, that name is added as the ``collection`` tag.

    Usage:
        @timed_operation("collection.create")
        async def create(self, document):
            ...
    """

    def _tags_for(args: tuple) -> dict[str, Any]:
        call_tags = dict(tags)
        owner_name = getattr(args[0], "name", None) if args else None
        if isinstance(owner_name, str):
            call_tags.setdefault("collection", owner_name)
        return call_tags

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"timed_operation expects a coroutine function, got {func!r}")

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            success = False
            try:
                result = await func(*args, **kwargs)
                success = True
                return result
            finally:
                duration_ms = (time.perf_counter() - start_time) * 1000
                record_operation(operation_name, duration_ms, success, **_tags_for(args))

        return wrapper

    return decorator
