"""Tool observability: structured metrics and the ``mcp_tool`` decorator.

Metrics are emitted as structured log records on the
``omnisearch_mcp.core.observability.metrics`` logger so any log aggregator
can pick them up.

Example usage:
    @mcp.tool()
    @mcp_tool(tool_name="web_search")
    async def web_search(query: str, provider: str) -> dict:
        ...
"""

import functools
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MetricType(Enum):
    COUNTER = "counter"
    TIMER = "timer"


@dataclass
class Metric:
    """Structured metric data."""

    name: str
    value: Union[int, float]
    metric_type: MetricType
    labels: Dict[str, str] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value,
            "type": self.metric_type.value,
            "labels": self.labels,
            "timestamp": self.timestamp,
        }


class MetricsCollector:
    """Emits metrics to the standard logger."""

    def __init__(self, prefix: str = "omnisearch_mcp"):
        self.prefix = prefix
        self._logger = logging.getLogger(f"{__name__}.metrics")

    def emit(self, metric: Metric) -> None:
        self._logger.debug(
            "METRIC: %s.%s", self.prefix, metric.name, extra={"metric": metric.to_dict()}
        )

    def counter(self, name: str, value: int = 1, labels: Optional[Dict[str, str]] = None) -> None:
        self.emit(Metric(name=name, value=value, metric_type=MetricType.COUNTER, labels=labels or {}))

    def timer(self, name: str, duration_ms: float, labels: Optional[Dict[str, str]] = None) -> None:
        """Emit a timer metric (duration in milliseconds)."""
        self.emit(
            Metric(name=name, value=duration_ms, metric_type=MetricType.TIMER, labels=labels or {})
        )


_metrics = MetricsCollector()


def get_metrics() -> MetricsCollector:
    return _metrics


def mcp_tool(
    tool_name: Optional[str] = None, emit_metrics: bool = True
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorator for async MCP tool handlers with observability.

    Logs each invocation with its duration and emits ``tool.invocations``
    and ``tool.latency`` metrics. A returned envelope with
    ``success: False`` counts as an error. Exceptions are logged and
    re-raised.

    Args:
        tool_name: Override tool name (defaults to function name)
        emit_metrics: Whether to emit metrics
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        name = tool_name or func.__name__

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            start = time.perf_counter()
            success = True
            try:
                result = await func(*args, **kwargs)
                if isinstance(result, dict) and result.get("success") is False:
                    success = False
                return result
            except Exception:
                success = False
                logger.exception("Tool %s raised", name)
                raise
            finally:
                duration_ms = (time.perf_counter() - start) * 1000
                logger.info(
                    "Tool %s finished status=%s duration_ms=%.2f",
                    name,
                    "success" if success else "error",
                    duration_ms,
                )
                if emit_metrics:
                    status = "success" if success else "error"
                    _metrics.counter("tool.invocations", labels={"tool": name, "status": status})
                    _metrics.timer("tool.latency", duration_ms, labels={"tool": name})

        return wrapper

    return decorator


__all__ = ["Metric", "MetricType", "MetricsCollector", "get_metrics", "mcp_tool"]
