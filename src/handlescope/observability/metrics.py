"""
Process-wide metrics for handlescope.

Dispose statistics and the active-scope gauge are stored here so they can be
read from any thread and exported in one place.

Features:
- Counter metrics that only increase
- Gauge metrics for current state
- Prometheus-compatible export

Usage:
    from handlescope.observability.metrics import get_registry, format_prometheus_metrics

    counter = get_registry().counter("handlescope_example_total", description="Example")
    counter.increment()

    print(format_prometheus_metrics())
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Optional, TypeVar, Union


class MetricType(str, Enum):
    """Supported metric types."""

    COUNTER = "counter"
    GAUGE = "gauge"


@dataclass
class _Metric:
    name: str
    description: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    metric_type: ClassVar[MetricType]

    def export(self) -> dict[str, Any]:
        return {
            "type": self.metric_type.value,
            "name": self.name,
            "description": self.description,
            "value": self.get_value(),
            "labels": self.labels,
        }

    def get_value(self) -> Union[int, float]:
        raise NotImplementedError


@dataclass
class CounterMetric(_Metric):
    """A counter metric that only increments. There is no reset."""

    _value: int = 0
    metric_type: ClassVar[MetricType] = MetricType.COUNTER

    def increment(self, amount: int = 1) -> None:
        if amount < 0:
            raise ValueError("Counters can only be incremented by non-negative amounts")
        with self._lock:
            self._value += amount

    def get_value(self) -> int:
        with self._lock:
            return self._value


@dataclass
class GaugeMetric(_Metric):
    """A gauge metric that can go up and down."""

    _value: float = 0.0
    metric_type: ClassVar[MetricType] = MetricType.GAUGE

    def set(self, value: float) -> None:
        with self._lock:
            self._value = value

    def increment(self, amount: float = 1.0) -> None:
        with self._lock:
            self._value += amount

    def decrement(self, amount: float = 1.0) -> None:
        with self._lock:
            self._value -= amount

    def get_value(self) -> float:
        with self._lock:
            return self._value


M = TypeVar("M", bound=_Metric)


class MetricsRegistry:
    """Get-or-create store for named, optionally labelled metrics."""

    def __init__(self) -> None:
        self._metrics: dict[str, _Metric] = {}
        self._lock = threading.Lock()

    @staticmethod
    def metric_key(name: str, labels: Optional[dict[str, str]] = None) -> str:
        """Key a metric by name plus sorted labels, in Prometheus sample syntax."""
        if not labels:
            return name
        label_str = ",".join(f'{k}="{v}"' for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"

    def _get_or_create(
        self,
        kind: type[M],
        name: str,
        description: str,
        labels: Optional[dict[str, str]],
    ) -> M:
        key = self.metric_key(name, labels)
        with self._lock:
            metric = self._metrics.get(key)
            if metric is None:
                metric = kind(name=name, description=description, labels=dict(labels or {}))
                self._metrics[key] = metric
            elif not isinstance(metric, kind):
                raise ValueError(f"Metric {key} is already registered as a {metric.metric_type.value}")
            return metric

    def counter(self, name: str, description: str = "", labels: Optional[dict[str, str]] = None) -> CounterMetric:
        """Get or create a counter metric."""
        return self._get_or_create(CounterMetric, name, description, labels)

    def gauge(self, name: str, description: str = "", labels: Optional[dict[str, str]] = None) -> GaugeMetric:
        """Get or create a gauge metric."""
        return self._get_or_create(GaugeMetric, name, description, labels)

    def get_all_metrics(self) -> dict[str, dict[str, Any]]:
        """Export every metric keyed by its sample key."""
        with self._lock:
            items = list(self._metrics.items())
        return {key: metric.export() for key, metric in items}


# Created once at import and never torn down.
_global_registry = MetricsRegistry()


def get_registry() -> MetricsRegistry:
    """Get the global metrics registry."""
    return _global_registry


def active_scopes_gauge() -> GaugeMetric:
    """Get or create the gauge counting dispose scopes currently on any thread's stack."""
    return get_registry().gauge(
        "handlescope_active_dispose_scopes",
        description="Number of dispose scopes currently on a scope stack",
    )


def get_metrics_summary() -> dict[str, Any]:
    """Get all metrics as a summary dictionary."""
    return {
        "timestamp": datetime.now().isoformat(),
        "metrics": get_registry().get_all_metrics(),
    }


def format_prometheus_metrics() -> str:
    """Format all metrics in Prometheus text format.

    HELP and TYPE lines are written once per metric name, ahead of its first
    sample.
    """
    lines: list[str] = []
    described: set[str] = set()

    for key, data in get_registry().get_all_metrics().items():
        name = data["name"]
        if name not in described:
            described.add(name)
            if data["description"]:
                lines.append(f"# HELP {name} {data['description']}")
            lines.append(f"# TYPE {name} {data['type']}")
        lines.append(f"{key} {data['value']}")

    return "\n".join(lines) + "\n"
