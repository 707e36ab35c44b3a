"""
Observability Module for handlescope.

Exposes the process-wide metrics registry that backs the dispose statistics,
plus Prometheus text export.

Example:
    from handlescope.observability import format_prometheus_metrics

    print(format_prometheus_metrics())
"""

from .metrics import (
    CounterMetric,
    GaugeMetric,
    MetricsRegistry,
    MetricType,
    active_scopes_gauge,
    format_prometheus_metrics,
    get_metrics_summary,
    get_registry,
)

__all__ = [
    "CounterMetric",
    "GaugeMetric",
    "MetricType",
    "MetricsRegistry",
    "active_scopes_gauge",
    "format_prometheus_metrics",
    "get_metrics_summary",
    "get_registry",
]
