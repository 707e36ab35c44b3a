"""
Process-wide dispose statistics.

The counters are created once in the global metrics registry and only ever
grow. Nothing here resets them; callers that need per-test or per-run numbers
take a ``snapshot()`` before and after and diff the two.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from handlescope.observability.metrics import CounterMetric, MetricsRegistry, get_registry


class StatisticsSnapshot(BaseModel):
    """Immutable point-in-time copy of the dispose counters."""

    model_config = ConfigDict(frozen=True)

    disposed_in_scope_count: int = 0
    detached_from_scope_count: int = 0
    registered_in_scope_count: int = 0
    registered_outside_scope_count: int = 0

    def since(self, earlier: StatisticsSnapshot) -> StatisticsSnapshot:
        """Return how much each counter grew between ``earlier`` and this snapshot."""
        return StatisticsSnapshot(
            disposed_in_scope_count=self.disposed_in_scope_count - earlier.disposed_in_scope_count,
            detached_from_scope_count=self.detached_from_scope_count - earlier.detached_from_scope_count,
            registered_in_scope_count=self.registered_in_scope_count - earlier.registered_in_scope_count,
            registered_outside_scope_count=(
                self.registered_outside_scope_count - earlier.registered_outside_scope_count
            ),
        )


class DisposeStatistics:
    """Counters recording what dispose scopes did with their resources."""

    def __init__(self, registry: MetricsRegistry) -> None:
        self._disposed_in_scope: CounterMetric = registry.counter(
            "handlescope_disposed_in_scope_total",
            description="Resources released while owned by a dispose scope",
        )
        self._detached_from_scope: CounterMetric = registry.counter(
            "handlescope_detached_from_scope_total",
            description="Resources removed from all dispose scope tracking",
        )
        self._registered_in_scope: CounterMetric = registry.counter(
            "handlescope_registered_in_scope_total",
            description="Resources auto-registered on an active dispose scope",
        )
        self._registered_outside_scope: CounterMetric = registry.counter(
            "handlescope_registered_outside_scope_total",
            description="Resources created while no dispose scope was active",
        )

    @property
    def disposed_in_scope_count(self) -> int:
        return self._disposed_in_scope.get_value()

    @property
    def detached_from_scope_count(self) -> int:
        return self._detached_from_scope.get_value()

    @property
    def registered_in_scope_count(self) -> int:
        return self._registered_in_scope.get_value()

    @property
    def registered_outside_scope_count(self) -> int:
        return self._registered_outside_scope.get_value()

    def record_disposed_in_scope(self) -> None:
        self._disposed_in_scope.increment()

    def record_detached_from_scope(self) -> None:
        self._detached_from_scope.increment()

    def record_registered_in_scope(self) -> None:
        self._registered_in_scope.increment()

    def record_registered_outside_scope(self) -> None:
        self._registered_outside_scope.increment()

    def snapshot(self) -> StatisticsSnapshot:
        return StatisticsSnapshot(
            disposed_in_scope_count=self.disposed_in_scope_count,
            detached_from_scope_count=self.detached_from_scope_count,
            registered_in_scope_count=self.registered_in_scope_count,
            registered_outside_scope_count=self.registered_outside_scope_count,
        )


_statistics = DisposeStatistics(get_registry())


def get_statistics() -> DisposeStatistics:
    """Return the process-wide dispose statistics."""
    return _statistics
