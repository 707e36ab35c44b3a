from collections.abc import Callable

import pytest

from handlescope.config.environment import Environment
from handlescope.runtime.dispose_scope_manager import DisposeScopeManager
from handlescope.runtime.scoped_handle import ScopedHandle
from handlescope.runtime.statistics import StatisticsSnapshot, get_statistics


@pytest.fixture(autouse=True)
def isolate_dispose_scopes(request, monkeypatch):
    """Keep settings away from the user's home dir and end scopes a test leaked."""
    if request.node.get_closest_marker("no_setup"):
        yield
        return

    monkeypatch.setattr(Environment, "settings", {})
    monkeypatch.delenv("DISPOSE_SCOPE_OUT_OF_ORDER", raising=False)
    yield

    manager = DisposeScopeManager.thread_singleton()
    for scope in reversed(list(manager.dispose_scope_stack)):
        scope.end_scope()


@pytest.fixture
def manager() -> DisposeScopeManager:
    return DisposeScopeManager.thread_singleton()


@pytest.fixture
def released() -> list:
    """Handles passed to the releaser of handles built by ``make_handle``."""
    return []


@pytest.fixture
def make_handle(released) -> Callable[..., ScopedHandle]:
    counter = iter(range(1_000_000))

    def factory(handle=None, *, track: bool = True) -> ScopedHandle:
        if handle is None:
            handle = f"native-{next(counter)}"
        return ScopedHandle(handle, released.append, track=track)

    return factory


@pytest.fixture
def stats_delta() -> Callable[[], StatisticsSnapshot]:
    """Return a callable giving the statistics growth since the fixture was created."""
    before = get_statistics().snapshot()

    def delta() -> StatisticsSnapshot:
        return get_statistics().snapshot().since(before)

    return delta
