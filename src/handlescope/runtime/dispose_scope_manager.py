"""
Per-thread stack of dispose scopes.

Each thread gets its own DisposeScopeManager through ``thread_singleton()``.
The top of its stack is the current scope, on which new resources register
themselves. Scopes never cross threads, so the stack needs no locking.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any, Optional, TypeVar

from handlescope.config.environment import Environment
from handlescope.config.logging_config import get_logger
from handlescope.observability.metrics import active_scopes_gauge
from handlescope.runtime.dispose_scope import DisposeScope
from handlescope.runtime.statistics import DisposeStatistics, get_statistics

log = get_logger(__name__)

R = TypeVar("R")


class DisposeScopeManager:
    """Owns the dispose scope stack of one thread."""

    _thread_local: threading.local = threading.local()

    def __init__(self) -> None:
        self.dispose_scope_stack: list[DisposeScope] = []

    @classmethod
    def thread_singleton(cls) -> DisposeScopeManager:
        """Return the calling thread's manager, creating it on first use."""
        manager = getattr(cls._thread_local, "manager", None)
        if manager is None:
            manager = cls()
            cls._thread_local.manager = manager
        return manager

    @property
    def statistics(self) -> DisposeStatistics:
        return get_statistics()

    @property
    def current_scope(self) -> Optional[DisposeScope]:
        """The innermost active scope, or None outside of any scope."""
        if self.dispose_scope_stack:
            return self.dispose_scope_stack[-1]
        return None

    def new_dispose_scope(self) -> DisposeScope:
        """Open a scope nested in the current one.

        Use it as a context manager, or call ``end_scope()`` when done.
        """
        return DisposeScope(self)

    def push_dispose_scope(self, scope: DisposeScope) -> None:
        """Make ``scope`` the current scope. Called by the DisposeScope constructor."""
        self.dispose_scope_stack.append(scope)
        active_scopes_gauge().increment()
        log.debug(f"Pushed dispose scope, depth is now {len(self.dispose_scope_stack)}")

    def remove_dispose_scope(self, scope: DisposeScope) -> None:
        """Take ``scope`` off the stack wherever it sits.

        Ending the innermost scope is the normal case. Ending an outer scope
        first is tolerated and reported according to the
        DISPOSE_SCOPE_OUT_OF_ORDER setting. A scope that is no longer on the
        stack is ignored.
        """
        stack = self.dispose_scope_stack
        if stack and stack[-1] is scope:
            stack.pop()
        else:
            index = next((i for i, s in enumerate(stack) if s is scope), None)
            if index is None:
                log.debug("Dispose scope already removed from the stack")
                return
            del stack[index]
            if Environment.get_out_of_order_policy() == "warn":
                log.warning(
                    f"Dispose scope ended out of order: {len(stack) - index} inner scope(s) are still active"
                )
        active_scopes_gauge().decrement()

    def register_on_current_scope(self, resource: Any) -> Optional[DisposeScope]:
        """Register a newly created resource on the current scope, if any.

        Returns the scope that took ownership, or None when no scope is active.
        """
        scope = self.current_scope
        if scope is None:
            self.statistics.record_registered_outside_scope()
            return None
        scope.register(resource)
        self.statistics.record_registered_in_scope()
        return scope


def new_dispose_scope() -> DisposeScope:
    """Open a dispose scope on the calling thread."""
    return DisposeScopeManager.thread_singleton().new_dispose_scope()


def maybe_scope() -> Optional[DisposeScope]:
    """Get the current dispose scope or None if none is active.

    Returns:
        The current DisposeScope or None
    """
    return DisposeScopeManager.thread_singleton().current_scope


def require_scope() -> DisposeScope:
    """Get the current dispose scope or raise if none is active.

    Returns:
        The current DisposeScope

    Raises:
        RuntimeError: If no scope is active on this thread
    """
    scope = maybe_scope()
    if scope is None:
        raise RuntimeError("No DisposeScope is currently active")
    return scope


def wrapped_dispose_scope(func: Callable[..., R], *args: Any, **kwargs: Any) -> R:
    """Run ``func`` in a fresh scope and keep only what it returns.

    A returned resource, or every resource in a returned tuple or list, is
    moved to the enclosing scope (or detached when there is none). Everything
    else registered during the call is released.

    Example:
        def step(x):
            tmp = x.exp()
            return tmp.add(1)

        result = wrapped_dispose_scope(step, x)   # ``tmp`` is already released
    """
    with new_dispose_scope() as scope:
        result = func(*args, **kwargs)
        if isinstance(result, (tuple, list)):
            scope.move_all_to_outer(result)
        else:
            scope.move_to_outer(result)
        return result
