"""
Dispose scopes: bounded-lifetime owners of externally allocated resources.

A DisposeScope keeps track of every resource registered on it and releases
whatever it still owns when the scope ends. Scopes nest; the nesting itself is
managed by DisposeScopeManager, one per thread.

Usage:
    manager = DisposeScopeManager.thread_singleton()
    with manager.new_dispose_scope() as scope:
        a = make_tensor()          # auto-registered on ``scope``
        b = make_tensor()
        scope.move_to_outer(b)     # ``b`` outlives this scope
    # ``a`` has been released here
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Optional, TypeVar

from handlescope.config.logging_config import get_logger
from handlescope.runtime.disposable import get_owning_scope, is_invalid, set_owning_scope
from handlescope.runtime.identity import IdentitySet
from handlescope.runtime.statistics import DisposeStatistics, get_statistics

if TYPE_CHECKING:
    from handlescope.runtime.dispose_scope_manager import DisposeScopeManager

log = get_logger(__name__)

R = TypeVar("R")


def _fluent(resources: tuple[Any, ...]) -> Any:
    """Return a lone argument as-is and several as a tuple."""
    if len(resources) == 1:
        return resources[0]
    return resources


class DisposeScope:
    """Tracks the resources created or registered while the scope is active.

    Membership is by object identity. A resource belongs to at most one scope
    at a time; resources carrying an ``owning_scope`` slot always point at the
    scope that holds them.
    """

    def __init__(self, dispose_scope_manager: DisposeScopeManager) -> None:
        """Create a scope nested inside the manager's current scope and push it.

        Args:
            dispose_scope_manager: The manager owning the scope stack of the
                calling thread.

        Raises:
            ValueError: If no manager is given.
        """
        if dispose_scope_manager is None:
            raise ValueError("dispose_scope_manager is required to create a DisposeScope")

        self._dispose_scope_manager = dispose_scope_manager
        self._outer_scope: Optional[DisposeScope] = dispose_scope_manager.current_scope
        self._owned: IdentitySet[Any] = IdentitySet()
        self._ended = False
        dispose_scope_manager.push_dispose_scope(self)

    @property
    def outer_scope(self) -> Optional[DisposeScope]:
        """The scope that was current when this one was created."""
        return self._outer_scope

    @property
    def statistics(self) -> DisposeStatistics:
        return get_statistics()

    @property
    def disposables_view(self) -> list[Any]:
        """A snapshot of the tracked resources. Not kept in sync with the scope."""
        return list(self._owned)

    @property
    def disposables_count(self) -> int:
        return len(self._owned)

    def __len__(self) -> int:
        return len(self._owned)

    def __contains__(self, resource: object) -> bool:
        return resource in self._owned

    def contains(self, resource: Any) -> bool:
        """Check whether this scope currently tracks ``resource``."""
        return resource in self._owned

    def register(self, resource: R) -> R:
        """Include a resource in the scope.

        Resources created by ScopedHandle subclasses are registered
        automatically; call this for other releasable objects. A resource
        owned by another scope is taken over from it.
        """
        previous = get_owning_scope(resource)
        if previous is not None and previous is not self:
            previous._owned.discard(resource)
        elif previous is None:
            # No back-reference to follow, so check every scope on this thread
            for scope in self._dispose_scope_manager.dispose_scope_stack:
                if scope is not self:
                    scope._owned.discard(resource)
        self._owned.add(resource)
        set_owning_scope(resource, self)
        return resource

    def move_to_outer(self, *resources: Any) -> Any:
        """Move resources owned by this scope to the outer scope.

        Without an outer scope they end up detached from all scopes. Resources
        this scope does not own are skipped. Returns the single argument, or
        the tuple of arguments when several are given.
        """
        self.move_all_to_outer(resources)
        return _fluent(resources)

    def move_all_to_outer(self, resources: Iterable[Any]) -> None:
        for resource in resources:
            if self._owned.remove_if_present(resource):
                self._add_to_parent(resource)

    def detach(self, *resources: Any) -> Any:
        """Remove resources from all scope tracking.

        Releasing them becomes the caller's job. Resources this scope does not
        own are skipped. Same return convention as ``move_to_outer``.
        """
        self.detach_all(resources)
        return _fluent(resources)

    def detach_all(self, resources: Iterable[Any]) -> None:
        for resource in resources:
            if self._owned.remove_if_present(resource):
                self.statistics.record_detached_from_scope()
                set_owning_scope(resource, None)

    def dispose_everything(self) -> None:
        """Release every resource currently tracked by the scope."""
        self.dispose_everything_but_all(())

    def dispose_everything_but(self, *keep: Any) -> Any:
        """Release everything tracked except ``keep``, without ending the scope.

        Kept resources stay owned by this scope; ones it did not own are not
        adopted. Same return convention as ``move_to_outer``.
        """
        self.dispose_everything_but_all(keep)
        return _fluent(keep) if keep else None

    def dispose_everything_but_all(self, keep: Iterable[Any]) -> None:
        previous = self._owned
        # Swap before releasing so mark_disposed calls made by release() see the new set
        self._owned = IdentitySet(resource for resource in keep if resource in previous)

        doomed = [resource for resource in previous if resource not in self._owned]

        first_error: Optional[BaseException] = None
        for resource in doomed:
            set_owning_scope(resource, None)
            if not is_invalid(resource):
                self.statistics.record_disposed_in_scope()

            try:
                resource.release()
            except Exception as e:
                log.error(f"Error releasing {resource!r} from dispose scope: {e}")
                if first_error is None:
                    first_error = e

        if first_error is not None:
            raise first_error

    def mark_disposed(self, resource: Any) -> None:
        """Notify the scope that a tracked resource was released elsewhere.

        ScopedHandle calls this from ``release()``. Owners of custom resources
        that release them manually should call it too. Unknown resources are
        ignored.
        """
        if self._owned.remove_if_present(resource):
            self.statistics.record_disposed_in_scope()
            set_owning_scope(resource, None)

    def end_scope(self) -> None:
        """Release everything still owned and pop the scope off its stack.

        Calling it again is harmless.
        """
        self._ended = True
        log.debug(f"Ending dispose scope with {len(self._owned)} tracked resources")
        try:
            self.dispose_everything()
        finally:
            self._dispose_scope_manager.remove_dispose_scope(self)

    def dispose(self) -> None:
        self.end_scope()

    def __enter__(self) -> DisposeScope:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.end_scope()

    def _live_outer_scope(self) -> Optional[DisposeScope]:
        """The nearest enclosing scope that has not been ended yet."""
        scope = self._outer_scope
        while scope is not None and scope._ended:
            scope = scope._outer_scope
        return scope

    def _add_to_parent(self, resource: Any) -> None:
        parent = self._live_outer_scope()
        if parent is not None:
            parent._owned.add(resource)
        else:
            self.statistics.record_detached_from_scope()
        set_owning_scope(resource, parent)

    def __repr__(self) -> str:
        return f"<DisposeScope tracked={len(self._owned)} nested={self._outer_scope is not None}>"

