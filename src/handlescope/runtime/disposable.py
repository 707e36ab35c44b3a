"""
Capabilities a resource must offer to be tracked by dispose scopes.

Any object with ``release()`` can be registered on a scope. Objects that also
carry an ``owning_scope`` slot get their back-reference kept in sync by the
scope, so they can find and notify their scope when released directly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from handlescope.runtime.dispose_scope import DisposeScope


@runtime_checkable
class Releasable(Protocol):
    """Protocol for resources wrapping an externally owned handle."""

    def release(self) -> None:
        """Release the underlying handle. Calling it again must be a no-op."""
        ...


@runtime_checkable
class ScopeTracked(Releasable, Protocol):
    """Protocol for resources that keep a back-reference to their scope.

    ``owning_scope`` is written only by DisposeScope bookkeeping. It must not
    keep the scope alive.
    """

    owning_scope: Optional[DisposeScope]


def set_owning_scope(resource: Any, scope: Optional[DisposeScope]) -> None:
    """Point ``resource`` at ``scope`` if it carries a back-reference slot."""
    if isinstance(resource, ScopeTracked):
        resource.owning_scope = scope


def get_owning_scope(resource: Any) -> Optional[DisposeScope]:
    if isinstance(resource, ScopeTracked):
        return resource.owning_scope
    return None


def is_invalid(resource: Any) -> bool:
    """True when the resource reports its native handle is already gone.

    ``is_invalid`` may be an attribute, a property or a zero-argument method.
    """
    flag = getattr(resource, "is_invalid", False)
    if callable(flag):
        flag = flag()
    return bool(flag)
