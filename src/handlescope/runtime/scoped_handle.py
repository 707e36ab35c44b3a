"""
Base wrapper for opaque native handles that take part in dispose scopes.

Library code that hands out native objects (tensors, modules, optimizer state)
subclasses ScopedHandle, or wraps the raw handle in one, and passes the native
free function as ``releaser``.
"""

from __future__ import annotations

import weakref
from collections.abc import Callable
from typing import Any, Generic, Optional, TypeVar

from handlescope.runtime.dispose_scope import DisposeScope
from handlescope.runtime.dispose_scope_manager import DisposeScopeManager

H = TypeVar("H")


class ScopedHandle(Generic[H]):
    """Owns one native handle and releases it exactly once.

    On construction the handle registers itself on the calling thread's
    current dispose scope, unless ``track=False``. Releasing it directly
    tells that scope, so the scope will not release it a second time.

    Args:
        handle: The opaque native handle.
        releaser: Called with the handle on the first ``release()``.
        track: Register on the current dispose scope.
    """

    def __init__(
        self,
        handle: H,
        releaser: Optional[Callable[[H], None]] = None,
        *,
        track: bool = True,
    ) -> None:
        self._handle: Optional[H] = handle
        self._releaser = releaser
        self._released = False
        self._owning_scope_ref: Optional[weakref.ReferenceType[DisposeScope]] = None
        if track:
            DisposeScopeManager.thread_singleton().register_on_current_scope(self)

    @property
    def owning_scope(self) -> Optional[DisposeScope]:
        """The scope currently responsible for releasing this handle."""
        if self._owning_scope_ref is None:
            return None
        return self._owning_scope_ref()

    @owning_scope.setter
    def owning_scope(self, scope: Optional[DisposeScope]) -> None:
        self._owning_scope_ref = weakref.ref(scope) if scope is not None else None

    @property
    def is_invalid(self) -> bool:
        return self._released

    @property
    def handle(self) -> H:
        if self._released:
            raise ValueError(f"{type(self).__name__} has already been released")
        return self._handle  # type: ignore[return-value]

    def release(self) -> None:
        if self._released:
            return
        self._released = True

        scope = self.owning_scope
        if scope is not None:
            scope.mark_disposed(self)

        handle, self._handle = self._handle, None
        if self._releaser is not None:
            self._releaser(handle)

    def move_to_outer_scope(self) -> ScopedHandle[H]:
        """Hand this handle to the enclosing scope of its current owner."""
        scope = self.owning_scope
        if scope is not None:
            scope.move_to_outer(self)
        return self

    def detach_from_scope(self) -> ScopedHandle[H]:
        """Stop all scope tracking; the caller must release the handle."""
        scope = self.owning_scope
        if scope is not None:
            scope.detach(self)
        return self

    def __enter__(self) -> ScopedHandle[H]:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "released" if self._released else f"handle={self._handle!r}"
        return f"<{type(self).__name__} {state}>"
