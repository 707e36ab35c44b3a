"""
Runtime resource management module.

Dispose scopes own externally allocated resources and release them when they
end. Scopes nest on a per-thread stack kept by DisposeScopeManager.
"""

from handlescope.runtime.disposable import Releasable, ScopeTracked
from handlescope.runtime.dispose_scope import DisposeScope
from handlescope.runtime.dispose_scope_manager import (
    DisposeScopeManager,
    maybe_scope,
    new_dispose_scope,
    require_scope,
    wrapped_dispose_scope,
)
from handlescope.runtime.identity import IdentitySet
from handlescope.runtime.scoped_handle import ScopedHandle
from handlescope.runtime.statistics import DisposeStatistics, StatisticsSnapshot, get_statistics

__all__ = [
    "DisposeScope",
    "DisposeScopeManager",
    "DisposeStatistics",
    "IdentitySet",
    "Releasable",
    "ScopeTracked",
    "ScopedHandle",
    "StatisticsSnapshot",
    "get_statistics",
    "maybe_scope",
    "new_dispose_scope",
    "require_scope",
    "wrapped_dispose_scope",
]
