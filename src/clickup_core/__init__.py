"""ClickUp hierarchy core - cached name resolution for workspace entities.

Modules:
- models: HierarchyNode, NodeKind and ScopeKey
- tree: HierarchyTree snapshots
- client: remote fetches of container children
- cache: single-flight HierarchyCache and its invalidation protocol
- resolver: NameResolver, ParentResolver and their result variants
- context: process-wide wiring used by the MCP server
- errors: resolution error taxonomy
"""

__version__ = "1.0.0"

from .cache import CacheEntry, HierarchyCache
from .client import HierarchyClient
from .context import HierarchyContext
from .errors import (
    AmbiguousNameError,
    HierarchyError,
    InvalidHierarchyError,
    InvalidScopeError,
    MissingParentError,
    NotFoundError,
    UpstreamError,
)
from .models import HierarchyNode, NodeKind, ScopeKey
from .resolver import Ambiguous, ById, ByName, Found, NameResolver, NotFound, ParentResolver
from .tree import HierarchyTree

__all__ = [
    "Ambiguous",
    "AmbiguousNameError",
    "ById",
    "ByName",
    "CacheEntry",
    "Found",
    "HierarchyCache",
    "HierarchyClient",
    "HierarchyContext",
    "HierarchyError",
    "HierarchyNode",
    "HierarchyTree",
    "InvalidHierarchyError",
    "InvalidScopeError",
    "MissingParentError",
    "NameResolver",
    "NodeKind",
    "NotFound",
    "NotFoundError",
    "ParentResolver",
    "ScopeKey",
    "UpstreamError",
    "__version__",
]
