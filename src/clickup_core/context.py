"""Process-wide wiring of the hierarchy cache and resolvers."""
import logging
from typing import Optional

import httpx

from .cache import HierarchyCache
from .client import HierarchyClient
from .resolver import NameResolver, ParentResolver

logger = logging.getLogger("clickup-core.context")


class HierarchyContext:
    """Everything a tool handler needs to identify entities.

    One instance lives for the whole process. All access to cached hierarchy
    state goes through ``cache`` so the concurrency discipline stays in one
    place.
    """

    def __init__(
        self,
        cache: HierarchyCache,
        workspace_id: str,
        case_insensitive_fallback: bool = True,
    ):
        self.cache = cache
        self.workspace_id = workspace_id
        self.names = NameResolver(cache, case_insensitive_fallback=case_insensitive_fallback)
        self.parents = ParentResolver(cache, self.names, workspace_id)

    @classmethod
    def create(
        cls,
        http: httpx.AsyncClient,
        workspace_id: str,
        max_age: Optional[float] = None,
        case_insensitive_fallback: bool = True,
    ) -> "HierarchyContext":
        cache = HierarchyCache(HierarchyClient(http), max_age=max_age)
        logger.info(
            f"Hierarchy cache ready for workspace {workspace_id} "
            f"(max_age={max_age}, case_insensitive_fallback={case_insensitive_fallback})"
        )
        return cls(cache, workspace_id, case_insensitive_fallback)
