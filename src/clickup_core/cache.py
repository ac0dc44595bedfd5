"""Process-wide hierarchy cache with single-flight population.

Each container level is cached independently and lazily under its own
ScopeKey; there is no global tree. Entries are immutable and are swapped
in or dropped as a whole, so a reader holding a tree never observes a
partial update.

Consistency protocol:
- A miss starts one fetch per scope; concurrent misses wait on the same
  fetch (single-flight) and all receive its result.
- Mutation code calls invalidate() for every scope whose membership could
  have changed, right after the remote mutation succeeds. The cache does not
  infer ancestor scopes on its own.
- Invalidation also detaches any fetch in flight for the scope, so a fetch
  started before the mutation can never store its now-stale result.
- Failed fetches are not stored; the error reaches every waiter and the
  scope stays empty for the next caller to retry.
- With max_age set, entries live in a cachetools TTLCache and expire on
  their own; expiry only drops the entry, the next read refetches it.

Everything runs on one asyncio event loop. Mapping updates happen between
awaits, which makes each entry swap atomic for concurrent coroutines without
a lock that would serialise unrelated scopes.
"""
import asyncio
import logging
import time
from typing import Any, Callable, Optional

from cachetools import Cache, TTLCache
from pydantic import BaseModel, ConfigDict

from .client import HierarchyClient
from .models import HierarchyNode, NodeKind, ScopeKey
from .tree import HierarchyTree

logger = logging.getLogger("clickup-core.cache")

# Upper bound on cached scopes; the oldest scopes are evicted first
MAX_ENTRIES = 4096


class CacheEntry(BaseModel):
    """A fetched snapshot for one scope."""

    scope_key: ScopeKey
    tree: HierarchyTree
    fetched_at: float  # cache timer reading at store time

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class _Flight:
    """A fetch in progress and the number of callers waiting on it."""

    __slots__ = ("task", "waiters")

    def __init__(self) -> None:
        self.task: Optional[asyncio.Task] = None
        self.waiters = 0


class HierarchyCache:
    """Caches HierarchyTree snapshots by scope key.

    Args:
        client: Source of remote children (a HierarchyClient or any object
            with a compatible ``fetch_scope`` coroutine)
        max_age: Optional staleness window in seconds. Entries older than
            this expire and are refetched on access. None disables
            time-based expiry.
        max_entries: Maximum number of cached scopes
        timer: Clock used for entry ages (defaults to time.monotonic)
    """

    def __init__(
        self,
        client: HierarchyClient,
        max_age: Optional[float] = None,
        max_entries: int = MAX_ENTRIES,
        timer: Callable[[], float] = time.monotonic,
    ):
        self._client = client
        self.max_age = max_age
        self._timer = timer
        if max_age is None:
            self._entries: Cache = Cache(maxsize=max_entries)
        else:
            self._entries = TTLCache(maxsize=max_entries, ttl=max_age, timer=timer)
        self._flights: dict[ScopeKey, _Flight] = {}
        self._counters = {
            "hits": 0,
            "misses": 0,
            "coalesced": 0,
            "fetches": 0,
            "failures": 0,
            "invalidations": 0,
        }

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def peek(self, scope_key: Any) -> Optional[CacheEntry]:
        """Return the current entry for a scope without fetching."""
        return self._entries.get(ScopeKey.parse(scope_key))

    def _fresh_entry(self, scope: ScopeKey) -> Optional[CacheEntry]:
        # TTLCache hides entries older than max_age
        return self._entries.get(scope)

    async def get_scope(self, scope_key: Any) -> HierarchyTree:
        """Return the tree for a scope, fetching it at most once per miss.

        Raises:
            InvalidScopeError: If the scope key is malformed
            UpstreamError: If the remote fetch fails
        """
        scope = ScopeKey.parse(scope_key)
        entry = self._fresh_entry(scope)
        if entry is not None:
            self._counters["hits"] += 1
            logger.debug(f"Cache hit for {scope}")
            return entry.tree

        flight = self._flights.get(scope)
        if flight is None:
            self._counters["misses"] += 1
            flight = _Flight()
            flight.task = asyncio.get_running_loop().create_task(self._fill(scope, flight))
            self._flights[scope] = flight
        else:
            self._counters["coalesced"] += 1
            logger.debug(f"Joining in-flight fetch for {scope}")
        return await self._wait(scope, flight)

    async def _fill(self, scope: ScopeKey, flight: _Flight) -> HierarchyTree:
        self._counters["fetches"] += 1
        try:
            nodes = await self._client.fetch_scope(scope)
            tree = HierarchyTree.from_scope(scope, nodes)
        except asyncio.CancelledError:
            logger.info(f"Fetch for {scope} cancelled, every waiter left")
            raise
        except Exception:
            self._counters["failures"] += 1
            raise
        finally:
            current = self._flights.get(scope)
            if current is flight:
                del self._flights[scope]

        if current is flight:
            self._entries[scope] = CacheEntry(scope_key=scope, tree=tree, fetched_at=self._timer())
            logger.info(f"Cached {len(tree)} nodes for {scope}")
        else:
            # Invalidated while fetching; the waiters still get this result
            logger.info(f"Discarding fetch for {scope} superseded by invalidation")
        return tree

    async def _wait(self, scope: ScopeKey, flight: _Flight) -> HierarchyTree:
        flight.waiters += 1
        try:
            # shield: one waiter giving up must not cancel the shared fetch
            return await asyncio.shield(flight.task)
        except asyncio.CancelledError:
            if flight.waiters == 1 and not flight.task.done():
                if self._flights.get(scope) is flight:
                    del self._flights[scope]
                flight.task.cancel()
            raise
        finally:
            flight.waiters -= 1

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    def invalidate(self, scope_key: Any) -> bool:
        """Drop a scope's entry and detach its in-flight fetch.

        Returns True if anything was cached or in flight for the scope.
        """
        scope = ScopeKey.parse(scope_key)
        had_entry = self._entries.pop(scope, None) is not None
        had_flight = self._flights.pop(scope, None) is not None
        self._counters["invalidations"] += 1
        logger.info(f"Invalidated {scope} (cached={had_entry}, in_flight={had_flight})")
        return had_entry or had_flight

    def invalidate_matching(self, predicate: Callable[[ScopeKey], bool]) -> list[ScopeKey]:
        """Invalidate every cached or in-flight scope the predicate selects."""
        scopes = [scope for scope in {*self._live_entries(), *self._flights} if predicate(scope)]
        for scope in scopes:
            self._entries.pop(scope, None)
            self._flights.pop(scope, None)
        self._counters["invalidations"] += len(scopes)
        if scopes:
            logger.info(f"Invalidated {len(scopes)} scopes: {', '.join(sorted(map(str, scopes)))}")
        return scopes

    def invalidate_all(self) -> None:
        """Clear every entry; used when a mutation's blast radius is unknown."""
        count = len(self._live_entries()) + len(self._flights)
        self._entries.clear()
        self._flights.clear()
        self._counters["invalidations"] += 1
        logger.info(f"Invalidated entire hierarchy cache ({count} scopes)")

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    async def load_workspace(self, workspace_id: str, include_lists: bool = True) -> HierarchyTree:
        """Assemble a workspace-wide snapshot of spaces, folders and lists.

        Built from the per-level scopes, so each level is fetched at most
        once and stays individually invalidatable. Independent scopes are
        fetched concurrently.
        """
        spaces_scope = ScopeKey.of(NodeKind.WORKSPACE, workspace_id, NodeKind.SPACE)
        spaces_tree = await self.get_scope(spaces_scope)
        spaces = spaces_tree.children()

        folder_scopes = [ScopeKey.of(NodeKind.SPACE, space.id, NodeKind.FOLDER) for space in spaces]
        folder_trees = await asyncio.gather(*(self.get_scope(scope) for scope in folder_scopes))
        scoped = [(spaces_scope, spaces_tree), *zip(folder_scopes, folder_trees)]

        if include_lists:
            folder_ids = dict.fromkeys(folder.id for tree in folder_trees for folder in tree)
            list_scopes = [
                *(ScopeKey.of(NodeKind.SPACE, space.id, NodeKind.LIST) for space in spaces),
                *(ScopeKey.of(NodeKind.FOLDER, folder_id, NodeKind.LIST) for folder_id in folder_ids),
            ]
            list_trees = await asyncio.gather(*(self.get_scope(scope) for scope in list_scopes))
            scoped.extend(zip(list_scopes, list_trees))

        return HierarchyTree(workspace_id, self._latest_nodes(scoped))

    def _latest_nodes(self, scoped: list[tuple[ScopeKey, HierarchyTree]]) -> list[HierarchyNode]:
        """Collect the nodes of several snapshots, keeping one node per id.

        Levels are refreshed independently, so an entity moved remotely can
        show up in two snapshots until the older one is refetched. The copy
        from the most recently fetched snapshot wins.
        """
        latest: dict[str, tuple[float, HierarchyNode]] = {}
        for scope, tree in scoped:
            entry = self._entries.get(scope)
            # A tree whose entry was invalidated mid-fetch is the newest data seen
            fetched_at = entry.fetched_at if entry is not None and entry.tree is tree else self._timer()
            for node in tree:
                current = latest.get(node.id)
                if current is not None:
                    if current[0] > fetched_at:
                        continue
                    if current[1] != node:
                        logger.warning(
                            f"{node.kind.value} {node.id} appears under {current[1].parent_id} and "
                            f"{node.parent_id}; keeping the copy from {scope}"
                        )
                latest[node.id] = (fetched_at, node)
        return [node for _, node in latest.values()]

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def _live_entries(self) -> Cache:
        if isinstance(self._entries, TTLCache):
            self._entries.expire()
        return self._entries

    def stats(self) -> dict:
        return {
            **self._counters,
            "cached_scopes": len(self._live_entries()),
            "in_flight": len(self._flights),
        }

    def scopes(self) -> list[ScopeKey]:
        return list(self._live_entries())
