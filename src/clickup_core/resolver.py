"""Name to identifier resolution over the hierarchy cache.

Matching policy:
1. Exact, case-sensitive name match.
2. Only if no exact match exists: case-insensitive match (logged).
3. One match in the deciding tier is Found; several are Ambiguous and carry
   every candidate; none is NotFound. Tiers are never mixed and the
   resolver never picks among ambiguous candidates.

ParentResolver is the single place where tool arguments of the form
(parentType, parentId, parentName) become a container id.
"""
import logging
from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel, ConfigDict

from .cache import HierarchyCache
from .errors import AmbiguousNameError, InvalidScopeError, MissingParentError, NotFoundError
from .models import HierarchyNode, NodeKind, ScopeKey

logger = logging.getLogger("clickup-core.resolver")


# ============================================================================
# Resolution results
# ============================================================================

class Found(BaseModel):
    node: HierarchyNode

    model_config = ConfigDict(frozen=True)

    def unwrap(self) -> HierarchyNode:
        return self.node


class NotFound(BaseModel):
    kind: str
    name: str
    scope: str

    model_config = ConfigDict(frozen=True)

    def unwrap(self) -> HierarchyNode:
        raise NotFoundError(self.kind, self.name, self.scope)


class Ambiguous(BaseModel):
    kind: str
    name: str
    scope: str
    candidates: tuple[HierarchyNode, ...]

    model_config = ConfigDict(frozen=True)

    def unwrap(self) -> HierarchyNode:
        raise AmbiguousNameError(self.kind, self.name, list(self.candidates))


ResolveResult = Union[Found, NotFound, Ambiguous]


def match_name(
    candidates: Iterable[HierarchyNode],
    name: str,
    kind: str = "entity",
    scope: str = "",
    case_insensitive_fallback: bool = True,
) -> ResolveResult:
    """Apply the exact-then-case-insensitive matching policy to candidates."""
    candidates = list(candidates)
    matches = [node for node in candidates if node.name == name]

    if not matches and case_insensitive_fallback:
        folded = name.casefold()
        matches = [node for node in candidates if node.name.casefold() == folded]
        if matches:
            logger.info(
                f'No exact {kind} match for "{name}" in {scope or "scope"}, '
                f"using case-insensitive match ({len(matches)} found)"
            )

    if not matches:
        return NotFound(kind=kind, name=name, scope=scope)
    if len(matches) > 1:
        logger.warning(
            f'{kind.capitalize()} name "{name}" is ambiguous in {scope or "scope"}: '
            f"{[node.id for node in matches]}"
        )
        return Ambiguous(kind=kind, name=name, scope=scope, candidates=tuple(matches))
    return Found(node=matches[0])


class NameResolver:
    """Resolves names within one cached scope."""

    def __init__(self, cache: HierarchyCache, case_insensitive_fallback: bool = True):
        self.cache = cache
        self.case_insensitive_fallback = case_insensitive_fallback

    def match(
        self,
        candidates: Iterable[HierarchyNode],
        name: str,
        kind: Optional[NodeKind] = None,
        scope: str = "",
    ) -> ResolveResult:
        label = kind.value if kind is not None else "entity"
        return match_name(candidates, name, label, scope, self.case_insensitive_fallback)

    async def resolve_by_name(self, scope_key: Any, name: str, kind: Optional[NodeKind] = None) -> ResolveResult:
        """Match name against the direct children held by a scope."""
        scope = ScopeKey.parse(scope_key)
        kind = kind or scope.child_kind
        tree = await self.cache.get_scope(scope)
        return self.match(tree.children(kind=kind), name, kind, str(scope))

    async def find_by_name(
        self,
        parent_id: str,
        parent_kind: Any,
        name: str,
        kind: NodeKind = NodeKind.VIEW,
    ) -> HierarchyNode:
        """Find a named leaf (a view by default) inside one known container.

        Raises:
            NotFoundError: If nothing in the container matches
            AmbiguousNameError: If several entities match
        """
        scope = ScopeKey.of(parent_kind, parent_id, kind)
        result = await self.resolve_by_name(scope, name, kind)
        return result.unwrap()


# ============================================================================
# Parent references
# ============================================================================

class ById(BaseModel):
    id: str

    model_config = ConfigDict(frozen=True)


class ByName(BaseModel):
    name: str

    model_config = ConfigDict(frozen=True)


ParentRef = Union[ById, ByName]


def parent_ref(
    parent_type: Any,
    parent_id: Optional[str] = None,
    parent_name: Optional[str] = None,
    id_param: str = "parentId",
    name_param: str = "parentName",
) -> ParentRef:
    """Turn an optional id/name pair into an explicit reference.

    The id wins when both are given. Empty strings count as missing.

    Raises:
        MissingParentError: If neither is provided
    """
    if parent_id:
        return ById(id=str(parent_id))
    if parent_name:
        return ByName(name=parent_name)
    label = parent_type.value if isinstance(parent_type, NodeKind) else str(parent_type)
    raise MissingParentError(label, id_param, name_param)


class ParentResolver:
    """Resolves (parentType, parentId, parentName) to a container id.

    Args:
        cache: Shared hierarchy cache
        names: Name resolver carrying the matching policy
        workspace_id: Id of the configured workspace (the hierarchy root)
    """

    def __init__(self, cache: HierarchyCache, names: NameResolver, workspace_id: str):
        self.cache = cache
        self.names = names
        self.workspace_id = workspace_id

    async def resolve(
        self,
        parent_type: Any,
        parent_id: Optional[str] = None,
        parent_name: Optional[str] = None,
    ) -> str:
        """Return the id of the referenced parent container.

        Ids are returned unchanged without an existence check; an invalid id
        surfaces on the subsequent remote call.

        Raises:
            InvalidScopeError: If parent_type is not a container kind
            MissingParentError: If neither parent_id nor parent_name is given
            NotFoundError: If the name matches nothing
            AmbiguousNameError: If the name matches several containers
            UpstreamError: If a hierarchy fetch fails
        """
        kind = NodeKind.parse(parent_type)
        if kind == NodeKind.WORKSPACE:
            return self.workspace_id
        if kind == NodeKind.VIEW:
            raise InvalidScopeError(kind.value, "views cannot be parents")

        ref = parent_ref(kind, parent_id, parent_name)
        if isinstance(ref, ById):
            return ref.id

        node = await self.find(kind, ref.name)
        logger.info(f'Resolved {kind.value} "{ref.name}" to {node.id}')
        return node.id

    async def lookup(self, kind: Any, name: str) -> ResolveResult:
        """Match a container name across the whole workspace.

        Spaces are searched among the workspace's direct children. Folders
        and lists are searched across every space, since callers may not
        know which space holds them; lists include folderless ones.
        """
        kind = NodeKind.parse(kind)
        if kind == NodeKind.SPACE:
            scope = ScopeKey.of(NodeKind.WORKSPACE, self.workspace_id, NodeKind.SPACE)
            return await self.names.resolve_by_name(scope, name, kind)
        if kind not in (NodeKind.FOLDER, NodeKind.LIST):
            raise InvalidScopeError(kind.value, "only spaces, folders and lists are looked up by name")

        tree = await self.cache.load_workspace(self.workspace_id, include_lists=kind == NodeKind.LIST)
        return self.names.match(tree.nodes(kind), name, kind, f"workspace:{self.workspace_id}")

    async def find(self, kind: Any, name: str) -> HierarchyNode:
        """Like lookup(), but returns the node or raises."""
        result = await self.lookup(kind, name)
        return result.unwrap()
