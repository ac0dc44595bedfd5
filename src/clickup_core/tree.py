"""In-memory snapshot of a fetched part of the hierarchy.

A tree is built wholesale from flat node sequences and never patched in
place. The cache replaces whole trees on refresh, so readers holding a
reference always see a complete snapshot.
"""
from typing import Iterable, Iterator, Optional

from .errors import InvalidHierarchyError
from .models import HierarchyNode, NodeKind, ScopeKey


class HierarchyTree:
    """Id and parent indexes over an immutable set of nodes.

    The root is the container the nodes were fetched for. It is named by id
    only and is not itself a node of the tree.
    """

    __slots__ = ("root_id", "_nodes", "_children")

    def __init__(self, root_id: str, nodes: Iterable[HierarchyNode]):
        self.root_id = root_id
        by_id: dict[str, HierarchyNode] = {}
        children: dict[str, list[str]] = {}

        for node in nodes:
            if node.id in by_id:
                raise InvalidHierarchyError(f"Duplicate node id {node.id} under root {root_id}")
            if node.id == root_id:
                raise InvalidHierarchyError(f"Node {node.id} reuses the root id")
            by_id[node.id] = node
            children.setdefault(node.parent_id, []).append(node.id)

        for node in by_id.values():
            if node.parent_id != root_id and node.parent_id not in by_id:
                raise InvalidHierarchyError(
                    f"{node.kind.value} {node.id} has unknown parent {node.parent_id}"
                )

        self._nodes = by_id
        self._children = {parent: tuple(ids) for parent, ids in children.items()}
        self._check_acyclic()

    def _check_acyclic(self) -> None:
        reaches_root: set[str] = set()
        for start in self._nodes:
            path: list[str] = []
            seen: set[str] = set()
            current: Optional[str] = start
            while current != self.root_id and current not in reaches_root:
                if current in seen:
                    raise InvalidHierarchyError(f"Cycle detected at node {current}")
                seen.add(current)
                path.append(current)
                current = self._nodes[current].parent_id
            reaches_root.update(path)

    @classmethod
    def from_scope(cls, scope: ScopeKey, nodes: Iterable[HierarchyNode]) -> "HierarchyTree":
        return cls(scope.container_id, nodes)

    @classmethod
    def merge(cls, root_id: str, trees: Iterable["HierarchyTree"]) -> "HierarchyTree":
        """Combine several snapshots into one, re-validating the result.

        The inputs must be ordered so that parents come before children for
        the result to keep a meaningful insertion order.
        """
        nodes: list[HierarchyNode] = []
        for tree in trees:
            nodes.extend(tree)
        return cls(root_id, nodes)

    def get(self, node_id: str) -> Optional[HierarchyNode]:
        return self._nodes.get(node_id)

    def children(self, parent_id: Optional[str] = None, kind: Optional[NodeKind] = None) -> list[HierarchyNode]:
        """Children of a node in remote order; the root's when parent_id is None."""
        parent = self.root_id if parent_id is None else parent_id
        nodes = [self._nodes[child_id] for child_id in self._children.get(parent, ())]
        if kind is not None:
            nodes = [node for node in nodes if node.kind == kind]
        return nodes

    def nodes(self, kind: Optional[NodeKind] = None) -> list[HierarchyNode]:
        if kind is None:
            return list(self._nodes.values())
        return [node for node in self._nodes.values() if node.kind == kind]

    def ancestors(self, node_id: str) -> list[HierarchyNode]:
        """Nodes from the parent of node_id up to (not including) the root."""
        result: list[HierarchyNode] = []
        node = self._nodes.get(node_id)
        while node is not None and node.parent_id != self.root_id:
            node = self._nodes.get(node.parent_id)
            if node is not None:
                result.append(node)
        return result

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[HierarchyNode]:
        return iter(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return f"HierarchyTree(root_id={self.root_id!r}, nodes={len(self._nodes)})"
