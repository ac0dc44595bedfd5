"""Hierarchy node and scope key models."""
import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from .errors import InvalidScopeError


class NodeKind(str, enum.Enum):
    """Levels of the workspace hierarchy."""

    WORKSPACE = "workspace"
    SPACE = "space"
    FOLDER = "folder"
    LIST = "list"
    VIEW = "view"

    @property
    def plural(self) -> str:
        return f"{self.value}s"

    @classmethod
    def parse(cls, value: Any) -> "NodeKind":
        """Parse a tool-facing kind name.

        "team" is accepted as an alias for the workspace level because the
        remote API and the tool schemas call the root container a team.
        """
        if isinstance(value, NodeKind):
            return value
        if not isinstance(value, str):
            raise InvalidScopeError(str(value), "expected a string")
        text = value.strip().lower()
        if text == "team":
            return cls.WORKSPACE
        for kind in cls:
            if text in (kind.value, kind.plural):
                return kind
        raise InvalidScopeError(value, "expected one of team, workspace, space, folder, list, view")


# Which child kinds each container kind can be cached for.
SCOPE_CHILDREN: dict[NodeKind, tuple[NodeKind, ...]] = {
    NodeKind.WORKSPACE: (NodeKind.SPACE, NodeKind.VIEW),
    NodeKind.SPACE: (NodeKind.FOLDER, NodeKind.LIST, NodeKind.VIEW),
    NodeKind.FOLDER: (NodeKind.LIST, NodeKind.VIEW),
    NodeKind.LIST: (NodeKind.VIEW,),
}


class HierarchyNode(BaseModel):
    """One entity of the hierarchy, identified by id and named for lookup.

    Nodes are immutable; a renamed entity is a new node in a new snapshot.
    """

    id: str
    name: str
    kind: NodeKind
    parent_id: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @field_validator("id", "parent_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        # The remote API returns some ids as integers
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @classmethod
    def from_api(cls, payload: dict, kind: NodeKind, parent_id: Optional[str] = None) -> "HierarchyNode":
        """Build a node from a raw remote payload, keeping only identity fields."""
        return cls(
            id=payload["id"],
            name=payload.get("name") or "",
            kind=kind,
            parent_id=parent_id,
        )


class ScopeKey(BaseModel):
    """Names which container's children a cache entry holds.

    Text form is "<container kind>:<container id>/<child kind plural>",
    e.g. "space:123/lists" or "workspace:9/spaces".
    """

    container_kind: NodeKind
    container_id: str
    child_kind: NodeKind

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_pair(self) -> "ScopeKey":
        if not self.container_id:
            raise InvalidScopeError(str(self), "missing container id")
        if self.child_kind not in SCOPE_CHILDREN.get(self.container_kind, ()):
            raise InvalidScopeError(
                str(self),
                f"a {self.container_kind.value} has no cached {self.child_kind.plural}",
            )
        return self

    def __str__(self) -> str:
        return f"{self.container_kind.value}:{self.container_id}/{self.child_kind.plural}"

    @classmethod
    def of(cls, container_kind: Any, container_id: Any, child_kind: Any) -> "ScopeKey":
        return cls(
            container_kind=NodeKind.parse(container_kind),
            container_id=str(container_id),
            child_kind=NodeKind.parse(child_kind),
        )

    @classmethod
    def parse(cls, value: Any) -> "ScopeKey":
        """Parse the text form of a scope key (ScopeKey instances pass through)."""
        if isinstance(value, ScopeKey):
            return value
        if not isinstance(value, str) or "/" not in value:
            raise InvalidScopeError(str(value), "expected '<kind>:<id>/<children>'")
        container, _, children = value.rpartition("/")
        kind, sep, container_id = container.partition(":")
        if not sep or not container_id or not children:
            raise InvalidScopeError(value, "expected '<kind>:<id>/<children>'")
        return cls.of(kind, container_id, children)


def views_scope(parent_kind: Any, parent_id: Any) -> ScopeKey:
    return ScopeKey.of(parent_kind, parent_id, NodeKind.VIEW)
