"""Error taxonomy for hierarchy resolution.

Every resolver failure is raised as one of these exceptions and carried up
to the MCP layer untouched, where it is turned into a user-facing message:
- MissingParentError: neither an id nor a name was supplied
- NotFoundError: no candidate matched after exact and fallback matching
- AmbiguousNameError: several candidates matched at the same tier
- UpstreamError: the remote fetch failed (network, auth, rate limit)
- InvalidScopeError: an unrecognised entity kind or scope key was requested
"""
from typing import Optional


class HierarchyError(Exception):
    """Base class for hierarchy cache and resolver failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingParentError(HierarchyError):
    """Raised when neither an identifier nor a name was given for a parent."""

    def __init__(self, parent_type: str, id_param: str = "parentId", name_param: str = "parentName"):
        super().__init__(
            f"Either {id_param} or {name_param} must be provided for {parent_type}"
        )
        self.parent_type = parent_type
        self.id_param = id_param
        self.name_param = name_param


class NotFoundError(HierarchyError):
    """Raised when a name matches no entity in the searched scope."""

    def __init__(self, kind: str, name: str, scope: Optional[str] = None):
        where = f" in {scope}" if scope else ""
        super().__init__(f'{kind.capitalize()} "{name}" not found{where}')
        self.kind = kind
        self.name = name
        self.scope = scope


class AmbiguousNameError(HierarchyError):
    """Raised when a name matches several entities at the same matching tier.

    The candidates are kept so the caller can retry with an explicit id.
    """

    def __init__(self, kind: str, name: str, candidates: list):
        listing = ", ".join(f'"{c.name}" (id: {c.id})' for c in candidates)
        super().__init__(
            f'{kind.capitalize()} name "{name}" is ambiguous: {len(candidates)} matches '
            f"[{listing}]. Retry with an explicit id."
        )
        self.kind = kind
        self.name = name
        self.candidates = list(candidates)


class UpstreamError(HierarchyError):
    """Raised when the remote API call behind a cache fill fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class InvalidScopeError(HierarchyError):
    """Raised for an unknown entity kind or a malformed scope key."""

    def __init__(self, value: str, reason: Optional[str] = None):
        detail = f": {reason}" if reason else ""
        super().__init__(f"Invalid scope or parent type '{value}'{detail}")
        self.value = value


class InvalidHierarchyError(HierarchyError):
    """Raised when fetched nodes violate the tree invariants."""
