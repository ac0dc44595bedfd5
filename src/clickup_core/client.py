"""Remote hierarchy fetches against the ClickUp v2 API.

Pure I/O: every call goes to the network. Caching lives in cache.py and
retry policy belongs to the transport, so failures are reported once as
UpstreamError and never retried here.
"""
import logging
from typing import Optional

import httpx

from .errors import InvalidScopeError, UpstreamError
from .models import HierarchyNode, NodeKind, ScopeKey

logger = logging.getLogger("clickup-core.client")

# URL path segment per container kind; the API calls a workspace a team.
PATH_SEGMENTS: dict[NodeKind, str] = {
    NodeKind.WORKSPACE: "team",
    NodeKind.SPACE: "space",
    NodeKind.FOLDER: "folder",
    NodeKind.LIST: "list",
}


def container_path(kind: NodeKind, container_id: str) -> str:
    """API path of a container, e.g. "/space/42"."""
    segment = PATH_SEGMENTS.get(kind)
    if segment is None:
        raise InvalidScopeError(kind.value, "not a container")
    return f"/{segment}/{container_id}"


class HierarchyClient:
    """Fetches the direct children of hierarchy containers."""

    def __init__(self, http: httpx.AsyncClient):
        self.http = http

    async def _get_items(self, path: str, key: str, params: Optional[dict] = None) -> list[dict]:
        try:
            response = await self.http.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"Hierarchy fetch {path} failed with HTTP {status}")
            raise UpstreamError(f"Failed to fetch {path}: HTTP {status}", status_code=status) from e
        except httpx.RequestError as e:
            logger.error(f"Hierarchy fetch {path} failed: {type(e).__name__}: {e}")
            raise UpstreamError(f"Failed to fetch {path}: {type(e).__name__}: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            # Proxy and maintenance pages come back as 2xx HTML
            logger.error(f"Hierarchy fetch {path} returned a non-JSON body: {response.text[:200]!r}")
            raise UpstreamError(
                f"Failed to fetch {path}: response is not JSON", status_code=response.status_code
            ) from e

        if not isinstance(body, dict):
            items = None
        else:
            items = body.get(key)
            if items is None:
                return []
        if not isinstance(items, list) or not all(isinstance(item, dict) and "id" in item for item in items):
            logger.error(f"Hierarchy fetch {path} returned an unexpected body shape")
            raise UpstreamError(
                f"Failed to fetch {path}: expected a '{key}' list of objects with ids",
                status_code=response.status_code,
            )
        return items

    async def list_spaces(self, workspace_id: str) -> list[HierarchyNode]:
        items = await self._get_items(f"/team/{workspace_id}/space", "spaces", {"archived": "false"})
        return [HierarchyNode.from_api(item, NodeKind.SPACE, workspace_id) for item in items]

    async def list_folders(self, space_id: str) -> list[HierarchyNode]:
        items = await self._get_items(f"/space/{space_id}/folder", "folders", {"archived": "false"})
        return [HierarchyNode.from_api(item, NodeKind.FOLDER, space_id) for item in items]

    async def list_lists(self, container_id: str, container_kind: NodeKind) -> list[HierarchyNode]:
        """Lists of a folder, or the folderless lists of a space."""
        if container_kind not in (NodeKind.SPACE, NodeKind.FOLDER):
            raise InvalidScopeError(container_kind.value, "lists live in spaces or folders")
        path = f"{container_path(container_kind, container_id)}/list"
        items = await self._get_items(path, "lists", {"archived": "false"})
        return [HierarchyNode.from_api(item, NodeKind.LIST, container_id) for item in items]

    async def list_views(self, parent_id: str, parent_kind: NodeKind) -> list[HierarchyNode]:
        path = f"{container_path(parent_kind, parent_id)}/view"
        items = await self._get_items(path, "views")
        return [HierarchyNode.from_api(item, NodeKind.VIEW, parent_id) for item in items]

    async def fetch_scope(self, scope: ScopeKey) -> list[HierarchyNode]:
        """Fetch the children a scope key names."""
        logger.info(f"Fetching {scope}")
        if scope.child_kind == NodeKind.VIEW:
            return await self.list_views(scope.container_id, scope.container_kind)
        if scope.child_kind == NodeKind.SPACE:
            return await self.list_spaces(scope.container_id)
        if scope.child_kind == NodeKind.FOLDER:
            return await self.list_folders(scope.container_id)
        if scope.child_kind == NodeKind.LIST:
            return await self.list_lists(scope.container_id, scope.container_kind)
        raise InvalidScopeError(str(scope))
