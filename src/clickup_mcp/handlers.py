"""MCP tool handlers for ClickUp spaces and views.

All handlers follow a consistent pattern:
- Accept: arguments dict, the shared httpx.AsyncClient, and the process-wide
  HierarchyContext
- Identify entities through the context's resolvers, never by scanning API
  responses themselves
- Invalidate every cache scope a successful mutation could have changed
  before returning, so the next name lookup sees the new state
- Return: list[TextContent]

Resolution failures (HierarchyError) and HTTP errors propagate to the server,
which turns them into user-facing messages.
"""
from typing import Optional
import logging

import httpx
from mcp.types import TextContent

from clickup_core.client import container_path
from clickup_core.context import HierarchyContext
from clickup_core.errors import MissingParentError
from clickup_core.models import NodeKind, ScopeKey, views_scope
from clickup_core.resolver import ById, parent_ref

from . import formatters

logger = logging.getLogger("clickup-mcp.handlers")

# Numeric parent type codes used by the views API.
VIEW_PARENT_TYPE_CODES = {
    NodeKind.WORKSPACE: 7,
    NodeKind.SPACE: 4,
    NodeKind.FOLDER: 5,
    NodeKind.LIST: 6,
}

# View parent types as reported by the API, numeric or named.
VIEW_PARENT_TYPES = {
    **{str(code): kind for kind, code in VIEW_PARENT_TYPE_CODES.items()},
    "team": NodeKind.WORKSPACE,
    "space": NodeKind.SPACE,
    "folder": NodeKind.FOLDER,
    "list": NodeKind.LIST,
}


def _text(text: str) -> list[TextContent]:
    return [TextContent(type="text", text=text)]


def _spaces_scope(hierarchy: HierarchyContext) -> ScopeKey:
    return ScopeKey.of(NodeKind.WORKSPACE, hierarchy.workspace_id, NodeKind.SPACE)


# ============================================================================
# Space Handlers
# ============================================================================

def convert_features(features: Optional[dict]) -> Optional[dict]:
    """Convert tool-style camelCase feature flags to the API format."""
    if not features:
        return None

    api_features = {}
    if features.get("dueDates"):
        due = features["dueDates"]
        api_features["due_dates"] = {
            "enabled": due.get("enabled"),
            "start_date": due.get("startDate"),
            "remap_due_dates": due.get("remapDueDates"),
            "remap_closed_due_date": due.get("remapClosedDueDate"),
        }

    renames = {
        "timeTracking": "time_tracking",
        "tags": "tags",
        "timeEstimates": "time_estimates",
        "checklists": "checklists",
        "customFields": "custom_fields",
        "remapDependencies": "remap_dependencies",
        "dependencyWarning": "dependency_warning",
        "portfolios": "portfolios",
    }
    for tool_name, api_name in renames.items():
        if features.get(tool_name):
            api_features[api_name] = features[tool_name]

    return api_features or None


async def _resolve_space(arguments: dict, hierarchy: HierarchyContext) -> tuple[str, Optional[str]]:
    """Return (space id, space name if known) from spaceId/spaceName."""
    ref = parent_ref(NodeKind.SPACE, arguments.get("spaceId"), arguments.get("spaceName"), "spaceId", "spaceName")
    if isinstance(ref, ById):
        return ref.id, None
    node = await hierarchy.parents.find(NodeKind.SPACE, ref.name)
    return node.id, node.name


async def handle_create_space(
    arguments: dict,
    client: httpx.AsyncClient,
    hierarchy: HierarchyContext
) -> list[TextContent]:
    """Create a space, then apply color and privacy with a follow-up update."""
    name = arguments["name"]
    space_data = {"name": name}
    if arguments.get("multipleAssignees") is not None:
        space_data["multiple_assignees"] = arguments["multipleAssignees"]
    api_features = convert_features(arguments.get("features"))
    if api_features:
        space_data["features"] = api_features

    response = await client.post(f"/team/{hierarchy.workspace_id}/space", json=space_data)
    response.raise_for_status()
    space = response.json()
    hierarchy.cache.invalidate(_spaces_scope(hierarchy))
    logger.info(f"Successfully created space: {space.get('name')} (ID: {space['id']})")

    update_data = {}
    if space.get("name") != name:
        update_data["name"] = name
    if arguments.get("color"):
        update_data["color"] = arguments["color"]
    if arguments.get("private") is not None:
        update_data["private"] = arguments["private"]

    if update_data:
        response = await client.put(f"/space/{space['id']}", json=update_data)
        response.raise_for_status()
        space = response.json()
        hierarchy.cache.invalidate(_spaces_scope(hierarchy))

    text = (f"Space \"{space.get('name') or name}\" created successfully\n\n"
            f"{formatters.format_space(space, hierarchy.workspace_id)}")
    return _text(text)


async def handle_get_space(
    arguments: dict,
    client: httpx.AsyncClient,
    hierarchy: HierarchyContext
) -> list[TextContent]:
    """Get space details by id or name."""
    space_id, _ = await _resolve_space(arguments, hierarchy)
    response = await client.get(f"/space/{space_id}")
    response.raise_for_status()
    space = response.json()
    logger.info(f"Successfully retrieved space {space_id}: {space.get('name')}")

    return _text(f"Retrieved space \"{space.get('name')}\"\n\n{formatters.format_space(space, hierarchy.workspace_id)}")


async def handle_update_space(
    arguments: dict,
    client: httpx.AsyncClient,
    hierarchy: HierarchyContext
) -> list[TextContent]:
    """Update name, color, privacy or features of a space."""
    space_id, _ = await _resolve_space(arguments, hierarchy)

    update_data = {}
    if arguments.get("name"):
        update_data["name"] = arguments["name"]
    if arguments.get("color"):
        update_data["color"] = arguments["color"]
    for tool_name, api_name in (
        ("private", "private"),
        ("adminCanManage", "admin_can_manage"),
        ("multipleAssignees", "multiple_assignees"),
    ):
        if arguments.get(tool_name) is not None:
            update_data[api_name] = arguments[tool_name]
    api_features = convert_features(arguments.get("features"))
    if api_features:
        update_data["features"] = api_features

    response = await client.put(f"/space/{space_id}", json=update_data)
    response.raise_for_status()
    space = response.json()
    hierarchy.cache.invalidate(_spaces_scope(hierarchy))
    logger.info(f"Successfully updated space {space_id}: {space.get('name')}")

    return _text(f"Space \"{space.get('name')}\" updated successfully\n\n"
                 f"{formatters.format_space(space, hierarchy.workspace_id)}")


async def handle_delete_space(
    arguments: dict,
    client: httpx.AsyncClient,
    hierarchy: HierarchyContext
) -> list[TextContent]:
    """Delete a space and everything nested in it."""
    space_id, space_name = await _resolve_space(arguments, hierarchy)
    if space_name is None:
        response = await client.get(f"/space/{space_id}")
        response.raise_for_status()
        space_name = response.json().get("name", space_id)

    response = await client.delete(f"/space/{space_id}")
    response.raise_for_status()
    # Nested folders, lists and views are gone too
    hierarchy.cache.invalidate_all()
    logger.info(f"Successfully deleted space {space_id}: {space_name}")

    return _text(f"Space \"{space_name}\" deleted successfully")


# ============================================================================
# View Handlers
# ============================================================================

def build_view_payload(arguments: dict) -> dict:
    """Map grouping, filters, columns and settings to the API format."""
    payload = {}
    if arguments.get("groupBy"):
        payload["grouping"] = {
            "field": arguments["groupBy"],
            "dir": arguments.get("groupDirection") or 1,
        }

    filters = arguments.get("filters")
    if filters:
        payload["filters"] = {
            "op": filters.get("operator") or "AND",
            "filters": [
                {"field": c.get("field"), "op": c.get("operator"), "value": c.get("value")}
                for c in filters.get("conditions") or []
            ],
        }

    if arguments.get("columns"):
        payload["columns"] = arguments["columns"]

    settings = arguments.get("settings")
    if settings:
        payload["settings"] = {
            "show_task_locations": settings.get("showTaskLocations"),
            "show_subtasks": settings.get("showSubtasks"),
            "show_assignees": settings.get("showAssignees"),
            "show_images": settings.get("showImages"),
            "me_mode": settings.get("meMode"),
        }
    return payload


async def _resolve_parent(arguments: dict, hierarchy: HierarchyContext) -> tuple[NodeKind, str]:
    kind = NodeKind.parse(arguments.get("parentType"))
    parent_id = await hierarchy.parents.resolve(kind, arguments.get("parentId"), arguments.get("parentName"))
    return kind, parent_id


async def _resolve_view(
    arguments: dict,
    hierarchy: HierarchyContext
) -> tuple[str, Optional[tuple[NodeKind, str]]]:
    """Return (view id, (parent kind, parent id) when the lookup revealed it)."""
    if arguments.get("viewId"):
        return arguments["viewId"], None
    if arguments.get("viewName") and arguments.get("parentType"):
        kind, parent_id = await _resolve_parent(arguments, hierarchy)
        view = await hierarchy.names.find_by_name(parent_id, kind, arguments["viewName"])
        return view.id, (kind, parent_id)
    raise MissingParentError("view", "viewId", "viewName with parentType")


def _unwrap_view(payload: dict) -> dict:
    return payload.get("view", payload)


def _invalidate_view_parent(
    hierarchy: HierarchyContext,
    parent: Optional[tuple[NodeKind, str]],
    view: Optional[dict] = None
) -> None:
    """Drop the views scope of a view's parent, or every views scope if unknown."""
    if parent is None and view:
        remote_parent = view.get("parent") or {}
        kind = VIEW_PARENT_TYPES.get(str(remote_parent.get("type")))
        if kind is not None and remote_parent.get("id") is not None:
            parent = (kind, str(remote_parent["id"]))

    if parent is not None:
        hierarchy.cache.invalidate(views_scope(*parent))
    else:
        hierarchy.cache.invalidate_matching(lambda scope: scope.child_kind == NodeKind.VIEW)


async def handle_create_view(
    arguments: dict,
    client: httpx.AsyncClient,
    hierarchy: HierarchyContext
) -> list[TextContent]:
    """Create a view under a workspace, space, folder or list."""
    kind, parent_id = await _resolve_parent(arguments, hierarchy)
    view_data = {
        "name": arguments["name"],
        "type": arguments["type"],
        "parent": {"id": parent_id, "type": VIEW_PARENT_TYPE_CODES[kind]},
        **build_view_payload(arguments),
    }

    response = await client.post(f"{container_path(kind, parent_id)}/view", json=view_data)
    response.raise_for_status()
    view = _unwrap_view(response.json())
    hierarchy.cache.invalidate(views_scope(kind, parent_id))
    logger.info(f"Successfully created view: {view.get('name')} (ID: {view['id']}) under {kind.value} {parent_id}")

    return _text(f"View \"{arguments['name']}\" created successfully\n\n{formatters.format_view(view)}")


async def handle_get_views(
    arguments: dict,
    client: httpx.AsyncClient,
    hierarchy: HierarchyContext
) -> list[TextContent]:
    """List every view of a container."""
    kind, parent_id = await _resolve_parent(arguments, hierarchy)
    response = await client.get(f"{container_path(kind, parent_id)}/view")
    response.raise_for_status()
    views = response.json().get("views") or []
    logger.info(f"Successfully listed {len(views)} views for {kind.value} {parent_id}")

    if not views:
        return _text(f"No views found for {kind.value} {parent_id}.")

    items_text = "\n".join(formatters.format_view_summary(view) for view in views)
    return _text(f"Found {len(views)} views\n\n{items_text}")


async def handle_get_view(
    arguments: dict,
    client: httpx.AsyncClient,
    hierarchy: HierarchyContext
) -> list[TextContent]:
    """Get a view by id, or by name within a parent."""
    view_id, _ = await _resolve_view(arguments, hierarchy)
    response = await client.get(f"/view/{view_id}")
    response.raise_for_status()
    view = _unwrap_view(response.json())
    logger.info(f"Successfully retrieved view {view_id}: {view.get('name')}")

    return _text(f"Retrieved view \"{view.get('name')}\"\n\n{formatters.format_view(view)}")


async def handle_update_view(
    arguments: dict,
    client: httpx.AsyncClient,
    hierarchy: HierarchyContext
) -> list[TextContent]:
    """Update name, grouping, filters, columns or settings of a view."""
    view_id, parent = await _resolve_view(arguments, hierarchy)
    update_data = build_view_payload(arguments)
    if arguments.get("name"):
        update_data["name"] = arguments["name"]

    response = await client.put(f"/view/{view_id}", json=update_data)
    response.raise_for_status()
    view = _unwrap_view(response.json())
    _invalidate_view_parent(hierarchy, parent, view)
    logger.info(f"Successfully updated view {view_id}: {view.get('name')}")

    return _text(f"View \"{view.get('name')}\" updated successfully\n\n{formatters.format_view(view)}")


async def handle_delete_view(
    arguments: dict,
    client: httpx.AsyncClient,
    hierarchy: HierarchyContext
) -> list[TextContent]:
    """Delete a view."""
    view_id, parent = await _resolve_view(arguments, hierarchy)
    response = await client.delete(f"/view/{view_id}")
    response.raise_for_status()
    _invalidate_view_parent(hierarchy, parent)
    logger.info(f"Successfully deleted view {view_id}")

    return _text(f"View {view_id} deleted successfully")


async def handle_get_view_tasks(
    arguments: dict,
    client: httpx.AsyncClient,
    hierarchy: HierarchyContext
) -> list[TextContent]:
    """Get one page of the tasks a view shows."""
    view_id, _ = await _resolve_view(arguments, hierarchy)
    page = int(arguments.get("page") or 0)
    response = await client.get(f"/view/{view_id}/task", params={"page": page})
    response.raise_for_status()
    result = response.json()
    tasks = result.get("tasks") or []
    has_more = not result.get("last_page", True)
    logger.info(f"Successfully retrieved {len(tasks)} tasks from view {view_id} (page {page})")

    if not tasks:
        return _text(f"No tasks found in view {view_id} (page {page}).")

    more_info = f"\n\nMore tasks available: call again with page={page + 1}" if has_more else ""
    tasks_text = "\n".join(formatters.format_task(task) for task in tasks)
    return _text(f"Retrieved {len(tasks)} tasks from view (page {page})\n\n{tasks_text}{more_info}")


# ============================================================================
# Hierarchy Cache Handlers
# ============================================================================

async def handle_get_hierarchy_cache_stats(
    arguments: dict,
    client: httpx.AsyncClient,
    hierarchy: HierarchyContext
) -> list[TextContent]:
    stats = hierarchy.cache.stats()
    scopes = [str(scope) for scope in hierarchy.cache.scopes()]
    return _text(formatters.format_cache_stats(stats, scopes))


async def handle_refresh_hierarchy_cache(
    arguments: dict,
    client: httpx.AsyncClient,
    hierarchy: HierarchyContext
) -> list[TextContent]:
    """Drop one scope, or the whole cache when no scope key is given."""
    scope_key = arguments.get("scopeKey")
    if scope_key:
        scope = ScopeKey.parse(scope_key)
        hierarchy.cache.invalidate(scope)
        return _text(f"Dropped cached hierarchy scope {scope}")
    hierarchy.cache.invalidate_all()
    return _text("Dropped all cached hierarchy data")


HANDLERS = {
    "create_space": handle_create_space,
    "get_space": handle_get_space,
    "update_space": handle_update_space,
    "delete_space": handle_delete_space,
    "create_view": handle_create_view,
    "get_views": handle_get_views,
    "get_view": handle_get_view,
    "update_view": handle_update_view,
    "delete_view": handle_delete_view,
    "get_view_tasks": handle_get_view_tasks,
    "get_hierarchy_cache_stats": handle_get_hierarchy_cache_stats,
    "refresh_hierarchy_cache": handle_refresh_hierarchy_cache,
}
