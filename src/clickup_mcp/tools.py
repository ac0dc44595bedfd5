"""MCP tool definitions for ClickUp spaces and views.

Every tool that targets an existing entity accepts either its id or its
name. Names are resolved through the hierarchy cache; ids are used as given.
"""

from mcp.types import Tool

PARENT_TYPES = ["team", "space", "folder", "list"]
VIEW_TYPES = ["list", "board", "calendar", "table", "timeline", "workload", "activity", "map", "chat", "gantt"]

FEATURE_NAMES = [
    "timeTracking",
    "tags",
    "timeEstimates",
    "checklists",
    "customFields",
    "remapDependencies",
    "dependencyWarning",
    "portfolios",
]


def _features_schema() -> dict:
    properties = {
        "dueDates": {
            "type": "object",
            "properties": {
                "enabled": {"type": "boolean", "description": "Enable due dates"},
                "startDate": {"type": "boolean", "description": "Enable start dates"},
                "remapDueDates": {"type": "boolean", "description": "Remap due dates on status change"},
                "remapClosedDueDate": {"type": "boolean", "description": "Remap due dates when closing tasks"},
            },
        }
    }
    for feature in FEATURE_NAMES:
        properties[feature] = {
            "type": "object",
            "properties": {"enabled": {"type": "boolean"}},
        }
    return {
        "type": "object",
        "description": "Feature configuration for the space",
        "properties": properties,
    }


def _space_target_properties() -> dict:
    return {
        "spaceId": {
            "type": "string",
            "description": "ID of the space"
        },
        "spaceName": {
            "type": "string",
            "description": "Name of the space (alternative to spaceId)"
        },
    }


def _parent_properties(note: str = "") -> dict:
    return {
        "parentType": {
            "type": "string",
            "enum": PARENT_TYPES,
            "description": f"Type of parent container{note}"
        },
        "parentId": {
            "type": "string",
            "description": "ID of the parent. For team (workspace) level, this can be omitted."
        },
        "parentName": {
            "type": "string",
            "description": "Name of the parent. Alternative to parentId for space/folder/list. "
                           "Folders and lists are searched across the whole workspace; "
                           "if the name is not unique the call fails with the candidate ids."
        },
    }


def _view_target_properties() -> dict:
    return {
        "viewId": {
            "type": "string",
            "description": "ID of the view (preferred)"
        },
        "viewName": {
            "type": "string",
            "description": "Name of the view. Requires parent info to locate."
        },
        **_parent_properties(" (required when using viewName)"),
    }


def _view_config_properties() -> dict:
    return {
        "groupBy": {
            "type": "string",
            "description": "Field to group tasks by (e.g., 'status', 'assignee', 'priority')"
        },
        "groupDirection": {
            "type": "number",
            "enum": [1, -1],
            "description": "Sort direction for groups: 1 for ascending, -1 for descending"
        },
        "filters": {
            "type": "object",
            "description": "Filter configuration for the view",
            "properties": {
                "operator": {
                    "type": "string",
                    "enum": ["AND", "OR"],
                    "description": "Logical operator for combining filters"
                },
                "conditions": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "field": {"type": "string", "description": "Field to filter by"},
                            "operator": {
                                "type": "string",
                                "description": "Comparison operator (e.g., 'equals', 'contains', 'greater_than')"
                            },
                            "value": {"description": "Value to compare against"}
                        }
                    }
                }
            }
        },
        "columns": {
            "type": "array",
            "description": "Columns to display (for table/board views)",
            "items": {
                "type": "object",
                "properties": {
                    "field": {"type": "string", "description": "Field name for the column"},
                    "type": {"type": "string", "description": "Column type"}
                }
            }
        },
        "settings": {
            "type": "object",
            "description": "View-specific settings",
            "properties": {
                "showTaskLocations": {"type": "boolean", "description": "Show task locations in the view"},
                "showSubtasks": {"type": "number", "description": "Number of subtask levels to show"},
                "showAssignees": {"type": "boolean", "description": "Show assignees in the view"},
                "showImages": {"type": "boolean", "description": "Show images in the view"},
                "meMode": {"type": "boolean", "description": "Show only tasks assigned to current user"}
            }
        },
    }


def get_tools() -> list[Tool]:
    """Get the list of all MCP tools."""
    return [
        # ============================================================================
        # Space Tools
        # ============================================================================
        Tool(
            name="create_space",
            description="Creates a new space in the ClickUp workspace. "
                        "Configure features like due dates, time tracking, tags, etc.",
            inputSchema={
                "type": "object",
                "properties": {
                    "name": {
                        "type": "string",
                        "description": "Name of the space"
                    },
                    "color": {
                        "type": "string",
                        "description": "Space color (hex code, e.g. '#1E90FF')"
                    },
                    "private": {
                        "type": "boolean",
                        "description": "Whether the space should be private"
                    },
                    "multipleAssignees": {
                        "type": "boolean",
                        "description": "Allow multiple assignees on tasks"
                    },
                    "features": _features_schema()
                },
                "required": ["name"]
            }
        ),
        Tool(
            name="get_space",
            description="Gets details of a specific space by ID or name.",
            inputSchema={
                "type": "object",
                "properties": _space_target_properties(),
                "required": []
            }
        ),
        Tool(
            name="update_space",
            description="Updates an existing space. Can modify name, color, privacy, and feature settings.",
            inputSchema={
                "type": "object",
                "properties": {
                    **_space_target_properties(),
                    "name": {
                        "type": "string",
                        "description": "New name for the space"
                    },
                    "color": {
                        "type": "string",
                        "description": "New color (hex code)"
                    },
                    "private": {
                        "type": "boolean",
                        "description": "Whether the space should be private"
                    },
                    "adminCanManage": {
                        "type": "boolean",
                        "description": "Whether admins can manage the space"
                    },
                    "multipleAssignees": {
                        "type": "boolean",
                        "description": "Allow multiple assignees on tasks"
                    },
                    "features": _features_schema()
                },
                "required": []
            }
        ),
        Tool(
            name="delete_space",
            description="PERMANENTLY deletes a space and all its contents. "
                        "Use with extreme caution. This action cannot be undone.",
            inputSchema={
                "type": "object",
                "properties": _space_target_properties(),
                "required": []
            }
        ),
        # ============================================================================
        # View Tools
        # ============================================================================
        Tool(
            name="create_view",
            description="Creates a new view at workspace (team), space, folder, or list level. "
                        "Requires name, type, and parent info. Supports filters, grouping, "
                        "columns and view settings.",
            inputSchema={
                "type": "object",
                "properties": {
                    "name": {
                        "type": "string",
                        "description": "Name of the view"
                    },
                    "type": {
                        "type": "string",
                        "enum": VIEW_TYPES,
                        "description": "Type of view to create"
                    },
                    **_parent_properties(),
                    **_view_config_properties()
                },
                "required": ["name", "type", "parentType"]
            }
        ),
        Tool(
            name="get_views",
            description="Gets all views of a workspace (team), space, folder, or list. "
                        "Use parentType and parentId/parentName to specify location.",
            inputSchema={
                "type": "object",
                "properties": _parent_properties(),
                "required": ["parentType"]
            }
        ),
        Tool(
            name="get_view",
            description="Gets details of a specific view by ID or name. "
                        "Use viewId (preferred) or viewName with parent info.",
            inputSchema={
                "type": "object",
                "properties": _view_target_properties(),
                "required": []
            }
        ),
        Tool(
            name="update_view",
            description="Updates an existing view. Can modify name, filters, grouping, columns, and settings.",
            inputSchema={
                "type": "object",
                "properties": {
                    **_view_target_properties(),
                    "name": {
                        "type": "string",
                        "description": "New name for the view"
                    },
                    **_view_config_properties()
                },
                "required": []
            }
        ),
        Tool(
            name="delete_view",
            description="PERMANENTLY deletes a view. Use viewId (preferred) or viewName with parent info. "
                        "WARNING: Cannot be undone.",
            inputSchema={
                "type": "object",
                "properties": _view_target_properties(),
                "required": []
            }
        ),
        Tool(
            name="get_view_tasks",
            description="Gets all tasks displayed in a specific view with the view's filters and sorting applied.",
            inputSchema={
                "type": "object",
                "properties": {
                    **_view_target_properties(),
                    "page": {
                        "type": "number",
                        "description": "Page number (0-based) for pagination"
                    }
                },
                "required": []
            }
        ),
        # ============================================================================
        # Hierarchy Cache Tools
        # ============================================================================
        Tool(
            name="get_hierarchy_cache_stats",
            description="Shows hierarchy cache counters (hits, misses, fetches) and the cached scopes.",
            inputSchema={
                "type": "object",
                "properties": {}
            }
        ),
        Tool(
            name="refresh_hierarchy_cache",
            description="Drops cached hierarchy data so the next name lookup refetches it. "
                        "Use after changes made outside this server. Without scopeKey the whole cache is cleared.",
            inputSchema={
                "type": "object",
                "properties": {
                    "scopeKey": {
                        "type": "string",
                        "description": "Scope to drop, e.g. 'space:123/lists' or 'workspace:9/spaces'"
                    }
                }
            }
        ),
    ]
