"""Shared formatting functions for MCP responses."""
from clickup_core.errors import AmbiguousNameError

APP_BASE_URL = "https://app.clickup.com"


def space_url(team_id: str, space_id: str) -> str:
    return f"{APP_BASE_URL}/{team_id}/v/s/{space_id}"


def _enabled_features(features: dict) -> list[str]:
    return sorted(name for name, value in features.items() if isinstance(value, dict) and value.get("enabled"))


def format_space(space: dict, team_id: str) -> str:
    """Format a space for display."""
    features = _enabled_features(space.get('features') or {})
    features_info = f"\nFeatures: {', '.join(features)}" if features else ""
    statuses = space.get('statuses') or []
    statuses_info = f"\nStatuses: {', '.join(s.get('status', '?') for s in statuses)}" if statuses else ""
    color_info = f"\nColor: {space['color']}" if space.get('color') else ""

    return f"""**{space.get('name', '')}**
ID: {space['id']}
Private: {space.get('private', False)}
Multiple assignees: {space.get('multiple_assignees', False)}
Archived: {space.get('archived', False)}{color_info}{features_info}{statuses_info}
URL: {space_url(team_id, space['id'])}"""


def format_view_summary(view: dict) -> str:
    """One-line view entry for listings."""
    creator = (view.get('creator') or {})
    creator_info = f", creator: {creator['username']}" if isinstance(creator, dict) and creator.get('username') else ""
    protected_info = ", protected" if view.get('protected') else ""
    return f"- {view.get('name', '')} ({view.get('type', 'unknown')}) ID: {view['id']}{creator_info}{protected_info}"


def format_view(view: dict) -> str:
    """Format a view with its configuration."""
    parent = view.get('parent') or {}
    parent_info = f"\nParent: {parent.get('type')} {parent.get('id')}" if parent else ""
    grouping = view.get('grouping') or {}
    grouping_info = f"\nGrouped by: {grouping['field']} (dir {grouping.get('dir', 1)})" if grouping.get('field') else ""
    filters = (view.get('filters') or {}).get('fields') or (view.get('filters') or {}).get('filters') or []
    filters_info = f"\nFilters: {len(filters)} condition(s)" if filters else ""
    columns = view.get('columns') or {}
    column_fields = columns.get('fields', []) if isinstance(columns, dict) else columns
    columns_info = f"\nColumns: {len(column_fields)}" if column_fields else ""

    return f"""**{view.get('name', '')}** ({view.get('type', 'unknown')})
ID: {view['id']}{parent_info}{grouping_info}{filters_info}{columns_info}
Protected: {view.get('protected', False)}"""


def format_task(task: dict) -> str:
    """Format a task row from a view."""
    status = (task.get('status') or {}).get('status', 'unknown')
    assignees = [a.get('username') or str(a.get('id')) for a in task.get('assignees') or []]
    assignee_info = f" [{', '.join(assignees)}]" if assignees else ""
    list_info = f" in {task['list']['name']}" if isinstance(task.get('list'), dict) and task['list'].get('name') else ""
    url_info = f"\n  {task['url']}" if task.get('url') else ""
    return f"- {task.get('name', '')} ({status}){assignee_info}{list_info} ID: {task['id']}{url_info}"


def format_ambiguous(error: AmbiguousNameError) -> str:
    """List the candidates of an ambiguous name so the caller can pick an id."""
    lines = [f"Error: {error.kind.capitalize()} name \"{error.name}\" matches {len(error.candidates)} entities."]
    lines.append("Retry with one of these ids:")
    for node in error.candidates:
        parent_info = f" (in {node.parent_id})" if node.parent_id else ""
        lines.append(f"- {node.name} → {node.id}{parent_info}")
    return "\n".join(lines)


def format_cache_stats(stats: dict, scopes: list[str]) -> str:
    """Format hierarchy cache counters and cached scopes."""
    counters = "\n".join(f"{key}: {value}" for key, value in stats.items())
    scope_lines = "\n".join(f"- {scope}" for scope in sorted(scopes)) or "(none)"
    return f"Hierarchy cache\n\n{counters}\n\nCached scopes:\n{scope_lines}"
