"""Shared fixtures: an in-memory hierarchy source and a fake ClickUp API."""
import asyncio
import itertools
import json
import re
from typing import Optional

import httpx
import pytest

from clickup_core.errors import UpstreamError
from clickup_core.models import HierarchyNode, ScopeKey

WORKSPACE_ID = "9"

# Two spaces, two "Sprint 23" folders in different spaces, a folderless
# "Backlog" list in Eng only.
WORKSPACE_SCOPES = {
    "workspace:9/spaces": [("s1", "Eng"), ("s2", "Marketing")],
    "space:s1/folders": [("f1", "Sprint 23"), ("f2", "Platform")],
    "space:s2/folders": [("f3", "Sprint 23"), ("f4", "Campaigns")],
    "space:s1/lists": [("l1", "Backlog")],
    "space:s2/lists": [("l5", "Ideas")],
    "folder:f1/lists": [("l2", "Bugs")],
    "folder:f2/lists": [("l3", "Roadmap")],
    "folder:f3/lists": [],
    "folder:f4/lists": [("l4", "Q3 Launch")],
    "space:42/views": [("v1", "Board"), ("v2", "Calendar"), ("v3", "Gantt")],
}


class FakeHierarchyClient:
    """Serves scope fetches from a dict and records every call.

    ``gate`` (an asyncio.Event) holds fetches until set. ``failures`` maps a
    scope key to how many upcoming fetches of it should fail.
    """

    def __init__(self, scopes: dict):
        self.scopes = {key: list(children) for key, children in scopes.items()}
        self.calls: list[str] = []
        self.failures: dict[str, int] = {}
        self.gate: Optional[asyncio.Event] = None
        self.cancelled: list[str] = []

    async def fetch_scope(self, scope: ScopeKey) -> list[HierarchyNode]:
        key = str(scope)
        self.calls.append(key)
        try:
            await asyncio.sleep(0)
            if self.gate is not None:
                await self.gate.wait()
        except asyncio.CancelledError:
            self.cancelled.append(key)
            raise
        if self.failures.get(key):
            self.failures[key] -= 1
            raise UpstreamError(f"Failed to fetch {key}: HTTP 503", status_code=503)
        return [
            HierarchyNode(id=node_id, name=name, kind=scope.child_kind, parent_id=scope.container_id)
            for node_id, name in self.scopes.get(key, [])
        ]

    def fetch_count(self, key: str) -> int:
        return self.calls.count(key)


@pytest.fixture
def fake_client():
    return FakeHierarchyClient(WORKSPACE_SCOPES)


# ============================================================================
# Fake ClickUp REST API
# ============================================================================

VIEW_TYPE_CODES = {"team": 7, "space": 4, "folder": 5, "list": 6}


class FakeClickUpAPI:
    """Minimal in-memory ClickUp v2 API for handler tests."""

    PREFIX = "/api/v2"

    def __init__(self):
        self.requests: list[tuple[str, str]] = []
        self.spaces = {"s1": {"id": "s1", "name": "Eng", "private": False},
                       "s2": {"id": "s2", "name": "Marketing", "private": True}}
        self.folders = {"s1": [{"id": "f1", "name": "Sprint 23"}, {"id": "f2", "name": "Platform"}],
                        "s2": [{"id": "f3", "name": "Sprint 23"}]}
        self.lists = {("space", "s1"): [{"id": "l1", "name": "Backlog"}],
                      ("folder", "f1"): [{"id": "l2", "name": "Bugs"}]}
        self.views: dict[str, dict] = {
            "v1": {"id": "v1", "name": "Board", "type": "board", "parent": {"id": "s1", "type": 4}},
        }
        self.tasks = {"v1": [{"id": "t1", "name": "Fix login", "status": {"status": "open"},
                              "assignees": [{"id": 1, "username": "ana"}], "url": "https://app.clickup.com/t/t1"}]}
        self._ids = itertools.count(100)

    def count(self, method: str, path: str) -> int:
        return self.requests.count((method, path))

    def _views_of(self, segment: str, parent_id: str) -> list[dict]:
        code = VIEW_TYPE_CODES[segment]
        return [v for v in self.views.values()
                if v["parent"]["id"] == parent_id and v["parent"]["type"] == code]

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path[len(self.PREFIX):]
        method = request.method
        self.requests.append((method, path))
        body = json.loads(request.content) if request.content else {}

        if m := re.fullmatch(r"/team/(\w+)/space", path):
            if method == "GET":
                return httpx.Response(200, json={"spaces": list(self.spaces.values())})
            space_id = f"s{next(self._ids)}"
            self.spaces[space_id] = {"id": space_id, "private": False, **body}
            return httpx.Response(200, json=self.spaces[space_id])

        if m := re.fullmatch(r"/space/(\w+)", path):
            space = self.spaces.get(m.group(1))
            if space is None:
                return httpx.Response(404, json={"err": "Space not found", "ECODE": "SPACE_001"})
            if method == "PUT":
                space.update(body)
            elif method == "DELETE":
                del self.spaces[m.group(1)]
                self.folders.pop(m.group(1), None)
                self.lists.pop(("space", m.group(1)), None)
                return httpx.Response(200, json={})
            return httpx.Response(200, json=space)

        if m := re.fullmatch(r"/space/(\w+)/folder", path):
            return httpx.Response(200, json={"folders": self.folders.get(m.group(1), [])})

        if m := re.fullmatch(r"/(space|folder)/(\w+)/list", path):
            return httpx.Response(200, json={"lists": self.lists.get((m.group(1), m.group(2)), [])})

        if m := re.fullmatch(r"/(team|space|folder|list)/(\w+)/view", path):
            segment, parent_id = m.groups()
            if method == "GET":
                return httpx.Response(200, json={"views": self._views_of(segment, parent_id)})
            view_id = f"v{next(self._ids)}"
            view = {"id": view_id, "name": body["name"], "type": body["type"],
                    "parent": {"id": parent_id, "type": VIEW_TYPE_CODES[segment]}}
            for key in ("grouping", "filters", "columns", "settings"):
                if key in body:
                    view[key] = body[key]
            self.views[view_id] = view
            return httpx.Response(200, json={"view": view})

        if m := re.fullmatch(r"/view/(\w+)/task", path):
            return httpx.Response(200, json={"tasks": self.tasks.get(m.group(1), []), "last_page": True})

        if m := re.fullmatch(r"/view/(\w+)", path):
            view = self.views.get(m.group(1))
            if view is None:
                return httpx.Response(404, json={"err": "View not found"})
            if method == "PUT":
                view.update({k: v for k, v in body.items() if k != "parent"})
            elif method == "DELETE":
                del self.views[m.group(1)]
                return httpx.Response(200, json={})
            return httpx.Response(200, json={"view": view})

        return httpx.Response(404, json={"err": f"No route for {method} {path}"})


@pytest.fixture
def fake_api():
    return FakeClickUpAPI()
