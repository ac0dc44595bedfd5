"""Tests for HierarchyClient remote fetches."""
import asyncio

import httpx
import pytest

from clickup_core.client import HierarchyClient, container_path
from clickup_core.errors import InvalidScopeError, UpstreamError
from clickup_core.models import NodeKind, ScopeKey

BASE_URL = "https://api.test/api/v2"


def run_with(handler, call):
    """Run call(client) against an httpx client backed by handler."""

    async def scenario():
        transport = httpx.MockTransport(handler)
        async with httpx.AsyncClient(transport=transport, base_url=BASE_URL) as http:
            return await call(HierarchyClient(http))

    return asyncio.run(scenario())


class TestPaths:
    """Container paths and request shapes."""

    def test_container_path_uses_team_segment(self):
        assert container_path(NodeKind.WORKSPACE, "9") == "/team/9"
        assert container_path(NodeKind.FOLDER, "f1") == "/folder/f1"

    def test_views_have_no_container_path(self):
        with pytest.raises(InvalidScopeError):
            container_path(NodeKind.VIEW, "v1")

    def test_spaces_request(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"spaces": [{"id": 1, "name": "Eng"}]})

        spaces = run_with(handler, lambda client: client.list_spaces("9"))

        assert seen[0].url.path == "/api/v2/team/9/space"
        assert seen[0].url.params["archived"] == "false"
        assert spaces[0].id == "1"
        assert spaces[0].parent_id == "9"
        assert spaces[0].kind == NodeKind.SPACE

    def test_views_request_per_parent_kind(self):
        paths = []

        def handler(request):
            paths.append(request.url.path)
            return httpx.Response(200, json={"views": [{"id": "v1", "name": "Board"}]})

        async def call(client):
            for kind in (NodeKind.WORKSPACE, NodeKind.SPACE, NodeKind.FOLDER, NodeKind.LIST):
                await client.list_views("x1", kind)

        run_with(handler, call)
        assert paths == [
            "/api/v2/team/x1/view",
            "/api/v2/space/x1/view",
            "/api/v2/folder/x1/view",
            "/api/v2/list/x1/view",
        ]

    def test_missing_collection_key_means_empty(self):
        views = run_with(lambda request: httpx.Response(200, json={}), lambda c: c.list_views("s1", NodeKind.SPACE))
        assert views == []

    def test_lists_only_under_spaces_and_folders(self):
        with pytest.raises(InvalidScopeError):
            run_with(lambda request: httpx.Response(200, json={}), lambda c: c.list_lists("l1", NodeKind.LIST))


class TestFetchScope:
    """Dispatch from scope keys to endpoints."""

    def test_dispatch(self):
        paths = []

        def handler(request):
            paths.append(request.url.path)
            return httpx.Response(200, json={"folders": [{"id": "f1", "name": "Sprint 23"}],
                                             "lists": [{"id": "l1", "name": "Backlog"}]})

        async def call(client):
            folders = await client.fetch_scope(ScopeKey.parse("space:s1/folders"))
            lists = await client.fetch_scope(ScopeKey.parse("space:s1/lists"))
            return folders, lists

        folders, lists = run_with(handler, call)

        assert paths == ["/api/v2/space/s1/folder", "/api/v2/space/s1/list"]
        assert folders[0].kind == NodeKind.FOLDER
        assert lists[0].kind == NodeKind.LIST
        assert lists[0].parent_id == "s1"


class TestFailures:
    """Remote failures surface as UpstreamError."""

    def test_http_status_kept(self):
        def handler(request):
            return httpx.Response(429, json={"err": "Rate limit reached"})

        with pytest.raises(UpstreamError) as exc_info:
            run_with(handler, lambda client: client.list_folders("s1"))

        assert exc_info.value.status_code == 429
        assert "/space/s1/folder" in str(exc_info.value)

    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UpstreamError) as exc_info:
            run_with(handler, lambda client: client.list_spaces("9"))

        assert exc_info.value.status_code is None
        assert "ConnectError" in str(exc_info.value)

    def test_non_json_body(self):
        def handler(request):
            return httpx.Response(200, text="<html>maintenance</html>", headers={"Content-Type": "text/html"})

        with pytest.raises(UpstreamError) as exc_info:
            run_with(handler, lambda client: client.list_spaces("9"))

        assert exc_info.value.status_code == 200
        assert "not JSON" in str(exc_info.value)

    def test_body_that_is_not_an_object(self):
        with pytest.raises(UpstreamError):
            run_with(lambda request: httpx.Response(200, json=["s1", "s2"]), lambda c: c.list_spaces("9"))

    def test_collection_that_is_not_a_list(self):
        with pytest.raises(UpstreamError):
            run_with(lambda request: httpx.Response(200, json={"folders": "none"}), lambda c: c.list_folders("s1"))

    def test_item_without_id(self):
        def handler(request):
            return httpx.Response(200, json={"views": [{"id": "v1", "name": "Board"}, {"name": "Ghost"}]})

        with pytest.raises(UpstreamError) as exc_info:
            run_with(handler, lambda client: client.list_views("s1", NodeKind.SPACE))
        assert "'views'" in str(exc_info.value)

    def test_null_collection_means_empty(self):
        lists = run_with(lambda request: httpx.Response(200, json={"lists": None}),
                         lambda c: c.list_lists("f1", NodeKind.FOLDER))
        assert lists == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
