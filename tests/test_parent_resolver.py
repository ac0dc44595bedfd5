"""Tests for resolving (parentType, parentId, parentName) to a container id."""
import asyncio

import pytest

from clickup_core.cache import HierarchyCache
from clickup_core.context import HierarchyContext
from clickup_core.errors import (
    AmbiguousNameError,
    InvalidScopeError,
    MissingParentError,
    NotFoundError,
    UpstreamError,
)
from clickup_core.models import NodeKind
from clickup_core.resolver import Ambiguous, ById, ByName, parent_ref

WORKSPACE_ID = "9"


@pytest.fixture
def hierarchy(fake_client):
    return HierarchyContext(HierarchyCache(fake_client), WORKSPACE_ID)


def resolve(hierarchy, parent_type, parent_id=None, parent_name=None):
    return asyncio.run(hierarchy.parents.resolve(parent_type, parent_id, parent_name))


class TestParentRef:
    """Building explicit references from optional arguments."""

    def test_id_wins_over_name(self):
        assert parent_ref("space", "s1", "Eng") == ById(id="s1")

    def test_name_only(self):
        assert parent_ref("space", None, "Eng") == ByName(name="Eng")

    def test_empty_strings_count_as_missing(self):
        assert parent_ref("space", "", "Eng") == ByName(name="Eng")
        with pytest.raises(MissingParentError):
            parent_ref("space", "", "")

    def test_missing_message_names_parameters(self):
        with pytest.raises(MissingParentError) as exc_info:
            parent_ref(NodeKind.SPACE, None, None, "spaceId", "spaceName")
        assert str(exc_info.value) == "Either spaceId or spaceName must be provided for space"


class TestResolve:
    """ParentResolver.resolve across parent types."""

    def test_workspace_needs_no_fetch(self, hierarchy, fake_client):
        assert resolve(hierarchy, "team") == WORKSPACE_ID
        assert resolve(hierarchy, "workspace", parent_name="ignored") == WORKSPACE_ID
        assert fake_client.calls == []

    def test_id_returned_unchanged(self, hierarchy, fake_client):
        assert resolve(hierarchy, "folder", parent_id="f404") == "f404"
        assert fake_client.calls == []

    def test_missing_id_and_name(self, hierarchy):
        with pytest.raises(MissingParentError) as exc_info:
            resolve(hierarchy, "list")
        assert "parentId or parentName" in str(exc_info.value)

    def test_space_by_name(self, hierarchy, fake_client):
        assert resolve(hierarchy, "space", parent_name="Marketing") == "s2"
        assert fake_client.calls == ["workspace:9/spaces"]

    def test_space_by_name_case_insensitive(self, hierarchy):
        assert resolve(hierarchy, "space", parent_name="eng") == "s1"

    def test_folder_in_any_space(self, hierarchy):
        assert resolve(hierarchy, "folder", parent_name="Campaigns") == "f4"

    def test_same_folder_name_in_two_spaces_is_ambiguous(self, hierarchy):
        with pytest.raises(AmbiguousNameError) as exc_info:
            resolve(hierarchy, "folder", parent_name="Sprint 23")

        error = exc_info.value
        assert sorted(node.id for node in error.candidates) == ["f1", "f3"]
        assert "f1" in str(error) and "f3" in str(error)

    def test_folderless_list(self, hierarchy):
        assert resolve(hierarchy, "list", parent_name="Backlog") == "l1"

    def test_list_inside_folder(self, hierarchy):
        assert resolve(hierarchy, "list", parent_name="Bugs") == "l2"

    def test_unknown_name(self, hierarchy):
        with pytest.raises(NotFoundError) as exc_info:
            resolve(hierarchy, "folder", parent_name="Archive")
        assert exc_info.value.scope == "workspace:9"

    def test_invalid_parent_types(self, hierarchy):
        with pytest.raises(InvalidScopeError):
            resolve(hierarchy, "task", parent_name="Anything")
        with pytest.raises(InvalidScopeError):
            resolve(hierarchy, "view", parent_id="v1")

    def test_upstream_failure_propagates(self, hierarchy, fake_client):
        fake_client.failures["workspace:9/spaces"] = 1

        with pytest.raises(UpstreamError) as exc_info:
            resolve(hierarchy, "space", parent_name="Eng")
        assert exc_info.value.status_code == 503

    def test_folder_lookup_skips_list_scopes(self, hierarchy, fake_client):
        resolve(hierarchy, "folder", parent_name="Platform")
        assert not any(call.endswith("/lists") for call in fake_client.calls)


class TestLookup:
    """Non-raising lookups used when the caller wants the candidates."""

    def test_lookup_returns_ambiguous_variant(self, hierarchy):
        result = asyncio.run(hierarchy.parents.lookup("folder", "Sprint 23"))

        assert isinstance(result, Ambiguous)
        assert {node.parent_id for node in result.candidates} == {"s1", "s2"}

    def test_views_are_not_looked_up_workspace_wide(self, hierarchy):
        with pytest.raises(InvalidScopeError):
            asyncio.run(hierarchy.parents.lookup("view", "Board"))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
