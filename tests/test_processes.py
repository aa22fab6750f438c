"""Tests for the process service"""

from urllib.parse import parse_qs, urlsplit

import pytest

from process_manager_mcp.consts import (
    DIAGRAM_GENERATE_PATH,
    GROUP_TREE_PATH,
    MAX_HIERARCHY_DEPTH,
    MAX_PAGE_SIZE,
)
from process_manager_mcp.exceptions import ApiError, ArgumentError
from process_manager_mcp.processes import (
    ProcessService,
    clamp_page_size,
    effective_depth,
)

from .conftest import process_payload


def tree_item(unique_id, item_type="group", has_child=True, title=None):
    return {
        "id": hash(unique_id) % 1000,
        "uniqueId": unique_id,
        "title": title or unique_id.title(),
        "itemType": item_type,
        "itemOrder": 1,
        "hasChild": has_child,
        "totalSubgroups": None,
    }


# root -> g1 (group) -> g1a (group) -> g1a-x (group)
#      -> p1 (process)
TREE = {
    None: [tree_item("g1"), tree_item("p1", "process", has_child=False)],
    "g1": [tree_item("g1a"), tree_item("p2", "inprogress-process", has_child=False)],
    "g1a": [tree_item("g1a-x")],
    "g1a-x": [tree_item("p3", "process", has_child=False)],
}


def tree_side_effect(path, **kwargs):
    query = parse_qs(urlsplit(path).query)
    parent = query.get("parentUniqueId", [None])[0]
    return {"treeItems": TREE[parent], "parentUniqueId": parent}


@pytest.fixture
def service(mock_client):
    return ProcessService(mock_client)


class TestGetProcess:
    @pytest.mark.asyncio
    async def test_parses_nested_structure(self, service, mock_client):
        mock_client.api_request.return_value = process_payload()

        process = await service.get_process("proc-1")

        assert mock_client.api_request.call_args.args[0] == "/Api/v1/Processes/proc-1"
        assert process.name == "Employee Onboarding"
        assert [a.number for a in process.activities] == ["1.0", "2.0"]
        assert [t.number for t in process.activities[0].tasks] == ["1.1", "1.2"]
        assert process.activities[0].ownerships.roles[0].name == "IT Support"
        assert process.activities[1].risk_controls is None

    @pytest.mark.asyncio
    async def test_null_procedures(self, service, mock_client):
        mock_client.api_request.return_value = process_payload(ProcessProcedures=None)

        process = await service.get_process("proc-1")

        assert process.activities == []

    @pytest.mark.asyncio
    async def test_unexpected_shape(self, service, mock_client):
        mock_client.api_request.return_value = {"something": "else"}

        with pytest.raises(ApiError):
            await service.get_process("proc-1")


class TestProcessSummary:
    @pytest.mark.asyncio
    async def test_summary(self, service, mock_client):
        mock_client.api_request.return_value = {"nextReviewDate": "2025-06-30"}

        summary = await service.get_process_summary("proc-1")

        assert summary.next_review_date == "2025-06-30"
        assert mock_client.api_request.call_args.args[0].endswith("/proc-1/Summary")

    @pytest.mark.asyncio
    async def test_failure_is_swallowed(self, service, mock_client):
        mock_client.api_request.side_effect = ApiError("boom", status_code=500)

        assert await service.get_process_summary("proc-1") is None


class TestListProcesses:
    def test_clamp_page_size(self):
        assert clamp_page_size(10) == 10
        assert clamp_page_size(MAX_PAGE_SIZE + 400) == MAX_PAGE_SIZE
        assert clamp_page_size(0) == 1

    @pytest.mark.asyncio
    async def test_page_size_capped_upstream(self, service, mock_client):
        mock_client.api_request.return_value = {"items": [], "totalItemCount": 0}

        await service.list_processes(page_number=2, page_size=5000)

        path = mock_client.api_request.call_args.args[0]
        query = parse_qs(urlsplit(path).query)
        assert query["pageSize"] == [str(MAX_PAGE_SIZE)]
        assert query["pageNumber"] == ["2"]

    @pytest.mark.asyncio
    async def test_invalid_page_number(self, service, mock_client):
        with pytest.raises(ArgumentError):
            await service.list_processes(page_number=0)
        mock_client.api_request.assert_not_called()


class TestGroupHierarchy:
    def test_effective_depth(self):
        assert effective_depth(None) == MAX_HIERARCHY_DEPTH
        assert effective_depth(3) == 3
        assert effective_depth(MAX_HIERARCHY_DEPTH + 50) == MAX_HIERARCHY_DEPTH
        with pytest.raises(ArgumentError):
            effective_depth(-1)

    @pytest.mark.asyncio
    async def test_depth_zero_makes_no_request(self, service, mock_client):
        assert await service.get_group_hierarchy(max_depth=0) == []
        mock_client.api_request.assert_not_called()

    @pytest.mark.asyncio
    async def test_depth_one_lists_root_only(self, service, mock_client):
        mock_client.api_request.side_effect = tree_side_effect

        items = await service.get_group_hierarchy(max_depth=1)

        assert [i.unique_id for i in items] == ["g1", "p1"]
        assert items[0].children == []
        assert mock_client.api_request.await_count == 1
        assert mock_client.api_request.call_args.args[0] == GROUP_TREE_PATH

    @pytest.mark.asyncio
    async def test_full_walk_is_sequential_per_group(self, service, mock_client):
        mock_client.api_request.side_effect = tree_side_effect

        items = await service.get_group_hierarchy()

        paths = [c.args[0] for c in mock_client.api_request.call_args_list]
        assert paths == [
            GROUP_TREE_PATH,
            f"{GROUP_TREE_PATH}?parentUniqueId=g1",
            f"{GROUP_TREE_PATH}?parentUniqueId=g1a",
            f"{GROUP_TREE_PATH}?parentUniqueId=g1a-x",
        ]
        g1 = items[0]
        assert [c.unique_id for c in g1.children] == ["g1a", "p2"]
        assert g1.children[0].children[0].children[0].unique_id == "p3"

    @pytest.mark.asyncio
    async def test_depth_limits_expansion(self, service, mock_client):
        mock_client.api_request.side_effect = tree_side_effect

        items = await service.get_group_hierarchy(max_depth=2)

        assert mock_client.api_request.await_count == 2
        g1a = items[0].children[0]
        assert g1a.unique_id == "g1a"
        assert g1a.children == []

    @pytest.mark.asyncio
    async def test_exclude_processes_still_fetches(self, service, mock_client):
        mock_client.api_request.side_effect = tree_side_effect

        items = await service.get_group_hierarchy(include_processes=False)

        assert [i.unique_id for i in items] == ["g1"]
        assert [c.unique_id for c in items[0].children] == ["g1a"]
        assert items[0].children[0].children[0].children == []
        assert mock_client.api_request.await_count == 4


class TestGenerateDiagram:
    @pytest.mark.asyncio
    async def test_generates_permalink(self, service, mock_client):
        mock_client.api_request.side_effect = [
            process_payload(),
            {"permalinkUrl": "https://au.promapp.com/acme/minimode/abc"},
        ]

        process, permalink = await service.generate_diagram("proc-1")

        assert permalink == "https://au.promapp.com/acme/minimode/abc"
        call = mock_client.api_request.call_args_list[1]
        assert call.args[0] == DIAGRAM_GENERATE_PATH
        assert call.kwargs["method"] == "POST"
        assert call.kwargs["body"]["processUniqueId"] == "proc-1"
        assert call.kwargs["body"]["processRevisionEditId"] == 7

    @pytest.mark.asyncio
    async def test_missing_revision_fails_before_generation(
        self, service, mock_client
    ):
        mock_client.api_request.return_value = process_payload(
            ProcessRevisionEditId=None
        )

        with pytest.raises(ApiError) as exc_info:
            await service.generate_diagram("proc-1")

        assert "revision" in exc_info.value.message
        assert mock_client.api_request.await_count == 1

    @pytest.mark.asyncio
    async def test_missing_permalink(self, service, mock_client):
        mock_client.api_request.side_effect = [process_payload(), {}]

        with pytest.raises(ApiError):
            await service.generate_diagram("proc-1")
