"""Process retrieval, listing, group hierarchy and diagram operations."""

import logging
from collections import deque
from typing import TypeVar
from urllib.parse import quote, urlencode

import httpx
from pydantic import BaseModel, ValidationError

from .client import ProcessManagerClient
from .consts import (
    DIAGRAM_GENERATE_PATH,
    GROUP_TREE_PATH,
    MAX_HIERARCHY_DEPTH,
    MAX_PAGE_SIZE,
    PROCESS_LIST_PATH,
    PROCESS_PATH,
    PROCESS_SUMMARY_PATH,
)
from .exceptions import ApiError, ArgumentError, ProcessManagerMCPError
from .models import (
    DiagramPermalink,
    ProcessDetail,
    ProcessListResponse,
    ProcessResponse,
    ProcessSummary,
    TreeItem,
    TreeItemsResponse,
)

logger = logging.getLogger("process-manager-mcp.processes")

ModelT = TypeVar("ModelT", bound=BaseModel)


def _validate(model: type[ModelT], data: object, what: str) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ApiError(
            f"{what} returned an unexpected response shape", errors=[str(e)]
        ) from e


def clamp_page_size(page_size: int) -> int:
    """Clamp a requested page size into [1, MAX_PAGE_SIZE]."""
    return max(1, min(page_size, MAX_PAGE_SIZE))


def effective_depth(max_depth: int | None) -> int:
    """Resolve a requested hierarchy depth against MAX_HIERARCHY_DEPTH.

    Depth counts group levels: 1 lists the root only, 2 also lists the
    contents of root-level groups, and so on. None means the hard ceiling.

    Raises:
        ArgumentError: For negative depths.
    """
    if max_depth is None:
        return MAX_HIERARCHY_DEPTH
    if max_depth < 0:
        raise ArgumentError(
            f"max_depth must be zero or positive, got {max_depth}",
            suggestions=["Omit max_depth to walk the full tree"],
        )
    return min(max_depth, MAX_HIERARCHY_DEPTH)


class ProcessService:
    """Process operations against the site API."""

    def __init__(self, client: ProcessManagerClient):
        self.client = client

    async def get_process(self, process_id: str) -> ProcessDetail:
        """Fetch the full structure of one process.

        Raises:
            AuthError: If the site token cannot be obtained.
            ApiError: For failed requests or unexpected payloads.
        """
        logger.info(f"Fetching process {process_id}")
        data = await self.client.api_request(
            PROCESS_PATH.format(process_id=quote(process_id, safe=""))
        )
        return _validate(ProcessResponse, data, "Process detail").process

    async def get_process_summary(self, process_id: str) -> ProcessSummary | None:
        """Fetch review metadata for a process, best effort.

        Any failure is logged and reported as None.
        """
        try:
            data = await self.client.api_request(
                PROCESS_SUMMARY_PATH.format(process_id=quote(process_id, safe=""))
            )
            return _validate(ProcessSummary, data, "Process summary")
        except (ProcessManagerMCPError, httpx.HTTPError) as e:
            logger.warning(f"Process summary unavailable for {process_id}: {e}")
            return None

    async def list_processes(
        self, page_number: int = 1, page_size: int = 20
    ) -> ProcessListResponse:
        """List processes one page at a time.

        The page size is clamped to MAX_PAGE_SIZE before the request is made.
        """
        if page_number < 1:
            raise ArgumentError(f"page_number must be 1 or more, got {page_number}")
        size = clamp_page_size(page_size)
        if size != page_size:
            logger.info(f"Clamped page size {page_size} to {size}")

        query = urlencode({"pageNumber": page_number, "pageSize": size})
        data = await self.client.api_request(f"{PROCESS_LIST_PATH}?{query}")
        return _validate(ProcessListResponse, data, "Process list")

    async def get_tree_items(self, parent_unique_id: str | None = None) -> list[TreeItem]:
        """List the direct children of a group, or of the root when None."""
        path = GROUP_TREE_PATH
        if parent_unique_id is not None:
            path += f"?parentUniqueId={quote(parent_unique_id, safe='')}"
        data = await self.client.api_request(path)
        return _validate(TreeItemsResponse, data, "Group tree").tree_items

    async def get_group_hierarchy(
        self, max_depth: int | None = None, include_processes: bool = True
    ) -> list[TreeItem]:
        """Walk the group tree breadth first, one request per expanded group.

        Requests are issued sequentially. Groups are expanded only when they
        report children and sit above the effective depth. With
        include_processes False, process leaves are dropped after each fetch.
        A depth of 0 returns an empty tree without any request.
        """
        depth = effective_depth(max_depth)
        if depth == 0:
            return []

        root: list[TreeItem] = []
        # (parent, level of the items being fetched); None parent is the root
        queue: deque[tuple[TreeItem | None, int]] = deque([(None, 1)])
        requests = 0

        while queue:
            parent, level = queue.popleft()
            items = await self.get_tree_items(parent.unique_id if parent else None)
            requests += 1

            if not include_processes:
                items = [item for item in items if not item.is_process]

            if parent is None:
                root = items
            else:
                parent.children = items

            if level < depth:
                for item in items:
                    if item.is_group and item.has_child:
                        queue.append((item, level + 1))

        logger.info(f"Group hierarchy walked to depth {depth} in {requests} requests")
        return root

    async def generate_diagram(self, process_id: str) -> tuple[ProcessDetail, str]:
        """Generate a shareable diagram permalink for a process.

        Returns:
            The process detail and the permalink URL.

        Raises:
            ApiError: If the process has no revision identifier, or the
                generation response has no permalink. No generation request
                is made without a revision identifier.
        """
        process = await self.get_process(process_id)
        if process.process_revision_edit_id is None:
            raise ApiError(
                f"Process {process_id} has no revision identifier; "
                "cannot generate a diagram",
                suggestions=["Check that the process has been published"],
            )

        logger.info(f"Generating diagram for process {process_id}")
        data = await self.client.api_request(
            DIAGRAM_GENERATE_PATH,
            method="POST",
            body={
                "processUniqueId": process.unique_id,
                "processRevisionEditId": process.process_revision_edit_id,
                "variationId": "",
            },
        )
        permalink = _validate(DiagramPermalink, data, "Diagram generation")
        return process, permalink.permalink_url
