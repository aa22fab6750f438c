"""Process Manager MCP server implementation."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from mcp.types import EmbeddedResource, TextContent
from pydantic import ValidationError

from .client import get_client
from .config import get_config, setup_logging
from .consts import SERVER_NAME
from .tools import get_dispatcher

logger = logging.getLogger("process-manager-mcp.server")

ToolContent = list[TextContent | EmbeddedResource]


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Close the shared HTTP client when the server shuts down."""
    try:
        yield
    finally:
        if get_client.cache_info().currsize:
            await get_client().aclose()
            logger.info("HTTP client closed")


mcp = FastMCP(
    name=SERVER_NAME,
    lifespan=lifespan,
    instructions="""
    Process Manager MCP server.

    This MCP server allows you to:
    1. Search processes, documents and all content in a Process Manager site.
    2. Read full process details, the group hierarchy and process lists.
    3. Look up users in the SCIM directory.
    4. Generate process diagrams and analyze processes for automation potential.
    """,
)


async def _call(name: str, arguments: dict[str, Any]) -> ToolContent:
    """Dispatch a tool call; error results are raised as ToolError so the
    MCP runtime flags them with isError."""
    result = await get_dispatcher().dispatch(name, arguments)
    if result.is_error:
        raise ToolError(result.text)
    return result.to_content()


# ===== SEARCH TOOLS =====


@mcp.tool(structured_output=False)
async def search_processes(
    query: str,
    search_fields: list[str] | None = None,
    match_type: str = "any",
    page_number: int = 1,
) -> ToolContent:
    """Search for processes in Process Manager.

    Searches across process titles, activities, tasks, objectives and more.
    Returns matching processes with their metadata, URLs and highlighted
    matching content.

    Args:
        query: The search query (e.g. "onboarding", "risk management")
        search_fields: Fields to search in: all, title, activity, task, notes,
            objectives, background, keywords. Default is all fields.
        match_type: "any" (match any word), "all" (match all words) or
            "exact" (exact phrase)
        page_number: Page number for pagination (default: 1)
    """
    return await _call(
        "search_processes",
        {
            "query": query,
            "search_fields": search_fields,
            "match_type": match_type,
            "page_number": page_number,
        },
    )


@mcp.tool(structured_output=False)
async def search_documents(
    query: str, match_type: str = "any", page_number: int = 1
) -> ToolContent:
    """Search for documents in Process Manager.

    Returns matching documents with their metadata and process associations.

    Args:
        query: The search query (e.g. "policy", "template")
        match_type: "any", "all" or "exact"
        page_number: Page number for pagination (default: 1)
    """
    return await _call(
        "search_documents",
        {"query": query, "match_type": match_type, "page_number": page_number},
    )


@mcp.tool(structured_output=False)
async def search_all(
    query: str, match_type: str = "any", page_number: int = 1
) -> ToolContent:
    """Search all content types in Process Manager (processes, documents,
    policies, groups).

    Args:
        query: The search query
        match_type: "any", "all" or "exact"
        page_number: Page number for pagination (default: 1)
    """
    return await _call(
        "search_all",
        {"query": query, "match_type": match_type, "page_number": page_number},
    )


# ===== PROCESS TOOLS =====


@mcp.tool(structured_output=False)
async def get_process(process_id: str) -> ToolContent:
    """Get detailed information about a process by its unique ID.

    Returns the complete process structure including activities, tasks,
    role ownership, risk controls, objective, owner, expert and the next
    review date when available.

    Args:
        process_id: The unique ID of the process (UUID format)
    """
    return await _call("get_process", {"process_id": process_id})


@mcp.tool(structured_output=False)
async def list_processes(page_number: int = 1, page_size: int = 20) -> ToolContent:
    """List processes page by page.

    Args:
        page_number: Page number (default: 1)
        page_size: Processes per page (default: 20, maximum: 100)
    """
    return await _call(
        "list_processes", {"page_number": page_number, "page_size": page_size}
    )


@mcp.tool(structured_output=False)
async def get_group_hierarchy(
    max_depth: int | None = None, include_processes: bool = True
) -> ToolContent:
    """Get the group hierarchy as a tree.

    Args:
        max_depth: Number of group levels to walk; 1 lists top-level items
            only, 0 returns an empty tree. Default and maximum: 10.
        include_processes: Whether to include processes as leaves
            (default: True)
    """
    return await _call(
        "get_group_hierarchy",
        {"max_depth": max_depth, "include_processes": include_processes},
    )


@mcp.tool(structured_output=False)
async def get_process_diagram(process_id: str) -> ToolContent:
    """Generate a shareable diagram for a process.

    Returns the permalink and an embeddable HTML fragment.

    Args:
        process_id: The unique ID of the process
    """
    return await _call("get_process_diagram", {"process_id": process_id})


@mcp.tool(structured_output=False)
async def analyze_automation_opportunities(
    process_id: str, include_agent_design: bool = True
) -> ToolContent:
    """Analyze a process for automation opportunities.

    Classifies each activity and task against automation categories (data
    entry, document processing, notifications, approvals, integrations,
    RPA, decision making, routing, reporting, scheduling) and summarizes the
    overall automation potential.

    Args:
        process_id: The unique ID of the process
        include_agent_design: Whether to suggest AI agents for groups of
            related steps (default: True)
    """
    return await _call(
        "analyze_automation_opportunities",
        {"process_id": process_id, "include_agent_design": include_agent_design},
    )


# ===== USER TOOLS =====


@mcp.tool(structured_output=False)
async def lookup_user(email: str) -> ToolContent:
    """Look up a user by email address using the SCIM API.

    Returns name, ID, active status and email addresses. Requires the SCIM
    API key to be configured.

    Args:
        email: The email address of the user to look up
    """
    return await _call("lookup_user", {"email": email})


def main() -> None:
    """Validate configuration and run the MCP server on stdio."""
    try:
        config = get_config()
    except ValidationError as e:
        missing = ", ".join(
            f"PM_{'_'.join(str(p) for p in err['loc']).upper()}" for err in e.errors()
        )
        message = f"Error: Missing or invalid configuration: {missing}"
        logger.error(message)
        print(message, file=sys.stderr)
        sys.exit(1)

    setup_logging(config.log_level)
    logger.info(f"Starting {SERVER_NAME} for {config.site_base_url}")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
