"""Tool dispatcher: maps tool calls onto service operations and shapes results."""

import json
import logging
from collections.abc import Awaitable, Callable
from functools import cache
from typing import Any
from urllib.parse import quote

from .automation import analyze_process
from .bounding import bound_json, bound_text
from .client import ProcessManagerClient, get_client
from .consts import DEFAULT_PAGE_SIZE
from .exceptions import ArgumentError, ProcessManagerMCPError
from .formatting import (
    diagram_embed_html,
    format_analysis,
    format_diagram,
    format_process_details,
    format_process_list,
    format_search_results,
    format_tree,
    format_user,
)
from .models import EntityType, ToolResource, ToolResult
from .processes import ProcessService, clamp_page_size, effective_depth
from .search import MATCH_TYPES, SearchService, parse_search_fields
from .users import UserService
from .utils import (
    choice,
    optional_bool,
    optional_int,
    require_str,
    suggest_similar_strings,
)

logger = logging.getLogger("process-manager-mcp.tools")

RESOURCE_SCHEME = "processmanager"

Handler = Callable[[dict[str, Any]], Awaitable[ToolResult]]


def _uri(*parts: str) -> str:
    return f"{RESOURCE_SCHEME}://" + "/".join(quote(p, safe="") for p in parts)


def _bounded(
    text: str, data: Any = None, uri: str | None = None, html: str | None = None
) -> ToolResult:
    """Build a successful result with every block passed through the bounds."""
    resources = []
    if data is not None and uri is not None:
        resources.append(
            ToolResource(
                uri=uri,
                mime_type="application/json",
                text=bound_json(json.dumps(data, indent=2, default=str)),
            )
        )
    if html is not None and uri is not None:
        resources.append(
            ToolResource(uri=f"{uri}.html", mime_type="text/html", text=bound_json(html))
        )
    return ToolResult(text=bound_text(text), resources=resources)


class ToolDispatcher:
    """Route tool calls to handlers inside an error boundary.

    Every handler validates its own arguments, calls one or more service
    operations in sequence, and returns a bounded ToolResult. `dispatch`
    never raises: failures come back as error-flagged results.
    """

    def __init__(self, client: ProcessManagerClient):
        self.client = client
        self.search_service = SearchService(client)
        self.process_service = ProcessService(client)
        self.user_service = UserService(client)
        self._handlers: dict[str, Handler] = {
            "search_processes": self.search_processes,
            "search_documents": self.search_documents,
            "search_all": self.search_all,
            "get_process": self.get_process,
            "lookup_user": self.lookup_user,
            "get_group_hierarchy": self.get_group_hierarchy,
            "list_processes": self.list_processes,
            "get_process_diagram": self.get_process_diagram,
            "analyze_automation_opportunities": self.analyze_automation_opportunities,
        }

    @property
    def tool_names(self) -> list[str]:
        return list(self._handlers)

    async def dispatch(self, name: str, arguments: dict[str, Any] | None) -> ToolResult:
        """Invoke the named tool and convert any failure into an error result."""
        logger.info(f"Tool call: {name}")
        try:
            handler = self._handlers.get(name)
            if handler is None:
                similar = suggest_similar_strings(name, self.tool_names)
                raise ArgumentError(
                    f"Unknown tool: {name}",
                    suggestions=[f"Did you mean '{s}'?" for s in similar],
                )
            return await handler(arguments or {})
        except ProcessManagerMCPError as e:
            logger.warning(f"Tool {name} failed: {e.message}")
            return ToolResult.from_error(e)
        except Exception as e:
            logger.exception(f"Tool {name} failed unexpectedly")
            return ToolResult.from_error(e)

    # ===== SEARCH =====

    async def _search(
        self,
        arguments: dict[str, Any],
        entity_type: EntityType,
        search_type: str,
        fields: list[Any] | None = None,
    ) -> ToolResult:
        query = require_str(arguments, "query")
        match_type = choice(arguments, "match_type", MATCH_TYPES, "any")
        page_number = optional_int(arguments, "page_number", 1)
        if page_number < 1:
            raise ArgumentError(f"page_number must be 1 or more, got {page_number}")

        results = await self.search_service.search(
            query,
            entity_type,
            match_type=match_type,
            page_number=page_number,
            fields=parse_search_fields(fields),
        )
        return _bounded(
            format_search_results(results, search_type),
            results.model_dump(mode="json", by_alias=True),
            _uri("search", search_type.replace(" ", "-")),
        )

    async def search_processes(self, arguments: dict[str, Any]) -> ToolResult:
        fields = arguments.get("search_fields")
        if fields is not None and not isinstance(fields, list):
            raise ArgumentError("search_fields must be a list of field names")
        return await self._search(
            arguments, EntityType.PROCESSES_ONLY, "processes", fields
        )

    async def search_documents(self, arguments: dict[str, Any]) -> ToolResult:
        return await self._search(arguments, EntityType.DOCUMENTS_ONLY, "documents")

    async def search_all(self, arguments: dict[str, Any]) -> ToolResult:
        return await self._search(arguments, EntityType.ALL, "all content")

    # ===== PROCESSES =====

    async def get_process(self, arguments: dict[str, Any]) -> ToolResult:
        process_id = require_str(arguments, "process_id")
        process = await self.process_service.get_process(process_id)
        summary = await self.process_service.get_process_summary(process_id)

        data = process.model_dump(mode="json", by_alias=True)
        if summary is not None:
            data["summary"] = summary.model_dump(mode="json", by_alias=True)
        return _bounded(
            format_process_details(process, summary),
            data,
            _uri("process", process.unique_id),
        )

    async def list_processes(self, arguments: dict[str, Any]) -> ToolResult:
        page_number = optional_int(arguments, "page_number", 1)
        page_size = optional_int(arguments, "page_size", DEFAULT_PAGE_SIZE)

        result = await self.process_service.list_processes(page_number, page_size)
        return _bounded(
            format_process_list(result, page_number, clamp_page_size(page_size)),
            result.model_dump(mode="json", by_alias=True),
            _uri("processes", f"page-{page_number}"),
        )

    async def get_group_hierarchy(self, arguments: dict[str, Any]) -> ToolResult:
        max_depth = optional_int(arguments, "max_depth", None)
        include_processes = optional_bool(arguments, "include_processes", True)

        depth = effective_depth(max_depth)
        items = await self.process_service.get_group_hierarchy(
            max_depth, include_processes
        )
        return _bounded(
            format_tree(items, depth),
            [item.model_dump(mode="json", by_alias=True) for item in items],
            _uri("groups", "hierarchy"),
        )

    async def get_process_diagram(self, arguments: dict[str, Any]) -> ToolResult:
        process_id = require_str(arguments, "process_id")
        process, permalink_url = await self.process_service.generate_diagram(
            process_id
        )
        return _bounded(
            format_diagram(process, permalink_url),
            {
                "processUniqueId": process.unique_id,
                "processName": process.name,
                "permalinkUrl": permalink_url,
            },
            _uri("process", process.unique_id, "diagram"),
            html=diagram_embed_html(permalink_url, process.name),
        )

    async def analyze_automation_opportunities(
        self, arguments: dict[str, Any]
    ) -> ToolResult:
        process_id = require_str(arguments, "process_id")
        include_agent_design = optional_bool(arguments, "include_agent_design", True)

        process = await self.process_service.get_process(process_id)
        analysis = analyze_process(process, include_agent_design)
        return _bounded(
            format_analysis(analysis),
            analysis.model_dump(mode="json", by_alias=True),
            _uri("process", process.unique_id, "automation"),
        )

    # ===== USERS =====

    async def lookup_user(self, arguments: dict[str, Any]) -> ToolResult:
        email = require_str(arguments, "email")
        user = await self.user_service.lookup_user(email)
        if user is None:
            return _bounded(f"No user found with email: {email}")
        return _bounded(
            format_user(user),
            user.model_dump(mode="json", by_alias=True),
            _uri("user", user.id),
        )


@cache
def get_dispatcher() -> ToolDispatcher:
    """Get a cached ToolDispatcher bound to the shared client."""
    return ToolDispatcher(get_client())
