"""Full-text search over processes and documents."""

import logging
from typing import Any
from urllib.parse import urlencode

from pydantic import ValidationError

from .client import ProcessManagerClient
from .exceptions import ApiError
from .models import EntityType, ProcessSearchField, SearchMatchType, SearchResponse
from .utils import suggest_similar_strings

logger = logging.getLogger("process-manager-mcp.search")

SEARCH_FIELDS: dict[str, ProcessSearchField] = {
    "all": ProcessSearchField.ALL,
    "title": ProcessSearchField.TITLE,
    "activity": ProcessSearchField.ACTIVITY,
    "task": ProcessSearchField.TASK,
    "notes": ProcessSearchField.NOTES,
    "objectives": ProcessSearchField.OBJECTIVES,
    "background": ProcessSearchField.BACKGROUND,
    "keywords": ProcessSearchField.KEYWORDS,
}

MATCH_TYPES: dict[str, SearchMatchType] = {
    "any": SearchMatchType.ANY,
    "all": SearchMatchType.ALL,
    "exact": SearchMatchType.EXACT,
}


def parse_search_fields(names: list[Any] | None) -> list[ProcessSearchField]:
    """Convert field names to search field codes.

    Returns an empty list when no restriction applies, i.e. when no fields
    were given or the list contains "all". An unrecognised name counts as
    "all" and is logged with the closest accepted names.
    """
    if not names:
        return []

    fields = []
    for name in names:
        key = str(name).strip().lower()
        if key not in SEARCH_FIELDS:
            similar = suggest_similar_strings(str(name), list(SEARCH_FIELDS))
            hint = f" (did you mean {', '.join(similar)}?)" if similar else ""
            logger.warning(
                f"Unknown search field {name!r}{hint}; searching all fields. "
                f"Accepted fields: {', '.join(SEARCH_FIELDS)}"
            )
            key = "all"
        fields.append(SEARCH_FIELDS[key])

    if ProcessSearchField.ALL in fields:
        return []
    return fields


def build_search_query(
    query: str,
    entity_type: EntityType,
    match_type: SearchMatchType = SearchMatchType.ANY,
    page_number: int = 1,
    fields: list[ProcessSearchField] | None = None,
) -> str:
    """Build the search service query string."""
    params: list[tuple[str, str]] = [
        ("SearchCriteria", query),
        ("IncludedTypes", str(entity_type.value)),
        ("SearchMatchType", str(match_type.value)),
        ("pageNumber", str(page_number)),
    ]
    for field in fields or []:
        params.append(("ProcessSearchFields", str(field.value)))
    return urlencode(params)


class SearchService:
    """Search operations against the regional search service."""

    def __init__(self, client: ProcessManagerClient):
        self.client = client

    async def search(
        self,
        query: str,
        entity_type: EntityType,
        match_type: SearchMatchType = SearchMatchType.ANY,
        page_number: int = 1,
        fields: list[ProcessSearchField] | None = None,
    ) -> SearchResponse:
        """Run one page of a search restricted to an entity type.

        Raises:
            AuthError: If the search token cannot be obtained.
            ApiError: For failed requests or unexpected payloads.
            httpx.RequestError: For network errors.
        """
        logger.info(
            f"Searching {entity_type.name.lower()} for {query!r} (page {page_number})"
        )
        query_string = build_search_query(
            query, entity_type, match_type, page_number, fields
        )
        data = await self.client.search_request(query_string)

        try:
            results = SearchResponse.model_validate(data)
        except ValidationError as e:
            raise ApiError(
                "Search returned an unexpected response shape",
                errors=[str(e)],
            ) from e

        logger.debug(
            f"Search returned {len(results.response)} of "
            f"{results.paging.total_item_count} items"
        )
        return results
