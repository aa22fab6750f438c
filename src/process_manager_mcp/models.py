from datetime import datetime
from enum import IntEnum, StrEnum
from typing import Annotated, Any, Literal

import httpx
from mcp.types import EmbeddedResource, TextContent, TextResourceContents
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .exceptions import ProcessManagerMCPError


def _none_to_empty(value: Any) -> Any:
    return [] if value is None else value


def _clean_highlights(value: Any) -> Any:
    if value is None:
        return {}
    if isinstance(value, dict):
        return {k: v or [] for k, v in value.items()}
    return value


# =============================================================================
# TOOL RESULT MODEL
# =============================================================================
# Single result type for every tool handler. Converted to MCP content blocks
# at the server boundary.


class ToolResource(BaseModel):
    """An embedded resource block (structured JSON or markup)."""

    uri: str = Field(..., description="Resource URI")
    mime_type: str = Field(..., description="MIME type of the resource text")
    text: str = Field(..., description="Resource body")


class ToolResult(BaseModel):
    """Unified result type for all tool handlers."""

    text: str = Field(..., description="Human-readable text block")
    resources: list[ToolResource] = Field(
        default_factory=list, description="Structured data and markup blocks"
    )
    is_error: bool = Field(False, description="Whether the call failed")

    def to_content(self) -> list[TextContent | EmbeddedResource]:
        """Convert to MCP content blocks, text first."""
        content: list[TextContent | EmbeddedResource] = [
            TextContent(type="text", text=self.text)
        ]
        for resource in self.resources:
            content.append(
                EmbeddedResource(
                    type="resource",
                    resource=TextResourceContents(
                        uri=resource.uri,
                        mimeType=resource.mime_type,
                        text=resource.text,
                    ),
                )
            )
        return content

    @classmethod
    def from_error(cls, error: Exception) -> "ToolResult":
        """Create an error ToolResult from any Exception, with potentially
        helpful info for recovery.

        Args:
            error: Any Exception instance

        Returns:
            ToolResult flagged as an error
        """
        if isinstance(error, ProcessManagerMCPError):
            message = error.message
            errors = error.errors
            suggestions = error.suggestions
        elif isinstance(error, httpx.RequestError):
            # Network/connection errors
            url = None
            try:
                url = str(error.request.url)
            except RuntimeError:
                pass
            message = f"Network error: {error}"
            errors = [f"URL: {url}"] if url else []
            suggestions = [
                "Check your internet connection",
                "Verify PM_REGION and PM_SITE_NAME are correct",
                "Try again - this may be a temporary network issue",
            ]
        else:
            message = f"Unexpected error: {error}"
            errors = []
            suggestions = ["Check server logs for detailed information"]

        lines = [f"Error: {message}"]
        if errors:
            lines.append("")
            lines.append("Details:")
            lines.extend(f"- {e}" for e in errors)
        if suggestions:
            lines.append("")
            lines.append("Suggestions:")
            lines.extend(f"- {s}" for s in suggestions)
        return cls(text="\n".join(lines), is_error=True)


# =============================================================================
# TOKEN MODELS
# =============================================================================


class CachedToken(BaseModel):
    """A bearer token and the instant after which it must not be used."""

    model_config = ConfigDict(frozen=True)

    token: str
    expires_at: datetime

    def is_valid(self, now: datetime) -> bool:
        return now < self.expires_at


class VendorModel(BaseModel):
    """Base for vendor payloads.

    Undocumented vendor fields are kept as extras; documented fields are
    addressable by their Python names or the vendor's aliases.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class SiteTokenResponse(VendorModel):
    access_token: str
    token_type: str | None = None
    expires_in: float


class SearchTokenResponse(VendorModel):
    status: str = Field(..., alias="Status")
    message: str | None = Field(None, alias="Message")


# =============================================================================
# SEARCH MODELS
# =============================================================================


class EntityType(IntEnum):
    """Search entity type filter."""

    ALL = 0
    PROCESSES_ONLY = 1
    DOCUMENTS_ONLY = 2
    POLICIES_ONLY = 3
    PROCEDURE_ONLY_PROCESSES = 4
    SUGGESTED_PROCESSES = 5
    GROUPS = 6


class ProcessSearchField(IntEnum):
    """Process fields a search can be restricted to."""

    ALL = 0
    TITLE = 1
    ACTIVITY = 2
    TASK = 3
    NOTES = 4
    OBJECTIVES = 5
    BACKGROUND = 6
    KEYWORDS = 7


class SearchMatchType(IntEnum):
    ANY = 0
    ALL = 1
    EXACT = 2


class SearchResultItem(VendorModel):
    name: str = Field("", alias="Name")
    entity_type: str | None = Field(None, alias="EntityType")
    item_url: str | None = Field(None, alias="ItemUrl")
    bread_crumb_group_names: Annotated[
        list[str], BeforeValidator(_none_to_empty)
    ] = Field(default_factory=list, alias="BreadCrumbGroupNames")
    process_unique_id: str | None = Field(None, alias="ProcessUniqueId")
    document_unique_id: str | None = Field(None, alias="DocumentUniqueId")
    process_group_unique_id: str | None = Field(None, alias="ProcessGroupUniqueId")
    highlights: Annotated[
        dict[str, list[str]], BeforeValidator(_clean_highlights)
    ] = Field(default_factory=dict, alias="HighLights")


class SearchPaging(VendorModel):
    total_item_count: int = Field(0, alias="TotalItemCount")
    last_item_on_page: int | None = Field(None, alias="LastItemOnPage")
    is_last_page: bool = Field(True, alias="IsLastPage")
    page_number: int = Field(1, alias="PageNumber")


class SearchResponse(VendorModel):
    success: bool = True
    response: Annotated[list[SearchResultItem], BeforeValidator(_none_to_empty)] = (
        Field(default_factory=list)
    )
    paging: SearchPaging = Field(default_factory=SearchPaging)


# =============================================================================
# PROCESS MODELS
# =============================================================================
# The process payload nests lists inside single-key objects, e.g.
# {"ProcessProcedures": {"Activity": [...]}}. Each wrapper is modelled so
# that a null or missing list reads as empty.


class NamedItem(VendorModel):
    name: str = Field("", alias="Name")


class Ownerships(VendorModel):
    roles: Annotated[list[NamedItem], BeforeValidator(_none_to_empty)] = Field(
        default_factory=list, alias="Role"
    )
    tags: Annotated[list[NamedItem], BeforeValidator(_none_to_empty)] = Field(
        default_factory=list, alias="Tag"
    )


class Portfolios(VendorModel):
    portfolios: Annotated[list[NamedItem], BeforeValidator(_none_to_empty)] = Field(
        default_factory=list, alias="Portfolio"
    )


class RiskControl(VendorModel):
    title: str = Field("", alias="Title")
    portfolios: Portfolios | None = Field(None, alias="Portfolios")


class RiskControls(VendorModel):
    risk_controls: Annotated[list[RiskControl], BeforeValidator(_none_to_empty)] = (
        Field(default_factory=list, alias="RiskControl")
    )


class Task(VendorModel):
    id: int | None = Field(None, alias="Id")
    unique_id: str | None = Field(None, alias="UniqueId")
    number: str = Field("", alias="Number")
    text: str = Field("", alias="Text")


class ChildProcedures(VendorModel):
    tasks: Annotated[list[Task], BeforeValidator(_none_to_empty)] = Field(
        default_factory=list, alias="Task"
    )


class Activity(Task):
    ownerships: Ownerships | None = Field(None, alias="Ownerships")
    child_procedures: ChildProcedures | None = Field(
        None, alias="ChildProcessProcedures"
    )
    risk_controls: RiskControls | None = Field(None, alias="RiskControls")

    @property
    def tasks(self) -> list[Task]:
        return self.child_procedures.tasks if self.child_procedures else []


class ProcessProcedures(VendorModel):
    activities: Annotated[list[Activity], BeforeValidator(_none_to_empty)] = Field(
        default_factory=list, alias="Activity"
    )


class ProcessDetail(VendorModel):
    """The `processJson` object of a process detail response."""

    id: int | None = Field(None, alias="Id")
    unique_id: str = Field(..., alias="UniqueId")
    name: str = Field("", alias="Name")
    state: str | None = Field(None, alias="State")
    owner: str | None = Field(None, alias="Owner")
    expert: str | None = Field(None, alias="Expert")
    group: str | None = Field(None, alias="Group")
    group_unique_id: str | None = Field(None, alias="GroupUniqueId")
    objective: str | None = Field(None, alias="Objective")
    background: str | None = Field(None, alias="Background")
    process_revision_edit_id: int | None = Field(None, alias="ProcessRevisionEditId")
    procedures: ProcessProcedures | None = Field(None, alias="ProcessProcedures")

    @property
    def activities(self) -> list[Activity]:
        return self.procedures.activities if self.procedures else []


class ProcessResponse(VendorModel):
    process: ProcessDetail = Field(..., alias="processJson")


class ProcessSummary(VendorModel):
    """Review metadata from the process summary endpoint."""

    owner: str | None = None
    expert: str | None = None
    next_review_date: str | None = Field(None, alias="nextReviewDate")
    search_keywords: str | None = Field(None, alias="searchKeywords")
    should_show_explicit_review: bool | None = Field(
        None, alias="shouldShowExplicitReview"
    )
    is_never_published_process: bool | None = Field(
        None, alias="isNeverPublishedProcess"
    )


class ProcessListItem(VendorModel):
    process_id: int | None = Field(None, alias="processId")
    process_name: str = Field("", alias="processName")
    process_unique_id: str | None = Field(None, alias="processUniqueId")
    process_state: str | None = Field(None, alias="processState")
    group_name: str | None = Field(None, alias="groupName")
    process_owner: str | None = Field(None, alias="processOwner")
    process_expert: str | None = Field(None, alias="processExpert")


class ProcessListResponse(VendorModel):
    items: Annotated[list[ProcessListItem], BeforeValidator(_none_to_empty)] = (
        Field(default_factory=list)
    )
    total_item_count: int = Field(0, alias="totalItemCount")


class DiagramPermalink(VendorModel):
    permalink_url: str = Field(..., alias="permalinkUrl")


# =============================================================================
# GROUP HIERARCHY MODELS
# =============================================================================


PROCESS_ITEM_TYPES = frozenset({"process", "inprogress-process"})


class TreeItem(VendorModel):
    """A node of the group/process tree. `children` is filled by traversal."""

    id: int | None = None
    unique_id: str = Field(..., alias="uniqueId")
    title: str = ""
    item_type: str = Field("", alias="itemType")
    item_order: int | None = Field(None, alias="itemOrder")
    has_child: bool | None = Field(None, alias="hasChild")
    total_subgroups: int | None = Field(None, alias="totalSubgroups")
    children: list["TreeItem"] = Field(default_factory=list)

    @property
    def is_group(self) -> bool:
        return self.item_type == "group"

    @property
    def is_process(self) -> bool:
        return self.item_type in PROCESS_ITEM_TYPES


class TreeItemsResponse(VendorModel):
    tree_items: Annotated[list[TreeItem], BeforeValidator(_none_to_empty)] = Field(
        default_factory=list, alias="treeItems"
    )
    parent_unique_id: str | None = Field(None, alias="parentUniqueId")


# =============================================================================
# SCIM MODELS
# =============================================================================


class ScimName(VendorModel):
    formatted: str | None = None
    given_name: str | None = Field(None, alias="givenName")
    family_name: str | None = Field(None, alias="familyName")


class ScimEmail(VendorModel):
    value: str
    primary: bool = False
    type: str | None = None


class ScimMeta(VendorModel):
    created: str | None = None
    last_modified: str | None = Field(None, alias="lastModified")


class ScimUser(VendorModel):
    id: str
    user_name: str = Field(..., alias="userName")
    name: ScimName | None = None
    display_name: str | None = Field(None, alias="displayName")
    active: bool = True
    emails: Annotated[list[ScimEmail], BeforeValidator(_none_to_empty)] = Field(
        default_factory=list
    )
    meta: ScimMeta | None = None

    @property
    def full_name(self) -> str:
        if self.name is None:
            return self.display_name or ""
        parts = [self.name.given_name, self.name.family_name]
        return " ".join(p for p in parts if p) or self.name.formatted or ""


class ScimListResponse(VendorModel):
    total_results: int | None = Field(None, alias="totalResults")
    resources: Annotated[list[ScimUser], BeforeValidator(_none_to_empty)] = Field(
        default_factory=list, alias="Resources"
    )


# =============================================================================
# AUTOMATION ANALYSIS MODELS
# =============================================================================


class AutomationType(StrEnum):
    API_INTEGRATION = "api_integration"
    RPA_BOT = "rpa_bot"
    DEDICATED_AGENT = "dedicated_agent"
    WORKFLOW_AUTOMATION = "workflow_automation"
    DOCUMENT_PROCESSING = "document_processing"
    DATA_ENTRY = "data_entry"
    NOTIFICATION = "notification"
    APPROVAL_WORKFLOW = "approval_workflow"


class Tier(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AnalysisModel(BaseModel):
    """Base for analysis results; serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StepOpportunity(AnalysisModel):
    """Automation opportunity for a single activity or task."""

    step_number: str
    step_text: str
    step_type: Literal["activity", "task"]
    categories: list[str]
    automation_types: list[AutomationType]
    confidence: Tier
    rationale: str
    indicators: list[str]
    estimated_complexity: Tier


class AnalysisSummary(AnalysisModel):
    total_steps: int
    automation_candidates: int
    high_confidence_opportunities: int
    primary_automation_types: list[AutomationType]
    overall_automation_potential: Tier


class SuggestedAgent(AnalysisModel):
    name: str
    purpose: str
    covered_steps: list[str]
    capabilities: list[str]


class AgentDesign(AnalysisModel):
    suggested_agents: list[SuggestedAgent] = Field(default_factory=list)
    integration_points: list[str] = Field(default_factory=list)


class AutomationAnalysis(AnalysisModel):
    process_id: str
    process_name: str
    analysis_timestamp: datetime
    summary: AnalysisSummary
    opportunities: list[StepOpportunity]
    recommendations: list[str]
    agent_design: AgentDesign | None = Field(None, alias="agentDesignSuggestions")
