"""Markdown rendering of Process Manager payloads."""

from html import escape

from .consts import MAX_HIGHLIGHTS_PER_FIELD
from .models import (
    AutomationAnalysis,
    ProcessDetail,
    ProcessListResponse,
    ProcessSummary,
    ScimUser,
    SearchResponse,
    TreeItem,
)


def format_search_results(results: SearchResponse, search_type: str) -> str:
    items = results.response
    paging = results.paging

    if not items:
        return f"No {search_type} found matching your search criteria."

    lines = [
        f"Found {paging.total_item_count} {search_type} "
        f"(showing {len(items)} on page {paging.page_number}):",
        "",
    ]
    for index, item in enumerate(items, start=1):
        lines.append(f"{index}. **{item.name}**")
        lines.append(f"   Type: {item.entity_type or 'Unknown'}")
        if item.item_url:
            lines.append(f"   URL: {item.item_url}")
        if item.process_unique_id:
            lines.append(f"   Process ID: {item.process_unique_id}")
        if item.document_unique_id:
            lines.append(f"   Document ID: {item.document_unique_id}")
        if item.bread_crumb_group_names:
            lines.append(f"   Location: {' > '.join(item.bread_crumb_group_names)}")

        highlights = {k: v for k, v in item.highlights.items() if v}
        if highlights:
            lines.append("   Matches found in:")
            for field, matches in highlights.items():
                shown = "; ".join(matches[:MAX_HIGHLIGHTS_PER_FIELD])
                more = "..." if len(matches) > MAX_HIGHLIGHTS_PER_FIELD else ""
                lines.append(f"     - {field}: {shown}{more}")
        lines.append("")

    if not paging.is_last_page:
        lines.append(
            "More results available. Use the page_number parameter to view "
            f"page {paging.page_number + 1}."
        )

    return "\n".join(lines)


def format_process_details(
    process: ProcessDetail, summary: ProcessSummary | None = None
) -> str:
    lines = [
        f"# {process.name}",
        "",
        f"**Process ID:** {process.unique_id}",
        f"**State:** {process.state or 'Unknown'}",
        f"**Owner:** {process.owner or 'Unassigned'}",
        f"**Expert:** {process.expert or 'Unassigned'}",
        f"**Group:** {process.group or 'Unknown'}",
    ]
    if summary is not None:
        lines.append(f"**Next Review Date:** {summary.next_review_date or 'Not set'}")
        if summary.search_keywords:
            lines.append(f"**Keywords:** {summary.search_keywords}")
    lines.append("")

    if process.objective:
        lines.extend(["**Objective:**", process.objective, ""])
    if process.background:
        lines.extend(["**Background:**", process.background, ""])

    if process.activities:
        lines.extend(["## Activities", ""])

    for activity in process.activities:
        lines.append(f"### {activity.number} {activity.text}")

        if activity.ownerships and activity.ownerships.roles:
            roles = ", ".join(role.name for role in activity.ownerships.roles)
            lines.append(f"**Assigned to:** {roles}")
        if activity.ownerships and activity.ownerships.tags:
            tags = ", ".join(tag.name for tag in activity.ownerships.tags)
            lines.append(f"**Tags:** {tags}")

        if activity.tasks:
            lines.extend(["", "**Tasks:**"])
            lines.extend(f"- {task.number} {task.text}" for task in activity.tasks)

        if activity.risk_controls and activity.risk_controls.risk_controls:
            lines.extend(["", "**Risk Controls:**"])
            for risk in activity.risk_controls.risk_controls:
                lines.append(f"- {risk.title}")
                if risk.portfolios and risk.portfolios.portfolios:
                    names = ", ".join(p.name for p in risk.portfolios.portfolios)
                    lines.append(f"  Portfolio: {names}")
        lines.append("")

    return "\n".join(lines)


def format_user(user: ScimUser) -> str:
    lines = [
        "# User Information",
        "",
        f"**Name:** {user.full_name or 'Unknown'}",
        f"**Email:** {user.user_name}",
        f"**User ID:** {user.id}",
        f"**Status:** {'Active' if user.active else 'Inactive'}",
    ]
    if user.meta and user.meta.created:
        lines.append(f"**Created:** {user.meta.created}")
    if user.emails:
        lines.append("**Emails:**")
        for email in user.emails:
            primary = " (primary)" if email.primary else ""
            lines.append(f"  - {email.value}{primary}")
    return "\n".join(lines)


def format_tree(items: list[TreeItem], depth: int) -> str:
    if not items:
        return "No groups found (empty hierarchy)."

    counts = {"groups": 0, "processes": 0}
    lines: list[str] = []
    # explicit stack so deep trees do not recurse
    stack = [(item, 0) for item in reversed(items)]
    while stack:
        item, indent = stack.pop()
        if item.is_group:
            counts["groups"] += 1
        elif item.is_process:
            counts["processes"] += 1
        lines.append(f"{'  ' * indent}- {item.title} [{item.item_type}] ({item.unique_id})")
        stack.extend((child, indent + 1) for child in reversed(item.children))

    header = (
        f"# Group Hierarchy (depth {depth})\n\n"
        f"{counts['groups']} groups, {counts['processes']} processes\n"
    )
    return header + "\n" + "\n".join(lines)


def format_process_list(
    result: ProcessListResponse, page_number: int, page_size: int
) -> str:
    if not result.items:
        return f"No processes found on page {page_number}."

    lines = [
        f"Found {result.total_item_count} processes "
        f"(page {page_number}, {page_size} per page):",
        "",
    ]
    first = (page_number - 1) * page_size
    for index, item in enumerate(result.items, start=first + 1):
        lines.append(f"{index}. **{item.process_name}**")
        if item.process_unique_id:
            lines.append(f"   Process ID: {item.process_unique_id}")
        if item.process_state:
            lines.append(f"   State: {item.process_state}")
        if item.group_name:
            lines.append(f"   Group: {item.group_name}")
        if item.process_owner:
            lines.append(f"   Owner: {item.process_owner}")
    if first + len(result.items) < result.total_item_count:
        lines.extend(["", f"More processes available on page {page_number + 1}."])
    return "\n".join(lines)


def diagram_embed_html(permalink_url: str, title: str) -> str:
    """Embeddable iframe for a diagram permalink."""
    return (
        f'<iframe src="{escape(permalink_url, quote=True)}" '
        f'title="{escape(title, quote=True)}" width="100%" height="600" '
        'frameborder="0" allowfullscreen></iframe>'
    )


def format_diagram(process: ProcessDetail, permalink_url: str) -> str:
    return "\n".join(
        [
            f"# Process Diagram: {process.name}",
            "",
            f"**Process ID:** {process.unique_id}",
            f"**Permalink:** {permalink_url}",
            "",
            "An embeddable HTML fragment is attached as a resource.",
        ]
    )


def format_analysis(analysis: AutomationAnalysis) -> str:
    summary = analysis.summary
    lines = [
        f"# Automation Analysis: {analysis.process_name}",
        "",
        f"**Process ID:** {analysis.process_id}",
        f"**Overall potential:** {summary.overall_automation_potential.value}",
        f"**Steps analyzed:** {summary.total_steps}",
        f"**Automation candidates:** {summary.automation_candidates}",
        f"**High confidence:** {summary.high_confidence_opportunities}",
    ]
    if summary.primary_automation_types:
        types = ", ".join(t.value for t in summary.primary_automation_types)
        lines.append(f"**Primary types:** {types}")
    lines.append("")

    if analysis.opportunities:
        lines.extend(["## Opportunities", ""])
        for o in analysis.opportunities:
            lines.append(f"### {o.step_number} {o.step_text} ({o.step_type})")
            lines.append(
                f"- Types: {', '.join(t.value for t in o.automation_types)}"
            )
            lines.append(
                f"- Confidence: {o.confidence.value}, "
                f"complexity: {o.estimated_complexity.value}"
            )
            lines.append(f"- {o.rationale}")
            lines.append("")

    lines.extend(["## Recommendations", ""])
    lines.extend(f"- {r}" for r in analysis.recommendations)

    design = analysis.agent_design
    if design is not None:
        lines.extend(["", "## Agent Design", ""])
        if not design.suggested_agents:
            lines.append("No step groups large enough to warrant a dedicated agent.")
        for agent in design.suggested_agents:
            lines.append(f"### {agent.name}")
            lines.append(agent.purpose)
            lines.append(f"- Covers steps: {', '.join(agent.covered_steps)}")
            lines.append(f"- Capabilities: {', '.join(agent.capabilities)}")
            lines.append("")
        if design.integration_points:
            lines.append(
                f"**Integration points:** {', '.join(design.integration_points)}"
            )
    return "\n".join(lines)
