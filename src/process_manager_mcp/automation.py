"""Keyword-based automation opportunity analysis of process steps.

Each activity and task is matched against ten fixed keyword categories. The
analysis is deterministic apart from its timestamp: the same process always
yields the same opportunities, summary and agent suggestions.
"""

import logging
import re
from collections import Counter
from datetime import UTC, datetime
from typing import NamedTuple

from .models import (
    AgentDesign,
    AnalysisSummary,
    AutomationAnalysis,
    AutomationType,
    ProcessDetail,
    StepOpportunity,
    SuggestedAgent,
    Tier,
)

logger = logging.getLogger("process-manager-mcp.automation")

# Minimum number of steps sharing a category before an agent is suggested
AGENT_MIN_STEPS = 2


class KeywordCategory(NamedTuple):
    key: str
    label: str
    automation_type: AutomationType
    pattern: re.Pattern
    agent_name: str
    agent_purpose: str
    capabilities: tuple[str, ...]


def _words(*fragments: str) -> re.Pattern:
    return re.compile(r"\b(?:" + "|".join(fragments) + r")\b", re.IGNORECASE)


CATEGORIES: tuple[KeywordCategory, ...] = (
    KeywordCategory(
        "data_entry",
        "data entry",
        AutomationType.DATA_ENTRY,
        _words(
            r"enter\w*", r"input\w*", r"record\w*", r"updat\w*", r"key in",
            r"populat\w*", r"fill in", r"data entry", r"captur\w*",
        ),
        "Data Entry Agent",
        "Captures and keys structured data into target systems",
        ("form filling", "field validation", "system data entry"),
    ),
    KeywordCategory(
        "document_processing",
        "document processing",
        AutomationType.DOCUMENT_PROCESSING,
        _words(
            r"documents?", r"forms?", r"invoices?", r"pdfs?", r"scan\w*",
            r"attach\w*", r"receipts?", r"contracts?", r"extract\w*",
        ),
        "Document Processing Agent",
        "Reads, classifies and extracts data from incoming documents",
        ("OCR and text extraction", "document classification", "data extraction"),
    ),
    KeywordCategory(
        "notification",
        "notification",
        AutomationType.NOTIFICATION,
        _words(
            r"notif\w*", r"emails?", r"emailed", r"send\w*", r"sent", r"inform\w*",
            r"alert\w*", r"remind\w*", r"advis\w*",
        ),
        "Notification Agent",
        "Sends status updates and reminders to stakeholders",
        ("templated messaging", "stakeholder lookup", "delivery tracking"),
    ),
    KeywordCategory(
        "approval",
        "approval",
        AutomationType.APPROVAL_WORKFLOW,
        _words(
            r"approv\w*", r"sign off", r"signs off", r"authori[sz]\w*",
            r"endors\w*", r"sign-off",
        ),
        "Approval Agent",
        "Routes items for approval and records decisions",
        ("approval routing", "delegation rules", "audit trail"),
    ),
    KeywordCategory(
        "system_integration",
        "system integration",
        AutomationType.API_INTEGRATION,
        _words(
            r"systems?", r"crm", r"erp", r"databases?", r"portals?", r"sync\w*",
            r"integrat\w*", r"apis?", r"export\w*", r"import\w*",
        ),
        "Integration Agent",
        "Moves data between systems through their APIs",
        ("API calls", "data mapping", "error handling and reconciliation"),
    ),
    KeywordCategory(
        "repetitive_manual",
        "repetitive manual work",
        AutomationType.RPA_BOT,
        _words(
            r"copy\w*", r"copies", r"paste\w*", r"download\w*", r"upload\w*",
            r"manual\w*", r"repeat\w*", r"daily", r"weekly", r"spreadsheets?",
            r"excel",
        ),
        "RPA Bot",
        "Replays repetitive user-interface work across applications",
        ("screen automation", "file handling", "scheduled runs"),
    ),
    KeywordCategory(
        "decision_making",
        "decision making",
        AutomationType.DEDICATED_AGENT,
        _words(
            r"assess\w*", r"determin\w*", r"decid\w*", r"decision\w*",
            r"evaluat\w*", r"analy[sz]\w*", r"judg\w*", r"investigat\w*",
            r"triag\w*", r"classif\w*",
        ),
        "Decision Support Agent",
        "Assesses cases against policy and recommends an outcome",
        ("policy reasoning", "case summarisation", "human-in-the-loop review"),
    ),
    KeywordCategory(
        "routing",
        "routing",
        AutomationType.WORKFLOW_AUTOMATION,
        _words(
            r"rout\w*", r"assign\w*", r"forward\w*", r"escalat\w*", r"hand over",
            r"handover", r"allocat\w*", r"refer\w*",
        ),
        "Workflow Routing Agent",
        "Assigns and escalates work items to the right owner",
        ("rule-based routing", "workload balancing", "escalation handling"),
    ),
    KeywordCategory(
        "reporting",
        "reporting",
        AutomationType.DOCUMENT_PROCESSING,
        _words(
            r"reports?", r"reporting", r"summar\w*", r"dashboards?", r"metrics?",
            r"reconcil\w*",
        ),
        "Reporting Agent",
        "Compiles recurring reports and summaries",
        ("data aggregation", "report generation", "distribution"),
    ),
    KeywordCategory(
        "scheduling",
        "scheduling and monitoring",
        AutomationType.WORKFLOW_AUTOMATION,
        _words(
            r"schedul\w*", r"monitor\w*", r"track\w*", r"follow up", r"follow-up",
            r"deadlines?", r"calendar\w*", r"check status",
        ),
        "Monitoring Agent",
        "Tracks deadlines and follows up on outstanding work",
        ("deadline tracking", "status polling", "follow-up reminders"),
    ),
)

CATEGORIES_BY_KEY = {category.key: category for category in CATEGORIES}

RECOMMENDATIONS: dict[AutomationType, str] = {
    AutomationType.API_INTEGRATION: (
        "Replace system-to-system re-keying with direct API integrations"
    ),
    AutomationType.RPA_BOT: (
        "Use RPA for repetitive UI work where systems lack APIs"
    ),
    AutomationType.DEDICATED_AGENT: (
        "Pilot an AI agent for assessment steps, keeping a human reviewer"
    ),
    AutomationType.WORKFLOW_AUTOMATION: (
        "Model hand-offs and follow-ups in a workflow engine"
    ),
    AutomationType.DOCUMENT_PROCESSING: (
        "Introduce document capture and extraction for incoming paperwork"
    ),
    AutomationType.DATA_ENTRY: (
        "Pre-populate forms from existing data to remove manual entry"
    ),
    AutomationType.NOTIFICATION: (
        "Automate notifications from process events instead of manual emails"
    ),
    AutomationType.APPROVAL_WORKFLOW: (
        "Move approvals to a digital approval workflow with an audit trail"
    ),
}


def confidence_for(category_count: int) -> Tier:
    if category_count >= 3:
        return Tier.HIGH
    if category_count >= 2:
        return Tier.MEDIUM
    return Tier.LOW


def complexity_for(category_keys: list[str]) -> Tier:
    if "decision_making" in category_keys:
        return Tier.HIGH
    if "system_integration" in category_keys or "repetitive_manual" in category_keys:
        return Tier.MEDIUM
    return Tier.LOW


def analyze_step(
    number: str, text: str, step_type: str
) -> StepOpportunity | None:
    """Classify one step. Returns None when no category matches."""
    matched: list[KeywordCategory] = []
    indicators: list[str] = []
    for category in CATEGORIES:
        hits = sorted({m.group(0).lower() for m in category.pattern.finditer(text)})
        if hits:
            matched.append(category)
            indicators.extend(f"{category.key}: {hit}" for hit in hits)

    if not matched:
        return None

    keys = [category.key for category in matched]
    types: list[AutomationType] = []
    for category in matched:
        if category.automation_type not in types:
            types.append(category.automation_type)

    return StepOpportunity(
        step_number=number,
        step_text=text,
        step_type=step_type,
        categories=keys,
        automation_types=types,
        confidence=confidence_for(len(matched)),
        rationale="Matches "
        + ", ".join(category.label for category in matched)
        + " patterns",
        indicators=indicators,
        estimated_complexity=complexity_for(keys),
    )


def overall_potential(candidates: int, total: int, high: int) -> Tier:
    ratio = candidates / total if total else 0.0
    if ratio >= 0.5 or high >= 3:
        return Tier.HIGH
    if ratio >= 0.25 or high >= 1:
        return Tier.MEDIUM
    return Tier.LOW


def _recommendations(
    summary: AnalysisSummary, opportunities: list[StepOpportunity]
) -> list[str]:
    if not opportunities:
        return [
            "No clear automation signals found; review the process for "
            "implicit hand-offs before automating"
        ]

    recommendations = []
    high = [o.step_number for o in opportunities if o.confidence == Tier.HIGH]
    if high:
        recommendations.append(
            f"Prioritise the high-confidence steps: {', '.join(high)}"
        )
    recommendations.extend(
        RECOMMENDATIONS[t] for t in summary.primary_automation_types
    )
    if summary.overall_automation_potential == Tier.HIGH:
        recommendations.append(
            "Consider an end-to-end redesign rather than automating step by step"
        )
    return recommendations


def _agent_design(opportunities: list[StepOpportunity]) -> AgentDesign:
    covered: dict[str, list[str]] = {}
    for opportunity in opportunities:
        for key in opportunity.categories:
            covered.setdefault(key, []).append(opportunity.step_number)

    agents = []
    for category in CATEGORIES:
        steps = covered.get(category.key, [])
        if len(steps) >= AGENT_MIN_STEPS:
            agents.append(
                SuggestedAgent(
                    name=category.agent_name,
                    purpose=category.agent_purpose,
                    covered_steps=steps,
                    capabilities=list(category.capabilities),
                )
            )

    integration_points = sorted(
        {
            indicator.split(": ", 1)[1]
            for opportunity in opportunities
            for indicator in opportunity.indicators
            if indicator.startswith("system_integration: ")
        }
    )
    return AgentDesign(suggested_agents=agents, integration_points=integration_points)


def analyze_process(
    process: ProcessDetail,
    include_agent_design: bool = True,
    now: datetime | None = None,
) -> AutomationAnalysis:
    """Analyze every activity and task of a process for automation potential."""
    opportunities: list[StepOpportunity] = []
    total_steps = 0

    for activity in process.activities:
        total_steps += 1
        opportunity = analyze_step(activity.number, activity.text, "activity")
        if opportunity:
            opportunities.append(opportunity)
        for task in activity.tasks:
            total_steps += 1
            opportunity = analyze_step(task.number, task.text, "task")
            if opportunity:
                opportunities.append(opportunity)

    type_counts = Counter(t for o in opportunities for t in o.automation_types)
    high_count = sum(1 for o in opportunities if o.confidence == Tier.HIGH)
    summary = AnalysisSummary(
        total_steps=total_steps,
        automation_candidates=len(opportunities),
        high_confidence_opportunities=high_count,
        primary_automation_types=[t for t, _ in type_counts.most_common(3)],
        overall_automation_potential=overall_potential(
            len(opportunities), total_steps, high_count
        ),
    )
    logger.info(
        f"Analyzed {total_steps} steps of {process.unique_id}: "
        f"{len(opportunities)} candidates, {high_count} high confidence"
    )

    return AutomationAnalysis(
        process_id=process.unique_id,
        process_name=process.name,
        analysis_timestamp=now or datetime.now(UTC),
        summary=summary,
        opportunities=opportunities,
        recommendations=_recommendations(summary, opportunities),
        agent_design=_agent_design(opportunities) if include_agent_design else None,
    )
