"""
Process completeness analysis for plan canvases.

Evaluates a canvas snapshot against a fixed set of systems-thinking
heuristics and reports a 0-100 score plus ordered insights.

Rules, in evaluation order:
 1. No goal                                    -> high   (logic)
 2. No risk                                    -> medium (risk)
 3. No resource and more than 2 actions        -> medium (resource)
 4. No stakeholder and more than 3 actions     -> low    (stakeholder)
 5. No boundary                                -> low    (boundary)
 6. No placeholder and actions + goals > 5     -> medium (data)
 7. No feedback loop and actions + goals > 4   -> medium (iteration)
 8. Isolated nodes                             -> high   (logic)
 9. More than 2 unlabelled edges               -> medium (logic)
10. No group and more than 8 nodes             -> low    (logic)

The feedback-loop check is positional: a ``reverse`` edge, or an edge whose
target sits more than 100 units left of its source, counts as a loop. It
depends on the current coordinates and is not a topological cycle check.
"""

import logging
from typing import Any, Dict, List, Sequence

from ...models.analysis import (
    Insight,
    InsightType,
    ProcessAnalysisResult,
    ProcessStatistics,
    Severity,
)
from ...models.canvas import is_blank_label

logger = logging.getLogger(__name__)

BACKWARD_EDGE_THRESHOLD = 100


def _value(kind: Any) -> str:
    return getattr(kind, "value", kind)


def _is_group(node: Any) -> bool:
    return _value(getattr(node, "kind", None)) == "group"


def count_nodes_by_type(nodes: Sequence[Any]) -> Dict[str, int]:
    """Count non-group nodes per kind; kinds that do not occur are absent."""
    counts: Dict[str, int] = {}
    for node in nodes:
        if _is_group(node):
            continue
        kind = _value(getattr(node, "kind", None)) or "base"
        counts[kind] = counts.get(kind, 0) + 1
    return counts


def detect_feedback_loop(nodes: Sequence[Any], edges: Sequence[Any]) -> bool:
    """Whether the canvas shows an iteration loop.

    True if any edge has weight ``reverse``, or any edge's target lies more
    than 100 units to the left of its source. Edges with a missing endpoint
    are ignored by the positional check.
    """
    if any(_value(getattr(e, "weight", None)) == "reverse" for e in edges):
        return True

    by_id = {node.id: node for node in nodes}
    for edge in edges:
        source = by_id.get(edge.source)
        target = by_id.get(edge.target)
        if source is None or target is None:
            continue
        if target.x < source.x - BACKWARD_EDGE_THRESHOLD:
            return True

    return False


def detect_isolated_nodes(nodes: Sequence[Any], edges: Sequence[Any]) -> List[str]:
    """IDs of non-group nodes that are neither source nor target of any edge."""
    connected = set()
    for edge in edges:
        connected.add(edge.source)
        connected.add(edge.target)

    return [
        node.id for node in nodes
        if not _is_group(node) and node.id not in connected
    ]


def analyze_process(nodes: Sequence[Any], edges: Sequence[Any]) -> ProcessAnalysisResult:
    """
    Score a canvas snapshot and list what is missing from the plan.

    Args:
        nodes: Objects exposing ``id``, ``kind`` and ``x``
        edges: Objects exposing ``source``, ``target``, ``weight`` and ``label``

    Returns:
        ProcessAnalysisResult; deterministic for a given input
    """
    insights: List[Insight] = []
    missing: List[str] = []
    by_type = count_nodes_by_type(nodes)

    goals = by_type.get("goal", 0)
    actions = by_type.get("action", 0)
    actionable = actions + goals

    has_goal = goals > 0
    has_risk = by_type.get("risk", 0) > 0
    has_resource = by_type.get("resource", 0) > 0
    has_stakeholder = by_type.get("stakeholder", 0) > 0
    has_boundary = by_type.get("boundary", 0) > 0
    has_placeholder = by_type.get("placeholder", 0) > 0

    # 1. Core objective
    if not has_goal:
        missing.append("goal")
        insights.append(Insight(
            type=InsightType.LOGIC,
            severity=Severity.HIGH,
            title="Missing core objective",
            description="The process has no Goal node, so its core purpose is unclear.",
            suggestion="Add a Goal node stating what this process is meant to achieve.",
        ))

    # 2. Risk identification
    if not has_risk:
        missing.append("risk")
        insights.append(Insight(
            type=InsightType.RISK,
            severity=Severity.MEDIUM,
            title="Missing risk identification",
            description="No potential risks or failure modes have been identified.",
            suggestion=(
                "Ask which steps could go wrong and which external threats exist, "
                "then mark them with Risk nodes."
            ),
        ))

    # 3. Resource planning
    if not has_resource and actions > 2:
        missing.append("resource")
        insights.append(Insight(
            type=InsightType.RESOURCE,
            severity=Severity.MEDIUM,
            title="Missing resource planning",
            description="The process has several action steps but no stated resource needs.",
            suggestion=(
                "List what executing these steps requires (people, budget, tools, time) "
                "and add Resource nodes."
            ),
        ))

    # 4. Stakeholders
    if not has_stakeholder and actions > 3:
        missing.append("stakeholder")
        insights.append(Insight(
            type=InsightType.STAKEHOLDER,
            severity=Severity.LOW,
            title="Stakeholders not identified",
            description="Complex processes usually involve several roles, but none are marked.",
            suggestion=(
                "Identify who influences the process, who approves it and who partners "
                "on it, and add Stakeholder nodes."
            ),
        ))

    # 5. Constraints
    if not has_boundary:
        missing.append("boundary")
        insights.append(Insight(
            type=InsightType.BOUNDARY,
            severity=Severity.LOW,
            title="Missing constraints",
            description="No constraints, rules or limits have been defined.",
            suggestion=(
                "Capture the limits that cannot be crossed (time, budget, regulation, "
                "technology) as Boundary nodes."
            ),
        ))

    # 6. Data preparation
    if not has_placeholder and actionable > 5:
        missing.append("placeholder")
        insights.append(Insight(
            type=InsightType.DATA,
            severity=Severity.MEDIUM,
            title="Missing data-preparation steps",
            description="Complex processes usually need data or information prepared up front.",
            suggestion=(
                "Mark the steps that need user-provided data with Placeholder nodes "
                "and note how to prepare it."
            ),
        ))

    # 7. Iteration
    has_loop = detect_feedback_loop(nodes, edges)
    if not has_loop and actionable > 4:
        insights.append(Insight(
            type=InsightType.ITERATION,
            severity=Severity.MEDIUM,
            title="Missing iteration mechanism",
            description="The process is linear, with no test-feedback-improve cycle.",
            suggestion=(
                "Connect a test or review stage back to a design or planning stage "
                "to close an iteration loop."
            ),
        ))

    # 8. Isolated nodes
    isolated = detect_isolated_nodes(nodes, edges)
    if isolated:
        insights.append(Insight(
            type=InsightType.LOGIC,
            severity=Severity.HIGH,
            title=f"{len(isolated)} isolated nodes",
            description="These nodes are not connected to anything, so their role is unclear.",
            suggestion="Connect each of them to show where it sits in the process.",
            affected_node_ids=isolated,
        ))

    # 9. Edge labels
    unlabeled = sum(1 for edge in edges if is_blank_label(getattr(edge, "label", None)))
    if unlabeled > 2:
        insights.append(Insight(
            type=InsightType.LOGIC,
            severity=Severity.MEDIUM,
            title=f"{unlabeled} connections missing labels",
            description=(
                "These connections do not say what kind of relation they are "
                "(depends on, triggers, optional)."
            ),
            suggestion="Label every connection with the relationship between its nodes.",
        ))

    # 10. Grouping
    has_groups = any(_is_group(node) for node in nodes)
    if not has_groups and len(nodes) > 8:
        insights.append(Insight(
            type=InsightType.LOGIC,
            severity=Severity.LOW,
            title="Suggest logical grouping",
            description="There are many nodes but no groups, which hurts readability.",
            suggestion="Use groups to split the nodes into phases such as plan, execute, verify.",
        ))

    score = 100 - sum(insight.severity.penalty for insight in insights)
    score = max(0, min(100, score))

    logger.debug(f"Process analysis: score={score}, insights={len(insights)}")

    return ProcessAnalysisResult(
        score=score,
        insights=insights,
        statistics=ProcessStatistics(
            total_nodes=sum(by_type.values()),
            nodes_by_type=by_type,
            missing_elements=missing,
            has_iteration_loop=has_loop,
            has_risk_assessment=has_risk,
            has_resource_planning=has_resource,
            has_stakeholder_mapping=has_stakeholder,
            has_boundary_definition=has_boundary,
        ),
    )


def generate_improvement_prompt(analysis: ProcessAnalysisResult) -> str:
    """Render an analysis as a plain-text brief for an AI follow-up request."""
    lines = [
        "Suggest improvements to the user's process based on this analysis.",
        "",
        f"Current process score: {analysis.score}/100",
        "",
    ]

    if not analysis.insights:
        lines.append("The process is structurally complete and covers the core elements.")
        return "\n".join(lines)

    lines.append("Issues found:")
    for index, insight in enumerate(analysis.insights, start=1):
        lines.append(f"{index}. [{insight.severity.value.upper()}] {insight.title}")
        lines.append(f"   - {insight.description}")
        lines.append(f"   - Suggestion: {insight.suggestion}")
        if insight.affected_node_ids:
            lines.append(f"   - Affected nodes: {', '.join(insight.affected_node_ids)}")
        lines.append("")

    stats = analysis.statistics
    distribution = ", ".join(
        f"{kind}({count})" for kind, count in stats.nodes_by_type.items()
    )
    lines.append("Statistics:")
    lines.append(f"- Total nodes: {stats.total_nodes}")
    lines.append(f"- Node distribution: {distribution or 'none'}")
    lines.append(
        f"- Missing elements: {', '.join(stats.missing_elements) if stats.missing_elements else 'none'}"
    )

    return "\n".join(lines)
