"""Result schemas for the process-completeness analyzer.

An analysis is a 0-100 score, an ordered list of insights and a block of
statistics. The score starts at 100 and every insight subtracts the penalty
of its severity.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class InsightType(str, Enum):
    """Categories of process insights."""
    RISK = "risk"
    RESOURCE = "resource"
    STAKEHOLDER = "stakeholder"
    BOUNDARY = "boundary"
    DATA = "data"
    LOGIC = "logic"
    ITERATION = "iteration"


class Severity(str, Enum):
    """Severity levels for insights."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def penalty(self) -> int:
        """Points subtracted from the score per insight of this severity."""
        return {"high": 20, "medium": 10, "low": 5}[self.value]


class Insight(BaseModel):
    """One actionable finding about the process structure."""

    type: InsightType
    severity: Severity
    title: str
    description: str
    suggestion: str
    affected_node_ids: Optional[List[str]] = Field(
        default=None, description="Offending node IDs, when the rule has any"
    )


class ProcessStatistics(BaseModel):
    """Counts and derived flags describing the analyzed canvas.

    Attributes:
        total_nodes: Number of non-group nodes
        nodes_by_type: Count per node kind present on the canvas
        missing_elements: Kinds whose absence triggered a rule, in rule order
        has_iteration_loop: A feedback loop was detected
        has_risk_assessment: At least one risk node exists
        has_resource_planning: At least one resource node exists
        has_stakeholder_mapping: At least one stakeholder node exists
        has_boundary_definition: At least one boundary node exists
    """

    total_nodes: int = 0
    nodes_by_type: Dict[str, int] = Field(default_factory=dict)
    missing_elements: List[str] = Field(default_factory=list)
    has_iteration_loop: bool = False
    has_risk_assessment: bool = False
    has_resource_planning: bool = False
    has_stakeholder_mapping: bool = False
    has_boundary_definition: bool = False


class ProcessAnalysisResult(BaseModel):
    """Score, insights and statistics for one canvas snapshot."""

    score: int = Field(..., ge=0, le=100)
    insights: List[Insight] = Field(default_factory=list)
    statistics: ProcessStatistics = Field(default_factory=ProcessStatistics)

    def insight_titles(self) -> List[str]:
        return [i.title for i in self.insights]

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
