"""Canvas data model shared by the layout engine, the analyzer and the store.

A canvas is a directed graph of typed plan nodes (goal, action, risk, ...)
plus non-semantic group containers. Both leaf algorithms consume a
:class:`CanvasSnapshot`; only the minimal structural fields (id, kind,
width, height, x, y) matter to them; the rest belongs to the editor.

Group membership (``child_node_ids``) is derived from geometry by the store
and is never authoritative input to layout or analysis.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Set, Tuple

from pydantic import BaseModel, Field, field_validator

# Fallback footprints when a node was never measured by the renderer
DEFAULT_NODE_WIDTH = 280.0
DEFAULT_NODE_HEIGHT = 120.0
DEFAULT_GROUP_WIDTH = 400.0
DEFAULT_GROUP_HEIGHT = 300.0
DEFAULT_GROUP_COLOR = "#6366f1"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class NodeKind(str, Enum):
    """Closed set of node kinds; ``group`` is the only non-semantic one."""
    BASE = "base"
    GOAL = "goal"
    IDEA = "idea"
    ACTION = "action"
    RISK = "risk"
    RESOURCE = "resource"
    PLACEHOLDER = "placeholder"
    STAKEHOLDER = "stakeholder"
    BOUNDARY = "boundary"
    GROUP = "group"


class EdgeWeight(str, Enum):
    """Semantic strength of a connection. Does not affect layout direction."""
    STRONG = "strong"
    WEAK = "weak"
    UNCERTAIN = "uncertain"
    REVERSE = "reverse"


DEFAULT_TITLES = {
    NodeKind.BASE: "New Node",
    NodeKind.GOAL: "New Goal",
    NodeKind.IDEA: "New Idea",
    NodeKind.ACTION: "New Action",
    NodeKind.RISK: "New Risk",
    NodeKind.RESOURCE: "New Resource",
    NodeKind.PLACEHOLDER: "New Placeholder",
    NodeKind.STAKEHOLDER: "New Stakeholder",
    NodeKind.BOUNDARY: "New Boundary",
    NodeKind.GROUP: "New Section",
}


class SectionItem(BaseModel):
    """A single bullet inside a node section."""

    id: str
    content: str = ""


class Section(BaseModel):
    """Titled list of items attached to a node."""

    id: str
    title: str = ""
    items: List[SectionItem] = Field(default_factory=list)


class CanvasNode(BaseModel):
    """A vertex of the plan graph, or a group container when kind is ``group``.

    Attributes:
        id: Unique node identifier
        kind: Node kind
        title: Display title
        description: Free-form description
        sections: Structured content sections
        width: Measured width, if the renderer reported one
        height: Measured height, if the renderer reported one
        x: Horizontal position (top-left corner)
        y: Vertical position (top-left corner)
        color: Group colour (groups only)
        child_node_ids: Derived group membership (groups only)
    """

    id: str = Field(..., min_length=1, description="Unique node identifier")
    kind: NodeKind = Field(default=NodeKind.BASE, description="Node kind")
    title: str = Field(default="", description="Display title")
    description: str = Field(default="", description="Free-form description")
    sections: List[Section] = Field(default_factory=list)
    width: Optional[float] = Field(default=None, description="Measured width")
    height: Optional[float] = Field(default=None, description="Measured height")
    x: float = Field(default=0.0, description="Horizontal position")
    y: float = Field(default=0.0, description="Vertical position")
    color: Optional[str] = Field(default=None, description="Group colour")
    child_node_ids: List[str] = Field(
        default_factory=list, description="Derived group membership"
    )
    created_at: str = Field(default_factory=_now)
    last_modified: str = Field(default_factory=_now)

    @field_validator("width", "height")
    @classmethod
    def _non_positive_is_unmeasured(cls, v: Optional[float]) -> Optional[float]:
        # A zero footprint means "not measured yet"
        if v is not None and v <= 0:
            return None
        return v

    @property
    def is_group(self) -> bool:
        return self.kind == NodeKind.GROUP

    def size(self) -> Tuple[float, float]:
        """Measured footprint or the fallback default for the node kind."""
        if self.is_group:
            return (
                self.width or DEFAULT_GROUP_WIDTH,
                self.height or DEFAULT_GROUP_HEIGHT,
            )
        return (
            self.width or DEFAULT_NODE_WIDTH,
            self.height or DEFAULT_NODE_HEIGHT,
        )

    def center(self) -> Tuple[float, float]:
        width, height = self.size()
        return (self.x + width / 2, self.y + height / 2)


def is_blank_label(label: Optional[str]) -> bool:
    """Whether an edge label is missing or whitespace only."""
    return not label or not label.strip()


class CanvasEdge(BaseModel):
    """A directed, weighted, optionally labelled relation between two nodes."""

    id: str = Field(..., min_length=1)
    source: str = Field(..., description="Source node ID")
    target: str = Field(..., description="Target node ID")
    weight: EdgeWeight = Field(default=EdgeWeight.WEAK)
    label: Optional[str] = Field(default=None)

    @property
    def has_label(self) -> bool:
        return not is_blank_label(self.label)


class CanvasSnapshot(BaseModel):
    """Immutable view of a canvas handed to the layout engine and analyzer."""

    model_config = {"frozen": True}

    nodes: List[CanvasNode] = Field(default_factory=list)
    edges: List[CanvasEdge] = Field(default_factory=list)

    def content_nodes(self) -> List[CanvasNode]:
        """All nodes that are not group containers, in canvas order."""
        return [n for n in self.nodes if not n.is_group]

    def groups(self) -> List[CanvasNode]:
        return [n for n in self.nodes if n.is_group]

    def valid_edges(self, node_ids: Optional[Set[str]] = None) -> List[CanvasEdge]:
        """Edges whose endpoints both exist, one per source/target pair.

        Args:
            node_ids: Restrict endpoints to these IDs (defaults to all nodes)

        Returns:
            Filtered edges in original order
        """
        if node_ids is None:
            node_ids = {n.id for n in self.nodes}

        seen: Set[Tuple[str, str]] = set()
        valid = []
        for edge in self.edges:
            if edge.source not in node_ids or edge.target not in node_ids:
                continue
            key = (edge.source, edge.target)
            if key in seen:
                continue
            seen.add(key)
            valid.append(edge)
        return valid
