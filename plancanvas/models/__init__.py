"""Pydantic schemas for canvases, layout results and process analyses."""

from .canvas import (
    CanvasEdge,
    CanvasNode,
    CanvasSnapshot,
    EdgeWeight,
    NodeKind,
    Section,
    SectionItem,
)
from .layout_metadata import (
    BoundingBox,
    LayoutResult,
    NodePosition,
)
from .analysis import (
    Insight,
    InsightType,
    ProcessAnalysisResult,
    ProcessStatistics,
    Severity,
)

__all__ = [
    # Canvas
    "CanvasEdge",
    "CanvasNode",
    "CanvasSnapshot",
    "EdgeWeight",
    "NodeKind",
    "Section",
    "SectionItem",

    # Layout
    "BoundingBox",
    "LayoutResult",
    "NodePosition",

    # Analysis
    "Insight",
    "InsightType",
    "ProcessAnalysisResult",
    "ProcessStatistics",
    "Severity",
]
