"""MCP tool groups exposed by the plan canvas server."""

from .analysis_tools import AnalysisTools
from .canvas_tools import CanvasTools
from .layout_tools import LayoutTools

__all__ = ["AnalysisTools", "CanvasTools", "LayoutTools"]
