"""MCP tools for layout computation.

Provides tools to:
- Compute the hierarchical left-to-right layout of a canvas
- Optionally write the computed positions back to the canvas
"""

import logging
from typing import Dict, List, Optional

from mcp import Tool

from ..core.canvas_store import CanvasStore
from ..layout.engines import ENGINES, LayoutEngine, get_engine
from ..models.layout_metadata import NodePosition
from ..utils.response import error_response, success_response

logger = logging.getLogger(__name__)


class LayoutTools:
    """Provides layout computation tools."""

    def __init__(self, canvases: Dict[str, CanvasStore]):
        """Initialize with the shared canvas registry.

        Args:
            canvases: Canvas ID -> store
        """
        self.canvases = canvases
        self._engines: Dict[str, LayoutEngine] = {}

    def engine(self, name: str) -> LayoutEngine:
        """Lazily instantiate a registered engine."""
        if name not in self._engines:
            self._engines[name] = get_engine(name)()
        return self._engines[name]

    def get_tools(self) -> List[Tool]:
        """Return layout MCP tools."""
        return [
            Tool(
                name="layout_compute",
                description="Compute a left-to-right layout for a canvas from its edges. Cycles are broken, group containers are ignored. Optionally apply the positions to the canvas.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "canvas_id": {
                            "type": "string",
                            "description": "ID of canvas to lay out"
                        },
                        "algorithm": {
                            "type": "string",
                            "enum": list(ENGINES.keys()),
                            "description": "Layout algorithm",
                            "default": "hierarchical"
                        },
                        "origin": {
                            "type": "object",
                            "description": "Anchor position; positions are offsets from it",
                            "properties": {
                                "x": {"type": "number"},
                                "y": {"type": "number"}
                            },
                            "required": ["x", "y"]
                        },
                        "apply": {
                            "type": "boolean",
                            "description": "Write the positions back to the canvas",
                            "default": False
                        }
                    },
                    "required": ["canvas_id"]
                }
            ),
        ]

    async def handle_tool(self, name: str, arguments: dict) -> dict:
        """Route tool call to appropriate handler.

        Args:
            name: Tool name
            arguments: Tool arguments

        Returns:
            Standardized response
        """
        handlers = {
            "layout_compute": self._compute_layout,
        }

        handler = handlers.get(name)
        if not handler:
            return error_response(f"Unknown layout tool: {name}", code="UNKNOWN_TOOL")

        try:
            return await handler(arguments)
        except Exception as e:
            logger.error(f"Error in {name}: {e}", exc_info=True)
            return error_response(str(e), code="TOOL_ERROR")

    async def _compute_layout(self, args: dict) -> dict:
        """Compute layout for a canvas."""
        canvas_id = args["canvas_id"]
        store = self.canvases.get(canvas_id)
        if store is None:
            return error_response(f"Canvas {canvas_id} not found", code="CANVAS_NOT_FOUND")

        algorithm = args.get("algorithm", "hierarchical")
        if algorithm not in ENGINES:
            return error_response(f"Unknown algorithm: {algorithm}", code="INVALID_INPUT")

        origin: Optional[NodePosition] = None
        if args.get("origin") is not None:
            try:
                origin = NodePosition.model_validate(args["origin"])
            except ValueError as e:
                return error_response(f"Invalid origin: {e}", code="INVALID_INPUT")

        snapshot = store.snapshot()
        content = snapshot.content_nodes()
        edges = snapshot.valid_edges({n.id for n in content})

        layout = self.engine(algorithm).layout(content, edges, origin)

        moved = 0
        if args.get("apply", False):
            moved = store.apply_positions(layout.positions)
            logger.info(f"Applied {algorithm} layout to {moved} node(s) of canvas {canvas_id}")

        result = layout.to_dict()
        result.update({
            "canvas_id": canvas_id,
            "node_count": len(layout.positions),
            "applied": bool(args.get("apply", False)),
            "moved": moved,
        })

        warnings = []
        if layout.capped:
            warnings.append("Leveling hit its iteration cap; some nodes were placed in a trailing column")

        return success_response(result, warnings=warnings)
