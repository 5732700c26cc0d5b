"""MCP tools for process analysis.

Scores a canvas (or a raw node/edge list sent by a client) against the
completeness rules of the process analyzer and renders the improvement
prompt an agent can act on.
"""

import logging
from typing import Any, Dict, List, Tuple

from mcp import Tool
from pydantic import ValidationError

from ..core.analytics import analyze_process, generate_improvement_prompt
from ..core.canvas_store import CanvasStore
from ..models.canvas import CanvasEdge, CanvasNode
from ..utils.response import error_response, success_response

logger = logging.getLogger(__name__)


def parse_raw_graph(
    raw_nodes: Any, raw_edges: Any
) -> Tuple[List[CanvasNode], List[CanvasEdge]]:
    """Validate client-supplied node and edge arrays.

    Nodes may carry their kind under ``type`` (the editor's key) or ``kind``.
    Edges without an ID get a positional one.

    Raises:
        ValueError: If either argument is not an array of objects
        pydantic.ValidationError: If an element is malformed
    """
    if not isinstance(raw_nodes, list) or not isinstance(raw_edges, list):
        raise ValueError("'nodes' and 'edges' must both be arrays")

    nodes = []
    for raw in raw_nodes:
        if not isinstance(raw, dict):
            raise ValueError("Every node must be an object")
        data = dict(raw)
        if "kind" not in data and "type" in data:
            data["kind"] = data.pop("type")
        nodes.append(CanvasNode.model_validate(data))

    edges = []
    for index, raw in enumerate(raw_edges):
        if not isinstance(raw, dict):
            raise ValueError("Every edge must be an object")
        data = dict(raw)
        data.setdefault("id", f"edge-{index}")
        edges.append(CanvasEdge.model_validate(data))

    return nodes, edges


class AnalysisTools:
    """Provides process analysis tools."""

    def __init__(self, canvases: Dict[str, CanvasStore]):
        self.canvases = canvases

    def get_tools(self) -> List[Tool]:
        """Return analysis MCP tools."""
        return [
            Tool(
                name="analysis_process",
                description="Score a plan canvas for completeness (goal, risks, resources, stakeholders, constraints, iteration, connectivity) and return insights plus an improvement prompt. Pass canvas_id, or raw nodes and edges.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "canvas_id": {
                            "type": "string",
                            "description": "ID of canvas to analyze"
                        },
                        "nodes": {
                            "type": "array",
                            "description": "Raw nodes: {id, type, x, y, ...}",
                            "items": {"type": "object"}
                        },
                        "edges": {
                            "type": "array",
                            "description": "Raw edges: {source, target, weight, label}",
                            "items": {"type": "object"}
                        },
                        "include_prompt": {
                            "type": "boolean",
                            "description": "Include the improvement prompt",
                            "default": True
                        }
                    }
                }
            ),
        ]

    async def handle_tool(self, name: str, arguments: dict) -> dict:
        """Route tool call to appropriate handler."""
        handlers = {
            "analysis_process": self._analyze_process,
        }

        handler = handlers.get(name)
        if not handler:
            return error_response(f"Unknown analysis tool: {name}", code="UNKNOWN_TOOL")

        try:
            return await handler(arguments)
        except Exception as e:
            logger.error(f"Error in {name}: {e}", exc_info=True)
            return error_response(str(e), code="TOOL_ERROR")

    async def _analyze_process(self, args: dict) -> dict:
        canvas_id = args.get("canvas_id")

        if canvas_id is not None:
            store = self.canvases.get(canvas_id)
            if store is None:
                return error_response(f"Canvas {canvas_id} not found", code="CANVAS_NOT_FOUND")
            snapshot = store.snapshot()
            nodes, edges = snapshot.nodes, snapshot.edges
        else:
            try:
                nodes, edges = parse_raw_graph(args.get("nodes"), args.get("edges"))
            except ValidationError as e:
                return error_response(
                    "Invalid nodes or edges",
                    code="INVALID_INPUT",
                    details={"errors": e.errors(include_url=False, include_context=False)},
                )
            except ValueError as e:
                return error_response(str(e), code="INVALID_INPUT")

        analysis = analyze_process(nodes, edges)

        result = analysis.to_dict()
        if canvas_id is not None:
            result["canvas_id"] = canvas_id
        if args.get("include_prompt", True):
            result["improvement_prompt"] = generate_improvement_prompt(analysis)

        logger.debug(f"Analyzed {len(nodes)} node(s): score {analysis.score}")
        return success_response(result)
