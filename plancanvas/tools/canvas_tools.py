"""MCP tools for canvas creation, inspection and AI-driven editing.

Provides tools to:
- Create and list canvases
- Fetch the context an agent reads before proposing edits
- Apply a batch of AI actions (with the follow-up auto-layout)
- Export a canvas as GraphML
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import uuid4

from mcp import Tool

from ..config.settings import Settings
from ..converters.graph_converter import CanvasGraphConverter
from ..core.canvas_store import CanvasStore
from ..managers.action_executor import ActionExecutor
from ..utils.response import error_response, success_response

logger = logging.getLogger(__name__)

ACTION_TYPES = [
    "create",
    "create-group",
    "modify",
    "connect",
    "delete",
    "reorganize",
    "add-section",
    "update-section",
    "delete-section",
]


def canvas_not_found(canvas_id: str) -> Dict[str, Any]:
    return error_response(f"Canvas {canvas_id} not found", code="CANVAS_NOT_FOUND")


class CanvasTools:
    """Provides canvas management and action tools."""

    def __init__(self, canvases: Dict[str, CanvasStore], settings: Optional[Settings] = None):
        """Initialize with the shared canvas registry.

        Args:
            canvases: Canvas ID -> store, shared with the other tool groups
            settings: Server settings (read from environment if omitted)
        """
        self.canvases = canvases
        self.settings = settings or Settings.from_env()
        self.graph_converter = CanvasGraphConverter()

    def get_tools(self) -> List[Tool]:
        """Return canvas MCP tools."""
        return [
            Tool(
                name="canvas_create",
                description="Create an empty plan canvas",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "title": {
                            "type": "string",
                            "description": "Canvas title",
                            "default": ""
                        },
                        "canvas_id": {
                            "type": "string",
                            "description": "Optional explicit canvas ID"
                        }
                    }
                }
            ),
            Tool(
                name="canvas_list",
                description="List canvases with node and edge counts",
                inputSchema={"type": "object", "properties": {}}
            ),
            Tool(
                name="canvas_get_context",
                description="Get the nodes, edges and groups of a canvas in the shape an agent reads before proposing actions",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "canvas_id": {"type": "string", "description": "Canvas ID"}
                    },
                    "required": ["canvas_id"]
                }
            ),
            Tool(
                name="canvas_apply_actions",
                description="Apply a batch of AI actions to a canvas in order, then re-run the hierarchical layout. Returns one result per action.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "canvas_id": {"type": "string", "description": "Canvas ID"},
                        "actions": {
                            "type": "array",
                            "description": "Actions, each an object with a 'type' discriminator",
                            "items": {
                                "type": "object",
                                "properties": {
                                    "type": {"type": "string", "enum": ACTION_TYPES}
                                },
                                "required": ["type"]
                            }
                        },
                        "viewport_center": {
                            "type": "object",
                            "description": "Client viewport centre; new nodes and the layout anchor derive from it",
                            "properties": {
                                "x": {"type": "number"},
                                "y": {"type": "number"}
                            },
                            "required": ["x", "y"]
                        },
                        "auto_layout": {
                            "type": "boolean",
                            "description": "Override the auto_layout feature flag for this batch"
                        }
                    },
                    "required": ["canvas_id", "actions"]
                }
            ),
            Tool(
                name="canvas_export_graphml",
                description="Export the content nodes and edges of a canvas as GraphML",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "canvas_id": {"type": "string", "description": "Canvas ID"}
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
            "canvas_create": self._create_canvas,
            "canvas_list": self._list_canvases,
            "canvas_get_context": self._get_context,
            "canvas_apply_actions": self._apply_actions,
            "canvas_export_graphml": self._export_graphml,
        }

        handler = handlers.get(name)
        if not handler:
            return error_response(f"Unknown canvas tool: {name}", code="UNKNOWN_TOOL")

        try:
            return await handler(arguments)
        except Exception as e:
            logger.error(f"Error in {name}: {e}", exc_info=True)
            return error_response(str(e), code="TOOL_ERROR")

    async def _create_canvas(self, args: dict) -> dict:
        canvas_id = args.get("canvas_id") or str(uuid4())
        if canvas_id in self.canvases:
            return error_response(
                f"Canvas {canvas_id} already exists", code="INVALID_INPUT"
            )

        store = CanvasStore(canvas_id=canvas_id, title=args.get("title", ""))
        self.canvases[canvas_id] = store
        logger.info(f"Created canvas {canvas_id}")
        return success_response({"canvas_id": canvas_id, "title": store.title})

    async def _list_canvases(self, args: dict) -> dict:
        canvases = [
            {
                "canvas_id": canvas_id,
                "title": store.title,
                "node_count": len(store.content_nodes()),
                "group_count": len(store) - len(store.content_nodes()),
                "edge_count": len(store.edges),
            }
            for canvas_id, store in self.canvases.items()
        ]
        return success_response({"canvases": canvases, "count": len(canvases)})

    async def _get_context(self, args: dict) -> dict:
        canvas_id = args["canvas_id"]
        store = self.canvases.get(canvas_id)
        if store is None:
            return canvas_not_found(canvas_id)
        return success_response(store.build_context())

    async def _apply_actions(self, args: dict) -> dict:
        canvas_id = args["canvas_id"]
        store = self.canvases.get(canvas_id)
        if store is None:
            return canvas_not_found(canvas_id)

        actions = args.get("actions")
        if not isinstance(actions, list) or not all(isinstance(a, dict) for a in actions):
            return error_response(
                "'actions' must be an array of action objects", code="INVALID_INPUT"
            )

        viewport_center = None
        center = args.get("viewport_center")
        if center is not None:
            try:
                viewport_center = (float(center["x"]), float(center["y"]))
            except (KeyError, TypeError, ValueError):
                return error_response(
                    "'viewport_center' must be an object with numeric x and y",
                    code="INVALID_INPUT"
                )

        executor = ActionExecutor(
            store,
            auto_layout=args.get("auto_layout"),
            settings=self.settings,
        )
        batch = executor.execute_batch(actions, viewport_center=viewport_center)

        warnings = [r.message for r in batch.results if not r.success]
        return success_response(batch.to_dict(), warnings=warnings)

    async def _export_graphml(self, args: dict) -> dict:
        canvas_id = args["canvas_id"]
        store = self.canvases.get(canvas_id)
        if store is None:
            return canvas_not_found(canvas_id)

        graphml = self.graph_converter.to_graphml(store.snapshot())
        return success_response({"canvas_id": canvas_id, "graphml": graphml})
