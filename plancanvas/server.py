"""Main MCP server implementation for plan canvases."""

import asyncio
import json
import logging
from typing import Dict, Optional

from mcp import Tool
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions
from mcp.types import TextContent

from . import __version__
from .config.settings import Settings
from .core.canvas_store import CanvasStore
from .tools.analysis_tools import AnalysisTools
from .tools.canvas_tools import CanvasTools
from .tools.layout_tools import LayoutTools
from .utils.response import error_response

logger = logging.getLogger(__name__)


class PlanCanvasMCPServer:
    """MCP Server for plan canvas layout, analysis and AI editing."""

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize the MCP server with an empty canvas registry."""
        self.settings = settings or Settings.from_env()
        self.canvases: Dict[str, CanvasStore] = {}

        # All tool groups share the same registry
        self.canvas_tools = CanvasTools(self.canvases, self.settings)
        self.layout_tools = LayoutTools(self.canvases)
        self.analysis_tools = AnalysisTools(self.canvases)

        # Create MCP server instance
        self.server = Server("plancanvas-mcp")

        self._register_handlers()

    def list_tools(self) -> list[Tool]:
        """List all available tools."""
        tools = []
        tools.extend(self.canvas_tools.get_tools())
        tools.extend(self.layout_tools.get_tools())
        tools.extend(self.analysis_tools.get_tools())
        return tools

    async def call_tool(self, name: str, arguments: dict) -> dict:
        """Route a tool call to its tool group by name prefix."""
        arguments = arguments or {}
        if name.startswith("canvas_"):
            return await self.canvas_tools.handle_tool(name, arguments)
        if name.startswith("layout_"):
            return await self.layout_tools.handle_tool(name, arguments)
        if name.startswith("analysis_"):
            return await self.analysis_tools.handle_tool(name, arguments)
        return error_response(f"Unknown tool: {name}", code="UNKNOWN_TOOL")

    def _register_handlers(self):
        """Register all MCP handlers."""

        @self.server.list_tools()
        async def handle_list_tools() -> list[Tool]:
            return self.list_tools()

        @self.server.call_tool()
        async def handle_call_tool(name: str, arguments: dict) -> list[TextContent]:
            try:
                result = await self.call_tool(name, arguments)
            except Exception as e:
                logger.error(f"Error executing tool {name}: {e}", exc_info=True)
                result = error_response(str(e), code="TOOL_ERROR")

            return [TextContent(type="text", text=json.dumps(result, indent=2))]

    async def run(self):
        """Run the MCP server."""
        from mcp.server.stdio import stdio_server

        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(
                read_stream,
                write_stream,
                InitializationOptions(
                    server_name="plancanvas-mcp",
                    server_version=__version__,
                    capabilities=self.server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={}
                    )
                )
            )


def main():
    """Main entry point for the MCP server."""
    settings = Settings.from_env()
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
    server = PlanCanvasMCPServer(settings)
    asyncio.run(server.run())


if __name__ == "__main__":
    main()
