"""Plan canvas MCP server.

Hosts node-graph plan canvases that an AI agent edits through structural
actions, lays them out left-to-right from topology alone and scores how
complete the plan is.
"""

__version__ = "0.1.0"
