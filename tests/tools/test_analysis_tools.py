"""Tests for the analysis MCP tools."""

import pytest

from plancanvas.core.canvas_store import CanvasStore
from plancanvas.models import NodeKind
from plancanvas.tools.analysis_tools import AnalysisTools, parse_raw_graph
from plancanvas.utils.response import is_success


@pytest.fixture
def tools():
    store = CanvasStore(canvas_id="c1")
    store.add_node(NodeKind.GOAL, 0, 0, title="Ship", node_id="g")
    store.add_node(NodeKind.RISK, 400, 0, title="Outage", node_id="r")
    store.connect("g", "r", label="threatened by")
    return AnalysisTools({"c1": store})


class TestParseRawGraph:
    def test_type_key_becomes_kind(self):
        nodes, edges = parse_raw_graph(
            [{"id": "a", "type": "goal"}], [{"source": "a", "target": "a"}]
        )
        assert nodes[0].kind == NodeKind.GOAL
        assert edges[0].id == "edge-0"

    def test_rejects_non_arrays(self):
        with pytest.raises(ValueError):
            parse_raw_graph(None, [])


class TestAnalysisProcess:
    """analysis_process behaviour."""

    @pytest.mark.asyncio
    async def test_analyze_canvas(self, tools):
        result = await tools.handle_tool("analysis_process", {"canvas_id": "c1"})
        data = result["data"]

        assert is_success(result)
        assert data["canvas_id"] == "c1"
        assert data["score"] == 95
        assert [i["title"] for i in data["insights"]] == ["Missing constraints"]
        assert "Current process score: 95/100" in data["improvement_prompt"]

    @pytest.mark.asyncio
    async def test_analyze_raw_nodes(self, tools):
        result = await tools.handle_tool("analysis_process", {"nodes": [], "edges": []})
        assert result["data"]["score"] == 65

    @pytest.mark.asyncio
    async def test_prompt_optional(self, tools):
        result = await tools.handle_tool("analysis_process", {
            "nodes": [], "edges": [], "include_prompt": False,
        })
        assert "improvement_prompt" not in result["data"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("args", [
        {},
        {"nodes": []},
        {"nodes": "goal", "edges": []},
        {"nodes": [{"id": "a", "type": "milestone"}], "edges": []},
        {"nodes": [{"id": "a"}], "edges": [{"source": "a"}]},
    ])
    async def test_invalid_input(self, tools, args):
        result = await tools.handle_tool("analysis_process", args)
        assert result["error"]["code"] == "INVALID_INPUT"

    @pytest.mark.asyncio
    async def test_missing_canvas(self, tools):
        result = await tools.handle_tool("analysis_process", {"canvas_id": "nope"})
        assert result["error"]["code"] == "CANVAS_NOT_FOUND"
