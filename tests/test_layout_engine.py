"""Tests for the hierarchical layout engine.

Tests cover:
1. Level assignment (longest path, cycle breaking, caps, trailing column)
2. Column and row placement relative to the origin
3. Overlap detection and compaction
4. compute_layout / apply_layout wrappers and the engine registry
"""

from types import SimpleNamespace

import networkx as nx
import pytest

from plancanvas.layout import (
    DEFAULT_NODE_HEIGHT,
    DEFAULT_NODE_WIDTH,
    HORIZONTAL_SPACING,
    LEVEL_PADDING,
    VERTICAL_SPACING,
    HierarchicalLayoutEngine,
    apply_layout,
    compute_layout,
)
from plancanvas.layout.engines import get_engine
from plancanvas.layout.engines.hierarchical import (
    assign_levels,
    break_cycles,
    level_graph,
    nodes_overlap,
    resolve_overlaps,
)
from plancanvas.models import CanvasEdge, CanvasNode, NodeKind, NodePosition


# ============================================================================
# Test Fixtures
# ============================================================================

def make_node(node_id, kind=NodeKind.ACTION, **kwargs):
    return CanvasNode(id=node_id, kind=kind, title=node_id, **kwargs)


def make_edge(source, target, **kwargs):
    return CanvasEdge(id=f"{source}-{target}", source=source, target=target, **kwargs)


@pytest.fixture
def engine():
    return HierarchicalLayoutEngine()


@pytest.fixture
def fork():
    """A -> B, A -> C."""
    nodes = [make_node("A"), make_node("B"), make_node("C")]
    edges = [make_edge("A", "B"), make_edge("A", "C")]
    return nodes, edges


# ============================================================================
# Leveling
# ============================================================================

class TestLeveling:
    """Test column assignment."""

    def test_fork_levels(self, fork):
        """Root at level 0, both children at level 1."""
        levels, broken, capped = assign_levels(*fork)
        assert levels == {"A": 0, "B": 1, "C": 1}
        assert broken == []
        assert capped is False

    def test_longest_path_wins(self):
        """A node reachable by paths of length 1 and 2 sits at level 2."""
        nodes = [make_node(n) for n in "ABC"]
        edges = [make_edge("A", "B"), make_edge("B", "C"), make_edge("A", "C")]
        levels, _, _ = assign_levels(nodes, edges)
        assert levels == {"A": 0, "B": 1, "C": 2}

    def test_disconnected_nodes_are_roots(self):
        """Nodes without edges all sit in the first column."""
        nodes = [make_node(n) for n in "XYZ"]
        levels, _, _ = assign_levels(nodes, [])
        assert set(levels.values()) == {0}

    def test_dangling_edges_ignored(self):
        """Edges with a missing endpoint do not affect leveling."""
        nodes = [make_node("A"), make_node("B")]
        edges = [make_edge("A", "ghost"), make_edge("ghost", "B")]
        levels, broken, _ = assign_levels(nodes, edges)
        assert levels == {"A": 0, "B": 0}
        assert broken == []

    def test_duplicate_edges_collapse(self):
        nodes = [make_node("A"), make_node("B")]
        edges = [make_edge("A", "B"), CanvasEdge(id="dup", source="A", target="B")]
        levels, _, _ = assign_levels(nodes, edges)
        assert levels == {"A": 0, "B": 1}


class TestCycleBreaking:
    """Test cycle detection and removal."""

    def test_break_cycles_removes_closing_edge(self):
        """The edge back to the first node of the cycle is the one removed."""
        graph = nx.DiGraph([("A", "B"), ("B", "C"), ("C", "A")])
        assert break_cycles(graph) == [("C", "A")]
        assert list(graph.edges) == [("A", "B"), ("B", "C")]

    def test_break_cycles_follows_insertion_order(self):
        """The cycle through the earliest node and successor is found first."""
        graph = nx.DiGraph([("A", "B"), ("B", "A"), ("B", "C"), ("C", "B")])
        assert break_cycles(graph) == [("B", "A"), ("C", "B")]

    def test_break_cycles_acyclic(self):
        graph = nx.DiGraph([("A", "B"), ("A", "C"), ("B", "C")])
        assert break_cycles(graph) == []
        assert graph.number_of_edges() == 3

    def test_break_cycles_empty_graph(self):
        assert break_cycles(nx.DiGraph()) == []

    def test_three_cycle_breaks_closing_edge(self):
        """A -> B -> C -> A loses C -> A and levels as a chain."""
        nodes = [make_node(n) for n in "ABC"]
        edges = [make_edge("A", "B"), make_edge("B", "C"), make_edge("C", "A")]
        levels, broken, capped = assign_levels(nodes, edges)

        assert broken == [("C", "A")]
        assert levels == {"A": 0, "B": 1, "C": 2}
        assert capped is False

    def test_break_cycles_leaves_graph_acyclic(self):
        """Interlocking cycles are all broken."""
        graph = nx.DiGraph([
            ("A", "B"), ("B", "A"),
            ("B", "C"), ("C", "D"), ("D", "B"),
            ("D", "D"),
        ])
        broken = break_cycles(graph)

        assert len(broken) >= 3
        assert nx.is_directed_acyclic_graph(graph)

    def test_self_loop(self):
        nodes = [make_node("A")]
        levels, broken, _ = assign_levels(nodes, [make_edge("A", "A")])
        assert broken == [("A", "A")]
        assert levels == {"A": 0}

    def test_caller_edges_untouched(self):
        """Breaking cycles never mutates the input edge list."""
        nodes = [make_node(n) for n in "AB"]
        edges = [make_edge("A", "B"), make_edge("B", "A")]
        assign_levels(nodes, edges)
        assert len(edges) == 2


class TestLevelGraphCaps:
    """level_graph on graphs that still contain cycles."""

    def test_unreachable_cycle_goes_to_trailing_column(self):
        """A cycle with no root is placed after the deepest level."""
        graph = nx.DiGraph([("R", "S"), ("X", "Y"), ("Y", "X")])
        levels, capped = level_graph(graph)

        assert levels["R"] == 0
        assert levels["S"] == 1
        assert levels["X"] == 2
        assert levels["Y"] == 2
        assert capped is False

    def test_reachable_cycle_terminates(self):
        """A cycle reachable from a root hits the visit cap instead of looping."""
        graph = nx.DiGraph([("R", "X"), ("X", "Y"), ("Y", "X")])
        levels, capped = level_graph(graph)

        assert capped is True
        assert set(levels) == {"R", "X", "Y"}

    def test_empty_graph(self):
        levels, capped = level_graph(nx.DiGraph())
        assert levels == {}
        assert capped is False


# ============================================================================
# Placement
# ============================================================================

class TestPlacement:
    """Test X/Y placement of columns."""

    def test_fork_positions(self, engine, fork):
        """Children share a column and are centred around the root."""
        result = engine.layout(*fork)
        positions = result.positions

        assert positions["A"] == NodePosition(x=LEVEL_PADDING, y=100)
        column_x = LEVEL_PADDING + DEFAULT_NODE_WIDTH + HORIZONTAL_SPACING
        assert positions["B"] == NodePosition(x=column_x, y=0)
        assert positions["C"] == NodePosition(x=column_x, y=200)

    def test_children_separated_by_vertical_spacing(self, engine, fork):
        positions = engine.layout(*fork).positions
        gap = positions["C"].y - (positions["B"].y + DEFAULT_NODE_HEIGHT)
        assert gap >= VERTICAL_SPACING

    def test_origin_offsets_everything(self, engine, fork):
        result = engine.layout(*fork, origin=NodePosition(x=100, y=300))
        positions = result.positions

        assert positions["A"] == NodePosition(x=150, y=400)
        assert positions["B"] == NodePosition(x=580, y=300)
        assert positions["C"] == NodePosition(x=580, y=500)

    @pytest.mark.parametrize("origin", [(100, 300), {"x": 100, "y": 300}])
    def test_origin_accepts_tuple_and_dict(self, engine, fork, origin):
        result = engine.layout(*fork, origin=origin)
        assert result.origin == NodePosition(x=100, y=300)
        assert result.positions["A"] == NodePosition(x=150, y=400)

    def test_positions_never_left_of_or_above_origin(self, engine):
        nodes = [make_node(n, height=h) for n, h in zip("ABCDE", [60, 200, 90, 300, 120])]
        edges = [make_edge("A", "B"), make_edge("A", "C"), make_edge("C", "D"), make_edge("E", "D")]
        result = engine.layout(nodes, edges, origin=(20, 40))

        for pos in result.positions.values():
            assert pos.x >= 20
            assert pos.y >= 40

    def test_wide_column_pushes_next_column(self, engine):
        nodes = [make_node("A", width=400), make_node("B")]
        positions = engine.layout(nodes, [make_edge("A", "B")]).positions
        assert positions["B"].x == LEVEL_PADDING + 400 + HORIZONTAL_SPACING

    def test_every_edge_points_right_in_dag(self, engine):
        nodes = [make_node(n) for n in "ABCDEF"]
        edges = [
            make_edge("A", "B"), make_edge("B", "C"), make_edge("A", "D"),
            make_edge("D", "E"), make_edge("E", "C"), make_edge("F", "E"),
        ]
        positions = engine.layout(nodes, edges).positions
        for edge in edges:
            assert positions[edge.target].x > positions[edge.source].x

    def test_duck_typed_nodes(self, engine):
        """Any object with an id works; missing sizes use the defaults."""
        nodes = [SimpleNamespace(id="a"), SimpleNamespace(id="b", width=None, height=0)]
        edges = [SimpleNamespace(source="a", target="b")]
        positions = engine.layout(nodes, edges).positions
        assert set(positions) == {"a", "b"}


class TestLayoutResult:
    """Test LayoutResult contents."""

    def test_key_set_matches_input(self, engine):
        nodes = [make_node(n) for n in "ABCD"]
        edges = [make_edge("A", "B"), make_edge("B", "A"), make_edge("C", "missing")]
        result = engine.layout(nodes, edges)
        assert set(result.positions) == {"A", "B", "C", "D"}

    def test_cycle_result_reports_broken_edges(self, engine):
        nodes = [make_node(n) for n in "ABC"]
        edges = [make_edge("A", "B"), make_edge("B", "C"), make_edge("C", "A")]
        result = engine.layout(nodes, edges)

        assert result.broken_edges == [("C", "A")]
        assert len(result.positions) == 3
        assert result.to_dict()["broken_edges"] == [["C", "A"]]

    def test_bounding_box(self, engine, fork):
        box = engine.layout(*fork).bounding_box
        assert box.min_x == LEVEL_PADDING
        assert box.min_y == 0
        assert box.max_y == 200 + DEFAULT_NODE_HEIGHT

    def test_empty_input(self, engine):
        result = engine.layout([], [])
        assert result.positions == {}
        assert result.bounding_box is None
        assert result.algorithm == "hierarchical"


# ============================================================================
# Overlaps
# ============================================================================

class TestOverlaps:
    """Test rectangle intersection and compaction."""

    def test_touching_rectangles_overlap(self):
        a, b = make_node("a"), make_node("b")
        assert nodes_overlap(a, NodePosition(x=0, y=0), b, NodePosition(x=0, y=DEFAULT_NODE_HEIGHT))

    def test_separated_rectangles_do_not_overlap(self):
        a, b = make_node("a"), make_node("b")
        assert not nodes_overlap(
            a, NodePosition(x=0, y=0), b, NodePosition(x=0, y=DEFAULT_NODE_HEIGHT + 1)
        )

    def test_resolve_pushes_later_node_down(self):
        nodes = [make_node("a"), make_node("b")]
        positions = {"a": NodePosition(x=0, y=0), "b": NodePosition(x=0, y=50)}
        resolved = resolve_overlaps(nodes, positions)

        assert resolved["a"] == NodePosition(x=0, y=0)
        assert resolved["b"] == NodePosition(x=0, y=DEFAULT_NODE_HEIGHT + VERTICAL_SPACING)

    def test_resolve_ignores_other_columns(self):
        nodes = [make_node("a"), make_node("b")]
        positions = {"a": NodePosition(x=0, y=0), "b": NodePosition(x=100, y=0)}
        assert resolve_overlaps(nodes, positions) == positions

    def test_layout_has_no_overlaps_in_a_column(self, engine):
        nodes = [make_node("root")] + [make_node(f"c{i}", height=90 + 30 * i) for i in range(5)]
        edges = [make_edge("root", f"c{i}") for i in range(5)]
        result = engine.layout(nodes, edges)
        by_id = {n.id: n for n in nodes}
        children = [f"c{i}" for i in range(5)]

        for i, first in enumerate(children):
            for second in children[i + 1:]:
                assert not nodes_overlap(
                    by_id[first], result.positions[first],
                    by_id[second], result.positions[second],
                )


# ============================================================================
# Wrappers and registry
# ============================================================================

class TestWrappers:
    """Test compute_layout, apply_layout and get_engine."""

    def test_compute_layout_returns_positions(self, fork):
        positions = compute_layout(*fork)
        assert set(positions) == {"A", "B", "C"}

    def test_apply_layout_calls_back_per_node(self, fork):
        calls = {}
        positions = apply_layout(*fork, lambda node_id, pos: calls.__setitem__(node_id, pos))
        assert calls == positions

    def test_get_engine(self):
        assert get_engine("hierarchical") is HierarchicalLayoutEngine

    def test_get_engine_unknown(self):
        with pytest.raises(ValueError, match="Unknown layout engine"):
            get_engine("elk")
