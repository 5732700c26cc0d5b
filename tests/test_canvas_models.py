"""Tests for canvas, layout and analysis schemas."""

import pytest
from pydantic import ValidationError

from plancanvas.models import (
    BoundingBox,
    CanvasEdge,
    CanvasNode,
    CanvasSnapshot,
    EdgeWeight,
    LayoutResult,
    NodeKind,
    NodePosition,
    ProcessAnalysisResult,
    Severity,
)
from plancanvas.models.canvas import is_blank_label


class TestCanvasNode:
    """Test CanvasNode validation and geometry."""

    def test_defaults(self):
        node = CanvasNode(id="n1")
        assert node.kind == NodeKind.BASE
        assert node.size() == (280.0, 120.0)
        assert node.is_group is False

    def test_group_default_size(self):
        group = CanvasNode(id="g", kind="group")
        assert group.is_group
        assert group.size() == (400.0, 300.0)

    def test_non_positive_size_is_unmeasured(self):
        node = CanvasNode(id="n1", width=0, height=-5)
        assert node.width is None
        assert node.height is None
        assert node.size() == (280.0, 120.0)

    def test_center(self):
        node = CanvasNode(id="n1", x=10, y=20, width=100, height=50)
        assert node.center() == (60, 45)

    def test_empty_id_rejected(self):
        with pytest.raises(ValidationError):
            CanvasNode(id="")

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationError):
            CanvasNode(id="n1", kind="milestone")


class TestCanvasEdge:
    def test_default_weight(self):
        assert CanvasEdge(id="e", source="a", target="b").weight == EdgeWeight.WEAK

    @pytest.mark.parametrize("label,expected", [(None, False), ("\n", False), ("", False), ("  ", False), ("next", True)])
    def test_has_label(self, label, expected):
        assert CanvasEdge(id="e", source="a", target="b", label=label).has_label is expected


class TestCanvasSnapshot:
    """Test snapshot filtering helpers."""

    @pytest.fixture
    def snapshot(self):
        return CanvasSnapshot(
            nodes=[
                CanvasNode(id="a"),
                CanvasNode(id="grp", kind=NodeKind.GROUP),
                CanvasNode(id="b"),
            ],
            edges=[
                CanvasEdge(id="e1", source="a", target="b"),
                CanvasEdge(id="e2", source="a", target="b", label="dup"),
                CanvasEdge(id="e3", source="a", target="ghost"),
                CanvasEdge(id="e4", source="grp", target="b"),
            ],
        )

    def test_content_nodes_and_groups(self, snapshot):
        assert [n.id for n in snapshot.content_nodes()] == ["a", "b"]
        assert [n.id for n in snapshot.groups()] == ["grp"]

    def test_valid_edges_drop_dangling_and_duplicates(self, snapshot):
        assert [e.id for e in snapshot.valid_edges()] == ["e1", "e4"]

    def test_valid_edges_restricted_to_ids(self, snapshot):
        assert [e.id for e in snapshot.valid_edges({"a", "b"})] == ["e1"]

    def test_frozen(self, snapshot):
        with pytest.raises(ValidationError):
            snapshot.nodes = []


class TestLayoutSchemas:
    """Test NodePosition, BoundingBox and LayoutResult."""

    def test_position_from_list(self):
        assert NodePosition.from_list([1, 2]).to_list() == [1.0, 2.0]

    def test_position_from_bad_list(self):
        with pytest.raises(ValueError, match="Position must be"):
            NodePosition.from_list([1, 2, 3])

    def test_bounding_box_from_rectangles(self):
        box = BoundingBox.from_rectangles([(0, 0, 100, 50), (200, 100, 50, 50)])
        assert (box.min_x, box.max_x, box.min_y, box.max_y) == (0, 250, 0, 150)
        assert box.width == 250
        assert box.height == 150
        assert box.center == (125, 75)

    def test_bounding_box_empty(self):
        with pytest.raises(ValueError):
            BoundingBox.from_rectangles([])

    def test_layout_result_to_dict(self):
        result = LayoutResult(
            algorithm="hierarchical",
            positions={"a": NodePosition(x=1, y=2)},
            levels={"a": 0},
            broken_edges=[("b", "a")],
        )
        data = result.to_dict()
        assert data["positions"] == {"a": {"x": 1.0, "y": 2.0}}
        assert data["broken_edges"] == [["b", "a"]]
        assert data["bounding_box"] is None
        assert data["origin"] == {"x": 0.0, "y": 0.0}


class TestAnalysisSchemas:
    def test_penalties(self):
        assert [s.penalty for s in Severity] == [20, 10, 5]

    def test_score_bounds(self):
        with pytest.raises(ValidationError):
            ProcessAnalysisResult(score=101)
        with pytest.raises(ValidationError):
            ProcessAnalysisResult(score=-1)


class TestBlankLabel:
    @pytest.mark.parametrize("label,blank", [(None, True), ("", True), (" \t", True), ("x", False)])
    def test_is_blank_label(self, label, blank):
        assert is_blank_label(label) is blank
