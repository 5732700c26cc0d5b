"""Tests for geometric group membership."""

import pytest

from plancanvas.core.groups import compute_group_membership, is_node_inside_group
from plancanvas.models import CanvasNode, NodeKind


@pytest.fixture
def group():
    return CanvasNode(id="g", kind=NodeKind.GROUP, x=0, y=0, width=400, height=300)


class TestIsNodeInsideGroup:
    """Centre-point containment."""

    def test_centre_inside(self, group):
        assert is_node_inside_group(CanvasNode(id="n", x=10, y=10), group)

    def test_partially_outside_but_centre_inside(self, group):
        node = CanvasNode(id="n", x=250, y=200)
        assert node.center() == (390, 260)
        assert is_node_inside_group(node, group)

    def test_centre_on_edge_is_inside(self, group):
        node = CanvasNode(id="n", x=260, y=240)
        assert node.center() == (400, 300)
        assert is_node_inside_group(node, group)

    def test_centre_outside(self, group):
        assert not is_node_inside_group(CanvasNode(id="n", x=261, y=0), group)


class TestComputeGroupMembership:
    def test_groups_do_not_contain_groups(self, group):
        inner = CanvasNode(id="inner", kind=NodeKind.GROUP, x=10, y=10, width=50, height=50)
        node = CanvasNode(id="n", x=0, y=0)
        membership = compute_group_membership([group, inner, node])

        assert membership["g"] == ["n"]
        assert membership["inner"] == []

    def test_overlapping_groups_share_children(self, group):
        other = CanvasNode(id="h", kind=NodeKind.GROUP, x=100, y=0)
        node = CanvasNode(id="n", x=60, y=0)
        membership = compute_group_membership([group, other, node])

        assert membership == {"g": ["n"], "h": ["n"]}
