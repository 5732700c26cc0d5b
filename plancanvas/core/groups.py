"""Spatial group membership.

A node belongs to a group when its centre point lies inside the group
rectangle (edges inclusive). Membership is recomputed from geometry after
every move or resize and is never stored authoritatively anywhere else.
"""

from typing import Dict, List, Sequence

from ..models.canvas import CanvasNode


def is_node_inside_group(node: CanvasNode, group: CanvasNode) -> bool:
    """Whether the centre of ``node`` falls within ``group``'s rectangle."""
    center_x, center_y = node.center()
    group_width, group_height = group.size()

    return (
        group.x <= center_x <= group.x + group_width
        and group.y <= center_y <= group.y + group_height
    )


def compute_group_membership(nodes: Sequence[CanvasNode]) -> Dict[str, List[str]]:
    """Children of every group, in canvas order.

    Groups never contain other groups. A node inside two overlapping groups
    is listed under both.
    """
    groups = [n for n in nodes if n.is_group]
    content = [n for n in nodes if not n.is_group]

    return {
        group.id: [node.id for node in content if is_node_inside_group(node, group)]
        for group in groups
    }
