"""Left-to-right hierarchical layout.

Assigns every node a column from its longest-path distance to a root and
stacks the nodes of a column vertically, so that every edge points to the
right wherever the graph allows it.

Pipeline:
1. Build the leveling graph (missing endpoints and duplicates dropped)
2. Break cycles, one edge per detected cycle, until the graph is acyclic
3. Longest-path leveling in BFS order, with iteration and visit caps
4. Unleveled nodes go to a trailing column
5. Column X offsets from the widest node of each preceding column
6. Vertical stacking, each column centred on a common centre line
7. Compaction pass pushing same-column overlaps downward

Only the internal leveling graph is modified; the caller's edges are never
touched. Nothing in here raises on cyclic, empty or dangling input.
"""

import logging
from collections import defaultdict, deque
from typing import Any, Callable, Dict, List, Sequence, Tuple, Union

import networkx as nx

from ...converters.graph_converter import build_leveling_graph
from ...models.layout_metadata import BoundingBox, LayoutResult, NodePosition
from .base import LayoutEngine

logger = logging.getLogger(__name__)

DEFAULT_NODE_WIDTH = 280
DEFAULT_NODE_HEIGHT = 120
HORIZONTAL_SPACING = 150  # between columns
VERTICAL_SPACING = 80  # between nodes of one column
LEVEL_PADDING = 50  # left padding before the first column

OriginLike = Union[NodePosition, Tuple[float, float], Dict[str, float], None]


def node_dimensions(node: Any) -> Tuple[float, float]:
    """Measured size of a node, or the default footprint."""
    width = getattr(node, "width", None) or DEFAULT_NODE_WIDTH
    height = getattr(node, "height", None) or DEFAULT_NODE_HEIGHT
    return width, height


def _coerce_origin(origin: OriginLike) -> NodePosition:
    if origin is None:
        return NodePosition(x=0, y=0)
    if isinstance(origin, NodePosition):
        return origin
    if isinstance(origin, dict):
        return NodePosition(x=origin.get("x", 0), y=origin.get("y", 0))
    return NodePosition.from_list(list(origin))


# =============================================================================
# Leveling
# =============================================================================


def break_cycles(graph: nx.DiGraph) -> List[Tuple[str, str]]:
    """Remove one closing edge per detected cycle until none is left.

    Cycles are found depth-first in node insertion order. For a cycle
    ``start -> ... -> last -> start`` the edge ``last -> start`` is removed.
    Every pass removes an edge, so this ends after at most
    ``number_of_edges`` passes.

    Returns:
        The removed (source, target) pairs in removal order
    """
    broken: List[Tuple[str, str]] = []
    for _ in range(graph.number_of_edges()):
        try:
            cycle_edges = nx.find_cycle(graph, orientation="original")
        except nx.NetworkXNoCycle:
            break
        last, start = cycle_edges[-1][:2]
        graph.remove_edge(last, start)
        broken.append((last, start))
        path = [edge[0] for edge in cycle_edges] + [start]
        logger.debug(f"Broke cycle {' -> '.join(map(str, path))} at {last} -> {start}")
    return broken


def level_graph(graph: nx.DiGraph) -> Tuple[Dict[str, int], bool]:
    """Longest-path leveling in BFS order.

    Roots (in-degree 0) sit at level 0; a child is pushed to
    ``max(current, parent + 1)`` whenever a longer path reaches it. The loop
    stops after ``n * n`` iterations and skips any node dequeued more than
    ``n`` times, so cycles that survive here cannot hang it. Nodes the BFS
    never reached are put in one column after the deepest level.

    Returns:
        Tuple of (levels, capped) where capped reports a cap was hit
    """
    node_count = graph.number_of_nodes()
    levels: Dict[str, int] = {}
    queue = deque()

    for node_id in graph.nodes:
        if graph.in_degree(node_id) == 0:
            levels[node_id] = 0
            queue.append(node_id)

    max_iterations = node_count * node_count
    iterations = 0
    processed: Dict[str, int] = defaultdict(int)
    capped = False

    while queue:
        iterations += 1
        if iterations > max_iterations:
            capped = True
            break

        current = queue.popleft()
        processed[current] += 1
        if processed[current] > node_count:
            capped = True
            continue

        next_level = levels[current] + 1
        for child in graph.successors(current):
            if child not in levels or next_level > levels[child]:
                levels[child] = next_level
                queue.append(child)

    if capped:
        logger.warning(
            f"Leveling stopped early after {iterations} iterations "
            f"on a {node_count}-node graph"
        )

    trailing = max(levels.values(), default=-1) + 1
    unleveled = [node_id for node_id in graph.nodes if node_id not in levels]
    for node_id in unleveled:
        levels[node_id] = trailing
    if unleveled:
        logger.debug(f"{len(unleveled)} unreachable node(s) placed in column {trailing}")

    return levels, capped


def assign_levels(
    nodes: Sequence[Any], edges: Sequence[Any]
) -> Tuple[Dict[str, int], List[Tuple[str, str]], bool]:
    """Column index for every node.

    Returns:
        Tuple of (levels, broken_edges, capped)
    """
    graph = build_leveling_graph(nodes, edges)
    broken = break_cycles(graph)
    levels, capped = level_graph(graph)
    return levels, broken, capped


# =============================================================================
# Placement
# =============================================================================


def group_by_level(nodes: Sequence[Any], levels: Dict[str, int]) -> Dict[int, List[Any]]:
    """Nodes of each level in input order, levels in ascending order."""
    groups: Dict[int, List[Any]] = defaultdict(list)
    seen = set()
    for node in nodes:
        if node.id in seen:
            continue
        seen.add(node.id)
        groups[levels.get(node.id, 0)].append(node)
    return dict(sorted(groups.items()))


def column_x_offsets(level_groups: Dict[int, List[Any]]) -> Dict[int, float]:
    """X offset of each column: padding plus widths and gaps of earlier columns."""
    offsets: Dict[int, float] = {}
    current_x = LEVEL_PADDING
    for level, level_nodes in level_groups.items():
        offsets[level] = current_x
        column_width = max(node_dimensions(n)[0] for n in level_nodes)
        current_x += column_width + HORIZONTAL_SPACING
    return offsets


def column_height(level_nodes: Sequence[Any]) -> float:
    heights = [node_dimensions(n)[1] for n in level_nodes]
    return sum(heights) + VERTICAL_SPACING * (len(heights) - 1)


def nodes_overlap(
    node1: Any, pos1: NodePosition, node2: Any, pos2: NodePosition
) -> bool:
    """Rectangle intersection test; touching edges count as overlapping."""
    width1, height1 = node_dimensions(node1)
    width2, height2 = node_dimensions(node2)

    return not (
        pos1.x + width1 < pos2.x
        or pos2.x + width2 < pos1.x
        or pos1.y + height1 < pos2.y
        or pos2.y + height2 < pos1.y
    )


def resolve_overlaps(
    nodes: Sequence[Any], positions: Dict[str, NodePosition]
) -> Dict[str, NodePosition]:
    """Push later nodes below earlier ones they collide with in the same column.

    Nodes are visited by (x, y). Only Y ever grows; X and column order are
    left alone.
    """
    by_id = {node.id: node for node in nodes}
    ordered = sorted(
        (node_id for node_id in positions if node_id in by_id),
        key=lambda node_id: (positions[node_id].x, positions[node_id].y),
    )

    resolved: Dict[str, NodePosition] = {}
    for node_id in ordered:
        node = by_id[node_id]
        current = positions[node_id]
        new_y = current.y

        for other_id, other_pos in resolved.items():
            other = by_id[other_id]
            same_column = abs(current.x - other_pos.x) < HORIZONTAL_SPACING / 2
            if same_column and nodes_overlap(
                node, NodePosition(x=current.x, y=new_y), other, other_pos
            ):
                new_y = other_pos.y + node_dimensions(other)[1] + VERTICAL_SPACING

        resolved[node_id] = NodePosition(x=current.x, y=new_y)

    return resolved


class HierarchicalLayoutEngine(LayoutEngine):
    """Left-to-right longest-path layout with cycle breaking."""

    @property
    def name(self) -> str:
        return "hierarchical"

    def layout(
        self,
        nodes: Sequence[Any],
        edges: Sequence[Any],
        origin: OriginLike = None,
    ) -> LayoutResult:
        """Compute positions for all nodes.

        Args:
            nodes: Objects exposing ``id`` and optionally ``width``/``height``
            edges: Objects exposing ``source`` and ``target``
            origin: Anchor position, (0, 0) when omitted

        Returns:
            LayoutResult with non-negative offsets from ``origin``
        """
        anchor = _coerce_origin(origin)
        if not nodes:
            return LayoutResult(algorithm=self.name, origin=anchor)

        levels, broken, capped = assign_levels(nodes, edges)
        level_groups = group_by_level(nodes, levels)
        x_offsets = column_x_offsets(level_groups)

        heights = {level: column_height(group) for level, group in level_groups.items()}
        center_line = anchor.y + max(heights.values()) / 2

        positions: Dict[str, NodePosition] = {}
        for level, level_nodes in level_groups.items():
            current_y = center_line - heights[level] / 2
            x = anchor.x + x_offsets[level]
            for node in level_nodes:
                positions[node.id] = NodePosition(x=x, y=current_y)
                current_y += node_dimensions(node)[1] + VERTICAL_SPACING

        positions = resolve_overlaps(nodes, positions)

        by_id = {node.id: node for node in nodes}
        bounding_box = BoundingBox.from_rectangles(
            (pos.x, pos.y, *node_dimensions(by_id[node_id]))
            for node_id, pos in positions.items()
        )

        logger.debug(
            f"Laid out {len(positions)} nodes in {len(level_groups)} columns "
            f"({len(broken)} cycle edge(s) broken)"
        )
        return LayoutResult(
            algorithm=self.name,
            origin=anchor,
            positions=positions,
            levels=levels,
            broken_edges=broken,
            capped=capped,
            bounding_box=bounding_box,
        )


def compute_layout(
    nodes: Sequence[Any],
    edges: Sequence[Any],
    origin: OriginLike = None,
) -> Dict[str, NodePosition]:
    """Position map for ``nodes``: one entry per node ID."""
    return HierarchicalLayoutEngine().layout(nodes, edges, origin).positions


def apply_layout(
    nodes: Sequence[Any],
    edges: Sequence[Any],
    update_position: Callable[[str, NodePosition], None],
    origin: OriginLike = None,
) -> Dict[str, NodePosition]:
    """Compute the layout and hand each position to ``update_position``.

    Returns:
        The computed position map
    """
    positions = compute_layout(nodes, edges, origin)
    for node_id, position in positions.items():
        update_position(node_id, position)
    return positions
