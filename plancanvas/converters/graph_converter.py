"""Graph converter for canvas snapshots.

The layout engine and the export tools work on NetworkX graphs. This module
is the graph-construction boundary: edges whose endpoints are absent are
dropped here, and parallel edges collapse into one adjacency.
"""

import logging
from io import BytesIO
from typing import Any, Iterable, Sequence

import networkx as nx

from ..models.canvas import CanvasSnapshot

logger = logging.getLogger(__name__)


def build_leveling_graph(nodes: Sequence[Any], edges: Iterable[Any]) -> nx.DiGraph:
    """Build the directed adjacency used to assign layout levels.

    Args:
        nodes: Objects exposing ``id``; insertion order is preserved
        edges: Objects exposing ``source`` and ``target``

    Returns:
        DiGraph over the node IDs. Edges referencing unknown nodes are skipped;
        duplicate edges are kept once.
    """
    graph = nx.DiGraph()
    graph.add_nodes_from(node.id for node in nodes)

    skipped = 0
    for edge in edges:
        source = getattr(edge, "source", None)
        target = getattr(edge, "target", None)
        if source in graph and target in graph:
            graph.add_edge(source, target)
        else:
            skipped += 1

    if skipped:
        logger.debug(f"Ignored {skipped} edge(s) with missing endpoints")
    return graph


class CanvasGraphConverter:
    """Converts canvas snapshots to NetworkX and GraphML representations."""

    def to_networkx(self, snapshot: CanvasSnapshot) -> nx.DiGraph:
        """Convert a snapshot to an attributed DiGraph.

        Group containers are left out; they carry no graph semantics.
        """
        graph = nx.DiGraph()
        content = snapshot.content_nodes()
        for node in content:
            width, height = node.size()
            graph.add_node(
                node.id,
                kind=node.kind.value,
                title=node.title,
                x=node.x,
                y=node.y,
                width=width,
                height=height,
            )

        for edge in snapshot.valid_edges({n.id for n in content}):
            graph.add_edge(
                edge.source,
                edge.target,
                id=edge.id,
                weight=edge.weight.value,
                label=edge.label or "",
            )
        return graph

    def to_graphml(self, snapshot: CanvasSnapshot) -> str:
        """Convert a snapshot to a GraphML string."""
        graph = self.to_networkx(snapshot)
        buffer = BytesIO()
        nx.write_graphml(graph, buffer)
        return buffer.getvalue().decode("utf-8")
