"""
Canvas Store - In-Memory Storage for One Plan Canvas

This module provides a thread-safe store holding the nodes and edges of a
canvas with:
- Node, group, edge and section CRUD
- Geometric group membership, recomputed after every position change
- Group moves that carry their children along
- Snapshots for the layout engine and analyzer, and for rollback
- The canvas context handed to an AI agent

The layout engine and the analyzer never touch the store; they read a
snapshot and the caller writes results back through this API.

Usage:
    from plancanvas.core.canvas_store import CanvasStore

    store = CanvasStore(title="Launch plan")
    goal = store.add_node(NodeKind.GOAL, 0, 0, title="Ship v1")
    step = store.add_node(NodeKind.ACTION, 0, 0, title="Write docs")
    store.connect(goal, step, EdgeWeight.STRONG, label="requires")
    snapshot = store.snapshot()
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Union
from uuid import uuid4

from ..models.canvas import (
    DEFAULT_GROUP_COLOR,
    DEFAULT_GROUP_HEIGHT,
    DEFAULT_GROUP_WIDTH,
    DEFAULT_TITLES,
    CanvasEdge,
    CanvasNode,
    CanvasSnapshot,
    EdgeWeight,
    NodeKind,
    Section,
    SectionItem,
)
from ..models.layout_metadata import NodePosition
from .groups import compute_group_membership

logger = logging.getLogger(__name__)

# Fields update_node_data may touch
EDITABLE_FIELDS = {"title", "description", "sections", "color", "width", "height"}


class NodeNotFoundError(KeyError):
    """Raised when a node ID is not on the canvas."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Node {node_id} not found")


class EdgeNotFoundError(KeyError):
    """Raised when an edge ID is not on the canvas."""

    def __init__(self, edge_id: str):
        self.edge_id = edge_id
        super().__init__(f"Edge {edge_id} not found")


class SectionNotFoundError(KeyError):
    """Raised when a section ID does not exist on a node."""

    def __init__(self, node_id: str, section_id: str):
        self.node_id = node_id
        self.section_id = section_id
        super().__init__(f"Section {section_id} not found on node {node_id}")


class InvalidEdgeError(ValueError):
    """Raised when a connection names an endpoint that does not exist."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return uuid4().hex


def build_section(title: str, items: Optional[Sequence[str]] = None) -> Section:
    """Create a section with fresh IDs from plain item strings."""
    return Section(
        id=_new_id(),
        title=title,
        items=[SectionItem(id=_new_id(), content=item) for item in (items or [])],
    )


def _coerce_sections(sections: Sequence[Union[Section, Dict[str, Any]]]) -> List[Section]:
    coerced = []
    for section in sections:
        if isinstance(section, Section):
            coerced.append(section)
        else:
            coerced.append(build_section(section.get("title", ""), section.get("items", [])))
    return coerced


class CanvasStore:
    """Thread-safe in-memory storage for one canvas.

    Node and edge insertion order is preserved; it is the input order the
    layout engine stacks columns by.
    """

    def __init__(self, canvas_id: Optional[str] = None, title: str = ""):
        self.canvas_id = canvas_id or _new_id()
        self.title = title
        self.created_at = _now()
        self._nodes: Dict[str, CanvasNode] = {}
        self._edges: Dict[str, CanvasEdge] = {}
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def get_node(self, node_id: str) -> CanvasNode:
        """Live node by ID.

        Raises:
            NodeNotFoundError: If the node does not exist
        """
        with self._lock:
            node = self._nodes.get(node_id)
            if node is None:
                raise NodeNotFoundError(node_id)
            return node

    def get_edge(self, edge_id: str) -> CanvasEdge:
        with self._lock:
            edge = self._edges.get(edge_id)
            if edge is None:
                raise EdgeNotFoundError(edge_id)
            return edge

    @property
    def nodes(self) -> List[CanvasNode]:
        with self._lock:
            return list(self._nodes.values())

    @property
    def edges(self) -> List[CanvasEdge]:
        with self._lock:
            return list(self._edges.values())

    def content_nodes(self) -> List[CanvasNode]:
        with self._lock:
            return [n for n in self._nodes.values() if not n.is_group]

    def find_node(self, ref: Optional[str]) -> Optional[CanvasNode]:
        """Resolve a loose node reference.

        Tries an exact ID, then an exact title, then an ID suffix (agents
        often echo shortened IDs back).
        """
        if not ref:
            return None

        with self._lock:
            if ref in self._nodes:
                return self._nodes[ref]
            for node in self._nodes.values():
                if node.title == ref:
                    return node
            for node in self._nodes.values():
                if node.id.endswith(ref):
                    return node
        return None

    def find_edge(self, source: str, target: str) -> Optional[CanvasEdge]:
        with self._lock:
            for edge in self._edges.values():
                if edge.source == source and edge.target == target:
                    return edge
        return None

    # ------------------------------------------------------------------
    # Nodes and groups
    # ------------------------------------------------------------------

    def add_node(
        self,
        kind: NodeKind,
        x: float,
        y: float,
        title: Optional[str] = None,
        description: str = "",
        sections: Optional[Sequence[Union[Section, Dict[str, Any]]]] = None,
        width: Optional[float] = None,
        height: Optional[float] = None,
        node_id: Optional[str] = None,
    ) -> str:
        """Add a content node and return its ID."""
        kind = NodeKind(kind)
        if kind == NodeKind.GROUP:
            return self.add_group(x, y, width=width, height=height, title=title)

        with self._lock:
            node = CanvasNode(
                id=node_id or _new_id(),
                kind=kind,
                title=title or DEFAULT_TITLES[kind],
                description=description,
                sections=_coerce_sections(sections or []),
                width=width,
                height=height,
                x=x,
                y=y,
            )
            if node.id in self._nodes:
                raise KeyError(f"Node {node.id} already exists")
            self._nodes[node.id] = node
            self.update_group_membership()

        logger.debug(f"Added {kind.value} node {node.id} to canvas {self.canvas_id}")
        return node.id

    def add_group(
        self,
        x: float,
        y: float,
        width: Optional[float] = None,
        height: Optional[float] = None,
        title: Optional[str] = None,
        color: Optional[str] = None,
        node_id: Optional[str] = None,
    ) -> str:
        """Add a group container and return its ID."""
        with self._lock:
            group = CanvasNode(
                id=node_id or _new_id(),
                kind=NodeKind.GROUP,
                title=title or DEFAULT_TITLES[NodeKind.GROUP],
                width=width or DEFAULT_GROUP_WIDTH,
                height=height or DEFAULT_GROUP_HEIGHT,
                color=color or DEFAULT_GROUP_COLOR,
                x=x,
                y=y,
            )
            if group.id in self._nodes:
                raise KeyError(f"Node {group.id} already exists")
            self._nodes[group.id] = group
            self.update_group_membership()

        logger.debug(f"Added group {group.id} to canvas {self.canvas_id}")
        return group.id

    def update_node_data(self, node_id: str, **fields: Any) -> CanvasNode:
        """Update editable fields of a node.

        Raises:
            NodeNotFoundError: If the node does not exist
            ValueError: If a field is not editable
        """
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not editable: {sorted(unknown)}")

        with self._lock:
            node = self.get_node(node_id)
            if "sections" in fields:
                fields["sections"] = _coerce_sections(fields["sections"])
            for name, value in fields.items():
                setattr(node, name, value)
            node.last_modified = _now()
            if {"width", "height"} & set(fields):
                self.update_group_membership()
            return node

    def update_node_position(self, node_id: str, x: float, y: float) -> None:
        with self._lock:
            node = self.get_node(node_id)
            node.x = x
            node.y = y
            self.update_group_membership()

    def apply_positions(self, positions: Dict[str, NodePosition]) -> int:
        """Write a batch of positions, then recompute membership once.

        Unknown IDs are skipped.

        Returns:
            Number of nodes moved
        """
        moved = 0
        with self._lock:
            for node_id, position in positions.items():
                node = self._nodes.get(node_id)
                if node is None:
                    continue
                node.x = position.x
                node.y = position.y
                moved += 1
            self.update_group_membership()
        return moved

    def move_group(self, group_id: str, x: float, y: float) -> List[str]:
        """Move a group and translate its current children by the same delta.

        Returns:
            IDs of the children that moved with the group

        Raises:
            NodeNotFoundError: If the group does not exist
            ValueError: If the node is not a group
        """
        with self._lock:
            group = self.get_node(group_id)
            if not group.is_group:
                raise ValueError(f"Node {group_id} is not a group")

            dx = x - group.x
            dy = y - group.y
            children = list(group.child_node_ids)

            group.x = x
            group.y = y
            for child_id in children:
                child = self._nodes.get(child_id)
                if child is not None:
                    child.x += dx
                    child.y += dy

            self.update_group_membership()
            return children

    def delete_node(self, node_id: str) -> CanvasNode:
        """Remove a node and every edge touching it.

        Raises:
            NodeNotFoundError: If the node does not exist
        """
        with self._lock:
            node = self._nodes.pop(node_id, None)
            if node is None:
                raise NodeNotFoundError(node_id)

            incident = [
                edge_id for edge_id, edge in self._edges.items()
                if edge.source == node_id or edge.target == node_id
            ]
            for edge_id in incident:
                del self._edges[edge_id]

            self.update_group_membership()

        logger.debug(f"Deleted node {node_id} and {len(incident)} edge(s)")
        return node

    def update_group_membership(self) -> Dict[str, List[str]]:
        """Recompute ``child_node_ids`` of every group from geometry."""
        with self._lock:
            membership = compute_group_membership(list(self._nodes.values()))
            for group_id, children in membership.items():
                self._nodes[group_id].child_node_ids = children
            return membership

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def add_section(
        self, node_id: str, title: str, items: Optional[Sequence[str]] = None
    ) -> str:
        """Append a section to a node and return the section ID."""
        with self._lock:
            node = self.get_node(node_id)
            section = build_section(title, items)
            node.sections.append(section)
            node.last_modified = _now()
            return section.id

    def _get_section(self, node: CanvasNode, section_id: str) -> Section:
        for section in node.sections:
            if section.id == section_id:
                return section
        raise SectionNotFoundError(node.id, section_id)

    def update_section(
        self,
        node_id: str,
        section_id: str,
        title: Optional[str] = None,
        items: Optional[Sequence[str]] = None,
    ) -> Section:
        """Retitle a section and/or replace its items."""
        with self._lock:
            node = self.get_node(node_id)
            section = self._get_section(node, section_id)
            if title is not None:
                section.title = title
            if items is not None:
                section.items = [SectionItem(id=_new_id(), content=item) for item in items]
            node.last_modified = _now()
            return section

    def delete_section(self, node_id: str, section_id: str) -> None:
        with self._lock:
            node = self.get_node(node_id)
            section = self._get_section(node, section_id)
            node.sections.remove(section)
            node.last_modified = _now()

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------

    def connect(
        self,
        source: str,
        target: str,
        weight: EdgeWeight = EdgeWeight.WEAK,
        label: Optional[str] = None,
    ) -> str:
        """Connect two nodes and return the edge ID.

        An existing source -> target edge is updated in place instead of
        duplicated.

        Raises:
            InvalidEdgeError: If either endpoint does not exist
        """
        with self._lock:
            missing = [ref for ref in (source, target) if ref not in self._nodes]
            if missing:
                raise InvalidEdgeError(f"Cannot connect missing node(s): {missing}")

            existing = self.find_edge(source, target)
            if existing is not None:
                existing.weight = EdgeWeight(weight)
                if label is not None:
                    existing.label = label
                return existing.id

            edge = CanvasEdge(
                id=_new_id(),
                source=source,
                target=target,
                weight=EdgeWeight(weight),
                label=label,
            )
            self._edges[edge.id] = edge
            return edge.id

    def update_edge(
        self,
        edge_id: str,
        weight: Optional[EdgeWeight] = None,
        label: Optional[str] = None,
    ) -> CanvasEdge:
        with self._lock:
            edge = self.get_edge(edge_id)
            if weight is not None:
                edge.weight = EdgeWeight(weight)
            if label is not None:
                edge.label = label
            return edge

    def delete_edge(self, edge_id: str) -> CanvasEdge:
        with self._lock:
            edge = self._edges.pop(edge_id, None)
            if edge is None:
                raise EdgeNotFoundError(edge_id)
            return edge

    # ------------------------------------------------------------------
    # Snapshots and context
    # ------------------------------------------------------------------

    def snapshot(self) -> CanvasSnapshot:
        """Deep copy of the current canvas state."""
        with self._lock:
            return CanvasSnapshot(
                nodes=[n.model_copy(deep=True) for n in self._nodes.values()],
                edges=[e.model_copy(deep=True) for e in self._edges.values()],
            )

    def restore(self, snapshot: CanvasSnapshot) -> None:
        """Replace the canvas content with a snapshot's."""
        with self._lock:
            self._nodes = {n.id: n.model_copy(deep=True) for n in snapshot.nodes}
            self._edges = {e.id: e.model_copy(deep=True) for e in snapshot.edges}
            self.update_group_membership()
        logger.info(f"Restored canvas {self.canvas_id} from snapshot")

    @classmethod
    def from_snapshot(
        cls,
        snapshot: CanvasSnapshot,
        canvas_id: Optional[str] = None,
        title: str = "",
    ) -> "CanvasStore":
        store = cls(canvas_id=canvas_id, title=title)
        store.restore(snapshot)
        return store

    def build_context(self) -> Dict[str, Any]:
        """Canvas summary handed to an AI agent before it proposes actions."""
        with self._lock:
            content = [n for n in self._nodes.values() if not n.is_group]
            groups = [n for n in self._nodes.values() if n.is_group]

            def title_of(node_id: str) -> str:
                node = self._nodes.get(node_id)
                return node.title if node else ""

            return {
                "canvas_id": self.canvas_id,
                "title": self.title,
                "nodes": [
                    {
                        "id": n.id,
                        "type": n.kind.value,
                        "title": n.title,
                        "description": n.description,
                        "sections": [
                            {"title": s.title, "items": [i.content for i in s.items]}
                            for s in n.sections
                        ],
                    }
                    for n in content
                ],
                "edges": [
                    {
                        "id": e.id,
                        "source": e.source,
                        "target": e.target,
                        "source_title": title_of(e.source),
                        "target_title": title_of(e.target),
                        "weight": e.weight.value,
                        "label": e.label,
                    }
                    for e in self._edges.values()
                ],
                "groups": [
                    {"id": g.id, "title": g.title, "child_node_ids": list(g.child_node_ids)}
                    for g in groups
                ],
            }
