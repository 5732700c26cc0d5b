"""Layout results produced by the layout engines.

This module provides schemas for:
- Node positions (x, y coordinates, top-left corner of the node)
- Bounding boxes over positioned node rectangles
- The full result of one layout run (positions, levels, broken edges)

Coordinates are canvas units with a top-left origin, the same space the
editor stores node positions in.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field


class NodePosition(BaseModel):
    """Position of a single node in 2D layout space.

    Attributes:
        x: Horizontal coordinate
        y: Vertical coordinate
    """

    x: float = Field(..., description="Horizontal coordinate")
    y: float = Field(..., description="Vertical coordinate")

    @classmethod
    def from_list(cls, pos: List[float]) -> "NodePosition":
        """Create NodePosition from [x, y] list.

        Raises:
            ValueError: If pos doesn't have exactly 2 elements
        """
        if len(pos) != 2:
            raise ValueError(f"Position must be [x, y], got {len(pos)} elements")
        return cls(x=pos[0], y=pos[1])

    def to_list(self) -> List[float]:
        """Convert to list format [x, y]."""
        return [self.x, self.y]


class BoundingBox(BaseModel):
    """Bounding box for a node or entire graph.

    Attributes:
        min_x: Minimum x coordinate
        max_x: Maximum x coordinate
        min_y: Minimum y coordinate
        max_y: Maximum y coordinate
    """

    min_x: float = Field(..., description="Minimum x coordinate")
    max_x: float = Field(..., description="Maximum x coordinate")
    min_y: float = Field(..., description="Minimum y coordinate")
    max_y: float = Field(..., description="Maximum y coordinate")

    @property
    def width(self) -> float:
        """Computed width of bounding box."""
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        """Computed height of bounding box."""
        return self.max_y - self.min_y

    @property
    def center(self) -> Tuple[float, float]:
        """Computed center point of bounding box."""
        return (
            (self.min_x + self.max_x) / 2,
            (self.min_y + self.max_y) / 2
        )

    @classmethod
    def from_rectangles(
        cls, rectangles: Iterable[Tuple[float, float, float, float]]
    ) -> "BoundingBox":
        """Compute bounding box from (x, y, width, height) rectangles.

        Raises:
            ValueError: If no rectangles are given
        """
        rects = list(rectangles)
        if not rects:
            raise ValueError("Cannot compute bounding box from empty rectangles")

        return cls(
            min_x=min(x for x, _, _, _ in rects),
            max_x=max(x + w for x, _, w, _ in rects),
            min_y=min(y for _, y, _, _ in rects),
            max_y=max(y + h for _, y, _, h in rects),
        )


class LayoutResult(BaseModel):
    """Outcome of one layout run.

    Attributes:
        algorithm: Engine name that produced the layout
        origin: Anchor position the layout was offset from
        positions: Node ID -> top-left position, one per input node
        levels: Node ID -> column index
        broken_edges: (source, target) pairs dropped from the leveling graph
        capped: True when the leveling loop hit its iteration or visit cap
        bounding_box: Box around all node rectangles (None for empty input)
    """

    algorithm: str = Field(..., description="Layout algorithm used")
    origin: NodePosition = Field(default_factory=lambda: NodePosition(x=0, y=0))
    positions: Dict[str, NodePosition] = Field(default_factory=dict)
    levels: Dict[str, int] = Field(default_factory=dict)
    broken_edges: List[Tuple[str, str]] = Field(default_factory=list)
    capped: bool = False
    bounding_box: Optional[BoundingBox] = None

    def to_dict(self) -> Dict:
        """Convert to a JSON-friendly dict."""
        return {
            "algorithm": self.algorithm,
            "origin": self.origin.model_dump(),
            "positions": {
                node_id: pos.model_dump() for node_id, pos in self.positions.items()
            },
            "levels": dict(self.levels),
            "broken_edges": [list(edge) for edge in self.broken_edges],
            "capped": self.capped,
            "bounding_box": self.bounding_box.model_dump() if self.bounding_box else None,
        }
