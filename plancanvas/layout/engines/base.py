"""Base layout engine protocol.

Defines the interface that all layout engines must implement.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from ...models.layout_metadata import LayoutResult, NodePosition


class LayoutEngine(ABC):
    """Abstract base class for layout engines.

    Layout engines convert graph topology into a position for every node.
    Engines are pure: they read a snapshot and return positions, leaving the
    mutation to the caller.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Engine name (e.g., 'hierarchical')."""
        ...

    @abstractmethod
    def layout(
        self,
        nodes: Sequence[Any],
        edges: Sequence[Any],
        origin: Optional[NodePosition] = None,
    ) -> LayoutResult:
        """Compute layout for a graph.

        Args:
            nodes: Objects exposing ``id`` and optionally ``width``/``height``
            edges: Objects exposing ``source`` and ``target``
            origin: Anchor position all offsets are relative to

        Returns:
            LayoutResult with one position per input node
        """
        ...
