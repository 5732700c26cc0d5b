"""Layout module for automatic canvas positioning.

This module provides:
- Layout engine abstraction (LayoutEngine)
- The hierarchical left-to-right engine
- compute_layout / apply_layout convenience functions
"""

from .engines.base import LayoutEngine
from .engines.hierarchical import (
    DEFAULT_NODE_HEIGHT,
    DEFAULT_NODE_WIDTH,
    HORIZONTAL_SPACING,
    LEVEL_PADDING,
    VERTICAL_SPACING,
    HierarchicalLayoutEngine,
    apply_layout,
    compute_layout,
)

__all__ = [
    "LayoutEngine",
    "HierarchicalLayoutEngine",
    "apply_layout",
    "compute_layout",
    "DEFAULT_NODE_WIDTH",
    "DEFAULT_NODE_HEIGHT",
    "HORIZONTAL_SPACING",
    "VERTICAL_SPACING",
    "LEVEL_PADDING",
]
