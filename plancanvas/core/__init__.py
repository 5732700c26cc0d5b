"""
Core Layer - canvas storage, group geometry and analytics.

Modules:
- canvas_store: thread-safe in-memory canvas with snapshots
- groups: geometric group membership
- analytics.process_analyzer: process completeness scoring
"""

from .canvas_store import (
    CanvasStore,
    EdgeNotFoundError,
    InvalidEdgeError,
    NodeNotFoundError,
    SectionNotFoundError,
    build_section,
)
from .groups import compute_group_membership, is_node_inside_group

__all__ = [
    # Store
    'CanvasStore',
    'EdgeNotFoundError',
    'InvalidEdgeError',
    'NodeNotFoundError',
    'SectionNotFoundError',
    'build_section',
    # Groups
    'compute_group_membership',
    'is_node_inside_group',
]
