"""Layout engines registry.

Available engines:
- hierarchical: left-to-right longest-path layering with cycle breaking
"""

from .base import LayoutEngine
from .hierarchical import HierarchicalLayoutEngine

# Engine registry
ENGINES = {
    "hierarchical": HierarchicalLayoutEngine,
}


def get_engine(name: str) -> type:
    """Get layout engine class by name.

    Args:
        name: Engine name ('hierarchical')

    Returns:
        Layout engine class

    Raises:
        ValueError: If engine not found
    """
    if name not in ENGINES:
        raise ValueError(f"Unknown layout engine: {name}. Available: {list(ENGINES.keys())}")
    return ENGINES[name]


__all__ = [
    "LayoutEngine",
    "HierarchicalLayoutEngine",
    "ENGINES",
    "get_engine",
]
