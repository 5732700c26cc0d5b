"""Conversions between canvas snapshots and graph representations."""

from .graph_converter import CanvasGraphConverter, build_leveling_graph

__all__ = [
    "CanvasGraphConverter",
    "build_leveling_graph",
]
