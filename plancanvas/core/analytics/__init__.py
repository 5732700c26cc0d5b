"""Analytics over canvas snapshots."""

from .process_analyzer import (
    analyze_process,
    detect_feedback_loop,
    detect_isolated_nodes,
    generate_improvement_prompt,
)

__all__ = [
    "analyze_process",
    "detect_feedback_loop",
    "detect_isolated_nodes",
    "generate_improvement_prompt",
]
