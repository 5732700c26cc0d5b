"""Managers that apply multi-step edits to a canvas."""

from .action_executor import (
    ActionExecutor,
    ActionResult,
    AIAction,
    BatchResult,
    parse_action,
)

__all__ = [
    "ActionExecutor",
    "ActionResult",
    "AIAction",
    "BatchResult",
    "parse_action",
]
