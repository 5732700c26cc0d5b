"""Runtime configuration and feature flags."""

from .settings import Settings, get_all_flags, is_enabled, set_flag

__all__ = [
    "Settings",
    "get_all_flags",
    "is_enabled",
    "set_flag",
]
