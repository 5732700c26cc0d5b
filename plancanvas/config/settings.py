"""
Configuration and Feature Flags

Feature flags toggle behaviour around the core algorithms without code
changes. Flags are controlled via environment variables.

Usage:
    from plancanvas.config.settings import is_enabled

    if is_enabled('auto_layout'):
        executor.relayout()

Environment Variables:
    PLANCANVAS_AUTO_LAYOUT=true/false - Re-run layout after an action batch
    PLANCANVAS_LOG_LEVEL=INFO         - Server log level
    PLANCANVAS_VIEWPORT_X=400         - Default viewport centre (x)
    PLANCANVAS_VIEWPORT_Y=300         - Default viewport centre (y)

Layout spacing and scoring penalties are fixed policy and live next to the
code that uses them, not here.
"""

import os
from dataclasses import dataclass
from typing import Dict, Tuple


# Feature flags with environment variable overrides
FEATURE_FLAGS: Dict[str, bool] = {
    # Lay the canvas out again after an AI action batch touched it
    'auto_layout': os.getenv('PLANCANVAS_AUTO_LAYOUT', 'true').lower() == 'true',
}


def is_enabled(flag: str) -> bool:
    """
    Check if a feature flag is enabled.

    Args:
        flag: Feature flag name (e.g., 'auto_layout')

    Returns:
        True if flag is enabled, False otherwise

    Raises:
        KeyError: If flag name is not recognized

    Example:
        >>> is_enabled('auto_layout')
        True  # Default
    """
    if flag not in FEATURE_FLAGS:
        available = ', '.join(FEATURE_FLAGS.keys())
        raise KeyError(
            f"Unknown feature flag: '{flag}'. "
            f"Available flags: {available}"
        )

    return FEATURE_FLAGS[flag]


def get_all_flags() -> Dict[str, bool]:
    """Get all feature flags and their current state."""
    return FEATURE_FLAGS.copy()


def set_flag(flag: str, enabled: bool) -> None:
    """
    Programmatically set a feature flag (for testing only).

    Args:
        flag: Feature flag name
        enabled: True to enable, False to disable

    Raises:
        KeyError: If flag name is not recognized
    """
    if flag not in FEATURE_FLAGS:
        available = ', '.join(FEATURE_FLAGS.keys())
        raise KeyError(
            f"Unknown feature flag: '{flag}'. "
            f"Available flags: {available}"
        )

    FEATURE_FLAGS[flag] = enabled


def _env_float(name: str, default: float) -> float:
    """Read a numeric environment variable.

    Raises:
        ValueError: If the variable is set but not a number
    """
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


@dataclass
class Settings:
    """Server settings from environment."""

    log_level: str = "INFO"
    viewport_x: float = 400.0
    viewport_y: float = 300.0

    @property
    def viewport_center(self) -> Tuple[float, float]:
        """Default viewport centre used when the client does not send one."""
        return (self.viewport_x, self.viewport_y)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables.

        Raises:
            ValueError: If a viewport variable is not a number; the message
                names the variable
        """
        return cls(
            log_level=os.getenv("PLANCANVAS_LOG_LEVEL", "INFO").upper(),
            viewport_x=_env_float("PLANCANVAS_VIEWPORT_X", 400.0),
            viewport_y=_env_float("PLANCANVAS_VIEWPORT_Y", 300.0),
        )
