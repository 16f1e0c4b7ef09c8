"""Keyrelay logging - colored or JSON validation event logs."""

from .colors import (
    CYAN,
    GREEN,
    LIGHT_BLUE,
    MAGENTA,
    ORANGE,
    RED,
    RESET,
    YELLOW,
)
from .logger import (
    LogConfig,
    RelayLogger,
    ValidationLogger,
    mask_key,
)

__all__ = [
    # Logger classes
    "RelayLogger",
    "ValidationLogger",
    "LogConfig",
    "mask_key",
    # Colors
    "RESET",
    "GREEN",
    "RED",
    "YELLOW",
    "ORANGE",
    "LIGHT_BLUE",
    "CYAN",
    "MAGENTA",
]
