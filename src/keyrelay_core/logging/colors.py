"""ANSI color codes for terminal output.

Usage:
    from keyrelay_core.logging.colors import GREEN, RESET

    print(f"{GREEN}valid{RESET}")
"""

RESET = "\033[0m"

# Outcome colors
GREEN = "\033[38;5;82m"  # Key accepted
RED = "\033[38;5;196m"  # Key rejected / errors
YELLOW = "\033[38;5;226m"  # Warnings, parse fallbacks
ORANGE = "\033[38;5;208m"  # Channel problems

# Informational colors
LIGHT_BLUE = "\033[38;5;153m"  # Context fields
CYAN = "\033[38;5;51m"  # Info
MAGENTA = "\033[38;5;201m"  # Batch summaries

__all__ = [
    "RESET",
    "GREEN",
    "RED",
    "YELLOW",
    "ORANGE",
    "LIGHT_BLUE",
    "CYAN",
    "MAGENTA",
]
