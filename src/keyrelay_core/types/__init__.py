"""Shared types for keyrelay.

Import from here rather than submodules:
    from keyrelay_core.types import APIKey, Group, ParsedKey
"""

from .config import (
    DEFAULT_APP_URL,
    DEFAULT_BLACKLIST_THRESHOLD,
    DEFAULT_KEY_VALIDATION_TIMEOUT_SECONDS,
    EffectiveConfig,
)
from .enums import (
    HeaderAction,
    KeyParsingMethod,
    KeyStatus,
    LogFormat,
    LogLevel,
)
from .keys import APIKey, Group, HeaderRule, ParsedKey
from .validation import ValidationIssue, ValidationResult

__all__ = [
    # Enums
    "LogLevel",
    "LogFormat",
    "KeyParsingMethod",
    "KeyStatus",
    "HeaderAction",
    # Config
    "EffectiveConfig",
    "DEFAULT_APP_URL",
    "DEFAULT_KEY_VALIDATION_TIMEOUT_SECONDS",
    "DEFAULT_BLACKLIST_THRESHOLD",
    # Keys
    "ParsedKey",
    "APIKey",
    "Group",
    "HeaderRule",
    # Validation
    "ValidationIssue",
    "ValidationResult",
]
