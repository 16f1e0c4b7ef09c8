"""Keyrelay key pool - parsing, validation and key status tracking."""

from .memory import InMemoryKeyPool
from .parser import KeyParser, parse_key, parse_key_or_identity
from .protocols import (
    ChannelProvider,
    KeyStatusUpdater,
    KeyStore,
    SettingsProvider,
    ValidationChannel,
)
from .types import KEY_NOT_FOUND_MESSAGE, KeyTestResult, KeyValidationResult
from .validator import MAX_VALIDATION_TIMEOUT_SECONDS, KeyValidator, validation_timeout_seconds

__all__ = [
    # Parser
    "KeyParser",
    "parse_key",
    "parse_key_or_identity",
    # Validator
    "KeyValidator",
    "KeyValidationResult",
    "KeyTestResult",
    "KEY_NOT_FOUND_MESSAGE",
    "MAX_VALIDATION_TIMEOUT_SECONDS",
    "validation_timeout_seconds",
    # Collaborators
    "ChannelProvider",
    "KeyStatusUpdater",
    "KeyStore",
    "SettingsProvider",
    "ValidationChannel",
    # Reference store
    "InMemoryKeyPool",
]
