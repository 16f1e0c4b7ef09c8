"""Shared configuration types for keyrelay."""

from dataclasses import dataclass

from .enums import KeyParsingMethod

DEFAULT_APP_URL = "http://localhost:3001"
DEFAULT_KEY_VALIDATION_TIMEOUT_SECONDS = 20
DEFAULT_BLACKLIST_THRESHOLD = 3


@dataclass
class EffectiveConfig:
    """A group's settings after system defaults and group overrides are merged."""

    app_url: str = DEFAULT_APP_URL
    key_validation_timeout_seconds: int = DEFAULT_KEY_VALIDATION_TIMEOUT_SECONDS
    blacklist_threshold: int = DEFAULT_BLACKLIST_THRESHOLD  # 0 = never blacklist
    key_parsing_method: KeyParsingMethod = KeyParsingMethod.NONE
