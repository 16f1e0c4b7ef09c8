"""Shared enumerations for keyrelay."""

from enum import Enum


class LogLevel(str, Enum):
    """Log verbosity level."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class LogFormat(str, Enum):
    """Log output format."""

    COLORED = "colored"
    JSON = "json"


class KeyParsingMethod(str, Enum):
    """How a raw key string is decoded before use."""

    NONE = "none"
    URLENCODE = "urlencode"

    @classmethod
    def from_value(cls, value: "str | KeyParsingMethod | None") -> "KeyParsingMethod":
        """Map a configured value to a method.

        Only the exact lowercase names match. Empty and unrecognized values
        (including other spellings such as "URLENCODE") map to NONE; they are
        not an error.
        """
        if isinstance(value, cls):
            return value
        if not value:
            return cls.NONE
        try:
            return cls(value)
        except ValueError:
            return cls.NONE


class KeyStatus(str, Enum):
    """Key pool status of an API key."""

    ACTIVE = "active"
    INVALID = "invalid"


class HeaderAction(str, Enum):
    """Header rule action."""

    SET = "set"
    REMOVE = "remove"
