"""Key pool result types."""

from dataclasses import dataclass
from typing import Any

from keyrelay_core.errors import KeyRelayError

# Reported for submitted values that are not in the group
KEY_NOT_FOUND_MESSAGE = "Key does not exist in this group or has been removed."


@dataclass
class KeyValidationResult:
    """Outcome of validating one key against its upstream."""

    is_valid: bool
    error: KeyRelayError | None = None

    @property
    def error_message(self) -> str:
        """Error text, empty when the key is valid."""
        return self.error.message if self.error else ""


@dataclass
class KeyTestResult:
    """Outcome for one submitted value in a batch key test."""

    key_value: str
    is_valid: bool
    error: str = ""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"key_value": self.key_value, "is_valid": self.is_valid}
        if self.error:
            result["error"] = self.error
        return result
