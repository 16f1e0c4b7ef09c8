"""Keyrelay error types."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Where an error originated."""

    PARSE = "PARSE"  # key string could not be decoded
    VALIDATION = "VALIDATION"  # upstream said no, or the check did not finish
    CHANNEL = "CHANNEL"  # no channel, or the upstream could not be reached
    STORAGE = "STORAGE"
    SYSTEM = "SYSTEM"


@dataclass
class KeyRelayError(Exception):
    """Exception raised by every keyrelay component.

    Carries a stable code for callers and metrics, a human-readable message,
    and the group/key the failure concerns. str(error) is the message.
    """

    code: str  # e.g. "KEY_REJECTED"
    category: ErrorCategory
    message: str
    detail: str | None = None
    suggestion: str | None = None

    retryable: bool = False
    http_status: int = 500
    group_name: str | None = None
    key_id: int | None = None

    cause: "KeyRelayError | None" = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation, including the cause chain."""
        data: dict[str, Any] = {
            "code": self.code,
            "category": self.category.value,
            "message": self.message,
            "detail": self.detail,
            "suggestion": self.suggestion,
            "retryable": self.retryable,
            "group_name": self.group_name,
            "key_id": self.key_id,
            "timestamp": self.timestamp.isoformat(),
        }
        data["cause"] = self.cause.to_dict() if self.cause is not None else None
        return data

    def with_context(
        self,
        group_name: str | None = None,
        key_id: int | None = None,
    ) -> "KeyRelayError":
        """Copy of this error with group/key filled in where given."""
        return replace(
            self,
            group_name=group_name or self.group_name,
            key_id=self.key_id if key_id is None else key_id,
        )


@dataclass
class ErrorTemplate:
    """Blueprint for one error code.

    The *_template strings are str.format patterns filled from the
    context passed to ErrorRegistry.create.
    """

    code: str
    category: ErrorCategory
    message_template: str
    detail_template: str | None = None
    suggestion_template: str | None = None
    default_retryable: bool = False
    default_http_status: int = 500


@dataclass
class MatchResult:
    """Error code and template context chosen for a foreign exception."""

    code: str
    context: dict[str, Any]
    retryable: bool | None = None  # overrides the template when set


class ErrorMatcher(ABC):
    """Recognizes one family of exceptions."""

    @abstractmethod
    def matches(self, error: Exception) -> bool:
        """Whether this matcher is responsible for error."""

    @abstractmethod
    def extract(self, error: Exception) -> MatchResult:
        """Pick the error code and context for error."""
