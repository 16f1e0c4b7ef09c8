"""Error matchers for converting exceptions to KeyRelayErrors."""

import asyncio
from typing import Any

import httpx

from .errors import ErrorMatcher, MatchResult


def _describe(error: Exception) -> str:
    """Exception text, falling back to the type name for empty messages."""
    return str(error) or type(error).__name__


class TimeoutErrorMatcher(ErrorMatcher):
    """Matches deadline and HTTP client timeouts."""

    def matches(self, error: Exception) -> bool:
        """Check if error is a timeout error."""
        return isinstance(error, (asyncio.TimeoutError, TimeoutError, httpx.TimeoutException))

    def extract(self, error: Exception) -> MatchResult:
        """Extract timeout error info.

        Returns:
            MatchResult with KEY_VALIDATION_TIMEOUT code
        """
        return MatchResult(
            code="KEY_VALIDATION_TIMEOUT",
            context={"timeout_seconds": "unknown"},
            retryable=True,
        )


class TransportErrorMatcher(ErrorMatcher):
    """Matches connection-level failures talking to the upstream."""

    def matches(self, error: Exception) -> bool:
        """Check if error is an HTTP transport error."""
        return isinstance(error, httpx.TransportError)

    def extract(self, error: Exception) -> MatchResult:
        """Extract transport error info.

        Returns:
            MatchResult with UPSTREAM_UNREACHABLE code
        """
        return MatchResult(
            code="UPSTREAM_UNREACHABLE",
            context={"reason": _describe(error)},
        )


class GenericErrorMatcher(ErrorMatcher):
    """Fallback matcher for any exception."""

    def matches(self, error: Exception) -> bool:
        """Always matches (fallback matcher)."""
        return True

    def extract(self, error: Exception) -> MatchResult:
        """Extract generic error info.

        Returns:
            MatchResult with KEY_VALIDATION_FAILED code
        """
        context: dict[str, Any] = {
            "reason": _describe(error),
            "error_type": type(error).__name__,
        }

        return MatchResult(
            code="KEY_VALIDATION_FAILED",
            context=context,
            retryable=False,
        )


class ErrorMatcherChain:
    """Ordered chain of matchers. First match wins."""

    def __init__(self) -> None:
        """Initialize matcher chain with built-in matchers."""
        self.matchers: list[ErrorMatcher] = []
        self._load_builtin_matchers()

    def match(self, error: Exception) -> MatchResult:
        """Find first matching matcher and extract result.

        Args:
            error: Exception to match

        Returns:
            MatchResult from first matching matcher
        """
        for matcher in self.matchers:
            if matcher.matches(error):
                return matcher.extract(error)

        # Unreachable while GenericErrorMatcher is last
        return GenericErrorMatcher().extract(error)

    def _load_builtin_matchers(self) -> None:
        """Load built-in matchers in priority order."""
        # httpx.TimeoutException is a TransportError, so timeouts go first
        self.matchers = [
            TimeoutErrorMatcher(),
            TransportErrorMatcher(),
            GenericErrorMatcher(),  # Fallback - must be last
        ]
