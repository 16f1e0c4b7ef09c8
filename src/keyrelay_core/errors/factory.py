"""Error factory for creating KeyRelayErrors from any exception type."""

from typing import Any

from .errors import KeyRelayError
from .matchers import ErrorMatcherChain
from .registry import ErrorRegistry


class ErrorFactory:
    """Creates KeyRelayErrors from any exception type."""

    def __init__(
        self,
        registry: ErrorRegistry | None = None,
        matcher_chain: ErrorMatcherChain | None = None,
    ):
        self.registry = registry or ErrorRegistry()
        self.matcher_chain = matcher_chain or ErrorMatcherChain()

    def from_exception(
        self,
        error: Exception,
        group_name: str | None = None,
        key_id: int | None = None,
        **context: Any,
    ) -> KeyRelayError:
        """Classify error and wrap it as a KeyRelayError.

        KeyRelayErrors pass through with group/key context added. Anything
        else goes through the matcher chain; keyword context (for example
        timeout_seconds) overrides the matcher's defaults.
        """
        if isinstance(error, KeyRelayError):
            return error.with_context(group_name=group_name, key_id=key_id)

        match_result = self.matcher_chain.match(error)

        merged = {**match_result.context, **context}
        if group_name:
            merged["group_name"] = group_name
        if key_id is not None:
            merged["key_id"] = key_id

        relay_error = self.registry.create(code=match_result.code, context=merged)

        if match_result.retryable is not None:
            relay_error.retryable = match_result.retryable

        return relay_error

    def create(
        self,
        code: str,
        context: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> KeyRelayError:
        """Build the error for code from context plus keyword values."""
        merged_context = dict(context or {})
        merged_context.update(kwargs)

        return self.registry.create(code=code, context=merged_context)


# Convenience singleton
_default_factory: ErrorFactory | None = None


def get_error_factory() -> ErrorFactory:
    """Get default error factory singleton."""
    global _default_factory  # noqa: PLW0603
    if _default_factory is None:
        _default_factory = ErrorFactory()
    return _default_factory


def create_error(code: str, **context: Any) -> KeyRelayError:
    """Build an error through the default factory.

    Example:
        raise create_error("CONFIG_INVALID", detail="settings must be a mapping")
    """
    return get_error_factory().create(code, context)
