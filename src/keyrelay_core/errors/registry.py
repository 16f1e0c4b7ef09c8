"""Error templates and the registry that turns them into KeyRelayErrors."""

from typing import Any

from .errors import ErrorCategory, ErrorTemplate, KeyRelayError

BUILTIN_TEMPLATES: tuple[ErrorTemplate, ...] = (
    # Parsing
    ErrorTemplate(
        "KEY_PARSE_FAILED",
        ErrorCategory.PARSE,
        "Failed to parse key with method '{method}': {reason}",
        suggestion_template="Check the key format or the group's key_parsing_method",
        default_http_status=400,
    ),
    # Channels and upstreams
    ErrorTemplate(
        "CHANNEL_UNAVAILABLE",
        ErrorCategory.CHANNEL,
        "Failed to get channel for group '{group_name}': {reason}",
        suggestion_template="Check the group's channel_type and upstream settings",
        default_http_status=503,
    ),
    ErrorTemplate(
        "UPSTREAM_UNREACHABLE",
        ErrorCategory.CHANNEL,
        "Upstream service unreachable: {reason}",
        detail_template="The validation request could not be delivered",
        suggestion_template="Check network connectivity and the group's upstream_url",
        default_retryable=True,
        default_http_status=502,
    ),
    ErrorTemplate(
        "UPSTREAM_ERROR",
        ErrorCategory.CHANNEL,
        "Upstream returned status {status_code}: {body}",
        default_retryable=True,
        default_http_status=502,
    ),
    # Validation outcomes
    ErrorTemplate(
        "KEY_INVALID",
        ErrorCategory.VALIDATION,
        "Key was reported invalid by upstream",
        default_http_status=401,
    ),
    ErrorTemplate(
        "KEY_REJECTED",
        ErrorCategory.VALIDATION,
        "Upstream rejected the key with status {status_code}: {body}",
        suggestion_template="Replace or remove the key",
        default_http_status=401,
    ),
    ErrorTemplate(
        "KEY_VALIDATION_TIMEOUT",
        ErrorCategory.VALIDATION,
        "Key validation timed out after {timeout_seconds}s",
        suggestion_template="Increase key_validation_timeout_seconds or check the upstream",
        default_retryable=True,
        default_http_status=504,
    ),
    ErrorTemplate(
        "KEY_VALIDATION_FAILED",
        ErrorCategory.VALIDATION,
        "Key validation failed: {reason}",
        detail_template="Error type: {error_type}",
        default_http_status=502,
    ),
    # Key store
    ErrorTemplate(
        "KEY_LOOKUP_FAILED",
        ErrorCategory.STORAGE,
        "Failed to query keys for group '{group_name}': {reason}",
        default_retryable=True,
    ),
    # System
    ErrorTemplate(
        "CONFIG_INVALID",
        ErrorCategory.SYSTEM,
        "Configuration is invalid",
        detail_template="{detail}",
        suggestion_template="Fix the configuration file and reload",
        default_http_status=400,
    ),
    ErrorTemplate(
        "INTERNAL_ERROR",
        ErrorCategory.SYSTEM,
        "Internal error: {detail}",
    ),
)


def _fill(pattern: str | None, context: dict[str, Any]) -> str | None:
    # Unknown placeholders leave the pattern untouched
    if pattern is None:
        return None
    try:
        return pattern.format(**context)
    except (KeyError, IndexError):
        return pattern


class ErrorRegistry:
    """Error templates keyed by code."""

    def __init__(self, templates: tuple[ErrorTemplate, ...] = BUILTIN_TEMPLATES) -> None:
        self._templates = {template.code: template for template in templates}

    def get_template(self, code: str) -> ErrorTemplate | None:
        return self._templates.get(code)

    def list_codes(self) -> list[str]:
        return list(self._templates)

    def register(self, template: ErrorTemplate) -> None:
        """Add a template, replacing any existing one with the same code."""
        self._templates[template.code] = template

    def create(
        self,
        code: str,
        context: dict[str, Any] | None = None,
        cause: KeyRelayError | None = None,
    ) -> KeyRelayError:
        """Build the error for code with its templates filled from context.

        group_name and key_id in context also become the error's own fields.

        Raises:
            ValueError: If no template is registered for code
        """
        template = self._templates.get(code)
        if template is None:
            raise ValueError(f"Unknown error code: {code}")

        values = context or {}
        return KeyRelayError(
            code=template.code,
            category=template.category,
            message=_fill(template.message_template, values) or f"Error {code}",
            detail=_fill(template.detail_template, values),
            suggestion=_fill(template.suggestion_template, values),
            retryable=template.default_retryable,
            http_status=template.default_http_status,
            group_name=values.get("group_name"),
            key_id=values.get("key_id"),
            cause=cause,
        )
