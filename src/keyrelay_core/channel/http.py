"""HTTP validation channels for common upstream providers.

Each channel issues one cheap authenticated GET (listing models) and
decides from the status code:
- 2xx: key accepted
- 400/401/403: key rejected (KEY_REJECTED)
- anything else: upstream failure (UPSTREAM_ERROR)

Group header rules are applied to the validation request, resolved with
an internal header context.
"""

import httpx

from keyrelay_core.errors import create_error
from keyrelay_core.headers import HeaderVariableContext, apply_header_rules
from keyrelay_core.types import APIKey, Group, ParsedKey

from .base import ValidationChannel

# Status codes meaning the upstream refused the credential itself
REJECTION_STATUS_CODES = frozenset({400, 401, 403})

# Upstream error bodies are cut to this length in error messages
MAX_ERROR_BODY_LENGTH = 200


def summarize_error_body(response: httpx.Response) -> str:
    """Extract a short error description from an upstream response."""
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])[:MAX_ERROR_BODY_LENGTH]
        if isinstance(error, str) and error:
            return error[:MAX_ERROR_BODY_LENGTH]

    return response.text.strip()[:MAX_ERROR_BODY_LENGTH]


class HTTPValidationChannel(ValidationChannel):
    """Validates keys with an authenticated GET against the group's upstream.

    Subclasses choose the endpoint and how the credential is presented.
    """

    channel_type = "http"
    default_endpoint = "/v1/models"

    def __init__(self, group: Group, client: httpx.AsyncClient):
        """Initialize HTTP channel.

        Args:
            group: Group served by this channel (must have an upstream_url)
            client: Shared HTTP client

        Raises:
            KeyRelayError(CHANNEL_UNAVAILABLE) if the group has no upstream_url
        """
        if not group.upstream_url:
            raise create_error(
                "CHANNEL_UNAVAILABLE",
                group_name=group.name,
                reason="group has no upstream_url",
            )
        self._upstream_url = group.upstream_url.rstrip("/")
        self._client = client

    def auth_headers(self, actual_key: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {actual_key}"}

    def auth_params(self, actual_key: str) -> dict[str, str]:
        return {}

    def validation_url(self, group: Group) -> str:
        endpoint = group.validation_endpoint or self.default_endpoint
        return f"{self._upstream_url}/{endpoint.lstrip('/')}"

    def build_request(self, key: APIKey, group: Group) -> httpx.Request:
        """Build the validation request for a key, header rules applied."""
        parsed = key.parsed_key or ParsedKey.identity(key.key_value)

        request = self._client.build_request(
            "GET",
            self.validation_url(group),
            headers=self.auth_headers(parsed.actual_key),
            params=self.auth_params(parsed.actual_key) or None,
        )
        apply_header_rules(request, group.header_rules, HeaderVariableContext.internal(group, key))
        return request

    async def validate_key(self, key: APIKey, group: Group) -> bool:
        response = await self._client.send(self.build_request(key, group))
        if response.is_success:
            return True

        code = "KEY_REJECTED" if response.status_code in REJECTION_STATUS_CODES else "UPSTREAM_ERROR"
        raise create_error(
            code,
            status_code=response.status_code,
            body=summarize_error_body(response),
            group_name=group.name,
            key_id=key.id,
        )


class OpenAIChannel(HTTPValidationChannel):
    """OpenAI-compatible upstreams (Bearer token)."""

    channel_type = "openai"


class AnthropicChannel(HTTPValidationChannel):
    """Anthropic upstreams (x-api-key header)."""

    channel_type = "anthropic"
    api_version = "2023-06-01"

    def auth_headers(self, actual_key: str) -> dict[str, str]:
        return {"x-api-key": actual_key, "anthropic-version": self.api_version}


class GeminiChannel(HTTPValidationChannel):
    """Google Gemini upstreams (key query parameter)."""

    channel_type = "gemini"
    default_endpoint = "/v1beta/models"

    def auth_headers(self, actual_key: str) -> dict[str, str]:
        return {}

    def auth_params(self, actual_key: str) -> dict[str, str]:
        return {"key": actual_key}
