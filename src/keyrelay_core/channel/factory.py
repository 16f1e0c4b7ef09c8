"""Channel factory - builds and caches validation channels per group."""

import logging
from collections.abc import Callable

import httpx

from keyrelay_core.errors import KeyRelayError, create_error
from keyrelay_core.types import Group

from .base import ValidationChannel
from .http import AnthropicChannel, GeminiChannel, OpenAIChannel

logger = logging.getLogger(__name__)

ChannelBuilder = Callable[[Group, httpx.AsyncClient], ValidationChannel]

BUILTIN_CHANNELS: dict[str, ChannelBuilder] = {
    OpenAIChannel.channel_type: OpenAIChannel,
    AnthropicChannel.channel_type: AnthropicChannel,
    GeminiChannel.channel_type: GeminiChannel,
}

# Per-request budget is enforced by the validator's deadline
DEFAULT_CLIENT_TIMEOUT = httpx.Timeout(None, connect=10.0)


class ChannelFactory:
    """Provides the validation channel serving a group.

    Channels are cached per (group id, channel type, upstream url), so a
    group that changes upstream gets a fresh channel.
    """

    def __init__(self, client: httpx.AsyncClient | None = None):
        """Initialize channel factory.

        Args:
            client: Shared HTTP client (one is created and owned if omitted)
        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=DEFAULT_CLIENT_TIMEOUT)
        self._builders: dict[str, ChannelBuilder] = dict(BUILTIN_CHANNELS)
        self._channels: dict[tuple[int, str, str], ValidationChannel] = {}

    def register(self, channel_type: str, builder: ChannelBuilder) -> None:
        """Register (or replace) the builder for a channel type."""
        self._builders[channel_type] = builder
        # Drop channels built by a replaced builder
        self._channels = {k: v for k, v in self._channels.items() if k[1] != channel_type}

    def list_channel_types(self) -> list[str]:
        return sorted(self._builders)

    def get_channel(self, group: Group) -> ValidationChannel:
        """Get the channel for a group.

        Raises:
            KeyRelayError(CHANNEL_UNAVAILABLE) for unknown channel types or
            groups a channel cannot be built for
        """
        cache_key = (group.id, group.channel_type, group.upstream_url)
        channel = self._channels.get(cache_key)
        if channel is not None:
            return channel

        builder = self._builders.get(group.channel_type)
        if builder is None:
            raise create_error(
                "CHANNEL_UNAVAILABLE",
                group_name=group.name,
                reason=f"unsupported channel type '{group.channel_type}'",
            )

        try:
            channel = builder(group, self._client)
        except KeyRelayError:
            raise
        except Exception as e:
            raise create_error("CHANNEL_UNAVAILABLE", group_name=group.name, reason=str(e)) from e

        self._channels[cache_key] = channel
        logger.debug(f"Created {group.channel_type} channel for group '{group.name}'")
        return channel

    async def aclose(self) -> None:
        """Close cached channels and the HTTP client if owned."""
        for channel in self._channels.values():
            await channel.aclose()
        self._channels.clear()
        if self._owns_client:
            await self._client.aclose()
