"""Keyrelay validation channels - remote key checks per upstream type."""

from .base import ValidationChannel
from .factory import BUILTIN_CHANNELS, ChannelBuilder, ChannelFactory
from .http import (
    AnthropicChannel,
    GeminiChannel,
    HTTPValidationChannel,
    OpenAIChannel,
    summarize_error_body,
)

__all__ = [
    "ValidationChannel",
    "HTTPValidationChannel",
    "OpenAIChannel",
    "AnthropicChannel",
    "GeminiChannel",
    "ChannelFactory",
    "ChannelBuilder",
    "BUILTIN_CHANNELS",
    "summarize_error_body",
]
