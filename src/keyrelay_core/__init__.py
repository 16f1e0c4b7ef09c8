"""Keyrelay Core - key parsing, validation and header templating.

Core components for relaying requests through pools of upstream API keys.
"""

from keyrelay_core.channel import ChannelFactory
from keyrelay_core.config import SystemSettingsManager
from keyrelay_core.headers import HeaderVariableContext, apply_header_rules, resolve_header_variables
from keyrelay_core.keypool import InMemoryKeyPool, KeyValidator, parse_key, parse_key_or_identity

__version__ = "0.1.0"
__all__ = [
    "__version__",
    "ChannelFactory",
    "HeaderVariableContext",
    "InMemoryKeyPool",
    "KeyValidator",
    "SystemSettingsManager",
    "apply_header_rules",
    "parse_key",
    "parse_key_or_identity",
    "resolve_header_variables",
]
