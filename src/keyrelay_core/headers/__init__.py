"""Keyrelay header templating - variables and header rules for outgoing requests."""

from .context import INTERNAL_CLIENT_IP, HeaderVariableContext, client_ip
from .resolver import (
    API_KEY,
    API_KEY_PARAM_PATTERN,
    CLIENT_IP,
    GROUP_NAME,
    TIMESTAMP_MS,
    TIMESTAMP_S,
    apply_header_rules,
    canonical_header_key,
    resolve_header_variables,
)

__all__ = [
    # Context
    "HeaderVariableContext",
    "INTERNAL_CLIENT_IP",
    "client_ip",
    # Resolution
    "resolve_header_variables",
    "apply_header_rules",
    "canonical_header_key",
    # Variables
    "CLIENT_IP",
    "TIMESTAMP_MS",
    "TIMESTAMP_S",
    "GROUP_NAME",
    "API_KEY",
    "API_KEY_PARAM_PATTERN",
]
