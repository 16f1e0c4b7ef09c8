"""Key, group and header rule models.

Access patterns:
- key.parsed_key.actual_key -> credential presented upstream
- key.parsed_key.get_param("region") -> auxiliary value encoded in the raw key
- group.effective_config -> resolved settings (None until first resolved)
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .config import EffectiveConfig
from .enums import HeaderAction, KeyStatus


@dataclass(frozen=True)
class ParsedKey:
    """Structured form of a raw key.

    Built fresh on every parse and never mutated afterwards: params is
    copied into a read-only mapping.
    """

    raw_key: str  # As stored
    actual_key: str  # Presented to the upstream service
    params: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    @classmethod
    def identity(cls, raw_key: str) -> "ParsedKey":
        """Parsed form of a key that encodes nothing extra."""
        return cls(raw_key=raw_key, actual_key=raw_key, params={})

    def get_param(self, name: str) -> str:
        """Get a parameter value, empty string if absent."""
        if not self.params:
            return ""
        return self.params.get(name, "")

    def has_param(self, name: str) -> bool:
        """Check whether a parameter is present (even if empty)."""
        if not self.params:
            return False
        return name in self.params


@dataclass
class HeaderRule:
    """Instruction to set or remove one header on an outgoing request."""

    key: str
    action: HeaderAction | str = HeaderAction.SET
    value: str = ""  # Template, resolved at request time (unused for remove)


@dataclass
class APIKey:
    """A key record in a group's pool."""

    id: int
    group_id: int
    key_value: str  # Raw key
    status: KeyStatus = KeyStatus.ACTIVE
    failure_count: int = 0
    last_error: str = ""

    # Populated lazily by the validator / proxy
    parsed_key: ParsedKey | None = field(default=None, compare=False, repr=False)


@dataclass
class Group:
    """A group of keys sharing one upstream and one configuration."""

    id: int
    name: str
    channel_type: str = "openai"
    upstream_url: str = ""
    validation_endpoint: str | None = None  # None = channel default
    config: dict[str, Any] = field(default_factory=dict)  # Raw group overrides
    header_rules: list[HeaderRule] = field(default_factory=list)

    # Compute-if-absent cache of resolved settings
    effective_config: EffectiveConfig | None = field(default=None, compare=False)
