"""Collaborator protocols for the key validator.

The validator only depends on these shapes, so stores, channels and
settings sources can be swapped (database, in-memory, test doubles).
"""

from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from keyrelay_core.types import APIKey, EffectiveConfig, Group


class ValidationChannel(Protocol):
    """Performs the remote check of one key."""

    async def validate_key(self, key: APIKey, group: Group) -> bool:
        """Return True if upstream accepts the key, False if it rejects it.

        Raises on transport or upstream failures.
        """
        ...


class ChannelProvider(Protocol):
    """Returns the channel serving a group."""

    def get_channel(self, group: Group) -> ValidationChannel: ...


class SettingsProvider(Protocol):
    """Resolves a group's effective configuration."""

    def get_effective_config(self, group_config: Mapping[str, Any] | None) -> EffectiveConfig: ...


class KeyStatusUpdater(Protocol):
    """Records the outcome of a validation on the key's status."""

    async def update_status(
        self,
        key: APIKey,
        group: Group,
        is_valid: bool,
        error_message: str,
    ) -> None: ...


class KeyStore(Protocol):
    """Looks up keys in a group's pool."""

    async def find_keys_by_group_and_values(
        self,
        group_id: int,
        key_values: Sequence[str],
    ) -> list[APIKey]:
        """Return the keys of the group whose raw value is in key_values.

        Values without a matching key are simply absent from the result.
        """
        ...
