"""Validation channel base class."""

from abc import ABC, abstractmethod

from keyrelay_core.types import APIKey, Group


class ValidationChannel(ABC):
    """Checks keys against one kind of upstream service."""

    channel_type: str = ""

    @abstractmethod
    async def validate_key(self, key: APIKey, group: Group) -> bool:
        """Check a key against the group's upstream.

        Returns:
            True if the upstream accepts the key, False if it rejects it

        Raises:
            Exception on transport or unexpected upstream failures
        """

    async def aclose(self) -> None:
        """Release channel resources (no-op by default)."""
        return None
