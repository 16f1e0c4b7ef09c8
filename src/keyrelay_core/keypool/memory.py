"""In-memory key pool.

Holds key records per group and tracks their health:
- Failed validations increment failure_count and record last_error
- Reaching the group's blacklist threshold marks the key invalid
- A successful validation resets the failure count and reactivates the key

Serves as both KeyStore and KeyStatusUpdater for the validator.
"""

import asyncio
import logging
from collections.abc import Iterable, Sequence

from keyrelay_core.config.settings import SystemSettingsManager
from keyrelay_core.types import APIKey, Group, KeyStatus

logger = logging.getLogger(__name__)


class InMemoryKeyPool:
    """Key pool kept in process memory.

    Every read and write of the pool goes through one asyncio.Lock.
    """

    def __init__(self, settings_manager: SystemSettingsManager | None = None):
        """Initialize key pool.

        Args:
            settings_manager: Resolves blacklist thresholds for groups whose
                effective config has not been resolved yet
        """
        self._settings = settings_manager or SystemSettingsManager()
        self._keys: dict[int, dict[str, APIKey]] = {}  # group_id -> key_value -> APIKey
        self._next_id = 1
        self._lock = asyncio.Lock()

    async def add_keys(self, group_id: int, key_values: Iterable[str]) -> list[APIKey]:
        """Add raw keys to a group, skipping blanks and duplicates.

        Returns:
            The newly created key records
        """
        added: list[APIKey] = []
        async with self._lock:
            pool = self._keys.setdefault(group_id, {})
            for value in key_values:
                value = value.strip()
                if not value or value in pool:
                    continue
                key = APIKey(id=self._next_id, group_id=group_id, key_value=value)
                self._next_id += 1
                pool[value] = key
                added.append(key)

        if added:
            logger.info(f"Added {len(added)} keys to group {group_id}")
        return added

    async def remove_keys(self, group_id: int, key_values: Iterable[str]) -> int:
        """Remove keys from a group. Returns the number removed."""
        async with self._lock:
            pool = self._keys.get(group_id, {})
            removed = sum(1 for value in key_values if pool.pop(value, None) is not None)
        if removed:
            logger.info(f"Removed {removed} keys from group {group_id}")
        return removed

    async def list_keys(self, group_id: int, status: KeyStatus | None = None) -> list[APIKey]:
        """List a group's keys in insertion order, optionally by status."""
        async with self._lock:
            keys = list(self._keys.get(group_id, {}).values())
        if status is None:
            return keys
        return [k for k in keys if k.status == status]

    async def find_keys_by_group_and_values(
        self,
        group_id: int,
        key_values: Sequence[str],
    ) -> list[APIKey]:
        """Return the group's stored records whose raw value was requested."""
        async with self._lock:
            pool = self._keys.get(group_id, {})
            return [pool[v] for v in dict.fromkeys(key_values) if v in pool]

    async def update_status(
        self,
        key: APIKey,
        group: Group,
        is_valid: bool,
        error_message: str,
    ) -> None:
        """Record a validation outcome on the key (and its stored record)."""
        async with self._lock:
            stored = self._keys.get(key.group_id, {}).get(key.key_value)
            records = [key] if stored is None or stored is key else [key, stored]

            if is_valid:
                for record in records:
                    self._mark_success(record)
                return

            threshold = self._blacklist_threshold(group)
            for record in records:
                self._mark_failure(record, error_message, threshold)

    def _blacklist_threshold(self, group: Group) -> int:
        if group.effective_config is None:
            group.effective_config = self._settings.get_effective_config(group.config)
        return group.effective_config.blacklist_threshold

    def _mark_success(self, key: APIKey) -> None:
        if key.status == KeyStatus.INVALID:
            logger.info(f"Key {key.id} in group {key.group_id} restored to active")
        key.failure_count = 0
        key.last_error = ""
        key.status = KeyStatus.ACTIVE

    def _mark_failure(self, key: APIKey, error_message: str, threshold: int) -> None:
        key.failure_count += 1
        key.last_error = error_message

        if key.status == KeyStatus.INVALID:
            return
        if threshold > 0 and key.failure_count >= threshold:
            key.status = KeyStatus.INVALID
            logger.warning(
                f"Key {key.id} in group {key.group_id} blacklisted after "
                f"{key.failure_count} consecutive failures"
            )
