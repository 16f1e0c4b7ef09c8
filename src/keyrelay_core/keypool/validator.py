"""Key validator - checks keys against their upstream under a deadline.

Each validation:
1. Resolves the group's effective config (once per group)
2. Parses the raw key (once per key, falling back to the raw key)
3. Calls the group's channel inside an asyncio.timeout scope
4. Records exactly one status update with the outcome
"""

import asyncio
import time
from collections.abc import Sequence

from keyrelay_core.errors import ErrorFactory, KeyRelayError, get_error_factory
from keyrelay_core.logging import RelayLogger, ValidationLogger
from keyrelay_core.telemetry import MetricLabels, instrument_key_validation
from keyrelay_core.types import (
    DEFAULT_KEY_VALIDATION_TIMEOUT_SECONDS,
    APIKey,
    EffectiveConfig,
    Group,
    ParsedKey,
)

from .parser import parse_key_or_identity
from .protocols import ChannelProvider, KeyStatusUpdater, KeyStore, SettingsProvider, ValidationChannel
from .types import KEY_NOT_FOUND_MESSAGE, KeyTestResult, KeyValidationResult

MAX_VALIDATION_TIMEOUT_SECONDS = 300

# Error codes that mean "upstream said no" rather than "could not check"
_REJECTION_CODES = frozenset({"KEY_INVALID", "KEY_REJECTED"})


def validation_timeout_seconds(config: EffectiveConfig) -> int:
    """Deadline for one remote validation, bounded to [1, 300] seconds."""
    timeout = config.key_validation_timeout_seconds
    if timeout <= 0:
        return DEFAULT_KEY_VALIDATION_TIMEOUT_SECONDS
    return min(timeout, MAX_VALIDATION_TIMEOUT_SECONDS)


def _metric_status(error: KeyRelayError | None) -> str:
    if error is None:
        return MetricLabels.STATUS_VALID
    if error.code in _REJECTION_CODES:
        return MetricLabels.STATUS_INVALID
    if error.code == "KEY_VALIDATION_TIMEOUT":
        return MetricLabels.STATUS_TIMEOUT
    return MetricLabels.STATUS_ERROR


class KeyValidator:
    """Validates keys of a group against the group's upstream service.

    Holds no per-call state: concurrent validations of different keys are
    safe as long as the collaborators are.
    """

    def __init__(
        self,
        key_store: KeyStore,
        channel_factory: ChannelProvider,
        settings_manager: SettingsProvider,
        status_updater: KeyStatusUpdater,
        logger: RelayLogger | None = None,
        error_factory: ErrorFactory | None = None,
    ):
        """Initialize key validator.

        Args:
            key_store: Looks up keys by group and raw value
            channel_factory: Provides the validation channel of a group
            settings_manager: Resolves effective group configuration
            status_updater: Records validation outcomes
            logger: Optional structured logger for validation events
            error_factory: Error factory (defaults to the shared factory)
        """
        self._key_store = key_store
        self._channel_factory = channel_factory
        self._settings = settings_manager
        self._status_updater = status_updater
        self._logger = logger
        self._errors = error_factory or get_error_factory()

    def _effective_config(self, group: Group) -> EffectiveConfig:
        if group.effective_config is None:
            group.effective_config = self._settings.get_effective_config(group.config)
        return group.effective_config

    def _parsed_key(self, key: APIKey, config: EffectiveConfig) -> ParsedKey:
        if key.parsed_key is None:
            key.parsed_key = parse_key_or_identity(key.key_value, config.key_parsing_method)
        return key.parsed_key

    def _validation_logger(self, group: Group) -> ValidationLogger | None:
        return self._logger.validation(group.name) if self._logger else None

    async def validate_single_key(self, key: APIKey, group: Group) -> KeyValidationResult:
        """Validate one key against its group's upstream.

        Args:
            key: Key record to validate
            group: Group the key belongs to

        Returns:
            KeyValidationResult; error is set whenever is_valid is False
        """
        config = self._effective_config(group)
        self._parsed_key(key, config)
        timeout = validation_timeout_seconds(config)
        vlog = self._validation_logger(group)

        try:
            channel = self._channel_factory.get_channel(group)
        except Exception as e:
            error = self._channel_error(e, group)
            if vlog:
                vlog.channel_unavailable(key, error)
            return KeyValidationResult(is_valid=False, error=error)

        if vlog:
            vlog.started(key, timeout)

        start_time = time.time()
        async with instrument_key_validation(group.name, key.id) as telemetry_result:
            error = await self._check(channel, key, group, timeout)
            telemetry_result["status"] = _metric_status(error)
            telemetry_result["error_code"] = error.code if error else None
        duration_ms = int((time.time() - start_time) * 1000)

        is_valid = error is None
        await self._status_updater.update_status(
            key, group, is_valid, error.message if error else ""
        )

        if vlog:
            if error is None:
                vlog.succeeded(key, duration_ms)
            else:
                vlog.failed(key, error, duration_ms)

        return KeyValidationResult(is_valid=is_valid, error=error)

    async def _check(
        self,
        channel: ValidationChannel,
        key: APIKey,
        group: Group,
        timeout: int,
    ) -> KeyRelayError | None:
        """Run the remote check under the deadline. Returns None if valid."""
        try:
            async with asyncio.timeout(timeout):
                is_valid = await channel.validate_key(key, group)
        except Exception as e:
            return self._errors.from_exception(
                e, group_name=group.name, key_id=key.id, timeout_seconds=timeout
            )

        if is_valid:
            return None
        return self._errors.create("KEY_INVALID", group_name=group.name, key_id=key.id)

    def _channel_error(self, error: Exception, group: Group) -> KeyRelayError:
        if isinstance(error, KeyRelayError) and error.code == "CHANNEL_UNAVAILABLE":
            return error.with_context(group_name=group.name)

        return self._errors.registry.create(
            "CHANNEL_UNAVAILABLE",
            {"group_name": group.name, "reason": str(error) or type(error).__name__},
            cause=error if isinstance(error, KeyRelayError) else None,
        )

    async def test_multiple_keys(
        self,
        group: Group,
        key_values: Sequence[str],
    ) -> list[KeyTestResult]:
        """Test a batch of raw key values against the group.

        Values are looked up in one batch; existing keys are validated one
        after another, missing ones are reported without a remote call.

        Args:
            group: Group to test against
            key_values: Raw key values, in the order results are wanted

        Returns:
            One KeyTestResult per input value, in input order

        Raises:
            KeyRelayError(KEY_LOOKUP_FAILED) if the batch lookup fails
        """
        existing = await self._find_existing(group, key_values)

        results: list[KeyTestResult] = []
        for value in key_values:
            key = existing.get(value)
            if key is None:
                results.append(
                    KeyTestResult(key_value=value, is_valid=False, error=KEY_NOT_FOUND_MESSAGE)
                )
                continue

            outcome = await self.validate_single_key(key, group)
            results.append(
                KeyTestResult(
                    key_value=value,
                    is_valid=outcome.is_valid,
                    error=outcome.error_message,
                )
            )

        vlog = self._validation_logger(group)
        if vlog:
            vlog.batch_completed(
                total=len(results),
                valid=sum(1 for r in results if r.is_valid),
                missing=sum(1 for v in key_values if v not in existing),
            )

        return results

    async def _find_existing(self, group: Group, key_values: Sequence[str]) -> dict[str, APIKey]:
        if not key_values:
            return {}

        try:
            keys = await self._key_store.find_keys_by_group_and_values(
                group.id, list(dict.fromkeys(key_values))
            )
        except Exception as e:
            if isinstance(e, KeyRelayError) and e.code == "KEY_LOOKUP_FAILED":
                raise
            raise self._errors.create(
                "KEY_LOOKUP_FAILED", group_name=group.name, reason=str(e) or type(e).__name__
            ) from e

        return {key.key_value: key for key in keys}
