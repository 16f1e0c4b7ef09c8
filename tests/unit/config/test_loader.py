"""Unit tests for ConfigLoader."""

import pytest

from keyrelay_core.config import ConfigLoader, RelayConfig, deep_merge, resolve_env_vars
from keyrelay_core.errors import KeyRelayError
from keyrelay_core.types import LogFormat, LogLevel


class TestResolveEnvVars:
    """Tests for environment variable resolution."""

    def test_plain_variable(self, monkeypatch):
        """Test ${VAR} is replaced by its value."""
        monkeypatch.setenv("UPSTREAM_HOST", "api.example.com")
        assert resolve_env_vars("https://${UPSTREAM_HOST}") == "https://api.example.com"

    def test_default_value(self, monkeypatch):
        """Test ${VAR:-default} falls back when unset."""
        monkeypatch.delenv("KEYRELAY_UNSET", raising=False)
        assert resolve_env_vars("${KEYRELAY_UNSET:-fallback}") == "fallback"

    def test_required_variable_missing(self, monkeypatch):
        """Test a missing required variable raises CONFIG_INVALID."""
        monkeypatch.delenv("KEYRELAY_UNSET", raising=False)
        with pytest.raises(KeyRelayError) as exc_info:
            resolve_env_vars("${KEYRELAY_UNSET:?set the app url}")
        assert exc_info.value.code == "CONFIG_INVALID"
        assert exc_info.value.detail == "set the app url"

    def test_header_variables_preserved(self):
        """Test header template variables survive loading."""
        template = "${CLIENT_IP} ${API_KEY}{region} ${GROUP_NAME} ${TIMESTAMP_MS}"
        assert resolve_env_vars(template) == template


class TestDeepMerge:
    """Tests for deep_merge."""

    def test_nested_override(self):
        """Test nested dicts merge and scalars are overridden."""
        base = {"settings": {"app_url": "a", "blacklist_threshold": 3}, "logging": {}}
        override = {"settings": {"app_url": "b"}}
        assert deep_merge(base, override) == {
            "settings": {"app_url": "b", "blacklist_threshold": 3},
            "logging": {},
        }


class TestConfigLoader:
    """Tests for ConfigLoader."""

    def test_defaults(self):
        """Test default configuration values."""
        config = ConfigLoader().load_defaults()

        assert isinstance(config, RelayConfig)
        assert config.settings.key_validation_timeout_seconds == 20
        assert config.settings.blacklist_threshold == 3
        assert config.settings.key_parsing_method == "none"
        assert config.telemetry.service_name == "keyrelay"

    def test_load_from_file(self, tmp_path, monkeypatch):
        """Test loading YAML with env resolution and enum conversion."""
        monkeypatch.setenv("KEYRELAY_TEST_APP_URL", "https://relay.example.com")
        config_file = tmp_path / "keyrelay.yaml"
        config_file.write_text("""
settings:
  app_url: ${KEYRELAY_TEST_APP_URL}
  key_validation_timeout_seconds: 45
  key_parsing_method: urlencode
logging:
  level: debug
  format: json
telemetry:
  enabled: false
""")

        loader = ConfigLoader()
        config = loader.load(config_file)

        assert config.settings.app_url == "https://relay.example.com"
        assert config.settings.key_validation_timeout_seconds == 45
        assert config.settings.key_parsing_method == "urlencode"
        assert config.logging.level == LogLevel.DEBUG
        assert config.logging.format == LogFormat.JSON
        assert config.telemetry.enabled is False
        assert loader.get() is config

    def test_env_path(self, tmp_path, monkeypatch):
        """Test KEYRELAY_CONFIG_PATH selects the file."""
        config_file = tmp_path / "custom.yaml"
        config_file.write_text("settings:\n  blacklist_threshold: 5\n")
        monkeypatch.setenv("KEYRELAY_CONFIG_PATH", str(config_file))

        config = ConfigLoader().load()

        assert config.settings.blacklist_threshold == 5

    def test_missing_file_without_defaults(self, tmp_path):
        """Test a missing file raises when defaults are disabled."""
        with pytest.raises(KeyRelayError) as exc_info:
            ConfigLoader().load(tmp_path / "absent.yaml", use_defaults=False)
        assert exc_info.value.code == "CONFIG_INVALID"

    def test_invalid_yaml(self, tmp_path):
        """Test malformed YAML raises CONFIG_INVALID."""
        config_file = tmp_path / "broken.yaml"
        config_file.write_text("settings: [unclosed\n")

        with pytest.raises(KeyRelayError) as exc_info:
            ConfigLoader().load(config_file)
        assert "Invalid YAML" in exc_info.value.detail

    def test_invalid_values_rejected(self):
        """Test invalid settings fail validation."""
        with pytest.raises(KeyRelayError) as exc_info:
            ConfigLoader().load_from_dict(
                {"settings": {"key_validation_timeout_seconds": 0, "blacklist_threshold": -1}}
            )
        assert "key_validation_timeout_seconds" in exc_info.value.detail
        assert "blacklist_threshold" in exc_info.value.detail

    def test_validate_warnings(self):
        """Test unknown keys and parsing methods only warn."""
        result = ConfigLoader().validate(
            {"groups": {}, "settings": {"key_parsing_method": "base64"}}
        )

        assert result.valid is True
        assert {w.path for w in result.warnings} == {"groups", "settings.key_parsing_method"}

    def test_section_must_be_mapping(self):
        """Test non-mapping sections are errors."""
        result = ConfigLoader().validate({"settings": ["not", "a", "mapping"]})
        assert result.valid is False

    def test_get_before_load(self):
        """Test get raises before any configuration is loaded."""
        with pytest.raises(KeyRelayError):
            ConfigLoader().get()

    def test_reload_notifies_callbacks(self, tmp_path):
        """Test reload re-reads the file and notifies listeners."""
        config_file = tmp_path / "keyrelay.yaml"
        config_file.write_text("settings:\n  blacklist_threshold: 1\n")
        loader = ConfigLoader()
        loader.load(config_file)
        seen = []
        loader.on_change(seen.append)

        config_file.write_text("settings:\n  blacklist_threshold: 7\n")
        config = loader.reload()

        assert config.settings.blacklist_threshold == 7
        assert seen == [config]

    def test_logging_section_to_log_config(self):
        """Test the logging section builds a RelayLogger configuration."""
        config = ConfigLoader().load_from_dict({"logging": {"components": {"batch": False}}})
        log_config = config.logging.to_log_config()
        assert log_config.components == {"batch": False}
