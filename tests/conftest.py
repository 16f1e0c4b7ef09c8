"""
Pytest configuration and shared fixtures for keyrelay tests.
"""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from keyrelay_core.types import APIKey, Group  # noqa: E402


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def group() -> Group:
    """Group pointing at a fake OpenAI-compatible upstream."""
    return Group(id=1, name="primary", channel_type="openai", upstream_url="https://upstream.test")


@pytest.fixture
def api_key() -> APIKey:
    """Active key in the primary group."""
    return APIKey(id=10, group_id=1, key_value="sk-test-0123456789abcdef")


# =============================================================================
# Markers Configuration
# =============================================================================


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "property: Property-based tests")
    config.addinivalue_line("markers", "slow: Slow tests")
