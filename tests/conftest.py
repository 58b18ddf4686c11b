"""
Pytest fixtures for fieldstudio tests.

This module provides:
1. Test settings (environment forced to "testing", cache reset per test)
2. An in-memory module config store
"""

import os
import sys

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

os.environ.setdefault("FIELDSTUDIO_ENVIRONMENT", "testing")

from fieldstudio.config import Settings, get_settings  # noqa: E402
from tests.helpers.memory_store import InMemoryConfigStore  # noqa: E402


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Settings are cached process-wide; start every test from the environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest.fixture
def store() -> InMemoryConfigStore:
    return InMemoryConfigStore()
