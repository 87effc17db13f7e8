"""Shared test fixtures for pytest."""

import pytest

from hal_router.config import Config
from hal_router.core.dispatcher import Dispatcher
from hal_router.core.plugin_registry import PluginRegistry, raise_invariant_violation
from hal_router.core.preferences import MemoryPreferenceStore
from tests.mocks import MockBroker, RecordingHandler


@pytest.fixture
def preference_store() -> MemoryPreferenceStore:
    """Create an empty MemoryPreferenceStore."""
    return MemoryPreferenceStore()


@pytest.fixture
def plugin_registry(preference_store: MemoryPreferenceStore) -> PluginRegistry:
    """Create a PluginRegistry that raises on invariant violations."""
    return PluginRegistry(
        preferences=preference_store,
        invariant_handler=raise_invariant_violation,
    )


@pytest.fixture
def dispatcher(plugin_registry: PluginRegistry) -> Dispatcher:
    """Create a Dispatcher over the test registry."""
    return Dispatcher(plugin_registry)


@pytest.fixture
def mock_broker() -> MockBroker:
    """Create a MockBroker."""
    return MockBroker()


@pytest.fixture
def recording_handler() -> RecordingHandler:
    """Create a RecordingHandler."""
    return RecordingHandler()


@pytest.fixture
def default_config() -> Config:
    """Create default configuration."""
    return Config.default()
