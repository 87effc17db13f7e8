"""Core module - Plugin registry, instances, event routing."""

from hal_router.core.dispatcher import Dispatcher
from hal_router.core.errors import (
    AlreadyInstantiatedError,
    InvalidPatternError,
    InvariantViolationError,
    PreferenceError,
    RegistryError,
    UnknownPluginError,
)
from hal_router.core.event import Event
from hal_router.core.instance import Instance
from hal_router.core.matcher import (
    ExactMatcher,
    GlobMatcher,
    PatternMatcher,
    RegexMatcher,
    get_matcher,
)
from hal_router.core.plugin_loader import PluginLoader, PluginLoadError
from hal_router.core.plugin_registry import (
    PluginRegistry,
    raise_invariant_violation,
    terminate_process,
)
from hal_router.core.preferences import MemoryPreferenceStore

__all__ = [
    "AlreadyInstantiatedError",
    "Dispatcher",
    "Event",
    "ExactMatcher",
    "GlobMatcher",
    "Instance",
    "InvalidPatternError",
    "InvariantViolationError",
    "MemoryPreferenceStore",
    "PatternMatcher",
    "PluginLoadError",
    "PluginLoader",
    "PluginRegistry",
    "PreferenceError",
    "RegexMatcher",
    "RegistryError",
    "UnknownPluginError",
    "get_matcher",
    "raise_invariant_violation",
    "terminate_process",
]
