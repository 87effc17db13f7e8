"""Interfaces module - Abstract base classes and dataclasses."""

from hal_router.interfaces.broker import Broker
from hal_router.interfaces.plugin import EventHandler, PluginDefinition
from hal_router.interfaces.preferences import Pref, PreferenceStore

__all__ = [
    "Broker",
    "EventHandler",
    "Pref",
    "PluginDefinition",
    "PreferenceStore",
]
