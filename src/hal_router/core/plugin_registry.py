"""Plugin registry for plugin and instance registration."""

import logging
import os
import threading
from collections.abc import Callable
from typing import Optional

from hal_router.core.errors import (
    AlreadyInstantiatedError,
    InvariantViolationError,
    UnknownPluginError,
)
from hal_router.core.instance import Instance
from hal_router.core.matcher import PatternMatcher, RegexMatcher
from hal_router.interfaces.plugin import PluginDefinition
from hal_router.interfaces.preferences import PreferenceStore

logger = logging.getLogger(__name__)

# Exit status used when an invariant violation stops the process
INVARIANT_EXIT_STATUS = 70

InvariantHandler = Callable[[InvariantViolationError], None]


def terminate_process(error: InvariantViolationError) -> None:
    """Log an invariant violation and stop the process immediately."""
    logger.critical(f"BUG: {error}")
    logging.shutdown()
    os._exit(INVARIANT_EXIT_STATUS)


def raise_invariant_violation(error: InvariantViolationError) -> None:
    """Raise the invariant violation to the caller instead of exiting."""
    raise error


class PluginRegistry:
    """Registry of plugin definitions and their registered instances.

    All mutation and enumeration goes through a single lock. List
    accessors return snapshot copies, so callers can iterate them
    without holding the lock while other threads register or
    unregister instances.

    Example usage:
        registry = PluginRegistry(preferences=MemoryPreferenceStore())
        registry.register_plugin(deploy_plugin)

        inst = deploy_plugin.instance("ops")
        registry.register_instance(inst)
        registry.load_instance_settings(inst)
    """

    def __init__(
        self,
        preferences: Optional[PreferenceStore] = None,
        matcher: Optional[PatternMatcher] = None,
        invariant_handler: InvariantHandler = terminate_process,
    ) -> None:
        """Initialize an empty registry.

        Args:
            preferences: Store used to load and save instance settings
            matcher: Compiles instance patterns (default: regular expressions)
            invariant_handler: Called with an InvariantViolationError when a
                caller breaks a precondition (default: terminate the process)
        """
        self._plugins: list[PluginDefinition] = []
        self._instances: list[Instance] = []
        self._lock = threading.Lock()
        self._preferences = preferences
        self._matcher = matcher or RegexMatcher()
        self._invariant_handler = invariant_handler

    @property
    def preferences(self) -> Optional[PreferenceStore]:
        """Get the preference store, if one was provided."""
        return self._preferences

    @property
    def matcher(self) -> PatternMatcher:
        """Get the pattern matcher used to compile instance patterns."""
        return self._matcher

    @property
    def invariant_handler(self) -> InvariantHandler:
        """Get the handler called on invariant violations."""
        return self._invariant_handler

    # -- plugin definitions --------------------------------------------

    def register_plugin(self, plugin: PluginDefinition) -> None:
        """Register a plugin definition.

        Registering a second definition with a name that is already
        registered is ignored, so repeated initialization paths are safe.

        Args:
            plugin: The plugin definition to register
        """
        with self._lock:
            for existing in self._plugins:
                if existing.name == plugin.name:
                    logger.info(
                        f"Ignoring repeated registration of plugin '{plugin.name}'"
                    )
                    return
            self._plugins.append(plugin)
        logger.debug(f"Registered plugin '{plugin.name}'")

    def get_plugin(self, name: str) -> Optional[PluginDefinition]:
        """Get a plugin definition by name.

        Args:
            name: The plugin name

        Returns:
            The plugin definition, or None if not found
        """
        with self._lock:
            for plugin in self._plugins:
                if plugin.name == name:
                    return plugin
        return None

    def get_all_plugins(self) -> list[PluginDefinition]:
        """Get a snapshot of all plugin definitions in registration order."""
        with self._lock:
            return list(self._plugins)

    @property
    def plugin_count(self) -> int:
        """Get the number of registered plugin definitions."""
        with self._lock:
            return len(self._plugins)

    def __contains__(self, name: str) -> bool:
        """Check if a plugin definition is registered by name."""
        return self.get_plugin(name) is not None

    # -- instances -----------------------------------------------------

    def register_instance(self, instance: Instance) -> None:
        """Register an instance so that it starts receiving events.

        An empty pattern inherits the plugin's default pattern. The
        pattern is compiled here; the instance is visible to dispatch as
        soon as this returns.

        Args:
            instance: The instance to register

        Raises:
            UnknownPluginError: If the instance's plugin definition is not
                the one registered under its name
            AlreadyInstantiatedError: If an instance with the same
                plugin name and channel is already registered
            InvalidPatternError: If the pattern cannot be compiled; the
                registry and the instance are left unchanged
            InvariantViolationError: Only when a raising invariant handler
                is installed and the plugin does not allow multiple
                instances but already has one
        """
        plugin = instance.definition
        identity = str(instance)

        with self._lock:
            if not any(p is plugin for p in self._plugins):
                raise UnknownPluginError(f"plugin '{plugin.name}' is not registered")

            for existing in self._instances:
                if not plugin.allow_multiple and existing.name == plugin.name:
                    self._invariant_handler(
                        InvariantViolationError(
                            f"plugin '{plugin.name}' being registered multiple "
                            "times when only one instance is allowed"
                        )
                    )
                    return
                if str(existing) == identity:
                    raise AlreadyInstantiatedError(
                        f"'{identity}' is already instantiated"
                    )

            pattern = instance.pattern or plugin.pattern
            compiled = self._matcher.compile(pattern)

            instance._bind(pattern, compiled)
            self._instances.append(instance)

        logger.info(
            f"Registered plugin '{instance.name}' in channel "
            f"'{instance.channel}' with {self._matcher.name} match '{pattern}'"
        )

    def unregister_instance(self, instance: Instance) -> bool:
        """Remove an instance so that it stops receiving events.

        Instances are located by identity, not equality.

        Args:
            instance: The instance to unregister

        Returns:
            True if the instance was removed, False if it wasn't registered
        """
        with self._lock:
            for idx, existing in enumerate(self._instances):
                if existing is instance:
                    del self._instances[idx]
                    instance._release()
                    break
            else:
                return False

        logger.info(
            f"Unregistered plugin '{instance.name}' from channel '{instance.channel}'"
        )
        return True

    def get_all_instances(self) -> list[Instance]:
        """Get a snapshot of all registered instances in registration order.

        Called for every inbound event, so this is a plain list copy.
        """
        with self._lock:
            return list(self._instances)

    def find_instances(self, channel: str, plugin_name: str) -> list[Instance]:
        """Find registered instances of a plugin in a channel.

        Args:
            channel: Exact channel to match
            plugin_name: Exact plugin name to match

        Returns:
            Matching instances (possibly empty)
        """
        with self._lock:
            return [
                inst
                for inst in self._instances
                if inst.channel == channel and inst.name == plugin_name
            ]

    @property
    def instance_count(self) -> int:
        """Get the number of registered instances."""
        with self._lock:
            return len(self._instances)

    def get_active_plugins(self) -> list[PluginDefinition]:
        """Get the plugins that have at least one registered instance.

        Returns:
            Unique plugins in the order their first instance appears
        """
        active: list[PluginDefinition] = []
        seen: set[str] = set()
        for inst in self.get_all_instances():
            if inst.name not in seen:
                seen.add(inst.name)
                active.append(inst.definition)
        return active

    def get_inactive_plugins(self) -> list[PluginDefinition]:
        """Get the registered plugins that have no registered instances."""
        with self._lock:
            plugins = list(self._plugins)
            in_use = {inst.name for inst in self._instances}
        return [plugin for plugin in plugins if plugin.name not in in_use]

    # -- instance settings ---------------------------------------------

    def load_instance_settings(self, instance: Instance) -> None:
        """Replace an instance's settings with values from the preference store.

        Every setting the plugin declares is resolved for the instance's
        channel and the plugin's broker, falling back to the declared
        default. Existing settings are discarded, not merged.

        Args:
            instance: The instance to load settings for

        Raises:
            RuntimeError: If the registry has no preference store
        """
        store = self._require_preferences()
        plugin = instance.definition

        with self._lock:
            instance.settings = [
                store.get(
                    "",
                    plugin.broker_name,
                    instance.channel,
                    plugin.name,
                    setting.key,
                    setting.default,
                )
                for setting in plugin.settings
            ]

    def save_instance_settings(self, instance: Instance) -> None:
        """Save an instance's current settings to the preference store.

        Store errors propagate unchanged; settings saved before the
        failing one stay saved.

        Args:
            instance: The instance whose settings to save

        Raises:
            RuntimeError: If the registry has no preference store
        """
        store = self._require_preferences()

        with self._lock:
            for pref in instance.settings:
                store.set(pref)

    def _require_preferences(self) -> PreferenceStore:
        if self._preferences is None:
            raise RuntimeError("PluginRegistry has no preference store configured")
        return self._preferences
