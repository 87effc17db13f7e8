"""Plugin instances - a plugin bound to one channel."""

from typing import Optional

from hal_router.core.matcher import CompiledPattern
from hal_router.interfaces.plugin import PluginDefinition
from hal_router.interfaces.preferences import Pref


class Instance:
    """An instance of a plugin tied to a channel.

    Instances are created with ``PluginDefinition.instance()`` and only
    receive events once registered. The definition is shared, never
    copied. ``pattern`` and the compiled matcher are fixed by
    ``PluginRegistry.register_instance``; ``settings`` is filled from the
    preference store by ``PluginRegistry.load_instance_settings``.
    """

    def __init__(
        self, definition: PluginDefinition, channel: str, pattern: str = ""
    ) -> None:
        """Initialize an unregistered instance.

        Args:
            definition: The plugin this is an instance of
            channel: Channel to subscribe to
            pattern: Pattern for filtering messages (default: plugin's)
        """
        self.definition = definition
        self.channel = channel
        self.pattern = pattern
        self.settings: list[Pref] = []
        self._compiled: Optional[CompiledPattern] = None
        self._registered = False

    @property
    def name(self) -> str:
        """Name of the plugin this instance runs."""
        return self.definition.name

    @property
    def is_registered(self) -> bool:
        """Check if the instance is currently registered for dispatch."""
        return self._registered

    def matches(self, text: str) -> bool:
        """Test an event body against the compiled pattern.

        An instance that has never been registered matches nothing.
        """
        if self._compiled is None:
            return False
        return self._compiled(text)

    def get_setting(self, key: str, default: str = "") -> str:
        """Get a loaded setting value by key."""
        for pref in self.settings:
            if pref.key == key:
                return pref.value
        return default

    def _bind(self, pattern: str, compiled: CompiledPattern) -> None:
        self.pattern = pattern
        self._compiled = compiled
        self._registered = True

    def _release(self) -> None:
        self._registered = False

    def __str__(self) -> str:
        return f"{self.name}/{self.channel}"

    def __repr__(self) -> str:
        return f"Instance({self.name!r}, channel={self.channel!r}, pattern={self.pattern!r})"
