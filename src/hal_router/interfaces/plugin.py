"""Plugin interface - Definitions describing a bot capability."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Optional

from hal_router.interfaces.broker import Broker
from hal_router.interfaces.preferences import Pref

if TYPE_CHECKING:
    from hal_router.core.event import Event
    from hal_router.core.instance import Instance

# Type alias for plugin handlers
EventHandler = Callable[["Event"], None]


@dataclass(frozen=True, eq=False)
class PluginDefinition:
    """A named capability registered with the bot at startup.

    A definition is never routed to directly. The orchestration layer
    creates an Instance per channel and registers it; the dispatcher then
    invokes ``handler`` for every event the instance matches.

    Attributes:
        name: Unique plugin name (used to launch instances)
        handler: Called with each matched event
        pattern: Default match pattern for instances that set none
        allow_multiple: Whether more than one instance may exist at once
        broker: Broker the plugin is tied to (scopes preference lookups)
        settings: Required settings; each Pref gives key, optional room
            restriction and default
        secrets: Names of secrets the plugin depends on

    Example:
        def deploy(evt: Event) -> None:
            evt.reply("deploying " + evt.body_as_argv()[1])

        DEPLOY = PluginDefinition(
            name="deploy",
            handler=deploy,
            pattern=r"^deploy\\s",
            settings=(Pref(key="environment", default="staging"),),
        )
    """

    name: str
    handler: EventHandler
    pattern: str = ""
    allow_multiple: bool = False
    broker: Optional[Broker] = None
    settings: tuple[Pref, ...] = field(default_factory=tuple)
    secrets: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        """Validate the definition."""
        if not self.name:
            raise ValueError("Plugin name cannot be empty")
        if not callable(self.handler):
            raise ValueError(f"Plugin '{self.name}' handler must be callable")
        # normalize list/set arguments so the definition stays immutable
        object.__setattr__(self, "settings", tuple(self.settings))
        object.__setattr__(self, "secrets", frozenset(self.secrets))

    @property
    def broker_name(self) -> str:
        """Name of the plugin's broker, or "" if it has none."""
        return self.broker.name if self.broker is not None else ""

    def instance(self, channel: str, pattern: str = "") -> Instance:
        """Create an instance of this plugin bound to a channel.

        The instance is *not* registered and will not receive events
        until it is passed to ``PluginRegistry.register_instance``.

        Args:
            channel: Channel the instance subscribes to
            pattern: Pattern override (empty means use the plugin default)

        Returns:
            A new, unregistered Instance
        """
        from hal_router.core.instance import Instance

        return Instance(definition=self, channel=channel, pattern=pattern)

    def __str__(self) -> str:
        return self.name
