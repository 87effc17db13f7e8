"""Dispatcher that routes inbound events to matching plugin instances."""

import logging

from hal_router.core.event import Event
from hal_router.core.instance import Instance
from hal_router.core.plugin_registry import PluginRegistry

logger = logging.getLogger(__name__)


class Dispatcher:
    """Routes events to every registered instance that matches them.

    An instance matches when its channel equals the event's channel and
    its compiled pattern accepts the event body. All matches receive the
    event, in registration order. Matching runs on a snapshot of the
    instance list, outside the registry lock.
    """

    def __init__(self, registry: PluginRegistry) -> None:
        """Initialize the dispatcher.

        Args:
            registry: The registry holding the instances to route to
        """
        self._registry = registry

    @property
    def registry(self) -> PluginRegistry:
        """Get the registry this dispatcher routes from."""
        return self._registry

    def match(self, event: Event) -> list[Instance]:
        """Find the instances that should receive an event.

        Args:
            event: The inbound event

        Returns:
            Matching instances in registration order (possibly empty)
        """
        channel = event.channel
        return [
            inst
            for inst in self._registry.get_all_instances()
            if inst.channel == channel and inst.matches(event.body)
        ]

    def dispatch(self, event: Event) -> list[Instance]:
        """Invoke the handler of every instance that matches an event.

        Each handler gets a copy of the event bound to its instance. A
        handler that raises is logged and does not stop the others.

        Args:
            event: The inbound event

        Returns:
            The instances the event was routed to
        """
        matched = self.match(event)
        if not matched:
            logger.debug(f"No instances matched event in '{event.channel}'")
            return matched

        preferences = self._registry.preferences
        for inst in matched:
            logger.debug(f"Routing event in '{event.channel}' to '{inst}'")
            try:
                inst.definition.handler(event.bind(inst, preferences))
            except Exception:
                logger.exception(f"Plugin instance '{inst}' failed handling event")

        return matched
