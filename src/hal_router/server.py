"""Main BotServer orchestrator."""

import logging
from collections.abc import Iterable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Optional

from hal_router.config import Config
from hal_router.core.dispatcher import Dispatcher
from hal_router.core.errors import RegistryError
from hal_router.core.event import Event
from hal_router.core.instance import Instance
from hal_router.core.matcher import get_matcher
from hal_router.core.plugin_loader import PluginLoader, PluginLoadError
from hal_router.core.plugin_registry import (
    PluginRegistry,
    raise_invariant_violation,
    terminate_process,
)
from hal_router.core.preferences import MemoryPreferenceStore
from hal_router.interfaces.preferences import PreferenceStore

logger = logging.getLogger(__name__)

# Events allowed in flight per worker before run() waits for one to finish
PENDING_PER_WORKER = 2


class BotServer:
    """Main server orchestrating plugin registration and event routing.

    The BotServer coordinates:
    - Plugin discovery from the configured plugin paths
    - Instance registration for the configured channels
    - Settings loading from the preference store
    - A worker pool that dispatches each inbound event
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        preferences: Optional[PreferenceStore] = None,
        registry: Optional[PluginRegistry] = None,
    ) -> None:
        """Initialize the bot server.

        Args:
            config: Server configuration (default if not provided)
            preferences: Preference store (in-memory if not provided)
            registry: Registry to use (built from config if not provided)
        """
        self._config = config or Config.default()
        self._executor: Optional[ThreadPoolExecutor] = None

        if registry is not None:
            self._registry = registry
        else:
            handler = (
                terminate_process
                if self._config.server.fatal_invariants
                else raise_invariant_violation
            )
            self._registry = PluginRegistry(
                preferences=preferences or MemoryPreferenceStore(),
                matcher=get_matcher(self._config.server.matcher),
                invariant_handler=handler,
            )

        self._dispatcher = Dispatcher(self._registry)
        self._loader = PluginLoader()

    def load_plugins(self) -> int:
        """Discover plugins in the configured paths and register them.

        Returns:
            Number of plugin definitions registered
        """
        before = self._registry.plugin_count
        for path in self._config.plugin_paths:
            try:
                plugins = self._loader.discover(path)
            except PluginLoadError as e:
                logger.warning(f"Cannot load plugins from {path}: {e}")
                continue
            for plugin in plugins:
                self._registry.register_plugin(plugin)

        count = self._registry.plugin_count - before
        logger.info(f"Registered {count} plugins")
        return count

    def start_instances(self) -> list[Instance]:
        """Register the instances listed in the configuration.

        Entries naming an unknown plugin, duplicating a running instance,
        starting a second copy of a single-instance plugin or carrying a
        bad pattern are logged and skipped. A fatal invariant handler still
        stops the process on the single-instance case.

        Returns:
            The instances that were registered
        """
        started: list[Instance] = []
        for entry in self._config.instances:
            plugin = self._registry.get_plugin(entry.plugin)
            if plugin is None:
                logger.error(
                    f"Cannot start '{entry.plugin}' in '{entry.channel}': no such plugin"
                )
                continue

            inst = plugin.instance(entry.channel, entry.pattern)
            try:
                self._registry.register_instance(inst)
            except RegistryError as e:
                logger.error(f"Cannot start '{inst}': {e}")
                continue

            if self._registry.preferences is not None:
                self._registry.load_instance_settings(inst)
            started.append(inst)

        return started

    def start(self) -> None:
        """Load plugins, start instances and create the worker pool."""
        logger.info("Starting bot server...")
        self.load_plugins()
        self.start_instances()
        self._executor = ThreadPoolExecutor(
            max_workers=self._config.server.workers,
            thread_name_prefix="hal-worker",
        )
        logger.info(
            f"Server started with {self._registry.instance_count} instances"
        )

    def stop(self) -> None:
        """Wait for in-flight events and shut down the worker pool."""
        logger.info("Stopping server...")
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        logger.info("Server stopped")

    def handle_event(self, event: Event) -> list[Instance]:
        """Dispatch an event on the calling thread.

        Args:
            event: The inbound event

        Returns:
            The instances the event was routed to
        """
        return self._dispatcher.dispatch(event)

    def submit(self, event: Event) -> Future:
        """Dispatch an event on the worker pool.

        Args:
            event: The inbound event

        Returns:
            Future resolving to the instances the event was routed to

        Raises:
            RuntimeError: If the server has not been started
        """
        if self._executor is None:
            raise RuntimeError("BotServer.submit called before start()")
        return self._executor.submit(self._dispatcher.dispatch, event)

    def run(self, events: Iterable[Event]) -> int:
        """Dispatch every event from an iterable and wait for them all.

        At most ``PENDING_PER_WORKER`` events per worker are in flight;
        the iterable is not advanced further until one of them finishes.

        Args:
            events: Inbound events, e.g. from ConsoleBroker.events()

        Returns:
            Number of events dispatched
        """
        limit = self._config.server.workers * PENDING_PER_WORKER
        pending: set[Future] = set()
        count = 0

        for event in events:
            if len(pending) >= limit:
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                self._collect(done)
            pending.add(self.submit(event))
            count += 1

        done, _ = wait(pending)
        self._collect(done)
        return count

    def _collect(self, futures: Iterable[Future]) -> None:
        for future in futures:
            error = future.exception()
            if error is not None:
                logger.error("Error dispatching event", exc_info=error)

    @property
    def registry(self) -> PluginRegistry:
        """Get the plugin registry."""
        return self._registry

    @property
    def dispatcher(self) -> Dispatcher:
        """Get the event dispatcher."""
        return self._dispatcher

    @property
    def is_running(self) -> bool:
        """Check if the worker pool is running."""
        return self._executor is not None
