"""Tests for BotServer."""

import tempfile
import threading
from pathlib import Path

import pytest

from hal_router.config import Config, InstanceConfig
from hal_router.core.errors import InvariantViolationError
from hal_router.core.event import Event
from hal_router.core.matcher import ExactMatcher
from hal_router.core.preferences import MemoryPreferenceStore
from hal_router.interfaces.preferences import Pref
from hal_router.server import PENDING_PER_WORKER, BotServer
from tests.mocks import MockBroker, make_plugin
from tests.sample_plugins import UPTIME

# Sample external plugin code for testing
SAMPLE_PLUGIN_CODE = '''
"""Sample external plugin for testing."""

from hal_router.interfaces.plugin import PluginDefinition
from hal_router.interfaces.preferences import Pref


def greet(event):
    greeting = event.instance.get_setting("greeting", "hello")
    event.reply(f"{greeting} {event.user}")


GREET = PluginDefinition(
    name="greet",
    handler=greet,
    pattern="^hi$",
    allow_multiple=True,
    settings=(Pref(key="greeting", default="hello"),),
)
'''


@pytest.fixture
def plugin_dir():
    """Create a plugin directory with the sample plugin."""
    with tempfile.TemporaryDirectory() as tmpdir:
        (Path(tmpdir) / "greet.py").write_text(SAMPLE_PLUGIN_CODE)
        yield tmpdir


def make_config(plugin_dir: str, *instances: InstanceConfig) -> Config:
    """Create a non-fatal config loading plugins from plugin_dir."""
    config = Config.default()
    config.server.fatal_invariants = False
    config.plugin_paths = [plugin_dir]
    config.instances = list(instances)
    return config


class TestBotServer:
    """Tests for BotServer class."""

    def test_initialization_with_default_config(self) -> None:
        """Test server initializes with default config."""
        server = BotServer()

        assert server.registry is not None
        assert server.registry.preferences is not None
        assert server.dispatcher.registry is server.registry
        assert not server.is_running

    def test_matcher_from_config(self) -> None:
        """Test the configured matcher is used by the registry."""
        config = Config.default()
        config.server.matcher = "exact"

        server = BotServer(config=config)

        assert isinstance(server.registry.matcher, ExactMatcher)

    def test_load_plugins(self, plugin_dir: str) -> None:
        """Test plugins are discovered from plugin_paths."""
        server = BotServer(config=make_config(plugin_dir))

        assert server.load_plugins() == 1
        assert "greet" in server.registry

        # loading again registers nothing new
        assert server.load_plugins() == 0

    def test_start_instances(self, plugin_dir: str) -> None:
        """Test configured instances are registered with settings loaded."""
        store = MemoryPreferenceStore(
            [Pref(room="ops", plugin="greet", key="greeting", value="howdy")]
        )
        config = make_config(
            plugin_dir,
            InstanceConfig(plugin="greet", channel="ops"),
            InstanceConfig(plugin="greet", channel="dev"),
        )
        server = BotServer(config=config, preferences=store)
        server.load_plugins()

        started = server.start_instances()

        assert [str(i) for i in started] == ["greet/ops", "greet/dev"]
        assert started[0].get_setting("greeting") == "howdy"
        assert started[1].get_setting("greeting") == "hello"

    def test_start_instances_skips_bad_entries(self, plugin_dir: str) -> None:
        """Test unknown plugins, duplicates and bad patterns are skipped."""
        config = make_config(
            plugin_dir,
            InstanceConfig(plugin="missing", channel="ops"),
            InstanceConfig(plugin="greet", channel="ops"),
            InstanceConfig(plugin="greet", channel="ops"),
            InstanceConfig(plugin="greet", channel="dev", pattern="(("),
        )
        server = BotServer(config=config)
        server.load_plugins()

        started = server.start_instances()

        assert [str(i) for i in started] == ["greet/ops"]
        assert server.registry.instance_count == 1

    def test_invariant_violation_raises_when_not_fatal(self) -> None:
        """Test fatal_invariants=False surfaces violations as exceptions."""
        config = Config.default()
        config.server.fatal_invariants = False
        config.plugin_paths = []
        server = BotServer(config=config)

        server.registry.register_plugin(UPTIME)
        server.registry.register_instance(UPTIME.instance("ops"))
        with pytest.raises(InvariantViolationError):
            server.registry.register_instance(UPTIME.instance("dev"))

    def test_start_instances_skips_second_single_instance(self) -> None:
        """Test a repeated single-instance plugin entry is skipped when not fatal."""
        config = Config.default()
        config.server.fatal_invariants = False
        config.plugin_paths = []
        config.instances = [
            InstanceConfig(plugin="uptime", channel="ops"),
            InstanceConfig(plugin="uptime", channel="dev"),
        ]
        server = BotServer(config=config)
        server.registry.register_plugin(UPTIME)

        server.start()
        try:
            assert [str(i) for i in server.registry.get_all_instances()] == [
                "uptime/ops"
            ]
        finally:
            server.stop()

    def test_handle_event(self, plugin_dir: str, mock_broker: MockBroker) -> None:
        """Test a matching event is answered through its broker."""
        config = make_config(plugin_dir, InstanceConfig(plugin="greet", channel="ops"))
        server = BotServer(config=config)
        server.load_plugins()
        server.start_instances()

        routed = server.handle_event(
            Event(body="hi", room_id="ops", user="alice", broker=mock_broker)
        )

        assert [str(i) for i in routed] == ["greet/ops"]
        assert mock_broker.sent_bodies == ["hello alice"]

    def test_run_dispatches_on_workers(
        self, plugin_dir: str, mock_broker: MockBroker
    ) -> None:
        """Test run() dispatches every event on the pool and waits."""
        config = make_config(plugin_dir, InstanceConfig(plugin="greet", channel="ops"))
        server = BotServer(config=config)
        server.start()
        try:
            assert server.is_running
            events = [
                Event(body=body, room_id="ops", user="bob", broker=mock_broker)
                for body in ("hi", "nope", "hi", "hi")
            ]
            assert server.run(events) == 4
        finally:
            server.stop()

        assert not server.is_running
        assert mock_broker.sent_bodies == ["hello bob"] * 3

    def test_run_limits_events_in_flight(self) -> None:
        """Test run() stops pulling events while the workers are busy."""
        config = Config.default()
        config.server.workers = 1
        config.plugin_paths = []
        server = BotServer(config=config)

        gate = threading.Event()
        handled: list[str] = []

        def slow(event: Event) -> None:
            gate.wait(timeout=5)
            handled.append(event.body)

        plugin = make_plugin(name="slow", handler=slow, registry=server.registry)
        server.registry.register_instance(plugin.instance("ops"))

        in_flight: list[int] = []

        def events():
            for i in range(10):
                in_flight.append(i - len(handled))
                yield Event(body=str(i), room_id="ops")

        timer = threading.Timer(0.2, gate.set)
        server.start()
        timer.start()
        try:
            assert server.run(events()) == 10
        finally:
            timer.cancel()
            server.stop()

        assert len(handled) == 10
        assert max(in_flight) <= PENDING_PER_WORKER

    def test_submit_returns_routed_instances(
        self, plugin_dir: str, mock_broker: MockBroker
    ) -> None:
        """Test submit() returns a future of the routed instances."""
        config = make_config(plugin_dir, InstanceConfig(plugin="greet", channel="ops"))
        server = BotServer(config=config)
        server.start()
        try:
            future = server.submit(Event(body="hi", room_id="ops", broker=mock_broker))
            assert [str(i) for i in future.result(timeout=5)] == ["greet/ops"]
        finally:
            server.stop()

    def test_submit_before_start(self) -> None:
        """Test submitting without a worker pool is an error."""
        with pytest.raises(RuntimeError, match="before start"):
            BotServer().submit(Event(body="hi"))
