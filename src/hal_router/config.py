"""Configuration loading from YAML files."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from hal_router.core.matcher import MATCHERS


@dataclass
class ServerConfig:
    """Bot server settings."""

    workers: int = 8
    matcher: str = "regex"
    fatal_invariants: bool = True

    def __post_init__(self) -> None:
        """Validate server settings."""
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if self.matcher not in MATCHERS:
            raise ValueError(f"Unknown matcher '{self.matcher}'")


@dataclass
class ConsoleConfig:
    """Console broker settings."""

    channel: str = "console"
    user: str = "console"


@dataclass
class InstanceConfig:
    """A plugin instance to start in a channel."""

    plugin: str
    channel: str
    pattern: str = ""

    def __post_init__(self) -> None:
        """Validate the instance entry."""
        if not self.plugin:
            raise ValueError("Instance plugin cannot be empty")
        if not self.channel:
            raise ValueError(f"Instance of '{self.plugin}' needs a channel")


@dataclass
class Config:
    """Main configuration container."""

    server: ServerConfig = field(default_factory=ServerConfig)
    console: ConsoleConfig = field(default_factory=ConsoleConfig)
    plugin_paths: list[str] = field(default_factory=lambda: ["./plugins"])
    instances: list[InstanceConfig] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create Config from dictionary.

        Args:
            data: Configuration dictionary

        Returns:
            Config instance

        Raises:
            ValueError: If a value is invalid
        """
        server_data = data.get("server", {})
        server = ServerConfig(
            workers=server_data.get("workers", 8),
            matcher=server_data.get("matcher", "regex"),
            fatal_invariants=server_data.get("fatal_invariants", True),
        )

        console_data = data.get("console", {})
        console = ConsoleConfig(
            channel=console_data.get("channel", "console"),
            user=console_data.get("user", "console"),
        )

        instances = [
            InstanceConfig(
                plugin=entry.get("plugin", ""),
                channel=entry.get("channel", ""),
                pattern=entry.get("pattern", ""),
            )
            for entry in data.get("instances", [])
        ]

        plugin_paths = data.get("plugin_paths", ["./plugins"])

        return cls(
            server=server,
            console=console,
            plugin_paths=plugin_paths,
            instances=instances,
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        """Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Config instance
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def default(cls) -> "Config":
        """Create default configuration.

        Returns:
            Config instance with default values
        """
        return cls()

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary.

        Returns:
            Configuration as dictionary
        """
        return {
            "server": {
                "workers": self.server.workers,
                "matcher": self.server.matcher,
                "fatal_invariants": self.server.fatal_invariants,
            },
            "console": {
                "channel": self.console.channel,
                "user": self.console.user,
            },
            "plugin_paths": self.plugin_paths,
            "instances": [
                {
                    "plugin": inst.plugin,
                    "channel": inst.channel,
                    "pattern": inst.pattern,
                }
                for inst in self.instances
            ],
        }

    def save_yaml(self, path: str | Path) -> None:
        """Save configuration to YAML file.

        Args:
            path: Path to save configuration
        """
        path = Path(path)
        with open(path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False)
