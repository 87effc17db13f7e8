"""hal-router - Plugin registry and message routing for chat bots."""

__version__ = "0.1.0"
