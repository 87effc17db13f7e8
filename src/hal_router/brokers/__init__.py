"""Broker implementations."""

from hal_router.brokers.console import ConsoleBroker

__all__ = ["ConsoleBroker"]
