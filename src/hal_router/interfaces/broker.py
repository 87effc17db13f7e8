"""Broker interface - Abstract base class for chat service integrations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hal_router.core.event import Event


class Broker(ABC):
    """Abstract base class for broker implementations.

    Brokers deliver outbound events to a chat service. The routing core
    never calls a broker directly; reply helpers on Event do.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the broker's name, used to scope preference lookups."""

    @abstractmethod
    def send(self, event: Event) -> None:
        """Send an event's body to the event's room.

        Args:
            event: The outbound event
        """

    @abstractmethod
    def send_table(
        self, event: Event, header: Sequence[str], rows: Sequence[Sequence[str]]
    ) -> None:
        """Send tabular data to the event's room.

        Args:
            event: The outbound event (body is ignored)
            header: Column names
            rows: Table rows, one sequence of cells per row
        """
