"""Console broker - reads events from and writes replies to text streams."""

import logging
import sys
import threading
from collections.abc import Iterable, Iterator, Sequence
from typing import TextIO

from hal_router.core.event import Event
from hal_router.interfaces.broker import Broker

logger = logging.getLogger(__name__)


class ConsoleBroker(Broker):
    """Broker for local development.

    Every input line becomes a chat event in one fixed channel, and
    replies are written to an output stream.
    """

    def __init__(
        self,
        output: TextIO | None = None,
        channel: str = "console",
        user: str = "console",
    ) -> None:
        """Initialize the console broker.

        Args:
            output: Stream replies are written to (default: stdout)
            channel: Channel id assigned to incoming events
            user: Username assigned to incoming events
        """
        self._output = output if output is not None else sys.stdout
        self._channel = channel
        self._user = user
        self._write_lock = threading.Lock()

    @property
    def name(self) -> str:
        return "console"

    @property
    def channel(self) -> str:
        """Get the channel incoming events are assigned to."""
        return self._channel

    def send(self, event: Event) -> None:
        self._write(event.body)

    def send_table(
        self, event: Event, header: Sequence[str], rows: Sequence[Sequence[str]]
    ) -> None:
        self._write(format_table(header, rows))

    def events(self, lines: Iterable[str]) -> Iterator[Event]:
        """Turn input lines into chat events.

        Args:
            lines: Input lines (e.g. sys.stdin)

        Yields:
            An Event for each non-blank line
        """
        for line in lines:
            body = line.strip()
            if not body:
                continue
            logger.debug(f"Console input: {body}")
            yield Event(
                body=body,
                room=self._channel,
                room_id=self._channel,
                user=self._user,
                user_id=self._user,
                broker=self,
                is_chat=True,
            )

    def _write(self, text: str) -> None:
        with self._write_lock:
            self._output.write(text + "\n")
            self._output.flush()


def format_table(header: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    """Render a header and rows as a left-aligned plain text table."""
    all_rows = [list(header)] + [list(row) for row in rows]
    columns = max(len(row) for row in all_rows)
    for row in all_rows:
        row.extend([""] * (columns - len(row)))

    widths = [max(len(row[col]) for row in all_rows) for col in range(columns)]

    def render(row: list[str]) -> str:
        return "  ".join(cell.ljust(width) for cell, width in zip(row, widths)).rstrip()

    lines = [render(all_rows[0]), "  ".join("-" * width for width in widths)]
    lines.extend(render(row) for row in all_rows[1:])
    return "\n".join(lines)
