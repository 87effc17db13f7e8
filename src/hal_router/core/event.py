"""Event container and the reply/preference helpers plugins use."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from hal_router.interfaces.broker import Broker
from hal_router.interfaces.preferences import Pref, PreferenceStore

if TYPE_CHECKING:
    from hal_router.core.instance import Instance

# quoted strings stay whole, everything else splits on whitespace
_ARGV_RE = re.compile(r"""'[^']*'|"[^"]*"|\S+""")


@dataclass(frozen=True)
class Event:
    """A generic container for events processed by the bot.

    Event sources copy the appropriate data into the fields; routing
    needs ``body`` and a channel at a minimum. The dispatcher hands each
    matched handler a copy bound to its instance and preference store.

    Attributes:
        body: Body of the event, regardless of source
        room: Name of the room the event originated from
        room_id: Room id from the source broker (the routing channel)
        user: Username that created the event
        user_id: User id from the source broker
        id: Event id assigned upstream or by the broker
        time: Timestamp of the event
        broker: Broker the event came from
        is_chat: Lets the broker tell chat messages from other events
        original: The original message object from the broker
        instance: Instance the event was dispatched to
        preferences: Preference store used by the preference helpers
    """

    body: str = ""
    room: str = ""
    room_id: str = ""
    user: str = ""
    user_id: str = ""
    id: str = ""
    time: datetime = field(default_factory=datetime.now)
    broker: Optional[Broker] = field(default=None, compare=False)
    is_chat: bool = False
    original: Any = field(default=None, compare=False, repr=False)
    instance: Optional[Instance] = field(default=None, compare=False, repr=False)
    preferences: Optional[PreferenceStore] = field(
        default=None, compare=False, repr=False
    )

    @property
    def channel(self) -> str:
        """Channel used for routing: the room id, or the room name if unset."""
        return self.room_id or self.room

    @property
    def broker_name(self) -> str:
        """Name of the broker the event came from ("" if none)."""
        return self.broker.name if self.broker is not None else ""

    def bind(self, instance: Instance, preferences: Optional[PreferenceStore]) -> Event:
        """Return a copy of the event bound to an instance and store."""
        return replace(self, instance=instance, preferences=preferences)

    def clone(self) -> Event:
        """Return a copy with the same broker/room/user and a fresh timestamp.

        Body and original are left empty.
        """
        return Event(
            id=self.id,
            room=self.room,
            room_id=self.room_id,
            user=self.user,
            user_id=self.user_id,
            time=datetime.now(),
            broker=self.broker,
            is_chat=self.is_chat,
            instance=self.instance,
            preferences=self.preferences,
        )

    # -- replies -------------------------------------------------------

    def reply(self, message: str) -> None:
        """Send a message back to the room the event came from."""
        self.reply_to_room(message)

    def replyf(self, message: str, *args: Any) -> None:
        """Same as reply(), with %-style formatting of ``args``."""
        self.reply(message % args if args else message)

    def error(self, err: BaseException) -> None:
        """Reply with the text of an exception."""
        self.reply(str(err))

    def reply_to_room(self, message: str) -> None:
        """Send a message to the room the event originated from.

        Raises:
            RuntimeError: If the event has no broker
        """
        out = replace(self.clone(), body=message)
        self._require_broker("reply_to_room").send(out)

    def reply_table(
        self, header: Sequence[str], rows: Sequence[Sequence[str]]
    ) -> None:
        """Send a table back to the room the event came from.

        Raises:
            RuntimeError: If the event has no broker
        """
        self._require_broker("reply_table").send_table(self.clone(), header, rows)

    # -- preferences ---------------------------------------------------

    def find_prefs(self) -> list[Pref]:
        """Find every stored preference for this user, broker, room and plugin."""
        store = self._require_preferences()
        return store.find(
            self.user, self.broker_name, self.room_id, self._plugin_name(), ""
        )

    def instance_settings(self) -> list[Pref]:
        """Resolve the settings declared by the plugin for this room.

        Settings restricted to a different room are skipped.
        """
        store = self._require_preferences()
        plugin = self._require_instance().definition

        out: list[Pref] = []
        for setting in plugin.settings:
            if setting.room and setting.room != self.room_id:
                continue
            out.append(
                store.get(
                    "",
                    self.broker_name,
                    self.room_id,
                    plugin.name,
                    setting.key,
                    setting.default,
                )
            )
        return out

    def new_pref(self) -> Pref:
        """Create a Pref scoped to this event's user, room, broker and plugin."""
        return Pref(
            user=self.user,
            room=self.room_id,
            broker=self.broker_name,
            plugin=self._plugin_name(),
        )

    def fill_pref(self, pref: Pref) -> Pref:
        """Return a copy of ``pref`` with empty scope fields taken from the event."""
        return replace(
            pref,
            user=pref.user or self.user,
            room=pref.room or self.room_id,
            broker=pref.broker or self.broker_name,
            plugin=pref.plugin or self._plugin_name(),
        )

    # -- parsing -------------------------------------------------------

    def body_as_argv(self) -> list[str]:
        """Split the body into an argv-like list.

        Quoted strings are kept intact with their outer quotes removed.
        This is shell-like, not a shell parser: escapes are not supported.
        """
        argv = _ARGV_RE.findall(self.body.strip())
        out = []
        for arg in argv:
            if arg[0] == arg[-1] and arg[0] in ("'", '"'):
                arg = arg[1:-1]
            out.append(arg)
        return out

    def _plugin_name(self) -> str:
        return self._require_instance().name

    def _require_instance(self) -> Instance:
        if self.instance is None:
            raise RuntimeError("Event is not bound to a plugin instance")
        return self.instance

    def _require_preferences(self) -> PreferenceStore:
        if self.preferences is None:
            raise RuntimeError("Event has no preference store")
        return self.preferences

    def _require_broker(self, caller: str) -> Broker:
        if self.broker is None:
            raise RuntimeError(f"Event.{caller} called with no broker")
        return self.broker

    def __str__(self) -> str:
        return f"{self.user}/{self.room}@{self.time.isoformat()}: {self.body}"
