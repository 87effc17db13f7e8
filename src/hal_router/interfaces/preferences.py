"""Preference store interface and the Pref value type."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class Pref:
    """A single preference, scoped by user, room, broker and plugin.

    The same type describes a plugin's required settings (key, optional
    room restriction, default) and carries resolved values back from a
    preference store.

    Attributes:
        user: Username the preference applies to ("" for any)
        room: Room/channel id the preference applies to ("" for any)
        broker: Broker name ("" for any)
        plugin: Plugin name ("" for any)
        key: Preference key
        value: Resolved value
        default: Value used when the store has no entry
    """

    user: str = ""
    room: str = ""
    broker: str = ""
    plugin: str = ""
    key: str = ""
    value: str = ""
    default: str = ""

    def with_value(self, value: str) -> "Pref":
        """Return a copy of this pref holding a new value."""
        return replace(self, value=value)

    def scope(self) -> tuple[str, str, str, str, str]:
        """Return the (user, broker, room, plugin, key) lookup scope."""
        return (self.user, self.broker, self.room, self.plugin, self.key)


class PreferenceStore(ABC):
    """Abstract base class for preference storage backends.

    Implementations must be safe to call from multiple threads.
    """

    @abstractmethod
    def get(
        self,
        user: str,
        broker: str,
        room: str,
        plugin: str,
        key: str,
        default: str = "",
    ) -> Pref:
        """Resolve a single preference.

        Returns:
            A Pref with the stored value, or with ``default`` as its value
            when nothing is stored for that scope
        """

    @abstractmethod
    def set(self, pref: Pref) -> None:
        """Persist a preference.

        Raises:
            PreferenceError: If the value cannot be stored
        """

    @abstractmethod
    def find(
        self, user: str, broker: str, room: str, plugin: str, key: str
    ) -> list[Pref]:
        """Find all stored preferences matching a scope.

        Empty strings act as wildcards.

        Returns:
            Matching preferences (possibly empty)
        """
