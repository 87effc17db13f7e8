"""In-memory preference store."""

import logging
import threading

from hal_router.core.errors import PreferenceError
from hal_router.interfaces.preferences import Pref, PreferenceStore

logger = logging.getLogger(__name__)

Scope = tuple[str, str, str, str, str]


class MemoryPreferenceStore(PreferenceStore):
    """Thread-safe preference store kept in a dict.

    Values live for the life of the process. Lookups by ``get`` use the
    exact (user, broker, room, plugin, key) scope and fall back to the
    default.
    """

    def __init__(self, prefs: list[Pref] | None = None) -> None:
        """Initialize the store.

        Args:
            prefs: Preferences to seed the store with
        """
        self._prefs: dict[Scope, Pref] = {}
        self._lock = threading.Lock()
        for pref in prefs or []:
            self.set(pref)

    def get(
        self,
        user: str,
        broker: str,
        room: str,
        plugin: str,
        key: str,
        default: str = "",
    ) -> Pref:
        with self._lock:
            stored = self._prefs.get((user, broker, room, plugin, key))

        if stored is None:
            return Pref(
                user=user,
                room=room,
                broker=broker,
                plugin=plugin,
                key=key,
                value=default,
                default=default,
            )
        return Pref(
            user=user,
            room=room,
            broker=broker,
            plugin=plugin,
            key=key,
            value=stored.value,
            default=default,
        )

    def set(self, pref: Pref) -> None:
        if not pref.key:
            raise PreferenceError("Preference key cannot be empty")
        with self._lock:
            self._prefs[pref.scope()] = pref
        logger.debug(f"Stored preference {pref.scope()}")

    def find(
        self, user: str, broker: str, room: str, plugin: str, key: str
    ) -> list[Pref]:
        wanted = (user, broker, room, plugin, key)
        with self._lock:
            prefs = list(self._prefs.values())
        return [
            pref
            for pref in prefs
            if all(not want or want == have for want, have in zip(wanted, pref.scope()))
        ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._prefs)
