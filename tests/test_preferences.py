"""Tests for the in-memory preference store."""

import pytest

from hal_router.core.errors import PreferenceError
from hal_router.core.preferences import MemoryPreferenceStore
from hal_router.interfaces.preferences import Pref


class TestMemoryPreferenceStore:
    """Tests for MemoryPreferenceStore."""

    def test_get_default(self, preference_store: MemoryPreferenceStore) -> None:
        """Test missing preferences resolve to the default."""
        pref = preference_store.get("", "slack", "ops", "deploy", "env", "staging")

        assert pref.value == "staging"
        assert pref.default == "staging"
        assert pref.scope() == ("", "slack", "ops", "deploy", "env")

    def test_set_then_get(self, preference_store: MemoryPreferenceStore) -> None:
        """Test stored values are returned for the exact scope only."""
        preference_store.set(
            Pref(broker="slack", room="ops", plugin="deploy", key="env", value="prod")
        )

        assert preference_store.get("", "slack", "ops", "deploy", "env").value == "prod"
        assert preference_store.get("", "slack", "dev", "deploy", "env", "x").value == "x"

    def test_set_overwrites(self, preference_store: MemoryPreferenceStore) -> None:
        """Test setting the same scope twice keeps the latest value."""
        pref = Pref(plugin="deploy", key="env", value="a")
        preference_store.set(pref)
        preference_store.set(pref.with_value("b"))

        assert len(preference_store) == 1
        assert preference_store.get("", "", "", "deploy", "env").value == "b"

    def test_set_requires_key(self, preference_store: MemoryPreferenceStore) -> None:
        """Test a preference without a key is rejected."""
        with pytest.raises(PreferenceError, match="key cannot be empty"):
            preference_store.set(Pref(plugin="deploy", value="a"))

    def test_find_wildcards(self) -> None:
        """Test empty scope fields match anything in find()."""
        store = MemoryPreferenceStore(
            [
                Pref(user="alice", plugin="deploy", key="a", value="1"),
                Pref(user="bob", plugin="deploy", key="a", value="2"),
                Pref(user="alice", plugin="status", key="b", value="3"),
            ]
        )

        assert {p.value for p in store.find("alice", "", "", "", "")} == {"1", "3"}
        assert {p.value for p in store.find("", "", "", "deploy", "a")} == {"1", "2"}
        assert store.find("carol", "", "", "", "") == []
