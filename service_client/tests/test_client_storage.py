"""
Tests for client storage backends and navigation.
"""

import pytest

from service_client.app.navigation import Navigator
from service_client.app.storage import ClientStorage, FileStorage, MemoryStorage, THEME_KEY, TOKEN_KEY, USER_KEY


def test_file_storage_persists_between_instances(tmp_path):
    path = tmp_path / "state" / "storage.json"
    first = FileStorage(str(path))
    first.set(TOKEN_KEY, "abc123")
    first.set_json(USER_KEY, {"_id": "u1", "role": "owner"})

    second = FileStorage(str(path))

    assert second.get(TOKEN_KEY) == "abc123"
    assert second.get_json(USER_KEY) == {"_id": "u1", "role": "owner"}

    second.remove(TOKEN_KEY)
    assert FileStorage(str(path)).get(TOKEN_KEY) is None


def test_unreadable_file_starts_empty(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("{not json", encoding="utf-8")

    assert FileStorage(str(path)).get(TOKEN_KEY) is None


def test_theme_toggle():
    storage = MemoryStorage()
    assert storage.get_theme() == "light"
    assert storage.toggle_theme() == "dark"
    assert storage.get(THEME_KEY) == "dark"
    assert storage.toggle_theme() == "light"

    storage.set(THEME_KEY, "neon")
    assert storage.get_theme() == "light"


def test_pop_removes_value():
    storage = MemoryStorage({"redirectAfterLogin": "/suppliers"})
    assert storage.pop("redirectAfterLogin") == "/suppliers"
    assert storage.pop("redirectAfterLogin") is None


def test_navigator_tracks_history():
    navigator = Navigator("/dashboard")
    navigator.navigate("/login?expired=true")
    navigator.navigate("/login?expired=true")

    assert navigator.on_login_page
    assert navigator.history == ["/dashboard", "/login?expired=true"]


def test_backend_missing_operations_cannot_be_built():
    class ReadOnlyStorage(ClientStorage):
        def get(self, key):
            return None

        def set(self, key, value):
            pass

    with pytest.raises(TypeError):
        ReadOnlyStorage()
