"""
Persistent client-side key/value storage.
"""

import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from shared.logging import get_logger


TOKEN_KEY = "token"
USER_KEY = "user"
REDIRECT_KEY = "redirectAfterLogin"
THEME_KEY = "theme"

THEMES = ("light", "dark")


class ClientStorage(ABC):
    """String key/value storage surviving between client sessions."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...

    def get_json(self, key: str) -> Optional[dict]:
        raw = self.get(key)
        if raw is None:
            return None
        try:
            value = json.loads(raw)
        except ValueError:
            return None
        return value if isinstance(value, dict) else None

    def set_json(self, key: str, value: dict) -> None:
        self.set(key, json.dumps(value))

    def pop(self, key: str) -> Optional[str]:
        value = self.get(key)
        if value is not None:
            self.remove(key)
        return value

    def get_theme(self) -> str:
        theme = self.get(THEME_KEY)
        return theme if theme in THEMES else "light"

    def toggle_theme(self) -> str:
        theme = "dark" if self.get_theme() == "light" else "light"
        self.set(THEME_KEY, theme)
        return theme


class MemoryStorage(ClientStorage):
    """Process-local storage, used by tests and short-lived scripts."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class FileStorage(ClientStorage):
    """Storage backed by a single JSON document on disk.

    Every write rewrites the file through a temporary sibling and an atomic
    rename.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self.logger = get_logger("client.storage")
        self._data = self._load()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError) as exc:
            self.logger.warning("Discarding unreadable client storage", path=str(self.path), error=str(exc))
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as handle:
            json.dump(self._data, handle)
        os.replace(tmp_path, self.path)

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._flush()
