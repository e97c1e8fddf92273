"""
Persisted client state: the auth token and a cached user object.

Both live under fixed keys and are read synchronously at startup.
A missing token means "logged out" and no network call is made.
"""

import json
import logging
from pathlib import Path
from typing import Any, MutableMapping

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"


class MemoryStorage:
    """Dict-backed storage. Pass st.session_state to scope it to a browser session."""

    def __init__(self, backing: MutableMapping[str, Any] | None = None, prefix: str = "isoko."):
        self._data = backing if backing is not None else {}
        self._prefix = prefix

    def get(self, key: str) -> Any:
        return self._data.get(self._prefix + key)

    def set(self, key: str, value: Any) -> None:
        self._data[self._prefix + key] = value

    def remove(self, key: str) -> None:
        self._data.pop(self._prefix + key, None)


class JsonFileStorage:
    """Storage persisted to a small JSON file (survives restarts)."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, exc)
            return {}

    def _save(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")

    def get(self, key: str) -> Any:
        return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)
