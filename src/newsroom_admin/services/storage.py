"""Local client storage for cached authentication state.

The console keeps three string values between runs, mirroring what a browser
console keeps in local storage:

- ``token``: bearer token attached to every API call
- ``isAdminAuthenticated``: the literal string ``"true"`` once logged in
- ``adminUser``: JSON encoding of the logged-in user record

Values are stored verbatim as strings. Parsing (and rejecting malformed
values) is the job of the session and route-guard layers.
"""

from __future__ import annotations

import json
import logging
from collections.abc import MutableMapping
from pathlib import Path
from typing import Protocol

from newsroom_admin.core.settings import settings

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
AUTH_FLAG_KEY = "isAdminAuthenticated"
ADMIN_USER_KEY = "adminUser"
AUTH_KEYS = (TOKEN_KEY, AUTH_FLAG_KEY, ADMIN_USER_KEY)


class ClientStorage(Protocol):
    """String key/value storage surviving across console sessions."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """Storage kept in process memory; used for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: MutableMapping[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        return dict(self._items)


class JsonFileStorage:
    """Storage persisted as one JSON object on disk.

    The file is read on every access so that a value removed by one console
    instance is not resurrected by another holding a stale copy.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def _load(self) -> dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable session store at %s", self.path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _save(self, items: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(items, indent=2), encoding="utf-8")

    def get_item(self, key: str) -> str | None:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._load()
        items[key] = value
        self._save(items)

    def remove_item(self, key: str) -> None:
        items = self._load()
        if items.pop(key, None) is not None:
            self._save(items)


def default_storage() -> JsonFileStorage:
    """Return the on-disk storage configured by SESSION_STORE_PATH."""
    return JsonFileStorage(settings.session_store_path)


def clear_auth_state(storage: ClientStorage) -> None:
    """Remove every cached authentication value."""
    for key in AUTH_KEYS:
        storage.remove_item(key)
