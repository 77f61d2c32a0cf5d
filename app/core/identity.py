"""TALLY — Submitter Identity.

There are no accounts: a submitter is a free-text name kept in a small
key-value store. ``SubmitterSession`` is passed explicitly to whatever
needs the name; the backing store is injected.
"""

import json
from pathlib import Path
from typing import Dict, Optional, Protocol

from app.core.logging import get_logger

logger = get_logger("identity")

USER_NAME_KEY = "userName"


class IdentityStore(Protocol):
    """Key-value port for locally persisted identity."""

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]: ...

    def set(self, key: str, value: str) -> bool: ...

    def remove(self, key: str) -> bool: ...


class InMemoryIdentityStore:
    """Process-local store, for tests and embedding callers that keep no file."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._data.get(key, default)

    def set(self, key: str, value: str) -> bool:
        self._data[key] = value
        return True

    def remove(self, key: str) -> bool:
        self._data.pop(key, None)
        return True


class JsonFileIdentityStore:
    """Identity persisted as a flat JSON object on disk.

    Read and write failures are logged and reported through the return
    value; a broken file never stops the dashboard from loading.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(f"Could not read identity file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, str]) -> bool:
        try:
            self.path.write_text(json.dumps(data), encoding="utf-8")
            return True
        except OSError as e:
            logger.error(f"Could not write identity file {self.path}: {e}")
            return False

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self._load().get(key)
        return value if value is not None else default

    def set(self, key: str, value: str) -> bool:
        data = self._load()
        data[key] = value
        return self._save(data)

    def remove(self, key: str) -> bool:
        data = self._load()
        data.pop(key, None)
        return self._save(data)


class SubmitterSession:
    """The current submitter's name, read from and written to a store."""

    def __init__(self, store: IdentityStore):
        self.store = store

    @property
    def name(self) -> str:
        return self.store.get(USER_NAME_KEY, "") or ""

    @property
    def is_identified(self) -> bool:
        return bool(self.name.strip())

    def rename(self, name: str) -> bool:
        """Persist a new name; blank names clear the identity."""
        name = name.strip()
        if not name:
            return self.store.remove(USER_NAME_KEY)
        return self.store.set(USER_NAME_KEY, name)
