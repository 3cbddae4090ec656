"""Credential storage for the current session.

Holds the bearer token and user profile for the lifetime of one client
session. Storage backends mirror the browser's key/value storage: a ``token``
entry and a JSON-encoded ``user`` entry. The store performs no network I/O.

The session manager is the only writer; every other component reads
snapshots through ``snapshot()``.
"""

from __future__ import annotations

import json
import threading

from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from chloride.core.constants import STORAGE_TOKEN_KEY, STORAGE_USER_KEY
from chloride.models.schemas.auth import Session, UserProfile
from chloride.utils.logger import logger


class StorageBackend(Protocol):
    """Minimal key/value storage interface."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStorage:
    """Process-lifetime storage (one process = one browser session)."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class FileStorage:
    """JSON file storage so a session survives process restarts."""

    def __init__(self, path: str | Path) -> None:
        """Initialize file storage.

        Args:
            path: JSON file holding the key/value pairs
        """
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read credential file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _save(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)


class CredentialStore:
    """In-memory session snapshot backed by a StorageBackend."""

    def __init__(self, storage: StorageBackend | None = None) -> None:
        self.storage: StorageBackend = storage if storage is not None else MemoryStorage()
        self._session: Session | None = None
        # Bumped on every write/clear so in-flight calls can detect a session change
        self.generation = 0
        self.hydrate()

    def hydrate(self) -> Session | None:
        """Load the session from storage.

        A token without a parsable user profile (or the reverse) is treated
        as corrupt: storage is cleared and no session is restored.
        """
        token = self.storage.get(STORAGE_TOKEN_KEY)
        user_data = self.storage.get(STORAGE_USER_KEY)

        if not token and not user_data:
            self._session = None
            return None

        try:
            if not token or not user_data:
                raise ValueError("incomplete credentials")
            profile = UserProfile.model_validate_json(user_data)
            self._session = Session.from_profile(token, profile)
        except (ValueError, ValidationError) as e:
            logger.warning(f"Discarding stored credentials: {e}")
            self.clear()
            return None

        logger.info(f"Restored session for subject {self._session.subject_id}")
        return self._session

    def snapshot(self) -> Session | None:
        """Current session, or None. Never raises."""
        return self._session

    def write(self, session: Session) -> None:
        """Persist ``session`` and make it current.

        A storage failure is logged and the session stays usable in memory;
        a partial write is caught as corrupt on the next hydrate.
        """
        try:
            for key, value in session.to_storage().items():
                self.storage.set(key, value)
        except OSError as e:
            logger.error(f"Failed to persist credentials: {e}")
        self.generation += 1
        self._session = session

    def clear(self) -> None:
        self.generation += 1
        self._session = None
        for key in (STORAGE_TOKEN_KEY, STORAGE_USER_KEY):
            self.storage.remove(key)


class _StoreManager:
    """Process-wide credential store holder.

    Uses a class to avoid global statement warnings from linters.
    """

    __slots__ = ("_instance", "_lock")

    def __init__(self) -> None:
        self._instance: CredentialStore | None = None
        self._lock = threading.Lock()

    def get(self, storage: StorageBackend | None = None) -> CredentialStore:
        with self._lock:
            if self._instance is None:
                self._instance = CredentialStore(storage)
            return self._instance

    def reset(self) -> None:
        with self._lock:
            self._instance = None


_store_manager = _StoreManager()


def get_credential_store(storage: StorageBackend | None = None) -> CredentialStore:
    """Return the process-wide store, creating (and hydrating) it on first use.

    ``storage`` only applies to that first call.
    """
    return _store_manager.get(storage)


def reset_credential_store() -> None:
    """Forget the process-wide store (tests, full client teardown)."""
    _store_manager.reset()
