"""Access token persistence for StudyHub API clients.

The token lives in memory for the lifetime of the client and every change is
mirrored to a pluggable key-value storage. Storage is best-effort: a failing
backend is logged and otherwise ignored.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol

logger = logging.getLogger(__name__)

ACCESS_TOKEN_KEY = "access_token"


class KeyValueStorage(Protocol):
    """Capability interface for durable string storage."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class InMemoryStorage:
    """Dict-backed storage, lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)


class NullStorage:
    """Storage that remembers nothing (non-interactive execution)."""

    def get(self, key: str) -> Optional[str]:
        return None

    def set(self, key: str, value: str) -> None:
        pass

    def remove(self, key: str) -> None:
        pass


class FileStorage:
    """JSON file storage with owner-only permissions.

    Writes go to a temporary file in the same directory which then atomically
    replaces the target, so a crash never leaves a half-written file.

    Args:
        path: Location of the JSON file (parent directories are created)
    """

    def __init__(self, path: Path):
        self.path = Path(path).expanduser()

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path) as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Invalid credential file format: {self.path}")
        return data

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_fd, temp_path = tempfile.mkstemp(suffix=".json", dir=self.path.parent)
        try:
            with os.fdopen(temp_fd, "w") as f:
                json.dump(data, f, indent=2)
            os.chmod(temp_path, 0o600)
            os.replace(temp_path, self.path)
        except Exception:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


class CredentialStore:
    """Holds the current access token and mirrors it to storage.

    Args:
        storage: Durable backend; defaults to ``NullStorage``
        key: Storage key the token is kept under
    """

    def __init__(
        self, storage: Optional[KeyValueStorage] = None, key: str = ACCESS_TOKEN_KEY
    ):
        self.storage: KeyValueStorage = storage if storage is not None else NullStorage()
        self.key = key
        self._token: Optional[str] = None

        try:
            self._token = self.storage.get(self.key) or None
        except Exception as e:
            logger.warning(f"Failed to load persisted access token: {e}")

    def get(self) -> Optional[str]:
        """Return the held token, or None when unauthenticated."""
        return self._token

    def set(self, token: Optional[str]) -> None:
        """Replace the held token; ``None`` (or empty) clears it."""
        self._token = token or None

        try:
            if self._token:
                self.storage.set(self.key, self._token)
            else:
                self.storage.remove(self.key)
        except Exception as e:
            logger.warning(f"Failed to persist access token: {e}")
