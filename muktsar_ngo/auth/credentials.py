"""Local credential storage.

The backend issues a bearer token at login; the client keeps it, together
with the cached user record, in a small key/value store:

- `CredentialStore`: the contract used by the auth layer
- `FileCredentialStore`: JSON file readable only by the owner
  (``0600`` file, ``0700`` directory)
- `InMemoryCredentialStore`: process-local store for tests and one-shot scripts
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol

TOKEN_KEY = "access_token"
USER_KEY = "user_data"


class CredentialStore(Protocol):
    """Key/value store for the access token and cached user data."""

    def get(self, key: str) -> Optional[str]:
        """Return the stored value or None."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""
        ...

    def delete(self, key: str) -> None:
        """Remove a value; unknown keys are ignored."""
        ...

    def clear(self) -> None:
        """Remove every stored value."""
        ...


class InMemoryCredentialStore:
    """Dictionary-backed store. Nothing survives the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()


class FileCredentialStore:
    """JSON file store restricted to the current user.

    Every write rewrites the whole file through a temporary file and
    ``os.replace`` so a crash never leaves a half-written token behind.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as exc:
            self._logger.warning("Credential file unreadable, ignoring it; path=%s error=%s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items() if v is not None}

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh)
        os.replace(tmp, self.path)
        os.chmod(self.path, 0o600)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key in data:
                del data[key]
                self._write(data)

    def clear(self) -> None:
        with self._lock:
            if self.path.exists():
                self.path.unlink()
