from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


class AcknowledgementStore:
    """Alerts the local user has seen, kept in a small JSON file.

    Layout: ``{"<alert id>": {"acknowledgedAt": "<ISO time>", "userId": "<id>"}}``.
    Acknowledging is a convenience for the watcher and never talks to the
    backend, so storage problems are logged and otherwise ignored.
    """

    def __init__(self, path: Path | str, *, logger: Optional[logging.Logger] = None) -> None:
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()
        self._logger = logger or logging.getLogger(__name__)

    def _load(self) -> Dict[str, Dict[str, Any]]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as exc:
            self._logger.warning("Acknowledgement file unreadable; path=%s error=%s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, Dict[str, Any]]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as exc:
            self._logger.warning("Failed to store acknowledgements; path=%s error=%s", self.path, exc)

    def acknowledge(self, alert_id: str, user_id: Optional[str] = None, *, at: Optional[datetime] = None) -> None:
        when = (at or datetime.now(timezone.utc)).isoformat()
        with self._lock:
            data = self._load()
            data[str(alert_id)] = {"acknowledgedAt": when, "userId": user_id}
            self._save(data)
        self._logger.debug("Alert acknowledged: id=%s user=%s", alert_id, user_id)

    def is_acknowledged(self, alert_id: str) -> bool:
        with self._lock:
            return str(alert_id) in self._load()

    def all(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            return self._load()

    def clear(self) -> None:
        with self._lock:
            try:
                self.path.unlink(missing_ok=True)
            except OSError as exc:
                self._logger.warning("Failed to clear acknowledgements; path=%s error=%s", self.path, exc)
