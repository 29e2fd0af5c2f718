from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Callable, List, Optional

from muktsar_ngo.api.errors import UnauthorizedError
from muktsar_ngo.api.models import Alert

AlertFetcher = Callable[[], List[Alert]]
NewAlertsCallback = Callable[[List[Alert]], None]
Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


class AlertPoller:
    """Periodically fetch active alerts and report the ones created since the last check.

    The first check only records the time: alerts that already exist when
    polling starts are never reported as new. Fetch failures are logged and
    polling carries on at the next tick. A 401 stops the poller.
    """

    def __init__(
        self,
        fetch: AlertFetcher,
        interval: float = 30.0,
        *,
        clock: Clock = _utc_now,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._fetch = fetch
        self._interval = max(interval, 0.1)
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._callbacks: List[NewAlertsCallback] = []
        self._last_check: Optional[datetime] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_polling(self) -> bool:
        return self._thread is not None

    @property
    def last_check(self) -> Optional[datetime]:
        return self._last_check

    def start(self, callback: Optional[NewAlertsCallback] = None) -> None:
        with self._lock:
            if self._thread is not None:
                self._logger.info("Alert polling already active")
                return
            if callback is not None:
                self._callbacks.append(callback)
            self._stop.clear()
            thread = threading.Thread(target=self._run, name="muktsar-alert-poller", daemon=True)
            self._thread = thread

        self._logger.info("Starting alert polling every %.1fs", self._interval)
        self.check_for_alerts()
        with self._lock:
            if self._thread is not thread:
                return
        thread.start()

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            self.check_for_alerts()

    def stop(self) -> None:
        with self._lock:
            thread, self._thread = self._thread, None
            self._callbacks = []
        self._stop.set()
        if thread is not None and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=self._interval + 1.0)
        self._logger.info("Alert polling stopped")

    def check_for_alerts(self) -> List[Alert]:
        """Fetch active alerts once and notify callbacks about new ones.

        Returns:
            The alerts created after the previous check (empty on the first check or on error).
        """
        try:
            alerts = self._fetch()
        except UnauthorizedError as exc:
            self._logger.warning("Session expired, stopping alert polling: %s", exc)
            self.stop()
            return []
        except Exception as exc:
            self._logger.error("Error checking for alerts: %s", exc)
            return []

        new_alerts = self.filter_new_alerts(alerts)
        if new_alerts:
            self._logger.info("Found %d new alerts", len(new_alerts))
            self._notify(new_alerts)
        self._last_check = self._clock()
        return new_alerts

    def filter_new_alerts(self, alerts: List[Alert]) -> List[Alert]:
        if self._last_check is None:
            return []
        since = _as_utc(self._last_check)
        return [a for a in alerts if a.created_at is not None and _as_utc(a.created_at) > since]

    def _notify(self, alerts: List[Alert]) -> None:
        with self._lock:
            callbacks = list(self._callbacks)
        for callback in callbacks:
            try:
                callback(alerts)
            except Exception:
                self._logger.exception("Error in alert callback")

    def add_callback(self, callback: NewAlertsCallback) -> None:
        with self._lock:
            self._callbacks.append(callback)

    def remove_callback(self, callback: NewAlertsCallback) -> None:
        with self._lock:
            self._callbacks = [cb for cb in self._callbacks if cb is not callback]
