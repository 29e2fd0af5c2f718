from __future__ import annotations

import threading
from typing import List, Optional

from muktsar_ngo.api.models import Alert, Donor


class AppState:
    """Shared donor/alert cache for a running client.

    Any setter that stores data or an error also ends the loading phase.
    Readers get copies of the lists, so mutating a returned list never
    changes the state.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._donors: List[Donor] = []
        self._alerts: List[Alert] = []
        self.loading: bool = False
        self.error: Optional[str] = None

    @property
    def donors(self) -> List[Donor]:
        with self._lock:
            return list(self._donors)

    @property
    def alerts(self) -> List[Alert]:
        with self._lock:
            return list(self._alerts)

    def set_loading(self, loading: bool) -> None:
        self.loading = loading

    def set_error(self, error: str) -> None:
        with self._lock:
            self.error = error
            self.loading = False

    def clear_error(self) -> None:
        self.error = None

    def set_donors(self, donors: List[Donor]) -> None:
        with self._lock:
            self._donors = list(donors)
            self.loading = False

    def add_donor(self, donor: Donor) -> None:
        with self._lock:
            self._donors.append(donor)
            self.loading = False

    def set_alerts(self, alerts: List[Alert]) -> None:
        with self._lock:
            self._alerts = list(alerts)
            self.loading = False

    def add_alert(self, alert: Alert) -> None:
        with self._lock:
            self._alerts.append(alert)
            self.loading = False
