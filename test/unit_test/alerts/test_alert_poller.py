from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import List

from muktsar_ngo.alerts import AlertPoller
from muktsar_ngo.api.errors import UnauthorizedError
from muktsar_ngo.api.models import Alert

T0 = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def _alert(alert_id: str, created: datetime) -> Alert:
    return Alert(id=alert_id, hospital_name="Civil Hospital", blood_group="O-", created_at=created)


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeFeed:
    def __init__(self) -> None:
        self.alerts: List[Alert] = []
        self.error: Exception | None = None
        self.calls = 0

    def __call__(self) -> List[Alert]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.alerts)


def test_first_check_reports_nothing() -> None:
    feed = FakeFeed()
    feed.alerts = [_alert("old", T0 - timedelta(hours=1))]
    poller = AlertPoller(feed, clock=FakeClock(T0))

    assert poller.check_for_alerts() == []
    assert poller.last_check == T0


def test_only_alerts_created_after_last_check_are_new() -> None:
    feed, clock = FakeFeed(), FakeClock(T0)
    poller = AlertPoller(feed, clock=clock)
    received: List[List[Alert]] = []
    poller.add_callback(received.append)
    poller.check_for_alerts()

    feed.alerts = [_alert("old", T0 - timedelta(minutes=5)), _alert("new", T0 + timedelta(seconds=10))]
    clock.advance(seconds=30)

    new = poller.check_for_alerts()

    assert [a.id for a in new] == ["new"]
    assert [[a.id for a in batch] for batch in received] == [["new"]]

    # already reported once; not new any more
    clock.advance(seconds=30)
    assert poller.check_for_alerts() == []


def test_naive_created_at_is_treated_as_utc() -> None:
    feed, clock = FakeFeed(), FakeClock(T0)
    poller = AlertPoller(feed, clock=clock)
    poller.check_for_alerts()
    feed.alerts = [_alert("naive", datetime(2024, 3, 1, 12, 0, 5))]

    assert [a.id for a in poller.check_for_alerts()] == ["naive"]


def test_fetch_error_is_logged_and_returns_empty(caplog) -> None:
    feed = FakeFeed()
    feed.error = RuntimeError("backend down")
    poller = AlertPoller(feed, clock=FakeClock(T0))

    assert poller.check_for_alerts() == []
    assert "Error checking for alerts" in caplog.text
    assert poller.last_check is None


def test_failing_callback_does_not_stop_others(caplog) -> None:
    feed, clock = FakeFeed(), FakeClock(T0)
    poller = AlertPoller(feed, clock=clock)
    received: List[str] = []

    def broken(_alerts) -> None:
        raise ValueError("callback bug")

    poller.add_callback(broken)
    poller.add_callback(lambda alerts: received.extend(a.id for a in alerts))
    poller.check_for_alerts()
    feed.alerts = [_alert("new", T0 + timedelta(seconds=1))]

    poller.check_for_alerts()

    assert received == ["new"]
    assert "Error in alert callback" in caplog.text


def test_remove_callback() -> None:
    feed, clock = FakeFeed(), FakeClock(T0)
    poller = AlertPoller(feed, clock=clock)
    received: List[Alert] = []
    callback = received.extend
    poller.add_callback(callback)
    poller.remove_callback(callback)
    poller.check_for_alerts()
    feed.alerts = [_alert("new", T0 + timedelta(seconds=1))]

    poller.check_for_alerts()

    assert received == []


def test_start_checks_immediately_and_is_idempotent() -> None:
    feed = FakeFeed()
    polled = threading.Event()

    def fetch() -> List[Alert]:
        result = feed()
        if feed.calls >= 2:
            polled.set()
        return result

    poller = AlertPoller(fetch, interval=0.1, clock=FakeClock(T0))
    try:
        poller.start()
        assert feed.calls == 1
        assert poller.is_polling

        poller.start()
        assert polled.wait(timeout=5.0)
    finally:
        poller.stop()

    assert not poller.is_polling


def test_stop_drops_callbacks() -> None:
    feed, clock = FakeFeed(), FakeClock(T0)
    poller = AlertPoller(feed, interval=60.0, clock=clock)
    received: List[Alert] = []
    poller.start(received.extend)
    poller.stop()

    feed.alerts = [_alert("new", T0 + timedelta(seconds=1))]
    clock.advance(seconds=1)
    poller.check_for_alerts()

    assert received == []


def test_unauthorized_stops_polling(caplog) -> None:
    feed = FakeFeed()
    feed.error = UnauthorizedError("list_active_alerts returned 401", status_code=401)
    poller = AlertPoller(feed, interval=60.0, clock=FakeClock(T0))

    poller.start()

    assert not poller.is_polling
    assert feed.calls == 1
    assert "Session expired" in caplog.text
