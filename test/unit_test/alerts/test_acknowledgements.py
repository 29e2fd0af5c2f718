from __future__ import annotations

import json
from datetime import datetime, timezone

from muktsar_ngo.alerts import AcknowledgementStore


def test_acknowledge_persists_time_and_user(tmp_path) -> None:
    path = tmp_path / "acks.json"
    at = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)

    AcknowledgementStore(path).acknowledge("a-1", "u-1", at=at)

    reopened = AcknowledgementStore(path)
    assert reopened.is_acknowledged("a-1")
    assert not reopened.is_acknowledged("a-2")
    assert json.loads(path.read_text()) == {"a-1": {"acknowledgedAt": "2024-03-01T12:00:00+00:00", "userId": "u-1"}}


def test_all_and_clear(tmp_path) -> None:
    store = AcknowledgementStore(tmp_path / "acks.json")
    store.acknowledge("a-1")
    store.acknowledge("a-2", "u-1")

    assert set(store.all()) == {"a-1", "a-2"}

    store.clear()
    store.clear()

    assert store.all() == {}


def test_corrupt_file_is_treated_as_empty(tmp_path, caplog) -> None:
    path = tmp_path / "acks.json"
    path.write_text("[broken")
    store = AcknowledgementStore(path)

    assert store.all() == {}
    store.acknowledge("a-1")
    assert store.is_acknowledged("a-1")
    assert "unreadable" in caplog.text


def test_write_failure_is_logged_not_raised(tmp_path, caplog) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file in the way")
    store = AcknowledgementStore(blocker / "acks.json")

    store.acknowledge("a-1")

    assert not store.is_acknowledged("a-1")
    assert "Failed to store acknowledgements" in caplog.text
