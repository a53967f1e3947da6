from __future__ import annotations

from pathlib import Path

import pytest

from audit_reports.state.properties import PropertyStore, PropertyStoreError


def test_missing_file_reads_as_empty(tmp_path: Path):
    assert PropertyStore(tmp_path / "state" / "props.json").get("lastSentTicketTimestamp") is None


def test_set_survives_new_instance(tmp_path: Path):
    path = tmp_path / "state" / "props.json"
    PropertyStore(path).set("lastSentTicketTimestamp", "10-06-2025 09:15:00")
    PropertyStore(path).set("other", "1")
    store = PropertyStore(path)
    assert store.get("lastSentTicketTimestamp") == "10-06-2025 09:15:00"
    assert store.get("other") == "1"
    assert not path.with_suffix(".json.tmp").exists()


def test_corrupt_file_raises(tmp_path: Path):
    path = tmp_path / "props.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(PropertyStoreError):
        PropertyStore(path).get("x")


def test_non_object_file_raises(tmp_path: Path):
    path = tmp_path / "props.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(PropertyStoreError, match="object expected"):
        PropertyStore(path).get("x")


def test_unwritable_location_raises(tmp_path: Path):
    blocker = tmp_path / "state"
    blocker.write_text("not a directory", encoding="utf-8")
    with pytest.raises(PropertyStoreError, match="cannot write property file"):
        PropertyStore(blocker / "props.json").set("lastSentTicketTimestamp", "10-06-2025 09:15:00")


def test_failed_replace_raises_and_keeps_old_value(tmp_path: Path, monkeypatch):
    path = tmp_path / "props.json"
    store = PropertyStore(path)
    store.set("lastSentTicketTimestamp", "old")

    def _fail(src, dst):
        raise PermissionError("read-only filesystem")

    monkeypatch.setattr("audit_reports.state.properties.os.replace", _fail)
    with pytest.raises(PropertyStoreError, match="read-only filesystem"):
        store.set("lastSentTicketTimestamp", "new")
    monkeypatch.undo()
    assert store.get("lastSentTicketTimestamp") == "old"


def test_unreadable_file_raises(tmp_path: Path):
    path = tmp_path / "props.json"
    path.mkdir()
    with pytest.raises(PropertyStoreError, match="cannot read property file"):
        PropertyStore(path).get("x")
