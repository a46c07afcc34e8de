import gzip
import json
from datetime import datetime, timedelta, timezone

import pytest

from remotelist.snapshots import load_snapshot, save_snapshot
from remotelist.structures import RemoteList


def test_round_trip(tmp_path):
    path = tmp_path / "snap.json.gz"
    rl = RemoteList({"a": [1, 2, 3], "b": []})
    stamp = datetime(2024, 3, 4, 5, 6, 7, 890123, tzinfo=timezone(timedelta(hours=-3)))
    save_snapshot(rl, stamp, path)
    loaded, loaded_stamp = load_snapshot(path)
    assert loaded.to_dict() == rl.to_dict()
    assert loaded_stamp == stamp


def test_missing_snapshot_gives_empty_state(tmp_path):
    loaded, stamp = load_snapshot(tmp_path / "absent.json.gz")
    assert loaded.to_dict() == {"Lists": {}}
    assert stamp is None


def test_no_timestamp_is_stored_as_zero_time(tmp_path):
    path = tmp_path / "snap.json.gz"
    save_snapshot(RemoteList(), None, path)
    with gzip.open(path, "rt", encoding="utf-8") as fh:
        content = json.load(fh)
    assert content["LastLogTimestamp"] == "0001-01-01T00:00:00Z"
    assert load_snapshot(path)[1] is None


def test_file_layout(tmp_path):
    path = tmp_path / "snap.json.gz"
    save_snapshot(RemoteList({"x": [5]}), datetime(2024, 1, 1, tzinfo=timezone.utc), path)
    with gzip.open(path, "rt", encoding="utf-8") as fh:
        content = json.load(fh)
    assert set(content) == {"RemoteList", "LastLogTimestamp"}
    assert content["RemoteList"] == {"Lists": {"x": {"Elements": [5]}}}


def test_loaded_lists_are_usable(tmp_path):
    path = tmp_path / "snap.json.gz"
    save_snapshot(RemoteList({"a": [1]}), None, path)
    loaded, _ = load_snapshot(path)
    loaded.append("a", 2)
    assert loaded.remove("a") == 2
    assert loaded.size("a") == 1


def test_load_null_elements(tmp_path):
    path = tmp_path / "snap.json.gz"
    content = {
        "RemoteList": {"Lists": {"a": {"Elements": None}}},
        "LastLogTimestamp": "2024-01-01T00:00:00.5Z",
    }
    with gzip.open(path, "wt", encoding="utf-8") as fh:
        json.dump(content, fh)
    loaded, stamp = load_snapshot(path)
    assert loaded.size("a") == 0
    assert stamp == datetime(2024, 1, 1, 0, 0, 0, 500000, tzinfo=timezone.utc)


def test_corrupt_snapshot_raises(tmp_path):
    path = tmp_path / "snap.json.gz"
    path.write_bytes(b"this is not gzip")
    with pytest.raises(OSError):
        load_snapshot(path)


def test_invalid_json_raises(tmp_path):
    path = tmp_path / "snap.json.gz"
    with gzip.open(path, "wt", encoding="utf-8") as fh:
        fh.write("{not json")
    with pytest.raises(ValueError):
        load_snapshot(path)


def test_save_overwrites_previous(tmp_path):
    path = tmp_path / "snap.json.gz"
    save_snapshot(RemoteList({"a": [1, 2]}), None, path)
    save_snapshot(RemoteList({"b": [9]}), None, path)
    loaded, _ = load_snapshot(path)
    assert loaded.to_dict() == {"Lists": {"b": {"Elements": [9]}}}