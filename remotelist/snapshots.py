"""Saving and loading compressed snapshots of the list state."""

from __future__ import annotations

import gzip
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Union

from .oplog import _format_timestamp, _parse_timestamp
from .structures import RemoteList

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT_PATH = Path("snapshots") / "remote_list_snapshot.json.gz"

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


def save_snapshot(
    remote_list: RemoteList,
    last_log_timestamp: datetime | None = None,
    path: Union[str, Path] = DEFAULT_SNAPSHOT_PATH,
) -> None:
    """Write the lists and the last covered log timestamp as gzipped JSON."""
    path = Path(path)
    stamp = _ZERO_TIME if last_log_timestamp is None else last_log_timestamp
    content = {
        "RemoteList": remote_list.to_dict(),
        "LastLogTimestamp": _format_timestamp(stamp),
    }
    text = json.dumps(content, indent=2, ensure_ascii=False) + "\n"
    with gzip.open(path, "wt", encoding="utf-8") as fh:
        fh.write(text)
    logger.info("Snapshot saved to %s (covers logs up to %s)", path, _format_timestamp(stamp))


def load_snapshot(
    path: Union[str, Path] = DEFAULT_SNAPSHOT_PATH,
) -> tuple[RemoteList, datetime | None]:
    """Load a snapshot; a missing file gives empty lists and no timestamp."""
    path = Path(path)
    try:
        fh = gzip.open(path, "rt", encoding="utf-8")
    except FileNotFoundError:
        logger.info("No snapshot found at %s; starting empty", path)
        return RemoteList(), None
    with fh:
        content = json.load(fh)
    if not isinstance(content, dict):
        raise ValueError(f"snapshot {path} does not hold an object")
    remote_list = RemoteList.from_dict(content.get("RemoteList") or {})
    raw_stamp = content.get("LastLogTimestamp")
    stamp = None if raw_stamp is None else _parse_timestamp(raw_stamp)
    if stamp == _ZERO_TIME:
        stamp = None
    logger.info("Snapshot loaded from %s (covers logs up to %s)", path, raw_stamp)
    return remote_list, stamp