"""Append-only log of list operations, one text line per operation."""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

DEFAULT_LOG_PATH = Path("logs") / "operations.log"

_TIMESTAMP_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})"
    r"(?:\.(\d{1,9}))?(?:([Zz])|([+-])(\d{2}):(\d{2}))\Z"
)
_INT_RE = re.compile(r"[+-]?\d+\Z")


class Operation(str, Enum):
    """Kinds of operation recorded in the log."""

    APPEND = "Append"
    REMOVE = "Remove"
    READ = "Get/Size"


@dataclass(frozen=True)
class LogEntry:
    """One recorded operation."""

    timestamp: datetime
    operation: Union[Operation, str]
    list_id: str
    value: int = 0
    index: int = 0

    @property
    def operation_name(self) -> str:
        op = self.operation
        return op.value if isinstance(op, Operation) else op


def _format_timestamp(ts: datetime) -> str:
    """Render a timestamp as RFC 3339 with trimmed fractional seconds."""
    if ts.tzinfo is None:
        ts = ts.astimezone()
    text = (
        f"{ts.year:04d}-{ts.month:02d}-{ts.day:02d}"
        f"T{ts.hour:02d}:{ts.minute:02d}:{ts.second:02d}"
    )
    if ts.microsecond:
        text += "." + f"{ts.microsecond:06d}".rstrip("0")
    offset = ts.utcoffset()
    if not offset:
        return text + "Z"
    total = int(offset.total_seconds())
    sign = "+" if total >= 0 else "-"
    hours, rest = divmod(abs(total), 3600)
    return f"{text}{sign}{hours:02d}:{rest // 60:02d}"


def _parse_timestamp(text: str) -> datetime:
    """Parse an RFC 3339 timestamp; fractions beyond microseconds are dropped."""
    match = _TIMESTAMP_RE.match(text)
    if match is None:
        raise ValueError(f"invalid timestamp {text!r}")
    year, month, day, hour, minute, second = (int(g) for g in match.groups()[:6])
    fraction = (match.group(7) or "").ljust(6, "0")[:6]
    if match.group(8):
        tz = timezone.utc
    else:
        sign = -1 if match.group(9) == "-" else 1
        delta = timedelta(hours=int(match.group(10)), minutes=int(match.group(11)))
        tz = timezone(sign * delta)
    return datetime(year, month, day, hour, minute, second, int(fraction), tzinfo=tz)


def _parse_int(text: str, what: str) -> int:
    if not _INT_RE.match(text):
        raise ValueError(f"invalid {what} {text!r}")
    return int(text)


def _now() -> datetime:
    return datetime.now().astimezone()


def format_entry(entry: LogEntry) -> str:
    """Render an entry as a log line, without the trailing newline."""
    name = entry.operation_name
    line = f"{_format_timestamp(entry.timestamp)} {name} {entry.list_id}"
    if name == Operation.APPEND.value:
        line += f" {entry.value}"
    elif name == Operation.READ.value:
        line += f" {entry.index}"
    return line


def parse_line(line: str) -> LogEntry:
    """Parse one log line, raising ValueError if it is malformed."""
    parts = line.split()
    if len(parts) < 3:
        raise ValueError(f"malformed log line {line!r}")
    timestamp = _parse_timestamp(parts[0])
    try:
        operation: Union[Operation, str] = Operation(parts[1])
    except ValueError:
        operation = parts[1]
    value = index = 0
    if operation is Operation.APPEND:
        if len(parts) < 4:
            raise ValueError("Append entry without a value")
        value = _parse_int(parts[3], "value")
    elif operation is Operation.READ and len(parts) > 3:
        index = _parse_int(parts[3], "index")
    return LogEntry(timestamp, operation, parts[2], value=value, index=index)


class OperationLog:
    """A log file that operations are appended to and replayed from."""

    def __init__(self, path: Union[str, Path] = DEFAULT_LOG_PATH) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def write(self, entry: LogEntry) -> None:
        """Append an entry to the log file, creating the file if needed."""
        line = format_entry(entry) + "\n"
        with self._lock, self.path.open("a", encoding="utf-8") as fh:
            fh.write(line)

    def _record(self, entry: LogEntry) -> LogEntry:
        self.write(entry)
        return entry

    def record_append(self, list_id: str, value: int) -> LogEntry:
        """Log an append of ``value`` to ``list_id``."""
        return self._record(LogEntry(_now(), Operation.APPEND, list_id, value=value))

    def record_remove(self, list_id: str) -> LogEntry:
        """Log a removal from ``list_id``."""
        return self._record(LogEntry(_now(), Operation.REMOVE, list_id))

    def record_read(self, list_id: str, index: int) -> LogEntry:
        """Log a read (get or size) of ``list_id``."""
        return self._record(LogEntry(_now(), Operation.READ, list_id, index=index))

    def read_since(self, since: datetime | None = None) -> list[LogEntry]:
        """Return entries strictly after ``since`` (all entries if None).

        Malformed lines are skipped with a warning; a missing file yields [].
        """
        if since is not None and since.tzinfo is None:
            since = since.astimezone()
        try:
            fh = self.path.open(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            return []
        entries: list[LogEntry] = []
        with fh:
            for number, raw in enumerate(fh, start=1):
                line = raw.rstrip("\r\n")
                try:
                    entry = parse_line(line)
                except ValueError as exc:
                    logger.warning("Skipping log line %d: %s", number, exc)
                    continue
                if since is None or entry.timestamp > since:
                    entries.append(entry)
        return entries