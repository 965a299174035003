"""Record formatting and single-line appends to the active log."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from genlog.errors import WriteUnavailable
from genlog.levels import Severity

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class LogRecord:
    severity: Severity
    message: str
    timestamp: datetime = field(default_factory=datetime.now)


def format_record(record: LogRecord) -> str:
    """Format as `[YYYY-MM-DD HH:MM:SS] [LEVEL] message` plus newline."""
    # Embedded newlines would split one record across lines
    message = record.message.replace("\r", " ").replace("\n", " ")
    ts = record.timestamp.strftime(TIMESTAMP_FORMAT)
    return f"[{ts}] [{record.severity.label}] {message}\n"


def append_record(record: LogRecord, active_path: Path) -> None:
    """Append one record to an existing active log.

    The file is opened, written once and closed on every call, so a rotation
    done by another process between writes is picked up. The encoded line
    goes out in a single unbuffered append, so concurrent writers never
    interleave inside a record.
    Raises WriteUnavailable if the log or its directory is missing or the
    write fails.
    """
    if not active_path.parent.is_dir():
        raise WriteUnavailable(f"Log directory not found: {active_path.parent}")
    if not active_path.is_file():
        raise WriteUnavailable(f"Log file not found: {active_path}")

    data = format_record(record).encode("utf-8")
    try:
        with open(active_path, "ab", buffering=0) as f:
            f.write(data)
    except OSError as exc:
        raise WriteUnavailable(f"Cannot write to {active_path}: {exc}") from exc
