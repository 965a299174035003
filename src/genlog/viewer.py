"""Reading log files: last lines, search, and follow mode."""

from __future__ import annotations

import re
import time
from collections import deque
from pathlib import Path
from typing import Callable


def tail_lines(path: Path, lines: int = 50) -> list[str]:
    """Return the last `lines` lines of a file, without trailing newlines."""
    if lines <= 0:
        return []
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return [line.rstrip("\n") for line in deque(f, maxlen=lines)]


def compile_search(pattern: str) -> re.Pattern[str]:
    """Compile a case-insensitive search pattern; invalid regex is taken literally."""
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error:
        return re.compile(re.escape(pattern), re.IGNORECASE)


def search_log(path: Path, pattern: str) -> list[str]:
    """Return every line of the file that matches pattern."""
    regex = compile_search(pattern)
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return [line.rstrip("\n") for line in f if regex.search(line)]


class LogTailer:
    """Tails a log file, yielding new lines via polling."""

    def __init__(self, log_path: Path, from_start: bool = False) -> None:
        self.log_path = log_path
        self._offset = 0
        self._partial = ""
        self._identity: tuple[int, int] | None = None
        if log_path.exists():
            st = log_path.stat()
            self._identity = (st.st_dev, st.st_ino)
            if not from_start:
                self._offset = st.st_size

    def _reset(self) -> None:
        self._offset = 0
        self._partial = ""

    def poll(self) -> list[str]:
        """Return complete lines appended since last poll."""
        try:
            st = self.log_path.stat()
        except FileNotFoundError:
            # Reset if file disappeared (rotation)
            self._reset()
            self._identity = None
            return []
        except OSError:
            return []

        identity = (st.st_dev, st.st_ino)
        if identity != self._identity:
            # A different file now sits at the path (rotation) -- read it from the start
            self._identity = identity
            self._reset()
        elif st.st_size < self._offset:
            # Truncated in place
            self._reset()
        if st.st_size <= self._offset:
            return []

        with open(self.log_path, "r", encoding="utf-8", errors="replace") as f:
            f.seek(self._offset)
            chunk = f.read()
            self._offset = f.tell()

        data = self._partial + chunk
        lines = data.split("\n")
        self._partial = lines.pop()
        return lines


def follow(
    log_path: Path,
    emit: Callable[[str], None],
    refresh: float = 0.5,
    should_stop: Callable[[], bool] = lambda: False,
) -> None:
    """Poll log_path and pass each new line to emit until should_stop() or Ctrl+C."""
    tailer = LogTailer(log_path)
    try:
        while not should_stop():
            for line in tailer.poll():
                emit(line)
            time.sleep(refresh)
    except KeyboardInterrupt:
        pass
