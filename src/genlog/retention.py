"""Age-based cleanup of rotated log generations."""

from __future__ import annotations

import logging
import re
import time
from pathlib import Path

from genlog.errors import ConfigurationError

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


def generation_pattern(base_name: str) -> re.Pattern[str]:
    """Match `<base_name>.log.<n>` file names."""
    return re.compile(rf"{re.escape(base_name)}\.log\.\d+")


def sweep(
    log_dir: Path,
    pattern: str | re.Pattern[str],
    max_age_days: int,
    now: float | None = None,
) -> int:
    """Delete files in log_dir matching pattern with mtime older than max_age_days.

    Ignores generation indices entirely. A file that cannot be stat'ed or
    deleted is logged and skipped. Returns the number of files removed.
    """
    if max_age_days < 0:
        raise ConfigurationError(f"Invalid max_age_days: {max_age_days} (must be >= 0)")

    regex = re.compile(pattern) if isinstance(pattern, str) else pattern
    cutoff = (time.time() if now is None else now) - max_age_days * SECONDS_PER_DAY

    if not log_dir.is_dir():
        return 0

    removed = 0
    for path in sorted(log_dir.iterdir()):
        if not regex.fullmatch(path.name):
            continue
        try:
            if not path.is_file() or path.stat().st_mtime >= cutoff:
                continue
            path.unlink()
        except OSError as exc:
            logger.warning("Retention sweep could not remove %s: %s", path, exc)
            continue
        logger.debug("Retention sweep removed %s", path)
        removed += 1

    return removed
