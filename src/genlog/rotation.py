"""Size-triggered generational rotation of the active log.

The active log ``<name>.log`` is promoted to ``<name>.log.1``, older
generations shift one suffix up, and ``<name>.log.<max_generations>`` is
evicted first so the rotation itself never creates a suffix beyond the limit.

Only suffixes up to ``max_generations`` are touched. If the limit is lowered
while higher-numbered files exist, those files are left in place by
rotation and are removed by the age-based retention sweep instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from genlog.errors import ConfigurationError

logger = logging.getLogger(__name__)


class RotationOutcome(str, Enum):
    NO_ROTATION = "no_rotation"
    ROTATED = "rotated"
    PARTIAL = "partial"


@dataclass(frozen=True)
class RotationPolicy:
    max_size_bytes: int = 10 * 1024 * 1024
    max_generations: int = 5


@dataclass
class RotationReport:
    attempted: bool = False
    evicted: bool = False
    shifted: list[tuple[int, int]] = field(default_factory=list)
    promoted: bool = False
    created: bool = False
    errors: list[str] = field(default_factory=list)

    @property
    def outcome(self) -> RotationOutcome:
        if not self.attempted:
            return RotationOutcome.NO_ROTATION
        if self.errors:
            return RotationOutcome.PARTIAL
        return RotationOutcome.ROTATED

    @property
    def ok(self) -> bool:
        return not self.errors


def generation_path(active_path: Path, index: int) -> Path:
    """Path of generation `index` for the given active log."""
    return active_path.parent / f"{active_path.name}.{index}"


def rotate_generations(active_path: Path, max_generations: int) -> RotationReport:
    """Evict, shift, promote, then recreate the active log.

    Every step checks existence before acting and a failed step does not
    stop the ones after it; failures are collected in the report.
    """
    if max_generations < 1:
        raise ConfigurationError(
            f"Invalid max_generations: {max_generations} (must be >= 1)"
        )

    report = RotationReport(attempted=True)

    def _failed(action: str, exc: OSError) -> None:
        msg = f"{action} failed: {exc}"
        logger.warning("Log rotation: %s", msg)
        report.errors.append(msg)

    # Evict the oldest generation
    oldest = generation_path(active_path, max_generations)
    if oldest.exists():
        try:
            oldest.unlink()
            report.evicted = True
        except OSError as exc:
            _failed(f"evict {oldest.name}", exc)

    # Shift the rest toward older, highest index first
    for i in range(max_generations - 1, 0, -1):
        src = generation_path(active_path, i)
        if not src.exists():
            continue
        dst = generation_path(active_path, i + 1)
        try:
            src.rename(dst)
            report.shifted.append((i, i + 1))
        except OSError as exc:
            _failed(f"shift {src.name} -> {dst.name}", exc)

    # Move current to .1
    if active_path.exists():
        newest = generation_path(active_path, 1)
        try:
            active_path.rename(newest)
            report.promoted = True
        except OSError as exc:
            _failed(f"promote {active_path.name} -> {newest.name}", exc)

    # Create empty new log
    try:
        active_path.parent.mkdir(parents=True, exist_ok=True)
        active_path.touch()
        report.created = True
    except OSError as exc:
        _failed(f"create {active_path.name}", exc)

    if report.ok:
        logger.info("Log rotation completed: %s", active_path)
    return report


def check_and_maybe_rotate(active_path: Path, policy: RotationPolicy) -> RotationReport:
    """Rotate if the active log has reached policy.max_size_bytes.

    The size is read from the filesystem on every call. A missing active
    log is never due. Other stat() failures propagate as OSError.
    """
    try:
        size = active_path.stat().st_size
    except FileNotFoundError:
        return RotationReport()

    if size < policy.max_size_bytes:
        return RotationReport()

    logger.debug(
        "Active log %s is %d bytes (limit %d), rotating",
        active_path, size, policy.max_size_bytes,
    )
    return rotate_generations(active_path, policy.max_generations)
