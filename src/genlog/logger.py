"""ManagedLog: level filter -> writer -> size check -> rotation.

Every operation takes a fresh LogSettings snapshot from the settings source,
so config changes between calls are honored and nothing is cached.
Failures inside logging are degraded, never raised to the caller of write().
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Union

from genlog.config import LogSettings, load_settings
from genlog.errors import ConfigurationError, WriteUnavailable
from genlog.levels import Severity, parse_level, should_write
from genlog.retention import generation_pattern, sweep
from genlog.rotation import RotationReport, check_and_maybe_rotate, rotate_generations
from genlog.writer import LogRecord, append_record

logger = logging.getLogger(__name__)

SettingsSource = Callable[[], LogSettings]


class ManagedLog:
    """Size-bounded active log with generational rotation."""

    def __init__(self, settings: Union[LogSettings, SettingsSource]) -> None:
        if isinstance(settings, LogSettings):
            snapshot = settings
            self._source: SettingsSource = lambda: snapshot
        else:
            self._source = settings

    @classmethod
    def from_home(cls, home: Path | None = None) -> "ManagedLog":
        """Build a log that re-reads <home>/config.yaml on every operation."""
        return cls(lambda: load_settings(home))

    @property
    def settings(self) -> LogSettings:
        return self._source()

    @property
    def active_log_path(self) -> Path:
        return self._source().active_log_path

    def init(self) -> bool:
        """Create the log directory and active log, then run a size check."""
        settings = self._source()
        path = settings.active_log_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            if not path.exists():
                path.touch()
        except OSError as exc:
            logger.warning("Could not initialize log file %s: %s", path, exc)
            return False
        self._check_size(settings)
        return True

    def write(self, severity: Severity | str, message: str) -> bool:
        """Write one record. Returns True only if it reached the active log."""
        try:
            settings = self._source()
            level = parse_level(severity)
        except ConfigurationError as exc:
            logger.warning("Log record dropped: %s", exc)
            return False

        if not should_write(level, settings.min_level):
            return False

        try:
            append_record(LogRecord(level, message), settings.active_log_path)
        except WriteUnavailable as exc:
            logger.debug("Log record dropped: %s", exc)
            return False

        self._check_size(settings)
        return True

    def debug(self, message: str) -> bool:
        return self.write(Severity.DEBUG, message)

    def info(self, message: str) -> bool:
        return self.write(Severity.INFO, message)

    def warn(self, message: str) -> bool:
        return self.write(Severity.WARN, message)

    def error(self, message: str) -> bool:
        return self.write(Severity.ERROR, message)

    def log_command(self, command: str) -> bool:
        return self.info(f"Executing command: {command}")

    def force_rotate(self) -> RotationReport:
        """Rotate now regardless of size."""
        settings = self._source()
        report = rotate_generations(settings.active_log_path, settings.max_generations)
        self._record_failures(settings, report)
        return report

    def sweep(self, max_age_days: int | None = None) -> int:
        """Delete generations older than max_age_days (default: retention_days)."""
        settings = self._source()
        days = settings.retention_days if max_age_days is None else max_age_days
        return sweep(settings.log_dir, generation_pattern(settings.base_name), days)

    def _check_size(self, settings: LogSettings) -> RotationReport | None:
        try:
            report = check_and_maybe_rotate(
                settings.active_log_path, settings.rotation_policy
            )
        except OSError as exc:
            logger.warning("Size check failed for %s: %s", settings.active_log_path, exc)
            return None
        self._record_failures(settings, report)
        return report

    def _record_failures(self, settings: LogSettings, report: RotationReport) -> None:
        # Appended directly so a failed rotation cannot re-trigger another one
        if not should_write(Severity.ERROR, settings.min_level):
            return
        for err in report.errors:
            try:
                append_record(
                    LogRecord(Severity.ERROR, f"Log rotation: {err}"),
                    settings.active_log_path,
                )
            except WriteUnavailable as exc:
                logger.debug("Rotation failure not recorded: %s", exc)
