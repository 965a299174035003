"""Severity levels and the level filter."""

from __future__ import annotations

from enum import IntEnum

from genlog.errors import ConfigurationError


class Severity(IntEnum):
    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3

    @property
    def label(self) -> str:
        return self.name


_ALIASES: dict[str, Severity] = {
    "DEBUG": Severity.DEBUG,
    "INFO": Severity.INFO,
    "WARN": Severity.WARN,
    "WARNING": Severity.WARN,
    "ERROR": Severity.ERROR,
}

LEVEL_NAMES = [s.label for s in Severity]


def parse_level(value: str | Severity) -> Severity:
    """Parse a level name (case-insensitive, WARNING accepted as WARN).

    Raises ConfigurationError for anything that is not a known level.
    """
    if isinstance(value, Severity):
        return value
    if not isinstance(value, str):
        raise ConfigurationError(f"Invalid log level: {value!r}")
    try:
        return _ALIASES[value.strip().upper()]
    except KeyError:
        raise ConfigurationError(
            f"Invalid log level: {value!r} (expected one of {', '.join(LEVEL_NAMES)})"
        ) from None


def should_write(record_severity: Severity, configured_minimum: Severity) -> bool:
    """Return True if a record at record_severity passes the minimum."""
    return record_severity >= configured_minimum
