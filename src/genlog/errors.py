"""Exception types raised by the logging core."""

from __future__ import annotations


class GenlogError(Exception):
    """Base class for all genlog errors."""


class ConfigurationError(GenlogError, ValueError):
    """Invalid severity name, threshold or config key."""


class WriteError(GenlogError, OSError):
    """A record could not be appended to the active log."""


class WriteUnavailable(WriteError):
    """Active log or its directory is missing or not writable."""
