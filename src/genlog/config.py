"""Config loading, defaults, validation, and settings snapshots."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from genlog.errors import ConfigurationError
from genlog.levels import Severity, parse_level
from genlog.rotation import RotationPolicy
from genlog.utils import deep_merge, load_yaml, save_yaml

logger = logging.getLogger(__name__)

HOME_ENV = "GENLOG_HOME"
CONFIG_FILENAME = "config.yaml"

DEFAULT_CONFIG: dict = {
    "log_level": "INFO",
    "max_size_bytes": 10 * 1024 * 1024,
    "max_generations": 5,
    "log_retention_days": 30,
    "base_name": "genlog",
    "log_dir": None,
}

# key -> minimum accepted value
_INT_KEYS: dict[str, int] = {
    "max_size_bytes": 1,
    "max_generations": 1,
    "log_retention_days": 0,
}


@dataclass(frozen=True)
class LogSettings:
    log_dir: Path
    base_name: str = "genlog"
    max_size_bytes: int = 10 * 1024 * 1024
    max_generations: int = 5
    retention_days: int = 30
    min_level: Severity = Severity.INFO

    @property
    def active_log_path(self) -> Path:
        return self.log_dir / f"{self.base_name}.log"

    @property
    def rotation_policy(self) -> RotationPolicy:
        return RotationPolicy(
            max_size_bytes=self.max_size_bytes,
            max_generations=self.max_generations,
        )


def resolve_home(home: Path | None = None) -> Path:
    """Return the genlog home: explicit value, then $GENLOG_HOME, then ~/.genlog."""
    if home is not None:
        return Path(home).expanduser()
    env = os.environ.get(HOME_ENV)
    if env:
        return Path(env).expanduser()
    return Path.home() / ".genlog"


def get_config_path(home: Path | None = None) -> Path:
    return resolve_home(home) / CONFIG_FILENAME


def load_config(home: Path | None = None) -> dict:
    """Load config from <home>/config.yaml, merged with defaults."""
    config_path = get_config_path(home)
    if config_path.exists():
        user_config = load_yaml(config_path)
        if not user_config:
            logger.warning(
                "Config file exists but could not be loaded (corrupt?): %s "
                "Using defaults.", config_path
            )
        return deep_merge(DEFAULT_CONFIG, user_config)
    return DEFAULT_CONFIG.copy()


def save_config(config: dict, home: Path | None = None) -> Path:
    """Save config to <home>/config.yaml."""
    config_path = get_config_path(home)
    save_yaml(config_path, config)
    return config_path


def _coerce_int(key: str, value: object) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid {key}: {value!r} (must be numeric)")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and value.strip().isdigit():
        number = int(value.strip())
    else:
        raise ConfigurationError(f"Invalid {key}: {value!r} (must be numeric)")
    minimum = _INT_KEYS[key]
    if number < minimum:
        raise ConfigurationError(f"Invalid {key}: {number} (must be >= {minimum})")
    return number


def coerce_value(key: str, value: object) -> object:
    """Validate and normalize a single config value.

    Raises ConfigurationError on the first problem.
    """
    if key not in DEFAULT_CONFIG:
        raise ConfigurationError(f"Unknown config key: {key}")
    if key in _INT_KEYS:
        return _coerce_int(key, value)
    if key == "log_level":
        return parse_level(value).label  # type: ignore[arg-type]
    if key == "base_name":
        if not isinstance(value, str) or not value.strip() or "/" in value:
            raise ConfigurationError(f"Invalid base_name: {value!r}")
        return value.strip()
    # log_dir
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if not isinstance(value, (str, Path)):
        raise ConfigurationError(f"Invalid log_dir: {value!r}")
    return str(value)


def set_config_value(config: dict, key: str, raw: object) -> dict:
    """Return a copy of config with key set, validated at the point of setting."""
    updated = config.copy()
    updated[key] = coerce_value(key, raw)
    return updated


def validate_config(config: dict) -> list[str]:
    """Validate config, returning list of error messages (empty if valid)."""
    errors = []
    for key in DEFAULT_CONFIG:
        try:
            coerce_value(key, config.get(key, DEFAULT_CONFIG[key]))
        except ConfigurationError as exc:
            errors.append(str(exc))
    for key in config:
        if key not in DEFAULT_CONFIG:
            errors.append(f"Unknown config key: {key}")
    return errors


def settings_from_config(config: dict, home: Path | None = None) -> LogSettings:
    """Build an immutable settings snapshot from a config dict."""
    merged = deep_merge(DEFAULT_CONFIG, config)
    log_dir = coerce_value("log_dir", merged["log_dir"])
    return LogSettings(
        log_dir=Path(log_dir).expanduser() if log_dir else resolve_home(home) / "logs",
        base_name=coerce_value("base_name", merged["base_name"]),  # type: ignore[arg-type]
        max_size_bytes=_coerce_int("max_size_bytes", merged["max_size_bytes"]),
        max_generations=_coerce_int("max_generations", merged["max_generations"]),
        retention_days=_coerce_int("log_retention_days", merged["log_retention_days"]),
        min_level=parse_level(merged["log_level"]),
    )


def load_settings(home: Path | None = None) -> LogSettings:
    """Read the config file fresh and return a settings snapshot."""
    return settings_from_config(load_config(home), home)
