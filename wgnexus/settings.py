"""Application settings, built once at startup and passed explicitly."""

import configparser
import logging
from dataclasses import dataclass, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from .tunnel.exceptions import ConfigurationError

SECTION = "wgnexus"


class LogOutput(Enum):
    """Where log records go"""
    SYSLOG = "syslog"
    STDOUT = "stdout"
    FILE = "file"


@dataclass(frozen=True)
class AppSettings:
    log_level: str = "INFO"
    log_output: LogOutput = LogOutput.SYSLOG
    log_file: Path = Path("logs/wg_nexus.log")
    tunnels_path: Path = Path("/etc/wireguard")
    wg_path: str = "wg"
    wg_quick_path: str = "wg-quick"
    use_sudo: bool = False
    status_timeout: float = 5.0
    toggle_timeout: float = 3.0
    keygen_timeout: float = 5.0
    host: str = "127.0.0.1"
    port: int = 8000

    def __post_init__(self):
        level = str(self.log_level).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ConfigurationError(f"Unknown log level: {self.log_level}")
        object.__setattr__(self, "log_level", level)

        for name in ("status_timeout", "toggle_timeout", "keygen_timeout"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive")
        if not 0 < self.port < 65536:
            raise ConfigurationError(f"Invalid port: {self.port}")


def _coerce(name: str, raw: Any) -> Any:
    """Convert a raw string (INI file / CLI) into the field's type."""
    if not isinstance(raw, str):
        return raw
    try:
        if name == "log_output":
            return LogOutput(raw.strip().lower())
        if name in ("log_file", "tunnels_path"):
            return Path(raw)
        if name == "use_sudo":
            return configparser.ConfigParser.BOOLEAN_STATES[raw.strip().lower()]
        if name == "port":
            return int(raw)
        if name.endswith("_timeout"):
            return float(raw)
    except (ValueError, KeyError):
        raise ConfigurationError(f"Invalid value '{raw}' for setting '{name}'")
    return raw


def _load_config(config_file: str) -> Dict[str, str]:
    config = configparser.ConfigParser()
    try:
        read = config.read(config_file)
    except configparser.Error as e:
        raise ConfigurationError(f"Could not parse {config_file}: {e}")
    if not read:
        raise ConfigurationError(f"Settings file not found: {config_file}")
    if not config.has_section(SECTION):
        return {}
    return dict(config[SECTION])


def load_settings(config_file: Optional[str] = None, **overrides: Any) -> AppSettings:
    """
    Build settings from defaults, an optional INI file and explicit overrides.

    Args:
        config_file: Path to an INI file with a [wgnexus] section
        **overrides: Values taking precedence over the file; None is ignored

    Returns:
        AppSettings instance
    """
    known = {f.name for f in fields(AppSettings)}
    values: Dict[str, Any] = {}

    if config_file:
        for key, raw in _load_config(config_file).items():
            if key not in known:
                raise ConfigurationError(f"Unknown setting '{key}' in {config_file}")
            values[key] = raw

    for key, raw in overrides.items():
        if key not in known:
            raise ConfigurationError(f"Unknown setting '{key}'")
        if raw is not None:
            values[key] = raw

    settings = AppSettings()
    return replace(settings, **{key: _coerce(key, raw) for key, raw in values.items()})
