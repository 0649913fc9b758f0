"""Configuration for the statusline watcher.

Settings come from a YAML file (optional) and are then overridden by
environment variables, mirroring how the launcher reads its deployment
settings.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .paths import DEFAULT_TEAMS_DIR

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "STATUSLINE_CONFIG"

# Bundled defaults at the project root (config/statusline.yaml)
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "statusline.yaml"

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass
class StatusLineConfig:
    """Configuration for the statusline watcher.

    Attributes:
        teams_dir: Root directory containing one directory per team.
        use_polling: Use watchdog's PollingObserver instead of the native
            OS observer (default: False).
        polling_interval_seconds: Poll interval when use_polling is set (default: 1.0).
        observer_join_timeout_seconds: Max seconds to wait for a watch thread
            to exit when its handle is closed (default: 5.0).
        log_level: Level for the ``statusline`` logger (default: INFO).
        log_dir: Directory for the rotating JSON log file, or None for console only.
    """

    teams_dir: str = DEFAULT_TEAMS_DIR
    use_polling: bool = False
    polling_interval_seconds: float = 1.0
    observer_join_timeout_seconds: float = 5.0
    log_level: str = "INFO"
    log_dir: str | None = None


def _parse_bool(value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")


def _to_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return _parse_bool(value)
        except ValueError:
            pass
    raise ValueError(f"Invalid value for {key}: expected a boolean, got {value!r}")


def _to_positive_float(key: str, value: Any) -> float:
    # bool is an int subclass; "true" is not a duration
    if isinstance(value, (int, float, str)) and not isinstance(value, bool):
        try:
            number = float(value)
        except ValueError:
            number = None
        if number is not None and number > 0:
            return number
    raise ValueError(f"Invalid value for {key}: expected a positive number, got {value!r}")


def _to_str(key: str, value: Any) -> str:
    if isinstance(value, str):
        return value
    raise ValueError(f"Invalid value for {key}: expected a string, got {value!r}")


def _to_optional_str(key: str, value: Any) -> str | None:
    return None if value is None else _to_str(key, value)


_CONVERTERS = {
    "teams_dir": _to_str,
    "use_polling": _to_bool,
    "polling_interval_seconds": _to_positive_float,
    "observer_join_timeout_seconds": _to_positive_float,
    "log_level": _to_str,
    "log_dir": _to_optional_str,
}


def _read_config_file(config_path: Path) -> dict[str, Any]:
    """Load a YAML mapping from disk.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the YAML is malformed or not a mapping
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Statusline configuration file not found: {config_path}")

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Failed to parse statusline configuration YAML: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(
            f"Statusline configuration must be a mapping, got {type(data).__name__}"
        )

    logger.debug(f"Loaded statusline configuration from {config_path}")
    return data


def _apply_env_overrides(config: StatusLineConfig) -> None:
    teams_dir = os.getenv("STATUSLINE_TEAMS_DIR")
    if teams_dir:
        config.teams_dir = teams_dir

    log_level = os.getenv("STATUSLINE_LOG_LEVEL")
    if log_level:
        config.log_level = log_level

    log_dir = os.getenv("STATUSLINE_LOG_DIR")
    if log_dir:
        config.log_dir = log_dir

    use_polling = os.getenv("STATUSLINE_USE_POLLING")
    if use_polling:
        config.use_polling = _to_bool("STATUSLINE_USE_POLLING", use_polling)


def load_config(config_path: str | Path | None = None) -> StatusLineConfig:
    """Build a StatusLineConfig from YAML and environment.

    Args:
        config_path: YAML file to read. When None, the path in
            ``STATUSLINE_CONFIG`` is used if set; otherwise the bundled
            config/statusline.yaml is read when present.

    Returns:
        Populated configuration.

    Raises:
        FileNotFoundError: If an explicitly requested file doesn't exist
        ValueError: If the file can't be parsed or a value has the wrong type
    """
    if config_path is None:
        env_path = os.getenv(CONFIG_ENV_VAR)
        if env_path:
            config_path = Path(env_path)
        elif DEFAULT_CONFIG_PATH.exists():
            config_path = DEFAULT_CONFIG_PATH

    config = StatusLineConfig()

    if config_path is not None:
        data = _read_config_file(Path(config_path))
        for key, value in data.items():
            converter = _CONVERTERS.get(key)
            if converter is None:
                logger.warning(f"Ignoring unknown statusline config key: {key}")
                continue
            setattr(config, key, converter(key, value))

    _apply_env_overrides(config)
    return config
