"""
Configuration hierarchy for pyconcur.

Values are looked up in order: an explicit config mapping, then an
environment variable named ``PYCONCUR_<KEY>``, then the library default.
"""

import os
from typing import Any, Dict, Mapping, Optional

from pyconcur.errors import ConfigurationError

ENV_PREFIX = "PYCONCUR_"

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_DELAY_MS = 200

DEFAULTS: Dict[str, Any] = {
    "retry_max_attempts": DEFAULT_MAX_ATTEMPTS,
    "retry_delay_ms": DEFAULT_DELAY_MS,
    "telemetry_enabled": False,
}

_TRUE_VALUES = ("true", "1", "yes", "y", "t")
_FALSE_VALUES = ("false", "0", "no", "n", "f", "")


def get_env_config(key: str) -> Optional[str]:
    """
    Get a raw configuration value from the environment.

    Args:
        key: The configuration key, e.g. ``retry_delay_ms``

    Returns:
        The value of ``PYCONCUR_<KEY>``, or None if it is not set
    """
    return os.environ.get(f"{ENV_PREFIX}{key.upper()}")


def _coerce(key: str, value: Any, default: Any) -> Any:
    """Convert a raw value to the type of its default."""
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise ConfigurationError(f"Invalid boolean for {key}: {value!r}")
    if isinstance(default, int):
        if isinstance(value, bool):
            raise ConfigurationError(f"Invalid integer for {key}: {value!r}")
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid integer for {key}: {value!r}") from e
    return value


def get_config(key: str, config: Optional[Mapping[str, Any]] = None) -> Any:
    """
    Get a typed configuration value from the hierarchy.

    Args:
        key: The configuration key
        config: Optional explicit configuration, checked first

    Returns:
        The configuration value, converted to the type of its default

    Raises:
        ConfigurationError: If the key is unknown or the value cannot be parsed
    """
    if key not in DEFAULTS:
        raise ConfigurationError(f"Unknown configuration key: {key}")
    default = DEFAULTS[key]

    # 1. Check explicit configuration
    if config and key in config:
        return _coerce(key, config[key], default)

    # 2. Check environment variables
    env_value = get_env_config(key)
    if env_value is not None:
        return _coerce(key, env_value, default)

    # 3. Return default value
    return default
