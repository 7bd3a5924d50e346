"""YAML configuration loading and typed parameter access."""

import logging
from pathlib import Path
from typing import Any, Mapping, Union

import yaml

logger = logging.getLogger(__name__)

_MISSING = object()


class ConfigError(ValueError):
    """A configuration key is missing or has the wrong type."""


def load_config(path: Union[str, Path]) -> dict:
    """Read a YAML mapping from ``path``."""
    try:
        with open(path, 'r') as file:
            config = yaml.safe_load(file)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to load configuration '{path}': {exc}") from exc

    if config is None:
        config = {}
    if not isinstance(config, dict):
        raise ConfigError(f"Configuration '{path}' must be a mapping, got {type(config).__name__}")
    logger.info("Loaded configuration from: %s", path)
    return config


def get_param(config: Mapping[str, Any], key: str, expected_type: type = object,
              default: Any = _MISSING) -> Any:
    """Fetch ``config[key]`` and check its type.

    Integers are accepted where a float is expected; booleans never count as
    numbers.

    Raises:
        ConfigError: the key is missing (and no default is given) or its
            value has the wrong type.
    """
    if key not in config or config[key] is None:
        if default is _MISSING:
            raise ConfigError(f"Missing required configuration key '{key}'")
        return default

    value = config[key]
    if expected_type is float and isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, bool) and expected_type in (int, float):
        raise ConfigError(f"Configuration key '{key}' must be {expected_type.__name__}, got bool")
    if not isinstance(value, expected_type):
        raise ConfigError(
            f"Configuration key '{key}' must be {expected_type.__name__}, got {type(value).__name__}")
    return value


def get_string_list(config: Mapping[str, Any], key: str) -> list:
    values = get_param(config, key, list)
    if not all(isinstance(v, str) for v in values):
        raise ConfigError(f"Configuration key '{key}' must be a list of strings")
    return values
