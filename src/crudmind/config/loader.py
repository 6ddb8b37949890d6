"""Configuration loading and validation."""

import os
import re
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from crudmind.config.schema import CrudmindConfig

DEFAULT_CONFIG_PATH = Path.home() / ".crudmind" / "crudmind.yaml"
CONFIG_ENV_VAR = "CRUDMIND_CONFIG"

_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


class ConfigError(Exception):
    """Configuration loading or validation error."""


def resolve_config_path(path: Optional[Union[str, Path]] = None) -> Path:
    """Explicit path, else ``$CRUDMIND_CONFIG``, else the default location."""
    if path is not None:
        return Path(path).expanduser()
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH


def _expand_env(value: Any) -> Any:
    """Replace ``${VAR}`` in string values; unset variables become empty."""
    if isinstance(value, str):
        return _ENV_PATTERN.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {key: _expand_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_expand_env(item) for item in value]
    return value


def load_config(path: Optional[Union[str, Path]] = None) -> CrudmindConfig:
    """Load and validate crudmind configuration from a YAML file.

    A relative ``database.path`` is resolved against the config file's
    directory.

    Args:
        path: Path to config file. If None, uses ``$CRUDMIND_CONFIG`` or
              the default location. If the file doesn't exist, returns
              default config.

    Returns:
        Validated configuration object

    Raises:
        ConfigError: If config file exists but is invalid
    """
    path = resolve_config_path(path)

    if not path.exists():
        return CrudmindConfig()

    try:
        with open(path, "r") as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            return CrudmindConfig()
        if not isinstance(config_data, dict):
            raise ConfigError(f"Expected a mapping at the top of {path}")

        config = CrudmindConfig(**_expand_env(config_data))

    except ConfigError:
        raise
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed: {e}") from e
    except Exception as e:
        raise ConfigError(f"Failed to load config from {path}: {e}") from e

    db_path = Path(config.database.path).expanduser()
    if not db_path.is_absolute():
        config.database.path = str(path.parent / db_path)

    return config


def save_config(config: CrudmindConfig, path: Optional[Union[str, Path]] = None) -> None:
    """Save configuration to YAML file.

    Args:
        config: Configuration object to save
        path: Destination path. If None, uses default location.
    """
    path = resolve_config_path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        yaml.safe_dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)
