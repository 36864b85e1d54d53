"""TOML settings loader with deep merge support.

Settings files describe how the server runs (storage backends and paths,
HTTP bind, logging). They are separate from the server configuration
document, which is owned by the registry and persisted by a ConfigStore.
Problems with the files surface as ``InvalidConfigurationError`` so callers
handle them with the rest of the ``Configuration`` error category.
"""

import os
import tomllib
from pathlib import Path
from typing import Any

from mception.errors import InvalidConfigurationError

CONFIG_DIR_ENV = "MCEPTION_CONFIG_DIR"
ENVIRONMENT_ENV = "MCEPTION_ENV"
DEFAULT_ENVIRONMENT = "development"


def get_config_dir() -> Path:
    """Get the settings directory path.

    The directory can be overridden with the MCEPTION_CONFIG_DIR env var.
    Otherwise 'config/' is searched for in the current directory and up to
    four of its parents.

    Returns:
        Path to the settings directory (it may not exist)

    Raises:
        InvalidConfigurationError: If MCEPTION_CONFIG_DIR names a missing directory
    """
    config_dir_env = os.environ.get(CONFIG_DIR_ENV)
    if config_dir_env:
        path = Path(config_dir_env)
        if not path.is_dir():
            raise InvalidConfigurationError(
                f"{CONFIG_DIR_ENV} is not a directory: {config_dir_env}"
            )
        return path

    current = Path.cwd()
    for _ in range(5):  # Look up to 5 levels
        config_path = current / "config"
        if config_path.is_dir():
            return config_path
        current = current.parent

    return Path("config")


def get_environment() -> str:
    """Get the current environment from MCEPTION_ENV.

    Defaults to 'development' if not set.
    """
    return os.environ.get(ENVIRONMENT_ENV, DEFAULT_ENVIRONMENT)


def load_toml(file_path: Path) -> dict[str, Any]:
    """Load a TOML file and return its contents as a dictionary.

    Args:
        file_path: Path to the TOML file

    Returns:
        Dictionary containing the TOML data

    Raises:
        FileNotFoundError: If the file doesn't exist
        InvalidConfigurationError: If the TOML syntax is invalid
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Settings file not found: {file_path}")

    with file_path.open("rb") as f:
        try:
            return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise InvalidConfigurationError(f"Invalid TOML in {file_path}: {e}") from e


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence.

    For nested dictionaries, values are merged recursively.
    For other values, override replaces base.

    Args:
        base: Base dictionary
        override: Override dictionary (takes precedence)

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if (
            key in result
            and isinstance(result[key], dict)
            and isinstance(value, dict)
        ):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_config() -> dict[str, Any]:
    """Load settings from TOML files.

    Loading order:
    1. config/default.toml (optional; the server runs on model defaults)
    2. config/{MCEPTION_ENV}.toml (optional)

    Returns:
        Merged settings dictionary, empty when neither file exists

    Raises:
        InvalidConfigurationError: If the directory override is wrong or a
            file is not valid TOML
    """
    config_dir = get_config_dir()
    env = get_environment()

    config: dict[str, Any] = {}

    default_path = config_dir / "default.toml"
    if default_path.exists():
        config = load_toml(default_path)

    env_path = config_dir / f"{env}.toml"
    if env_path.exists():
        config = deep_merge(config, load_toml(env_path))

    return config
