"""Settings loading for MCeption.

Application settings (storage backends and paths, HTTP bind, logging) are
loaded from TOML files with environment variable overrides. They are distinct
from the server configuration document that the registry manages.

Usage:
    from mception.config import get_settings

    settings = get_settings()
    path = settings.storage.config_path
"""

from functools import lru_cache

from pydantic import ValidationError as PydanticValidationError

from mception.config.loader import load_config
from mception.config.settings import Settings, set_toml_config
from mception.errors import InvalidConfigurationError


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the singleton settings instance.

    Settings are resolved in this order:
    1. Pydantic model defaults (in code)
    2. config/default.toml (base settings)
    3. config/{MCEPTION_ENV}.toml (environment overrides)
    4. MCEPTION_* environment variables (runtime overrides)

    The result is cached for the lifetime of the process.
    Call `get_settings.cache_clear()` to reload settings.

    Returns:
        Settings instance with all sections loaded and validated

    Raises:
        InvalidConfigurationError: If a settings file is unreadable or a
            value fails validation
    """
    config_dict = load_config()
    set_toml_config(config_dict)

    try:
        return Settings()
    except PydanticValidationError as e:
        raise InvalidConfigurationError(f"Invalid settings: {e}") from e


def reload_settings() -> Settings:
    """Clear the settings cache and reload settings.

    Returns:
        Fresh Settings instance
    """
    get_settings.cache_clear()
    return get_settings()


__all__ = ["get_settings", "reload_settings", "Settings"]
