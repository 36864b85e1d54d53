"""Configuration model exports.

    from mception.config.models import APIConfig, StorageConfig
"""

from mception.config.models.api import APIConfig
from mception.config.models.observability import LoggingConfig, ObservabilityConfig
from mception.config.models.storage import BackendType, StorageConfig

__all__ = [
    "APIConfig",
    "BackendType",
    "LoggingConfig",
    "ObservabilityConfig",
    "StorageConfig",
]
