"""Server configuration stores."""

from mception.registry.store import ConfigStore
from mception.registry.stores.file import FileConfigStore
from mception.registry.stores.inmemory import InMemoryConfigStore

__all__ = [
    "ConfigStore",
    "FileConfigStore",
    "InMemoryConfigStore",
]
