"""
Configuration provider.

Refreshable, versioned key/value snapshots with typed, defaulted lookups.
"""

from rollgate.appconfig.interfaces import ConfigSource, ConfigurationProvider
from rollgate.appconfig.provider import (
    SnapshotConfigProvider,
    create_provider,
    get_config_provider,
    reset_config_provider,
)
from rollgate.appconfig.snapshot import ConfigSnapshot, flatten_config
from rollgate.appconfig.sources import (
    HttpConfigSource,
    JsonFileConfigSource,
    RedisHashConfigSource,
    StaticConfigSource,
    build_source,
)

__all__ = [
    # Interfaces
    "ConfigSource",
    "ConfigurationProvider",
    # Snapshot
    "ConfigSnapshot",
    "flatten_config",
    # Provider
    "SnapshotConfigProvider",
    "create_provider",
    "get_config_provider",
    "reset_config_provider",
    # Sources
    "StaticConfigSource",
    "JsonFileConfigSource",
    "RedisHashConfigSource",
    "HttpConfigSource",
    "build_source",
]
