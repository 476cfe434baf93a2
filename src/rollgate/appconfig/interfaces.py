"""Configuration provider and source interfaces."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any


class ConfigSource(ABC):
    """Abstract base class for configuration sources.

    A source loads raw key/value data; it knows nothing about snapshots,
    typing or refresh scheduling.
    """

    @abstractmethod
    def load(self) -> Mapping[str, Any]:
        """Load the complete configuration, nested or already flattened."""
        pass

    @abstractmethod
    def describe(self) -> str:
        """Short human-readable description used in stats and logs."""
        pass


class ConfigurationProvider(ABC):
    """Abstract base class for configuration providers.

    Typed lookups never raise: an absent key or a malformed value yields
    the caller-supplied default.
    """

    @abstractmethod
    def get_boolean_value(self, key: str, default: bool) -> bool:
        """Get a boolean value."""
        pass

    @abstractmethod
    def get_int_value(self, key: str, default: int) -> int:
        """Get an integer value."""
        pass

    @abstractmethod
    def get_string_value(self, key: str, default: str) -> str:
        """Get a string value."""
        pass

    @abstractmethod
    def has_configuration(self, key: str) -> bool:
        """Check if a key exists, regardless of its type."""
        pass

    @abstractmethod
    def get_configuration_value(self, key: str, default: Any = None) -> Any:
        """Get the raw stored value."""
        pass

    @abstractmethod
    def get_all_configuration_keys(self) -> set[str]:
        """Get all known keys."""
        pass

    @abstractmethod
    def manual_refresh(self) -> bool:
        """Reload the snapshot out of band. Returns False if the reload failed."""
        pass

    @abstractmethod
    def get_current_config_version(self) -> str:
        """Get the version identifier of the active snapshot."""
        pass

    @abstractmethod
    def get_configuration_stats(self) -> dict[str, Any]:
        """Get provider statistics."""
        pass
