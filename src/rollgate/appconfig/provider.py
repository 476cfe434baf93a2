"""
Snapshot-based configuration provider.

Readers dereference the current snapshot exactly once per lookup and never
take a lock. Refresh builds a complete new snapshot and swaps the reference,
so a lookup sees either the old or the new generation, never a mix.
"""

from __future__ import annotations

import threading
from datetime import UTC, datetime
from typing import Any

import structlog

from rollgate.appconfig.interfaces import ConfigSource, ConfigurationProvider
from rollgate.appconfig.snapshot import ConfigSnapshot
from rollgate.appconfig.sources import build_source
from rollgate.exceptions import ConfigurationError, ConfigurationRefreshError
from rollgate.settings import Settings, get_settings

logger = structlog.get_logger(__name__)

_MISSING = object()

_TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
_FALSE_STRINGS = frozenset({"false", "0", "no", "off"})


def coerce_bool(value: Any) -> bool | None:
    """Interpret a stored value as a boolean, or None if it is not one."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    return None


def coerce_int(value: Any) -> int | None:
    """Interpret a stored value as an integer, or None if it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def coerce_str(value: Any) -> str | None:
    """Interpret a stored value as a string, or None if it is not scalar."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return None


class SnapshotConfigProvider(ConfigurationProvider):
    """Configuration provider over an atomically replaced snapshot.

    Example:
        provider = SnapshotConfigProvider(JsonFileConfigSource("config.json"))
        provider.get_int_value("services.api.limits.maxUploadSizeMB", 10)
        provider.manual_refresh()
    """

    def __init__(
        self,
        source: ConfigSource,
        refresh_interval_seconds: float = 30.0,
        max_age_seconds: float | None = None,
        load_on_init: bool = True,
    ) -> None:
        """Initialize the provider.

        Args:
            source: Where snapshots are loaded from
            refresh_interval_seconds: Default interval for background polling
            max_age_seconds: Age after which the snapshot is stale (default: 2x interval)
            load_on_init: Load the first snapshot now and raise if that fails
        """
        self._source = source
        self.refresh_interval_seconds = refresh_interval_seconds
        self.max_age_seconds = (
            max_age_seconds if max_age_seconds is not None else refresh_interval_seconds * 2
        )

        self._snapshot = ConfigSnapshot.empty(source=source.describe())
        self._loaded = False
        self._refresh_lock = threading.Lock()

        self._refresh_count = 0
        self._failed_refresh_count = 0
        self._last_error: str | None = None

        self._poll_thread: threading.Thread | None = None
        self._poll_stop = threading.Event()

        if load_on_init:
            self.refresh()

    # ------------------------------------------------------------------
    # Snapshot lifecycle
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> ConfigSnapshot:
        """The active snapshot."""
        return self._snapshot

    def refresh(self) -> ConfigSnapshot:
        """Load a new snapshot from the source and swap it in.

        Raises:
            ConfigurationRefreshError: If the source fails; the previous
                snapshot stays active.
        """
        with self._refresh_lock:
            previous = self._snapshot
            try:
                data = self._source.load()
                snapshot = ConfigSnapshot.build(
                    data,
                    generation=previous.generation + 1,
                    source=self._source.describe(),
                )
            except ConfigurationError as e:
                self._record_failure(e)
                raise ConfigurationRefreshError(str(e)) from e
            except Exception as e:
                self._record_failure(e)
                raise ConfigurationRefreshError(f"Unexpected error loading configuration: {e}") from e

            self._snapshot = snapshot
            self._loaded = True
            self._refresh_count += 1
            self._last_error = None

        logger.info(
            "Configuration refreshed",
            version=snapshot.version,
            key_count=len(snapshot),
            changed=snapshot.checksum != previous.checksum,
            source=snapshot.source,
        )
        return snapshot

    def _record_failure(self, error: Exception) -> None:
        self._failed_refresh_count += 1
        self._last_error = str(error)

    def manual_refresh(self) -> bool:
        """Trigger a reload; failures are logged and keep the last good snapshot."""
        try:
            self.refresh()
        except ConfigurationRefreshError as e:
            logger.warning(
                "Configuration refresh failed, keeping previous snapshot",
                version=self._snapshot.version,
                error=str(e),
            )
            return False
        return True

    def is_stale(self, max_age_seconds: float | None = None) -> bool:
        """True if nothing is loaded yet or the snapshot is older than the max age."""
        if not self._loaded:
            return True
        limit = self.max_age_seconds if max_age_seconds is None else max_age_seconds
        return self._snapshot.age_seconds() > limit

    # ------------------------------------------------------------------
    # Background polling
    # ------------------------------------------------------------------

    @property
    def is_polling(self) -> bool:
        return self._poll_thread is not None and self._poll_thread.is_alive()

    def start_polling(self, interval_seconds: float | None = None) -> None:
        """Refresh in a daemon thread every interval until stop_polling()."""
        if self.is_polling:
            return

        interval = interval_seconds or self.refresh_interval_seconds
        self._poll_stop.clear()
        self._poll_thread = threading.Thread(
            target=self._poll_loop,
            args=(interval,),
            name="rollgate-config-poller",
            daemon=True,
        )
        self._poll_thread.start()
        logger.info("Configuration polling started", interval_seconds=interval)

    def stop_polling(self, timeout: float | None = 5.0) -> None:
        """Stop the polling thread and wait for it to exit."""
        thread = self._poll_thread
        if thread is None:
            return
        self._poll_stop.set()
        thread.join(timeout)
        self._poll_thread = None
        logger.info("Configuration polling stopped")

    def _poll_loop(self, interval: float) -> None:
        while not self._poll_stop.wait(interval):
            self.manual_refresh()

    def __enter__(self) -> SnapshotConfigProvider:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.stop_polling()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _lookup(self, key: str, default: Any, coerce: Any, kind: str) -> Any:
        value = self._snapshot.get(key, _MISSING)
        if value is _MISSING or value is None:
            return default

        coerced = coerce(value)
        if coerced is None:
            logger.warning("Malformed configuration value, using default", key=key, expected=kind)
            return default
        return coerced

    def get_boolean_value(self, key: str, default: bool) -> bool:
        return self._lookup(key, default, coerce_bool, "bool")

    def get_int_value(self, key: str, default: int) -> int:
        return self._lookup(key, default, coerce_int, "int")

    def get_string_value(self, key: str, default: str) -> str:
        return self._lookup(key, default, coerce_str, "str")

    def has_configuration(self, key: str) -> bool:
        return key in self._snapshot

    def get_configuration_value(self, key: str, default: Any = None) -> Any:
        return self._snapshot.get(key, default)

    def get_all_configuration_keys(self) -> set[str]:
        return set(self._snapshot.keys)

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    def get_current_config_version(self) -> str:
        return self._snapshot.version

    def get_configuration_stats(self) -> dict[str, Any]:
        snapshot = self._snapshot
        return {
            "version": snapshot.version,
            "generation": snapshot.generation,
            "key_count": len(snapshot),
            "last_refresh_time": snapshot.refreshed_at.isoformat() if self._loaded else None,
            "refresh_count": self._refresh_count,
            "failed_refresh_count": self._failed_refresh_count,
            "last_error": self._last_error,
            "source": snapshot.source,
            "checksum": snapshot.checksum,
            "is_stale": self.is_stale(),
            "polling": self.is_polling,
            "stats_time": datetime.now(UTC).isoformat(),
        }


def create_provider(
    settings: Settings | None = None,
    source: ConfigSource | None = None,
) -> SnapshotConfigProvider:
    """Build a provider from settings, starting the poller if configured."""
    settings = settings or get_settings()
    provider = SnapshotConfigProvider(
        source or build_source(settings),
        refresh_interval_seconds=settings.provider.refresh_interval_seconds,
        max_age_seconds=settings.provider.effective_max_age_seconds,
    )
    if settings.provider.poll:
        provider.start_polling()
    return provider


# Global provider instance
_provider: SnapshotConfigProvider | None = None
_provider_lock = threading.Lock()


def get_config_provider() -> SnapshotConfigProvider:
    """Get the process-wide provider (singleton)."""
    global _provider
    if _provider is None:
        with _provider_lock:
            if _provider is None:
                _provider = create_provider()
    return _provider


def reset_config_provider() -> None:
    """Stop and forget the process-wide provider (mainly for testing)."""
    global _provider
    with _provider_lock:
        if _provider is not None:
            _provider.stop_polling()
        _provider = None
