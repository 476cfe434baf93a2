"""
Immutable, versioned configuration snapshots.

A snapshot is built once per refresh and never mutated afterwards; the
provider replaces it wholesale.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


def _iter_leaves(data: Mapping[str, Any], parent: str = "") -> Iterator[tuple[str, Any]]:
    for key, value in data.items():
        path = f"{parent}.{key}" if parent else str(key)
        if isinstance(value, Mapping) and value:
            yield from _iter_leaves(value, path)
        else:
            yield path, value


def flatten_config(data: Mapping[str, Any]) -> dict[str, Any]:
    """Flatten nested mappings into dotted keys.

    ``{"services": {"api": {"x": 1}}}`` becomes ``{"services.api.x": 1}``.
    Keys that already contain dots are kept as path segments. When a flat
    dotted key and a nested path name the same key, the one that comes later
    in the document wins and a warning is logged.
    """
    flat: dict[str, Any] = {}
    for path, value in _iter_leaves(data):
        if path in flat:
            logger.warning(
                "Duplicate configuration key, later value wins",
                key=path,
                previous=flat[path],
                value=value,
            )
        flat[path] = value
    return flat


def compute_checksum(values: Mapping[str, Any]) -> str:
    """SHA-256 of the canonical JSON form of the values."""
    canonical = json.dumps(values, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class ConfigSnapshot:
    """Point-in-time view of all configuration key/value pairs."""

    values: Mapping[str, Any]
    generation: int
    refreshed_at: datetime
    source: str = ""
    checksum: str = ""
    _keys: frozenset[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # Freeze a private copy so later changes to the caller's dict are invisible.
        frozen = MappingProxyType(dict(self.values))
        object.__setattr__(self, "values", frozen)
        object.__setattr__(self, "_keys", frozenset(frozen))
        if not self.checksum:
            object.__setattr__(self, "checksum", compute_checksum(frozen))

    @classmethod
    def build(
        cls,
        data: Mapping[str, Any],
        generation: int,
        source: str = "",
        refreshed_at: datetime | None = None,
    ) -> ConfigSnapshot:
        """Flatten raw source data into a new snapshot."""
        return cls(
            values=flatten_config(data),
            generation=generation,
            refreshed_at=refreshed_at or datetime.now(UTC),
            source=source,
        )

    @classmethod
    def empty(cls, source: str = "") -> ConfigSnapshot:
        """Snapshot used before the first successful load."""
        return cls(values={}, generation=0, refreshed_at=datetime.now(UTC), source=source)

    @property
    def version(self) -> str:
        return str(self.generation)

    @property
    def keys(self) -> frozenset[str]:
        return self._keys

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[str]:
        return iter(self._keys)

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def age_seconds(self, now: datetime | None = None) -> float:
        """Seconds since this snapshot was loaded."""
        now = now or datetime.now(UTC)
        return (now - self.refreshed_at).total_seconds()
