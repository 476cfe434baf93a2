"""
Feature flag evaluation.

The service holds only a provider handle and a key namespace. Every call
reads the provider again, so a refreshed snapshot is visible immediately.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from rollgate.appconfig.interfaces import ConfigurationProvider
from rollgate.appconfig.provider import get_config_provider
from rollgate.exceptions import InvalidFeatureNameError, InvalidUserIdError
from rollgate.feature_flags.bucketing import BUCKET_COUNT, rollout_bucket
from rollgate.feature_flags.keys import (
    ENABLED,
    ROLLOUT_PERCENTAGE,
    cache_key,
    feature_key,
    feature_name_from_key,
    limit_key,
    namespace_prefix,
)
from rollgate.settings import get_settings

logger = structlog.get_logger(__name__)

DEFAULT_ROLLOUT_PERCENTAGE = 100
DISCOVERY_ROLLOUT_PERCENTAGE = 0

DEFAULT_MAX_REQUESTS_PER_MINUTE = 1000
DEFAULT_MAX_UPLOAD_SIZE_MB = 10
DEFAULT_MAX_CONCURRENT_REQUESTS = 100
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30
DEFAULT_CACHE_ENABLED = True
DEFAULT_CACHE_TTL_SECONDS = 300
DEFAULT_CACHE_MAX_ENTRIES = 1000


@dataclass(frozen=True)
class FeatureStatus:
    """Discovery view of one feature."""

    name: str
    enabled: bool
    rollout_percentage: int

    def to_dict(self) -> dict[str, Any]:
        return {"enabled": self.enabled, "rolloutPercentage": self.rollout_percentage}


@dataclass(frozen=True)
class OperationalLimits:
    """Request limits read from configuration."""

    max_requests_per_minute: int
    max_upload_size_mb: int
    max_concurrent_requests: int
    request_timeout_seconds: int

    def to_dict(self) -> dict[str, int]:
        return {
            "maxRequestsPerMinute": self.max_requests_per_minute,
            "maxUploadSizeMB": self.max_upload_size_mb,
            "maxConcurrentRequests": self.max_concurrent_requests,
            "requestTimeoutSeconds": self.request_timeout_seconds,
        }


@dataclass(frozen=True)
class CacheSettings:
    """Cache settings read from configuration."""

    enabled: bool
    ttl_seconds: int
    max_entries: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "ttlSeconds": self.ttl_seconds,
            "maxEntries": self.max_entries,
        }


def _validate_feature_name(feature_name: Any) -> str:
    if not isinstance(feature_name, str) or not feature_name.strip():
        raise InvalidFeatureNameError("Feature name must be a non-empty string")
    return feature_name


def _validate_user_id(user_id: Any) -> str:
    if not isinstance(user_id, str) or not user_id.strip():
        raise InvalidUserIdError("User id must be a non-empty string for per-user evaluation")
    return user_id


class FeatureFlagService:
    """Evaluates feature flags and operational limits for one application.

    Example:
        service = FeatureFlagService(provider, app_name="dpsm-api")

        if service.is_feature_enabled_for_user("advancedSearch", user_id):
            ...
    """

    def __init__(
        self,
        provider: ConfigurationProvider,
        app_name: str = "dpsm-api",
        namespace: str | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            provider: Configuration provider all values are read from
            app_name: Application name used to build ``services.<app_name>``
            namespace: Explicit key namespace, overrides app_name
        """
        self.provider = provider
        self.namespace = namespace or namespace_prefix(app_name)

    # ------------------------------------------------------------------
    # Feature flags
    # ------------------------------------------------------------------

    def is_feature_enabled(self, feature_name: str) -> bool:
        """Check if a feature is globally enabled. Absent means disabled."""
        feature_name = _validate_feature_name(feature_name)
        enabled = self.provider.get_boolean_value(
            feature_key(self.namespace, feature_name, ENABLED), False
        )
        logger.debug("Feature flag checked", feature=feature_name, enabled=enabled)
        return enabled

    def get_rollout_percentage(
        self, feature_name: str, default: int = DEFAULT_ROLLOUT_PERCENTAGE
    ) -> int:
        """Configured rollout percentage, or ``default`` when absent."""
        feature_name = _validate_feature_name(feature_name)
        return self.provider.get_int_value(
            feature_key(self.namespace, feature_name, ROLLOUT_PERCENTAGE), default
        )

    def is_feature_enabled_for_user(self, feature_name: str, user_id: str) -> bool:
        """Check if a feature is enabled for a user, honouring percentage rollout.

        The global switch dominates; 0% and 100% are decided without hashing;
        otherwise the user's stable bucket must be below the percentage.

        Raises:
            InvalidUserIdError: If user_id is empty or not a string
        """
        feature_name = _validate_feature_name(feature_name)
        user_id = _validate_user_id(user_id)

        if not self.is_feature_enabled(feature_name):
            return False

        rollout = self.get_rollout_percentage(feature_name)
        if rollout >= BUCKET_COUNT:
            return True
        if rollout <= 0:
            return False

        bucket = rollout_bucket(user_id)
        enabled = bucket < rollout

        logger.debug(
            "Feature flag checked for user",
            feature=feature_name,
            user_id=user_id,
            enabled=enabled,
            rollout=rollout,
            bucket=bucket,
        )
        return enabled

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def get_feature_status(self, feature_name: str) -> FeatureStatus | None:
        """Status of a feature, or None if its ``.enabled`` key is not configured."""
        feature_name = _validate_feature_name(feature_name)
        enabled_key = feature_key(self.namespace, feature_name, ENABLED)
        if not self.provider.has_configuration(enabled_key):
            return None

        return FeatureStatus(
            name=feature_name,
            enabled=self.provider.get_boolean_value(enabled_key, False),
            rollout_percentage=self.get_rollout_percentage(
                feature_name, default=DISCOVERY_ROLLOUT_PERCENTAGE
            ),
        )

    def get_known_features(self) -> list[str]:
        """Names of all features with an ``.enabled`` key, sorted."""
        names = {
            feature_name_from_key(self.namespace, key)
            for key in self.provider.get_all_configuration_keys()
        }
        return sorted(name for name in names if name)

    def list_feature_statuses(self, names: list[str] | None = None) -> dict[str, FeatureStatus]:
        """Statuses for ``names`` (default: all known features), skipping absent ones."""
        statuses: dict[str, FeatureStatus] = {}
        for name in names if names is not None else self.get_known_features():
            status = self.get_feature_status(name)
            if status is not None:
                statuses[name] = status
        return statuses

    # ------------------------------------------------------------------
    # Limits
    # ------------------------------------------------------------------

    def get_max_requests_per_minute(self) -> int:
        return self.provider.get_int_value(
            limit_key(self.namespace, "maxRequestsPerMinute"), DEFAULT_MAX_REQUESTS_PER_MINUTE
        )

    def get_max_upload_size_mb(self) -> int:
        return self.provider.get_int_value(
            limit_key(self.namespace, "maxUploadSizeMB"), DEFAULT_MAX_UPLOAD_SIZE_MB
        )

    def get_max_concurrent_requests(self) -> int:
        return self.provider.get_int_value(
            limit_key(self.namespace, "maxConcurrentRequests"), DEFAULT_MAX_CONCURRENT_REQUESTS
        )

    def get_request_timeout_seconds(self) -> int:
        return self.provider.get_int_value(
            limit_key(self.namespace, "requestTimeoutSeconds"), DEFAULT_REQUEST_TIMEOUT_SECONDS
        )

    def get_limits(self) -> OperationalLimits:
        return OperationalLimits(
            max_requests_per_minute=self.get_max_requests_per_minute(),
            max_upload_size_mb=self.get_max_upload_size_mb(),
            max_concurrent_requests=self.get_max_concurrent_requests(),
            request_timeout_seconds=self.get_request_timeout_seconds(),
        )

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    def is_cache_enabled(self) -> bool:
        return self.provider.get_boolean_value(
            cache_key(self.namespace, "enabled"), DEFAULT_CACHE_ENABLED
        )

    def get_cache_ttl_seconds(self) -> int:
        return self.provider.get_int_value(
            cache_key(self.namespace, "ttlSeconds"), DEFAULT_CACHE_TTL_SECONDS
        )

    def get_cache_max_entries(self) -> int:
        return self.provider.get_int_value(
            cache_key(self.namespace, "maxEntries"), DEFAULT_CACHE_MAX_ENTRIES
        )

    def get_cache_settings(self) -> CacheSettings:
        return CacheSettings(
            enabled=self.is_cache_enabled(),
            ttl_seconds=self.get_cache_ttl_seconds(),
            max_entries=self.get_cache_max_entries(),
        )


def get_feature_flag_service() -> FeatureFlagService:
    """Service bound to the process-wide provider and configured app name."""
    return FeatureFlagService(get_config_provider(), app_name=get_settings().app_name)
