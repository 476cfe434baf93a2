"""
Feature Flag Router.

Exposes flag state, operational limits and configuration provider
management over HTTP.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field

from rollgate.feature_flags.service import (
    FeatureFlagService,
    FeatureStatus,
    get_feature_flag_service,
)

logger = structlog.get_logger(__name__)

# Note: the /api prefix is added when the router is included in main.py
router = APIRouter(prefix="/features", tags=["Feature Flags"])


# ========================================
# Response Models
# ========================================


class FeatureStatusResponse(BaseModel):
    """State of one feature."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    enabled: bool
    rollout_percentage: int = Field(alias="rolloutPercentage")

    @classmethod
    def from_status(cls, feature: FeatureStatus) -> "FeatureStatusResponse":
        return cls(
            name=feature.name,
            enabled=feature.enabled,
            rollout_percentage=feature.rollout_percentage,
        )


class UserEvaluationResponse(BaseModel):
    """Per-user evaluation result."""

    model_config = ConfigDict(populate_by_name=True)

    feature: str
    user_id: str = Field(alias="userId")
    enabled: bool


class LimitsResponse(BaseModel):
    """Operational request limits."""

    model_config = ConfigDict(populate_by_name=True)

    max_requests_per_minute: int = Field(alias="maxRequestsPerMinute")
    max_upload_size_mb: int = Field(alias="maxUploadSizeMB")
    max_concurrent_requests: int = Field(alias="maxConcurrentRequests")
    request_timeout_seconds: int = Field(alias="requestTimeoutSeconds")


class CacheConfigResponse(BaseModel):
    """Cache settings."""

    model_config = ConfigDict(populate_by_name=True)

    enabled: bool
    ttl_seconds: int = Field(alias="ttlSeconds")
    max_entries: int = Field(alias="maxEntries")


class RefreshResponse(BaseModel):
    """Result of a manual configuration refresh."""

    model_config = ConfigDict()

    message: str
    version: str
    success: bool


class ConfigValueResponse(BaseModel):
    """Raw configuration value."""

    model_config = ConfigDict()

    key: str
    value: Any


# ========================================
# Feature Endpoints
# ========================================


@router.get("", response_model=dict[str, FeatureStatusResponse])
async def get_all_features(
    names: list[str] | None = Query(default=None, description="Feature names to include"),
    service: FeatureFlagService = Depends(get_feature_flag_service),
) -> dict[str, FeatureStatusResponse]:
    """Get the state of all configured features, or of the requested ones."""
    statuses = service.list_feature_statuses(names)
    return {name: FeatureStatusResponse.from_status(s) for name, s in statuses.items()}


@router.get("/limits", response_model=LimitsResponse)
async def get_limits(
    service: FeatureFlagService = Depends(get_feature_flag_service),
) -> LimitsResponse:
    """Get operational request limits."""
    limits = service.get_limits()
    return LimitsResponse(
        max_requests_per_minute=limits.max_requests_per_minute,
        max_upload_size_mb=limits.max_upload_size_mb,
        max_concurrent_requests=limits.max_concurrent_requests,
        request_timeout_seconds=limits.request_timeout_seconds,
    )


@router.get("/cache", response_model=CacheConfigResponse)
async def get_cache_config(
    service: FeatureFlagService = Depends(get_feature_flag_service),
) -> CacheConfigResponse:
    """Get cache settings."""
    cache = service.get_cache_settings()
    return CacheConfigResponse(
        enabled=cache.enabled,
        ttl_seconds=cache.ttl_seconds,
        max_entries=cache.max_entries,
    )


# ========================================
# Configuration Provider Endpoints
# ========================================


@router.get("/config/stats")
async def get_config_stats(
    service: FeatureFlagService = Depends(get_feature_flag_service),
) -> dict[str, Any]:
    """Get configuration provider statistics."""
    return service.provider.get_configuration_stats()


@router.post("/config/refresh", response_model=RefreshResponse)
def refresh_config(
    service: FeatureFlagService = Depends(get_feature_flag_service),
) -> RefreshResponse:
    """Reload the configuration snapshot.

    Declared sync so the source load runs in the threadpool, off the event loop.
    """
    success = service.provider.manual_refresh()
    version = service.provider.get_current_config_version()

    if not success:
        logger.warning("Manual configuration refresh failed", version=version)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Configuration refresh failed, still serving version {version}",
        )

    logger.info("Manual configuration refresh", version=version)
    return RefreshResponse(message="Configuration refreshed", version=version, success=True)


@router.get("/config/keys", response_model=list[str])
async def get_all_config_keys(
    service: FeatureFlagService = Depends(get_feature_flag_service),
) -> list[str]:
    """List all configuration keys."""
    return sorted(service.provider.get_all_configuration_keys())


@router.get("/config/{key}", response_model=ConfigValueResponse)
async def get_config_value(
    key: str,
    service: FeatureFlagService = Depends(get_feature_flag_service),
) -> ConfigValueResponse:
    """Get a raw configuration value."""
    if not service.provider.has_configuration(key):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Key not found: {key}")

    return ConfigValueResponse(key=key, value=service.provider.get_configuration_value(key))


# Parameterised feature routes come last so they do not shadow the paths above.


@router.get("/{feature_name}", response_model=FeatureStatusResponse)
async def get_feature(
    feature_name: str,
    service: FeatureFlagService = Depends(get_feature_flag_service),
) -> FeatureStatusResponse:
    """Get the state of one feature."""
    feature = service.get_feature_status(feature_name)
    if feature is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"Feature not found: {feature_name}"
        )
    return FeatureStatusResponse.from_status(feature)


@router.get("/{feature_name}/users/{user_id}", response_model=UserEvaluationResponse)
async def get_feature_for_user(
    feature_name: str,
    user_id: str,
    service: FeatureFlagService = Depends(get_feature_flag_service),
) -> UserEvaluationResponse:
    """Evaluate a feature for one user, applying percentage rollout."""
    enabled = service.is_feature_enabled_for_user(feature_name, user_id)
    return UserEvaluationResponse(feature=feature_name, user_id=user_id, enabled=enabled)
