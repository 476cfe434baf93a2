"""
Feature Flags Module.

Binary feature flags with deterministic percentage rollout, plus the
operational limits read from the same configuration namespace.
"""

from rollgate.feature_flags.bucketing import BUCKET_COUNT, rollout_bucket, stable_hash
from rollgate.feature_flags.keys import (
    cache_key,
    config_key,
    feature_key,
    limit_key,
    namespace_prefix,
)
from rollgate.feature_flags.service import (
    CacheSettings,
    FeatureFlagService,
    FeatureStatus,
    OperationalLimits,
    get_feature_flag_service,
)

__all__ = [
    # Service
    "FeatureFlagService",
    "get_feature_flag_service",
    # Models
    "FeatureStatus",
    "OperationalLimits",
    "CacheSettings",
    # Keys
    "config_key",
    "namespace_prefix",
    "feature_key",
    "limit_key",
    "cache_key",
    # Bucketing
    "BUCKET_COUNT",
    "stable_hash",
    "rollout_bucket",
]
