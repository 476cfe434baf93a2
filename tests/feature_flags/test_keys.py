"""Tests for the configuration key naming convention."""

import pytest

from rollgate.feature_flags.keys import (
    cache_key,
    config_key,
    feature_key,
    feature_name_from_key,
    limit_key,
    namespace_prefix,
)

pytestmark = pytest.mark.unit

NS = "services.dpsm-api"


class TestConfigKey:
    def test_joins_prefix_name_and_suffix(self):
        assert config_key("a.b", "name", "enabled") == "a.b.name.enabled"

    def test_suffix_is_optional(self):
        assert config_key("a.b", "name") == "a.b.name"

    def test_namespace_prefix(self):
        assert namespace_prefix("dpsm-api") == NS


class TestConventionShapes:
    def test_feature_enabled_key(self):
        assert (
            feature_key(NS, "advancedSearch", "enabled")
            == "services.dpsm-api.features.advancedSearch.enabled"
        )

    def test_feature_rollout_key(self):
        assert (
            feature_key(NS, "advancedSearch", "rolloutPercentage")
            == "services.dpsm-api.features.advancedSearch.rolloutPercentage"
        )

    def test_limit_key(self):
        assert limit_key(NS, "maxUploadSizeMB") == "services.dpsm-api.limits.maxUploadSizeMB"

    def test_cache_key(self):
        assert cache_key(NS, "ttlSeconds") == "services.dpsm-api.cache.ttlSeconds"


class TestFeatureNameFromKey:
    def test_extracts_name_from_enabled_key(self):
        key = feature_key(NS, "fileUpload", "enabled")
        assert feature_name_from_key(NS, key) == "fileUpload"

    @pytest.mark.parametrize(
        "key",
        [
            "services.dpsm-api.features.fileUpload.rolloutPercentage",
            "services.dpsm-api.limits.maxUploadSizeMB",
            "services.other-app.features.fileUpload.enabled",
            "services.dpsm-api.features..enabled",
            "services.dpsm-api.features.enabled",
        ],
    )
    def test_ignores_other_shapes(self, key):
        assert feature_name_from_key(NS, key) is None
