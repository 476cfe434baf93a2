"""Tests for configuration snapshots."""

from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest

from rollgate.appconfig.snapshot import ConfigSnapshot, compute_checksum, flatten_config

pytestmark = pytest.mark.unit


class TestFlattenConfig:
    def test_nested_mappings_become_dotted_keys(self):
        data = {"services": {"api": {"limits": {"maxUploadSizeMB": 25}, "cache": {"enabled": True}}}}
        assert flatten_config(data) == {
            "services.api.limits.maxUploadSizeMB": 25,
            "services.api.cache.enabled": True,
        }

    def test_flat_keys_pass_through(self):
        data = {"services.api.features.x.enabled": "true"}
        assert flatten_config(data) == data

    def test_mixed_flat_and_nested(self):
        data = {"services.api": {"features": {"x": {"enabled": False}}}}
        assert flatten_config(data) == {"services.api.features.x.enabled": False}

    def test_lists_and_empty_mappings_are_leaf_values(self):
        data = {"a": {"list": [1, 2], "empty": {}}}
        assert flatten_config(data) == {"a.list": [1, 2], "a.empty": {}}

    def test_colliding_keys_last_wins_with_warning(self):
        data = {"a.b": 1, "a": {"b": 2}}
        with patch("rollgate.appconfig.snapshot.logger") as logger:
            assert flatten_config(data) == {"a.b": 2}
        logger.warning.assert_called_once()
        assert logger.warning.call_args.kwargs["key"] == "a.b"

    def test_distinct_keys_do_not_warn(self):
        with patch("rollgate.appconfig.snapshot.logger") as logger:
            flatten_config({"a.b": 1, "a": {"c": 2}})
        logger.warning.assert_not_called()


class TestConfigSnapshot:
    def test_build_flattens_and_versions(self):
        snapshot = ConfigSnapshot.build({"a": {"b": 1}}, generation=3, source="static")
        assert snapshot.get("a.b") == 1
        assert snapshot.version == "3"
        assert snapshot.generation == 3
        assert snapshot.source == "static"
        assert "a.b" in snapshot
        assert len(snapshot) == 1

    def test_values_are_read_only(self):
        snapshot = ConfigSnapshot.build({"a": 1}, generation=1)
        with pytest.raises(TypeError):
            snapshot.values["a"] = 2  # type: ignore[index]

    def test_isolated_from_caller_mutation(self):
        data = {"a": 1}
        snapshot = ConfigSnapshot(values=data, generation=1, refreshed_at=datetime.now(UTC))
        data["a"] = 2
        data["b"] = 3
        assert snapshot.get("a") == 1
        assert "b" not in snapshot

    def test_fields_cannot_be_reassigned(self):
        snapshot = ConfigSnapshot.build({"a": 1}, generation=1)
        with pytest.raises(AttributeError):
            snapshot.generation = 2  # type: ignore[misc]

    def test_checksum_tracks_content(self):
        one = ConfigSnapshot.build({"a": 1}, generation=1)
        same = ConfigSnapshot.build({"a": 1}, generation=2)
        other = ConfigSnapshot.build({"a": 2}, generation=3)
        assert one.checksum == same.checksum == compute_checksum({"a": 1})
        assert one.checksum != other.checksum

    def test_empty_snapshot(self):
        snapshot = ConfigSnapshot.empty(source="static")
        assert snapshot.generation == 0
        assert snapshot.version == "0"
        assert len(snapshot) == 0

    def test_age_seconds(self):
        loaded = datetime(2026, 1, 1, tzinfo=UTC)
        snapshot = ConfigSnapshot.build({}, generation=1, refreshed_at=loaded)
        assert snapshot.age_seconds(now=loaded + timedelta(seconds=90)) == 90
