"""
Global pytest configuration and fixtures for Rollgate tests.
"""

import os
import sys
from collections.abc import Iterator
from typing import Any

import pytest

# Keep tests independent of any developer .env or exported settings
for _name in [name for name in os.environ if name.startswith("ROLLGATE_")]:
    del os.environ[_name]
os.environ["ROLLGATE_ENVIRONMENT"] = "test"

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from rollgate.appconfig.provider import SnapshotConfigProvider, reset_config_provider  # noqa: E402
from rollgate.appconfig.sources import StaticConfigSource  # noqa: E402
from rollgate.feature_flags.service import FeatureFlagService  # noqa: E402
from rollgate.settings import reset_settings  # noqa: E402

APP = "dpsm-api"
PREFIX = f"services.{APP}"


def sample_config() -> dict[str, Any]:
    """Configuration shaped like the deployed store, nested as a JSON document would be."""
    return {
        "services": {
            APP: {
                "features": {
                    "advancedSearch": {"enabled": True, "rolloutPercentage": 30},
                    "fileUpload": {"enabled": True},
                    "exportData": {"enabled": False, "rolloutPercentage": 100},
                },
                "limits": {
                    "maxRequestsPerMinute": 500,
                    "maxUploadSizeMB": 25,
                },
                "cache": {
                    "enabled": False,
                    "ttlSeconds": 60,
                },
            }
        }
    }


@pytest.fixture(autouse=True)
def _reset_singletons() -> Iterator[None]:
    """Forget cached settings and the global provider around each test."""
    reset_settings()
    reset_config_provider()
    yield
    reset_config_provider()
    reset_settings()


@pytest.fixture
def config_data() -> dict[str, Any]:
    return sample_config()


@pytest.fixture
def static_source(config_data: dict[str, Any]) -> StaticConfigSource:
    return StaticConfigSource(config_data)


@pytest.fixture
def provider(static_source: StaticConfigSource) -> Iterator[SnapshotConfigProvider]:
    provider = SnapshotConfigProvider(static_source, refresh_interval_seconds=60)
    yield provider
    provider.stop_polling()


@pytest.fixture
def service(provider: SnapshotConfigProvider) -> FeatureFlagService:
    return FeatureFlagService(provider, app_name=APP)


@pytest.fixture
def make_service():
    """Build a service over an arbitrary flat or nested mapping."""

    def _make(data: dict[str, Any] | None = None) -> FeatureFlagService:
        return FeatureFlagService(SnapshotConfigProvider(StaticConfigSource(data)), app_name=APP)

    return _make
