"""
Configuration sources.

Each source loads the full key/value set in one call. Sources raise
ConfigurationSourceError on any failure so the provider can keep its last
good snapshot.
"""

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import httpx
import redis
import structlog
from tenacity import RetryError, Retrying, retry_if_exception, stop_after_attempt, wait_exponential

from rollgate.appconfig.interfaces import ConfigSource
from rollgate.exceptions import ConfigurationSourceError
from rollgate.settings import Settings, SourceType

logger = structlog.get_logger(__name__)


def _is_transient(error: BaseException) -> bool:
    """Connection problems and 5xx responses are worth retrying; 4xx are not."""
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code >= 500
    return isinstance(error, httpx.TransportError)


def _require_object(data: Any, origin: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ConfigurationSourceError(
            f"{origin} must contain a JSON object, got {type(data).__name__}"
        )
    return data


class StaticConfigSource(ConfigSource):
    """In-memory mapping, mostly for tests and local development."""

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(data or {})

    def update(self, data: Mapping[str, Any]) -> None:
        """Replace the data returned by the next load."""
        self._data = dict(data)

    def load(self) -> Mapping[str, Any]:
        return dict(self._data)

    def describe(self) -> str:
        return "static"


class JsonFileConfigSource(ConfigSource):
    """JSON document on the local filesystem."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> Mapping[str, Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationSourceError(f"Cannot read {self.path}: {e}") from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigurationSourceError(f"Invalid JSON in {self.path}: {e}") from e

        return _require_object(data, str(self.path))

    def describe(self) -> str:
        return f"file:{self.path}"


class RedisHashConfigSource(ConfigSource):
    """Flat dotted keys stored as fields of a single Redis hash.

    Field values are JSON-decoded when possible, so ``true`` and ``25`` come
    back as a bool and an int; anything else stays a string.
    """

    def __init__(self, client: redis.Redis, hash_key: str = "rollgate:config") -> None:
        self._client = client
        self.hash_key = hash_key

    @classmethod
    def from_url(cls, url: str, hash_key: str = "rollgate:config") -> "RedisHashConfigSource":
        return cls(redis.Redis.from_url(url), hash_key=hash_key)

    @staticmethod
    def _decode(value: Any) -> Any:
        if isinstance(value, (bytes, bytearray)):
            value = value.decode("utf-8")
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                return value
        return value

    def load(self) -> Mapping[str, Any]:
        try:
            fields = self._client.hgetall(self.hash_key)
        except redis.RedisError as e:
            raise ConfigurationSourceError(f"Redis load failed for {self.hash_key}: {e}") from e

        result: dict[str, Any] = {}
        for name, value in fields.items():
            if isinstance(name, (bytes, bytearray)):
                name = name.decode("utf-8")
            result[name] = self._decode(value)
        return result

    def describe(self) -> str:
        return f"redis:{self.hash_key}"


class HttpConfigSource(ConfigSource):
    """JSON object served over HTTP, fetched with retry."""

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        headers: Mapping[str, str] | None = None,
        client: httpx.Client | None = None,
        max_attempts: int = 3,
        backoff_multiplier: float = 0.5,
    ) -> None:
        self.url = url
        self._headers = dict(headers or {})
        self._client = client or httpx.Client(timeout=timeout)
        self._max_attempts = max_attempts
        self._backoff_multiplier = backoff_multiplier

    def _fetch(self) -> httpx.Response:
        logger.debug("Fetching configuration", url=self.url)
        response = self._client.get(self.url, headers=self._headers)
        response.raise_for_status()
        return response

    def load(self) -> Mapping[str, Any]:
        retryer = Retrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=self._backoff_multiplier, max=10),
            retry=retry_if_exception(_is_transient),
            reraise=True,
        )
        try:
            response = retryer(self._fetch)
        except (httpx.HTTPError, RetryError) as e:
            raise ConfigurationSourceError(f"HTTP load failed for {self.url}: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise ConfigurationSourceError(f"Invalid JSON from {self.url}: {e}") from e

        return _require_object(data, self.url)

    def close(self) -> None:
        self._client.close()

    def describe(self) -> str:
        return f"http:{self.url}"


def build_source(settings: Settings, static_data: Mapping[str, Any] | None = None) -> ConfigSource:
    """Create the source selected by ``settings.provider.source``."""
    provider = settings.provider

    if provider.source == SourceType.FILE:
        if not provider.file_path:
            raise ConfigurationSourceError("provider.file_path is required for the file source")
        return JsonFileConfigSource(provider.file_path)

    if provider.source == SourceType.REDIS:
        return RedisHashConfigSource.from_url(provider.redis_url, hash_key=provider.redis_hash_key)

    if provider.source == SourceType.HTTP:
        if not provider.http_url:
            raise ConfigurationSourceError("provider.http_url is required for the http source")
        return HttpConfigSource(provider.http_url, timeout=provider.http_timeout_seconds)

    return StaticConfigSource(static_data)
