"""YGOResources card database and artwork repository configuration values."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .env import env_float, env_str
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .storage import get_http_cache_path

if TYPE_CHECKING:
    from .storage import StorageConfig

DEFAULT_YGORESOURCES_BASE_URL = "https://db.ygoresources.com"
DEFAULT_ARTWORK_BASE_URL = "https://artworks.ygoresources.com"
DEFAULT_API_TIMEOUT_SECONDS = 3.0
ARTWORK_MANIFEST_TTL_SECONDS = 24 * 60 * 60
REVISION_HEADER = "x-cache-revision"


@dataclass(frozen=True, slots=True)
class YgoResourcesConfig:
    resilience: ResilienceConfig
    name_index_path: str = "/data/idx/card/name"
    card_data_path: str = "/data/card"
    qa_data_path: str = "/data/qa"
    manifest_path: str = "/manifest"
    revision_header: str = REVISION_HEADER


@dataclass(frozen=True, slots=True)
class ArtworkConfig:
    resilience: ResilienceConfig
    manifest_path: str = "/manifest.json"


def get_ygoresources_config() -> YgoResourcesConfig:
    base_url = env_str("YGORESOURCES_BASE_URL", DEFAULT_YGORESOURCES_BASE_URL).rstrip("/")
    timeout = env_float("CARDRESOLVE_API_TIMEOUT", DEFAULT_API_TIMEOUT_SECONDS, minimum=0.1)

    # Manifest revisions ride on response headers, so responses must not come from a cache.
    resilience = ResilienceConfig(
        name="ygoresources",
        base_url=base_url,
        timeout_seconds=timeout,
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        retry=RetryPolicy(total=1),
        cache=CacheConfig(enabled=False),
        default_headers={"Accept": "application/json"},
    )
    return YgoResourcesConfig(resilience=resilience)


def _is_artwork_manifest(payload: object) -> bool:
    return isinstance(payload, dict) and isinstance(payload.get("cards"), dict)


def get_artwork_config(*, storage: StorageConfig | None = None) -> ArtworkConfig:
    base_url = env_str("YGORESOURCES_ARTWORK_URL", DEFAULT_ARTWORK_BASE_URL).rstrip("/")
    timeout = env_float("CARDRESOLVE_API_TIMEOUT", DEFAULT_API_TIMEOUT_SECONDS, minimum=0.1)
    cache_path = get_http_cache_path(storage=storage)

    # The manifest is large and changes rarely; keep it for a day across runs.
    resilience = ResilienceConfig(
        name="ygoresources-artwork",
        base_url=base_url,
        timeout_seconds=timeout,
        retry=RetryPolicy(total=1),
        cache=CacheConfig(
            backend="sqlite",
            sqlite_path=str(cache_path),
            default_ttl_seconds=ARTWORK_MANIFEST_TTL_SECONDS,
            should_cache=_is_artwork_manifest,
        ),
        default_headers={"Accept": "application/json"},
    )
    return ArtworkConfig(resilience=resilience)
