"""Yugipedia MediaWiki API configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_float, env_int, env_str
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_YUGIPEDIA_API_URL = "https://yugipedia.com/api.php"
DEFAULT_YUGIPEDIA_TIMEOUT_SECONDS = 5.0
DEFAULT_SEARCH_RESULTS = 10
USER_AGENT = "cardresolve"


@dataclass(frozen=True, slots=True)
class YugipediaConfig:
    resilience: ResilienceConfig
    api_url: str = DEFAULT_YUGIPEDIA_API_URL
    search_results: int = DEFAULT_SEARCH_RESULTS


def get_yugipedia_config() -> YugipediaConfig:
    api_url = env_str("YUGIPEDIA_API_URL", DEFAULT_YUGIPEDIA_API_URL)
    timeout = env_float("YUGIPEDIA_TIMEOUT", DEFAULT_YUGIPEDIA_TIMEOUT_SECONDS, minimum=0.1)
    resilience = ResilienceConfig(
        name="yugipedia",
        timeout_seconds=timeout,
        ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
        retry=RetryPolicy(total=1),
        cache=CacheConfig(enabled=False),
        default_headers={"Accept": "application/json", "User-Agent": USER_AGENT},
    )
    return YugipediaConfig(
        resilience=resilience,
        api_url=api_url,
        search_results=env_int("YUGIPEDIA_SEARCH_RESULTS", DEFAULT_SEARCH_RESULTS, minimum=1),
    )
