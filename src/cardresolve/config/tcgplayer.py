"""TCGplayer marketplace API configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_float, env_int, env_str, require_env_vars
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_TCGPLAYER_BASE_URL = "https://api.tcgplayer.com"
DEFAULT_TCGPLAYER_API_VERSION = "v1.39.0"
DEFAULT_TCGPLAYER_TIMEOUT_SECONDS = 5.0
YUGIOH_CATEGORY_ID = 2


@dataclass(frozen=True, slots=True)
class TcgPlayerConfig:
    public_key: str
    private_key: str
    resilience: ResilienceConfig
    api_version: str = DEFAULT_TCGPLAYER_API_VERSION
    category_id: int = YUGIOH_CATEGORY_ID


def get_tcgplayer_config() -> TcgPlayerConfig:
    """Build the marketplace config; raises when the API keys are not set."""

    values = require_env_vars(["TCGPLAYER_PUBLIC_KEY", "TCGPLAYER_PRIVATE_KEY"])
    base_url = env_str("TCGPLAYER_BASE_URL", DEFAULT_TCGPLAYER_BASE_URL).rstrip("/")
    timeout = env_float("TCGPLAYER_TIMEOUT", DEFAULT_TCGPLAYER_TIMEOUT_SECONDS, minimum=0.1)

    resilience = ResilienceConfig(
        name="tcgplayer",
        base_url=base_url,
        timeout_seconds=timeout,
        ratelimit=RateLimit(max_calls=6, per_seconds=1.0),
        retry=RetryPolicy(total=1),
        cache=CacheConfig(enabled=False),
        default_headers={"Accept": "application/json"},
    )
    return TcgPlayerConfig(
        public_key=values["TCGPLAYER_PUBLIC_KEY"],
        private_key=values["TCGPLAYER_PRIVATE_KEY"],
        resilience=resilience,
        api_version=env_str("TCGPLAYER_API_VERSION", DEFAULT_TCGPLAYER_API_VERSION),
        category_id=env_int("TCGPLAYER_CATEGORY_ID", YUGIOH_CATEGORY_ID, minimum=1),
    )
