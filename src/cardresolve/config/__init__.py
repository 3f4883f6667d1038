"""Application configuration helpers."""

from __future__ import annotations

from .env import env_float, env_int, env_str, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .resolution import ResolutionConfig, get_resolution_config
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_http_cache_path,
    get_storage_config,
)
from .tcgplayer import TcgPlayerConfig, get_tcgplayer_config
from .ygoresources import (
    ArtworkConfig,
    YgoResourcesConfig,
    get_artwork_config,
    get_ygoresources_config,
)
from .yugipedia import YugipediaConfig, get_yugipedia_config

__all__ = [
    "ArtworkConfig",
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "ResolutionConfig",
    "RetryPolicy",
    "StorageConfig",
    "TcgPlayerConfig",
    "YgoResourcesConfig",
    "YugipediaConfig",
    "configure_logging",
    "env_float",
    "env_int",
    "env_str",
    "get_artwork_config",
    "get_database_config",
    "get_http_cache_path",
    "get_resolution_config",
    "get_storage_config",
    "get_tcgplayer_config",
    "get_ygoresources_config",
    "get_yugipedia_config",
    "require_env_vars",
]
