"""Resolution engine tuning values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_float, env_int, env_str

DEFAULT_SEARCH_LIMIT = 15
DEFAULT_SEARCH_WINDOW_SECONDS = 60.0
DEFAULT_MIN_MATCH_SCORE = 0.5
DEFAULT_MANIFEST_INTERVAL_SECONDS = 3600.0
DEFAULT_STAGE_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True, slots=True)
class ResolutionConfig:
    search_limit: int = DEFAULT_SEARCH_LIMIT
    search_window_seconds: float = DEFAULT_SEARCH_WINDOW_SECONDS
    min_match_score: float = DEFAULT_MIN_MATCH_SCORE
    manifest_interval_seconds: float = DEFAULT_MANIFEST_INTERVAL_SECONDS
    stage_timeout_seconds: float = DEFAULT_STAGE_TIMEOUT_SECONDS
    default_locale: str = "en"


def get_resolution_config() -> ResolutionConfig:
    return ResolutionConfig(
        search_limit=env_int("CARDRESOLVE_SEARCH_LIMIT", DEFAULT_SEARCH_LIMIT, minimum=1),
        search_window_seconds=env_float(
            "CARDRESOLVE_SEARCH_WINDOW", DEFAULT_SEARCH_WINDOW_SECONDS, minimum=0.0
        ),
        min_match_score=env_float(
            "CARDRESOLVE_MIN_MATCH_SCORE", DEFAULT_MIN_MATCH_SCORE, minimum=0.0
        ),
        manifest_interval_seconds=env_float(
            "CARDRESOLVE_MANIFEST_INTERVAL", DEFAULT_MANIFEST_INTERVAL_SECONDS, minimum=1.0
        ),
        stage_timeout_seconds=env_float(
            "CARDRESOLVE_STAGE_TIMEOUT", DEFAULT_STAGE_TIMEOUT_SECONDS, minimum=0.1
        ),
        default_locale=env_str("CARDRESOLVE_DEFAULT_LOCALE", "en").lower(),
    )
