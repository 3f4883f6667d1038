from __future__ import annotations

import asyncio
from collections.abc import Callable  # noqa: TC003
from pathlib import Path  # noqa: TC003

import httpx
import pytest

from cardresolve.adapters.http_resilience import ResilientClient
from cardresolve.adapters.ygoresources import YgoArtworkClient, YgoResourcesAPIError
from cardresolve.config import ArtworkConfig, CacheConfig, ResilienceConfig, RetryPolicy
from cardresolve.domain.errors import SourceUnavailableError

BASE_URL = "https://artworks.example.test"

MANIFEST = {
    "cards": {
        "4007": {
            "1": {"bestArt": "/4007_1.png", "highestRes": "/4007_1_hi.png"},
            "2": {"bestArt": "4007_2.png"},
        },
        "5000": {"1": {"idx": 3}},
    }
}


def _config(cache: CacheConfig | None = None) -> ArtworkConfig:
    return ArtworkConfig(
        resilience=ResilienceConfig(
            name="artwork-test",
            base_url=BASE_URL,
            retry=RetryPolicy(total=0),
            cache=cache or CacheConfig(enabled=False),
        )
    )


def _make_client(
    handler: Callable[[httpx.Request], httpx.Response],
    *,
    cache: CacheConfig | None = None,
) -> YgoArtworkClient:
    def factory(resilience: ResilienceConfig) -> ResilientClient:
        return ResilientClient(resilience, transport=httpx.MockTransport(handler))

    return YgoArtworkClient(config=_config(cache), client_factory=factory)


def _is_manifest(payload: object) -> bool:
    return isinstance(payload, dict) and "cards" in payload


def test_fetch_artwork_numbers_arts_and_joins_urls() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=MANIFEST)

    client = _make_client(handler)

    artwork = asyncio.run(client.fetch_artwork([4007, 5000, 9999]))

    assert requests[0].url == httpx.URL(f"{BASE_URL}/manifest.json")
    assert artwork == {
        4007: {
            1: f"{BASE_URL}/4007_1.png",
            2: f"{BASE_URL}/4007_2.png",
        }
    }


def test_fetch_artwork_without_ids_skips_the_request() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    assert asyncio.run(_make_client(handler).fetch_artwork([])) == {}


def test_http_failure_is_reported_as_unavailable() -> None:
    client = _make_client(lambda _request: httpx.Response(503))

    with pytest.raises(SourceUnavailableError):
        asyncio.run(client.fetch_artwork([4007]))


def test_non_json_manifest_is_rejected() -> None:
    client = _make_client(lambda _request: httpx.Response(200, text="<html></html>"))

    with pytest.raises(YgoResourcesAPIError):
        asyncio.run(client.fetch_artwork([4007]))


def test_malformed_manifest_is_rejected() -> None:
    client = _make_client(lambda _request: httpx.Response(200, json={"cards": ["4007"]}))

    with pytest.raises(YgoResourcesAPIError):
        asyncio.run(client.fetch_artwork([4007]))


def test_manifest_is_served_from_the_http_cache(tmp_path: Path) -> None:
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(200, json=MANIFEST)

    cache = CacheConfig(
        backend="sqlite",
        sqlite_path=str(tmp_path / "http-cache.sqlite"),
        default_ttl_seconds=60.0,
        should_cache=_is_manifest,
    )
    client = _make_client(handler, cache=cache)

    async def scenario() -> None:
        first = await client.fetch_artwork([4007])
        second = await client.fetch_artwork([4007])
        assert first == second
        await client.aclose()

    asyncio.run(scenario())

    assert calls == ["/manifest.json"]


def test_payload_rejected_by_cache_predicate_is_fetched_again(tmp_path: Path) -> None:
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(200, json={"maintenance": True})

    cache = CacheConfig(
        backend="sqlite",
        sqlite_path=str(tmp_path / "http-cache.sqlite"),
        default_ttl_seconds=60.0,
        should_cache=_is_manifest,
    )
    client = _make_client(handler, cache=cache)

    async def scenario() -> None:
        assert await client.fetch_artwork([4007]) == {}
        assert await client.fetch_artwork([4007]) == {}
        await client.aclose()

    asyncio.run(scenario())

    assert calls == ["/manifest.json", "/manifest.json"]
