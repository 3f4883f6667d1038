from __future__ import annotations

import asyncio
from collections.abc import Callable  # noqa: TC003

import httpx
import pytest

from cardresolve.adapters.http_resilience import ResilientClient
from cardresolve.adapters.yugipedia import YugipediaAPIError, YugipediaClient
from cardresolve.config import CacheConfig, ResilienceConfig, RetryPolicy, YugipediaConfig
from cardresolve.domain.errors import SourceUnavailableError

API_URL = "https://wiki.example.test/api.php"


def _config() -> YugipediaConfig:
    return YugipediaConfig(
        resilience=ResilienceConfig(
            name="yugipedia-test",
            retry=RetryPolicy(total=0),
            cache=CacheConfig(enabled=False),
        ),
        api_url=API_URL,
        search_results=5,
    )


def _make_client(
    handler: Callable[[httpx.Request], httpx.Response],
) -> YugipediaClient:
    def factory(resilience: ResilienceConfig) -> ResilientClient:
        return ResilientClient(resilience, transport=httpx.MockTransport(handler))

    return YugipediaClient(config=_config(), client_factory=factory)


def test_search_card_queries_titles_and_translates_best_page() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200,
            json={
                "query": {
                    "pages": [
                        {"pageid": 1, "title": "Blue-Eyes White Dragon (anime)"},
                        {
                            "pageid": 2,
                            "title": "Blue-Eyes White Dragon",
                            "revisions": [
                                {
                                    "content": "{{CardTable2\n| database_id = 4007\n"
                                    "| lore = This legendary dragon.\n}}"
                                }
                            ],
                        },
                    ]
                }
            },
        )

    card = asyncio.run(_make_client(handler).search_card("blue-eyes white dragon"))

    assert card is not None
    assert card.card_id == 4007
    assert card.names == {"en": "Blue-Eyes White Dragon"}
    (request,) = requests
    assert request.url.copy_with(query=None) == httpx.URL(API_URL)
    assert request.url.params["gsrsearch"] == "blue-eyes white dragon"
    assert request.url.params["gsrlimit"] == "5"
    assert request.url.params["generator"] == "search"


def test_search_without_results_is_none() -> None:
    client = _make_client(lambda _request: httpx.Response(200, json={"batchcomplete": True}))

    assert asyncio.run(client.search_card("nothing")) is None


def test_server_error_is_unavailable() -> None:
    client = _make_client(lambda _request: httpx.Response(502))

    with pytest.raises(SourceUnavailableError):
        asyncio.run(client.search_card("dark magician"))


def test_non_json_response_is_rejected() -> None:
    client = _make_client(lambda _request: httpx.Response(200, text="<html>maintenance</html>"))

    with pytest.raises(YugipediaAPIError):
        asyncio.run(client.search_card("dark magician"))
