from __future__ import annotations

import asyncio
from collections.abc import Callable  # noqa: TC003

import httpx
import pytest

from cardresolve.adapters.http_resilience import ResilientClient
from cardresolve.adapters.ygoresources import YgoResourcesAPIError, YgoResourcesClient
from cardresolve.config import CacheConfig, ResilienceConfig, RetryPolicy, YgoResourcesConfig
from cardresolve.domain.errors import SourceUnavailableError

BASE_URL = "https://db.example.test"


def _config() -> YgoResourcesConfig:
    return YgoResourcesConfig(
        resilience=ResilienceConfig(
            name="ygoresources-test",
            base_url=BASE_URL,
            retry=RetryPolicy(total=0),
            cache=CacheConfig(enabled=False),
        )
    )


def _make_client(
    handler: Callable[[httpx.Request], httpx.Response],
) -> YgoResourcesClient:
    def factory(resilience: ResilienceConfig) -> ResilientClient:
        return ResilientClient(resilience, transport=httpx.MockTransport(handler))

    return YgoResourcesClient(config=_config(), client_factory=factory)


def test_fetch_name_index_reads_revision_header() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200,
            json={"Dark Magician": 4007, "Dark Magician Girl": [5111, 5112]},
            headers={"x-cache-revision": "42"},
        )

    client = _make_client(handler)

    fetched = asyncio.run(client.fetch_name_index("en"))

    assert requests[0].url == httpx.URL(f"{BASE_URL}/data/idx/card/name/en")
    assert fetched.locale == "en"
    assert fetched.revision == 42
    assert fetched.entries == {"dark magician": (4007,), "dark magician girl": (5111, 5112)}


def test_fetch_card_translates_record() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/data/card/4007"
        return httpx.Response(
            200,
            json={
                "cardId": 4007,
                "cardData": {"en": {"name": "Dark Magician", "effectText": "Wizard."}},
            },
            headers={"x-cache-revision": "7"},
        )

    client = _make_client(handler)

    fetched = asyncio.run(client.fetch_card(4007))

    assert fetched.revision == 7
    assert fetched.card is not None
    assert fetched.card.names == {"en": "Dark Magician"}


def test_fetch_card_missing_returns_none() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, headers={"x-cache-revision": "7"})

    client = _make_client(handler)

    fetched = asyncio.run(client.fetch_card(1))

    assert fetched.card is None
    assert fetched.revision == 7


def test_server_error_becomes_source_unavailable() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    client = _make_client(handler)

    with pytest.raises(SourceUnavailableError):
        asyncio.run(client.fetch_card(1))


def test_transport_error_becomes_source_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = _make_client(handler)

    with pytest.raises(SourceUnavailableError):
        asyncio.run(client.fetch_name_index("en"))


def test_invalid_card_payload_is_rejected() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=["not", "a", "card"])

    client = _make_client(handler)

    with pytest.raises(YgoResourcesAPIError):
        asyncio.run(client.fetch_card(1))


def test_fetch_revision_uses_head_request() -> None:
    methods: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        methods.append(request.method)
        return httpx.Response(200, headers={"x-cache-revision": "99"})

    client = _make_client(handler)

    assert asyncio.run(client.fetch_revision()) == 99
    assert methods == ["HEAD"]


def test_fetch_revision_without_header_fails() -> None:
    client = _make_client(lambda _request: httpx.Response(200))

    with pytest.raises(YgoResourcesAPIError):
        asyncio.run(client.fetch_revision())


def test_fetch_changes_parses_manifest() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/manifest/41"
        return httpx.Response(
            200,
            json={"data": {"entity": ["89631139"], "idx": {"name": {"fr": 1}}}},
            headers={"x-cache-revision": "42"},
        )

    client = _make_client(handler)

    changes = asyncio.run(client.fetch_changes(41))

    assert changes.revision == 42
    assert changes.entity_ids == frozenset({89631139})
    assert changes.name_index_locales == frozenset({"fr"})


def test_malformed_manifest_is_rejected() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": {"entity": "oops"}})

    client = _make_client(handler)

    with pytest.raises(YgoResourcesAPIError):
        asyncio.run(client.fetch_changes(41))


def test_fetch_ruling_translates_record() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/data/qa/123"
        return httpx.Response(
            200,
            json={
                "qaData": {
                    "en": {"title": "Targeting", "question": "Target?", "answer": "Yes."}
                },
                "cards": [4007],
            },
            headers={"x-cache-revision": "42"},
        )

    fetched = asyncio.run(_make_client(handler).fetch_ruling(123))

    assert fetched.revision == 42
    assert fetched.ruling is not None
    assert fetched.ruling.title_in("ja") == "Targeting"
    assert fetched.ruling.card_ids == (4007,)


def test_missing_ruling_is_none() -> None:
    client = _make_client(
        lambda _request: httpx.Response(404, headers={"x-cache-revision": "42"})
    )

    fetched = asyncio.run(client.fetch_ruling(999))

    assert fetched.ruling is None
    assert fetched.revision == 42


def test_malformed_ruling_is_rejected() -> None:
    client = _make_client(lambda _request: httpx.Response(200, json={"qaData": []}))

    with pytest.raises(YgoResourcesAPIError):
        asyncio.run(client.fetch_ruling(123))
