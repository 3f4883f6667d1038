"""Yugipedia MediaWiki API client."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from cardresolve.adapters.http_resilience import ResilientClient
from cardresolve.domain.errors import MalformedPayloadError, SourceUnavailableError

from .schema import YugipediaQueryResponse
from .translator import select_page, translate_page

if TYPE_CHECKING:
    from collections.abc import Callable

    from cardresolve.config.http_resilience import ResilienceConfig
    from cardresolve.config.yugipedia import YugipediaConfig
    from cardresolve.domain.model import Card

log = getLogger(__name__)

QUERY_PARAMS: dict[str, str | int] = {
    "action": "query",
    "format": "json",
    "formatversion": 2,
    "redirects": "true",
    "prop": "revisions|categories|pageimages",
    "rvprop": "content",
    "cllimit": 50,
    "piprop": "original",
    "generator": "search",
    "gsrwhat": "title",
}


class YugipediaAPIError(MalformedPayloadError):
    """Raised when the Yugipedia API returns an unexpected response."""


class YugipediaClient:
    """Title search over card pages, returning the best page as a card."""

    def __init__(
        self,
        *,
        config: YugipediaConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._client_factory = client_factory or ResilientClient
        self._client: ResilientClient | None = None

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def search_card(self, term: str) -> Card | None:
        params = {**QUERY_PARAMS, "gsrlimit": self._config.search_results, "gsrsearch": term}
        client = self._ensure_client()
        try:
            response = await client.get(self._config.api_url, params=params)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise SourceUnavailableError(f"Yugipedia search for {term!r} failed: {exc}") from exc
        try:
            payload = YugipediaQueryResponse.model_validate(response.json())
        except ValueError as exc:
            raise YugipediaAPIError(f"Unexpected Yugipedia payload for {term!r}") from exc

        pages = payload.query.pages if payload.query is not None else []
        page = select_page(pages, term)
        if page is None:
            log.info("Yugipedia has no page for %r", term)
            return None
        log.debug("Yugipedia page %r chosen for %r", page.title, term)
        return translate_page(page)

    def _ensure_client(self) -> ResilientClient:
        if self._client is None:
            self._client = self._client_factory(self._config.resilience)
        return self._client
