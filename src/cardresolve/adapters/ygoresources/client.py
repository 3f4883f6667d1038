"""YGOResources card database client."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError

from cardresolve.adapters.http_resilience import ResilientClient
from cardresolve.domain.errors import MalformedPayloadError, SourceUnavailableError
from cardresolve.domain.ports.remote import FetchedCard, FetchedNameIndex, FetchedRuling

from .schema import NAME_INDEX_ADAPTER, YgoCardResponse, YgoManifestResponse, YgoQaResponse
from .translator import translate_card, translate_changes, translate_name_index, translate_ruling

if TYPE_CHECKING:
    from collections.abc import Callable

    from cardresolve.config.http_resilience import ResilienceConfig
    from cardresolve.config.ygoresources import YgoResourcesConfig
    from cardresolve.domain.model import ChangeDescriptor

log = getLogger(__name__)


class YgoResourcesAPIError(MalformedPayloadError):
    """Raised when the YGOResources API returns an unexpected response."""


class YgoResourcesClient:
    """Async client for the name index, card data, Q&A and manifest endpoints.

    Every response carries the upstream revision in a header; the client passes
    it along with the data so the manifest tracker can react to it.
    """

    def __init__(
        self,
        *,
        config: YgoResourcesConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        self._client: ResilientClient | None = None

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_name_index(self, locale: str) -> FetchedNameIndex:
        response = await self._get(f"{self._config.name_index_path}/{locale}")
        payload = self._json(response)
        try:
            raw = NAME_INDEX_ADAPTER.validate_python(payload)
        except ValidationError as exc:
            raise YgoResourcesAPIError(f"Unexpected {locale} name index payload") from exc
        return FetchedNameIndex(
            locale=locale,
            entries=translate_name_index(raw),
            revision=self._revision(response),
        )

    async def fetch_card(self, card_id: int) -> FetchedCard:
        response = await self._get(f"{self._config.card_data_path}/{card_id}", missing_ok=True)
        revision = self._revision(response)
        if response.status_code == httpx.codes.NOT_FOUND:
            return FetchedCard(card=None, revision=revision)
        payload = self._json(response)
        if not isinstance(payload, dict):
            raise YgoResourcesAPIError(f"Unexpected payload for card {card_id}")
        try:
            record = YgoCardResponse.model_validate(payload)
        except ValidationError as exc:
            raise YgoResourcesAPIError(f"Invalid card record for {card_id}") from exc
        return FetchedCard(card=translate_card(record), revision=revision)

    async def fetch_ruling(self, qa_id: int) -> FetchedRuling:
        response = await self._get(f"{self._config.qa_data_path}/{qa_id}", missing_ok=True)
        revision = self._revision(response)
        if response.status_code == httpx.codes.NOT_FOUND:
            return FetchedRuling(ruling=None, revision=revision)
        payload = self._json(response)
        if not isinstance(payload, dict):
            raise YgoResourcesAPIError(f"Unexpected payload for Q&A {qa_id}")
        try:
            record = YgoQaResponse.model_validate(payload)
        except ValidationError as exc:
            raise YgoResourcesAPIError(f"Invalid Q&A record for {qa_id}") from exc
        return FetchedRuling(ruling=translate_ruling(qa_id, record), revision=revision)

    async def fetch_revision(self) -> int:
        response = await self._request("HEAD", f"{self._config.name_index_path}/en")
        revision = self._revision(response)
        if revision is None:
            raise YgoResourcesAPIError("Response did not include a revision header")
        return revision

    async def fetch_changes(self, since: int) -> ChangeDescriptor:
        response = await self._get(f"{self._config.manifest_path}/{since}")
        payload = self._json(response)
        if not isinstance(payload, dict):
            raise YgoResourcesAPIError("Unexpected manifest payload")
        if "data" not in payload:
            payload = {"data": payload}
        try:
            manifest = YgoManifestResponse.model_validate(payload)
        except ValidationError as exc:
            raise YgoResourcesAPIError(f"Malformed manifest since revision {since}") from exc
        revision = self._revision(response)
        if revision is None:
            revision = since
        return translate_changes(manifest.data, revision=revision)

    async def _get(self, path: str, *, missing_ok: bool = False) -> httpx.Response:
        return await self._request("GET", path, missing_ok=missing_ok)

    async def _request(self, method: str, path: str, *, missing_ok: bool = False) -> httpx.Response:
        if self._resilience.base_url is None:
            raise YgoResourcesAPIError("Missing YGOResources base_url in resilience configuration")
        client = self._ensure_client()
        try:
            response = await client.request(method, path)
            if not (missing_ok and response.status_code == httpx.codes.NOT_FOUND):
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise SourceUnavailableError(f"{method} {path} failed: {exc}") from exc
        return response

    def _ensure_client(self) -> ResilientClient:
        if self._client is None:
            self._client = self._client_factory(self._resilience)
        return self._client

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise YgoResourcesAPIError(f"Non-JSON response from {response.url}") from exc

    def _revision(self, response: httpx.Response) -> int | None:
        raw = response.headers.get(self._config.revision_header)
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            log.warning("Ignoring non-numeric revision header %r", raw)
            return None
