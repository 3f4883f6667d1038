"""YGOResources artwork repository client."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from cardresolve.adapters.http_resilience import ResilientClient
from cardresolve.domain.errors import SourceUnavailableError

from .client import YgoResourcesAPIError
from .schema import YgoArtworkManifest

if TYPE_CHECKING:
    from collections.abc import Callable, Collection

    from cardresolve.config.http_resilience import ResilienceConfig
    from cardresolve.config.ygoresources import ArtworkConfig

log = getLogger(__name__)


class YgoArtworkClient:
    """Reads the artwork manifest and turns each card's best art into absolute URLs.

    The manifest is served through the HTTP cache configured on the resilience
    config, so repeated lookups reuse one download until it expires.
    """

    def __init__(
        self,
        *,
        config: ArtworkConfig,
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

    async def fetch_artwork(self, card_ids: Collection[int]) -> dict[int, dict[int, str]]:
        if not card_ids:
            return {}
        manifest = await self._manifest()
        base_url = httpx.URL(self._resilience.base_url or "")
        artwork: dict[int, dict[int, str]] = {}
        for card_id in card_ids:
            arts = manifest.cards.get(str(card_id))
            if not arts:
                log.debug("No artwork listed for card %s", card_id)
                continue
            locations = {
                art_id: str(base_url.join(entry.best_art))
                for art_id, entry in enumerate(arts.values(), start=1)
                if entry.best_art
            }
            if locations:
                artwork[card_id] = locations
        return artwork

    async def _manifest(self) -> YgoArtworkManifest:
        if self._resilience.base_url is None:
            raise YgoResourcesAPIError("Missing artwork base_url in resilience configuration")
        client = self._ensure_client()
        try:
            response = await client.get(self._config.manifest_path)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise SourceUnavailableError(f"GET {self._config.manifest_path} failed: {exc}") from exc
        try:
            payload = response.json()
        except ValueError as exc:
            raise YgoResourcesAPIError(f"Non-JSON response from {response.url}") from exc
        try:
            return YgoArtworkManifest.model_validate(payload)
        except ValidationError as exc:
            raise YgoResourcesAPIError("Malformed artwork manifest") from exc

    def _ensure_client(self) -> ResilientClient:
        if self._client is None:
            self._client = self._client_factory(self._resilience)
        return self._client
