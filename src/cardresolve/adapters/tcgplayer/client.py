"""TCGplayer marketplace client."""

from __future__ import annotations

import asyncio
import time
from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError

from cardresolve.adapters.http_resilience import ResilientClient
from cardresolve.domain.errors import MalformedPayloadError, SourceUnavailableError
from cardresolve.domain.model import PriceRegion, normalize_term

from .schema import TcgPriceResponse, TcgProduct, TcgProductResponse, TcgToken
from .translator import translate_prices

if TYPE_CHECKING:
    from collections.abc import Callable

    from cardresolve.adapters.http_resilience import RequestOptions
    from cardresolve.config.http_resilience import ResilienceConfig
    from cardresolve.config.tcgplayer import TcgPlayerConfig
    from cardresolve.domain.model import PriceQuote

log = getLogger(__name__)

TOKEN_RENEW_MARGIN_SECONDS = 60.0
PRODUCT_PAGE_SIZE = 100


class TcgPlayerAPIError(MalformedPayloadError):
    """Raised when the TCGplayer API returns an unexpected response."""


class TcgPlayerClient:
    """Quotes US market prices for a card by its English name.

    A bearer token is requested with the configured key pair on first use and
    renewed shortly before it expires.
    """

    region = PriceRegion.US

    def __init__(
        self,
        *,
        config: TcgPlayerConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        self._client: ResilientClient | None = None
        self._clock = clock
        self._token: str | None = None
        self._token_expires_at = 0.0
        self._token_lock = asyncio.Lock()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_prices(self, name: str) -> tuple[PriceQuote, ...]:
        products = await self._products(name)
        if not products:
            log.debug("No TCGplayer products named %r", name)
            return ()
        ids = ",".join(str(product.product_id) for product in products)
        response = await self._request("GET", f"/{self._config.api_version}/pricing/product/{ids}")
        try:
            prices = TcgPriceResponse.model_validate(self._json(response))
        except ValidationError as exc:
            raise TcgPlayerAPIError(f"Invalid pricing payload for {name!r}") from exc
        return translate_prices(products, prices.results)

    async def _products(self, name: str) -> list[TcgProduct]:
        response = await self._request(
            "GET",
            f"/{self._config.api_version}/catalog/products",
            params={
                "categoryId": self._config.category_id,
                "productName": name,
                "getExtendedFields": "true",
                "limit": PRODUCT_PAGE_SIZE,
            },
            missing_ok=True,
        )
        if response.status_code == httpx.codes.NOT_FOUND:
            return []
        try:
            payload = TcgProductResponse.model_validate(self._json(response))
        except ValidationError as exc:
            raise TcgPlayerAPIError(f"Invalid product payload for {name!r}") from exc
        wanted = normalize_term(name)
        return [product for product in payload.results if normalize_term(product.name) == wanted]

    async def _bearer_token(self) -> str:
        async with self._token_lock:
            if self._token is not None and self._clock() < self._token_expires_at:
                return self._token
            client = self._ensure_client()
            try:
                response = await client.post(
                    "/token",
                    data={
                        "grant_type": "client_credentials",
                        "client_id": self._config.public_key,
                        "client_secret": self._config.private_key,
                    },
                )
                response.raise_for_status()
            except httpx.HTTPError as exc:
                raise SourceUnavailableError(f"TCGplayer token request failed: {exc}") from exc
            try:
                token = TcgToken.model_validate(self._json(response))
            except ValidationError as exc:
                raise TcgPlayerAPIError("Invalid token payload") from exc
            self._token = token.access_token
            self._token_expires_at = (
                self._clock() + token.expires_in - TOKEN_RENEW_MARGIN_SECONDS
            )
            log.debug("Obtained TCGplayer token valid for %ss", token.expires_in)
            return self._token

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        missing_ok: bool = False,
    ) -> httpx.Response:
        if self._resilience.base_url is None:
            raise TcgPlayerAPIError("Missing TCGplayer base_url in resilience configuration")
        token = await self._bearer_token()
        options: RequestOptions = {"headers": {"Authorization": f"bearer {token}"}}
        if params is not None:
            options["params"] = params
        client = self._ensure_client()
        try:
            response = await client.request(method, path, **options)
            if response.status_code == httpx.codes.UNAUTHORIZED:
                self._token = None
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
            raise TcgPlayerAPIError(f"Non-JSON response from {response.url}") from exc
