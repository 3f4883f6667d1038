"""TCGplayer response schemas."""

from __future__ import annotations

import logging
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

log = logging.getLogger(__name__)


class TcgPlayerBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug(
            "TCGplayer %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class TcgToken(TcgPlayerBaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = 0


class TcgExtendedData(TcgPlayerBaseModel):
    name: str
    value: str | None = None


class TcgProduct(TcgPlayerBaseModel):
    product_id: int = Field(alias="productId")
    name: str
    extended_data: list[TcgExtendedData] = Field(default_factory=list, alias="extendedData")

    def extended(self, name: str) -> str | None:
        for item in self.extended_data:
            if item.name == name:
                return item.value
        return None


class TcgPrice(TcgPlayerBaseModel):
    product_id: int = Field(alias="productId")
    low_price: float | None = Field(default=None, alias="lowPrice")
    mid_price: float | None = Field(default=None, alias="midPrice")
    high_price: float | None = Field(default=None, alias="highPrice")
    market_price: float | None = Field(default=None, alias="marketPrice")
    sub_type_name: str | None = Field(default=None, alias="subTypeName")


class TcgProductResponse(TcgPlayerBaseModel):
    success: bool = True
    errors: list[str] = Field(default_factory=list)
    results: list[TcgProduct] = Field(default_factory=list)


class TcgPriceResponse(TcgPlayerBaseModel):
    success: bool = True
    errors: list[str] = Field(default_factory=list)
    results: list[TcgPrice] = Field(default_factory=list)
