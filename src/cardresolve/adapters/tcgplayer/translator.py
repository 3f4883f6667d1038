"""Translate TCGplayer payloads into price quotes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from cardresolve.domain.model import PriceQuote

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .schema import TcgPrice, TcgProduct


def translate_prices(
    products: Iterable[TcgProduct],
    prices: Iterable[TcgPrice],
) -> tuple[PriceQuote, ...]:
    """One quote per priced (product, printing) pair, in product order."""

    by_product = {product.product_id: product for product in products}
    quotes: list[tuple[int, PriceQuote]] = []
    order = {product_id: position for position, product_id in enumerate(by_product)}
    for price in prices:
        product = by_product.get(price.product_id)
        if product is None:
            continue
        quote = PriceQuote(
            print_code=product.extended("Number"),
            rarity=_rarity(product.extended("Rarity"), price.sub_type_name),
            low=price.low_price,
            mid=price.mid_price,
            high=price.high_price,
            market=price.market_price,
        )
        if quote.has_price:
            quotes.append((order[price.product_id], quote))
    return tuple(quote for _, quote in sorted(quotes, key=lambda item: item[0]))


def _rarity(rarity: str | None, printing: str | None) -> str | None:
    if rarity and printing:
        return f"{rarity} ({printing})"
    return rarity or printing
