"""Which card fields satisfy each result category."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Final

from .enums import Category, PriceRegion

if TYPE_CHECKING:
    from .card import Card
    from .ruling import Ruling

type RequirementCheck = Callable[["Card", str], bool]


def _has_text(card: Card, locale: str) -> bool:
    return card.has_text_in(locale)


def _has_name(card: Card, locale: str) -> bool:
    return bool(card.names.get(locale))


def _has_rulings(card: Card, locale: str) -> bool:
    return card.has_text_in(locale) and bool(card.faq.get(locale))


def _has_image(card: Card, _locale: str) -> bool:
    return bool(card.images)


def _has_prints(card: Card, locale: str) -> bool:
    return bool(card.prints.get(locale))


def _has_faq(card: Card, locale: str) -> bool:
    return bool(card.faq.get(locale))


def _has_prices_in(region: PriceRegion) -> RequirementCheck:
    def check(card: Card, _locale: str) -> bool:
        quotes = card.prices.get(region, ())
        return any(quote.has_price for quote in quotes)

    return check


REQUIRED_FIELDS: Final[dict[Category, RequirementCheck]] = {
    Category.INFO: _has_text,
    Category.RULING: _has_rulings,
    Category.ART: _has_image,
    Category.DATE: _has_prints,
    Category.PRICE_US: _has_prices_in(PriceRegion.US),
    Category.PRICE_EU: _has_prices_in(PriceRegion.EU),
    Category.FAQ: _has_faq,
    Category.PEDIA: _has_name,
}

PRICE_CATEGORIES: Final[dict[PriceRegion, Category]] = {
    PriceRegion.US: Category.PRICE_US,
    PriceRegion.EU: Category.PRICE_EU,
}


def is_satisfied(
    card: Card | None,
    locale: str,
    category: Category,
    *,
    ruling: Ruling | None = None,
) -> bool:
    """Return whether the resolved data carries what ``category`` needs in ``locale``.

    Q&A requirements are met by ``ruling``; every other category by ``card``.
    """

    if category is Category.QA:
        return ruling is not None and ruling.has_text_in(locale)
    if card is None:
        return False
    return REQUIRED_FIELDS[category](card, locale)
