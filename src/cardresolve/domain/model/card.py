"""Card entity and its nested value objects."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import TYPE_CHECKING

from .enums import Locale

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .enums import PriceRegion


@dataclass(frozen=True, slots=True)
class FaqBlock:
    """FAQ lines attached to one effect of a card, ordered by ``index``."""

    index: str
    lines: tuple[str, ...] = ()

    @property
    def sort_key(self) -> float:
        try:
            return float(self.index)
        except ValueError:
            return float("inf")


@dataclass(frozen=True, slots=True, kw_only=True)
class PriceQuote:
    print_code: str | None = None
    rarity: str | None = None
    low: float | None = None
    mid: float | None = None
    high: float | None = None
    market: float | None = None

    @property
    def has_price(self) -> bool:
        return any(value is not None for value in (self.low, self.mid, self.high, self.market))


_LOCALE_MAPS = ("names", "texts", "secondary_texts", "prints", "faq", "prices", "images")


@dataclass(frozen=True, slots=True, kw_only=True)
class Card:
    """A resolvable card.

    Instances are never mutated during a resolution pass; stages that learn more
    about a card build a new one through :meth:`merged_with`.
    """

    card_id: int | None = None
    passcode: int | None = None

    names: Mapping[str, str] = field(default_factory=dict)
    texts: Mapping[str, str] = field(default_factory=dict)
    secondary_texts: Mapping[str, str] = field(default_factory=dict)

    card_type: str | None = None
    card_property: str | None = None
    attribute: str | None = None
    level_rank: int | None = None
    attack: int | None = None
    defense: int | None = None
    pendulum_scale: int | None = None
    link_markers: tuple[int, ...] = ()
    type_tags: tuple[str, ...] = ()

    prints: Mapping[str, Mapping[str, str]] = field(default_factory=dict)
    faq: Mapping[str, tuple[FaqBlock, ...]] = field(default_factory=dict)
    prices: Mapping[PriceRegion, tuple[PriceQuote, ...]] = field(default_factory=dict)
    images: Mapping[int, str] = field(default_factory=dict)

    def name_in(self, locale: str) -> str | None:
        return self.names.get(locale)

    def has_text_in(self, locale: str) -> bool:
        return bool(self.names.get(locale)) and bool(self.texts.get(locale))

    def representative_term(self) -> str | None:
        """Best identifier for this card: id, then passcode, then a name."""

        if self.card_id is not None:
            return str(self.card_id)
        if self.passcode is not None:
            return str(self.passcode)
        english = self.names.get(Locale.EN)
        if english:
            return english.lower()
        for name in self.names.values():
            if name:
                return name.lower()
        return None

    def merged_with(self, other: Card) -> Card:
        """Return a new card keeping this card's values and filling gaps from ``other``."""

        updates: dict[str, object] = {}
        for item in fields(self):
            mine = getattr(self, item.name)
            theirs = getattr(other, item.name)
            if item.name in _LOCALE_MAPS:
                if theirs and any(key not in mine for key in theirs):
                    updates[item.name] = {**theirs, **mine}
            elif _is_missing(mine) and not _is_missing(theirs):
                updates[item.name] = theirs
        if not updates:
            return self
        return replace(self, **updates)


def _is_missing(value: object) -> bool:
    return value is None or value == ()
