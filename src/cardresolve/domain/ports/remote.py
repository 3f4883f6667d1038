"""Ports for the remote sources: authoritative database, artwork, prices and wiki."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection, Mapping

    from cardresolve.domain.model import Card, ChangeDescriptor, PriceQuote, PriceRegion, Ruling


@dataclass(frozen=True, slots=True)
class FetchedNameIndex:
    """Name to card-id mapping for one locale, as served at ``revision``."""

    locale: str
    entries: Mapping[str, tuple[int, ...]] = field(default_factory=dict)
    revision: int | None = None


@dataclass(frozen=True, slots=True)
class FetchedCard:
    card: Card | None
    revision: int | None = None


@dataclass(frozen=True, slots=True)
class FetchedRuling:
    ruling: Ruling | None
    revision: int | None = None


@runtime_checkable
class NameIndexSource(Protocol):
    async def fetch_name_index(self, locale: str) -> FetchedNameIndex: ...


@runtime_checkable
class CardRecordSource(Protocol):
    async def fetch_card(self, card_id: int) -> FetchedCard: ...


@runtime_checkable
class RulingSource(Protocol):
    async def fetch_ruling(self, qa_id: int) -> FetchedRuling: ...


@runtime_checkable
class ManifestSource(Protocol):
    async def fetch_revision(self) -> int: ...

    async def fetch_changes(self, since: int) -> ChangeDescriptor: ...


@runtime_checkable
class RemoteSource(NameIndexSource, CardRecordSource, RulingSource, ManifestSource, Protocol):
    """A single authoritative source serving names, cards, rulings and the manifest."""

    async def aclose(self) -> None: ...


@runtime_checkable
class ArtworkSource(Protocol):
    """Artwork repository keyed by card id."""

    async def fetch_artwork(self, card_ids: Collection[int]) -> dict[int, dict[int, str]]:
        """Return artwork locations by art id for each known card in ``card_ids``."""
        ...

    async def aclose(self) -> None: ...


@runtime_checkable
class PriceSource(Protocol):
    """Marketplace quoting prices in a single region."""

    region: PriceRegion

    async def fetch_prices(self, name: str) -> tuple[PriceQuote, ...]: ...

    async def aclose(self) -> None: ...


@runtime_checkable
class PediaSource(Protocol):
    """Community wiki used when the authoritative source has no match."""

    async def search_card(self, term: str) -> Card | None: ...

    async def aclose(self) -> None: ...
