"""Ports for the local stores: term cache, card snapshot, rulings and manifest revision."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable

    from cardresolve.domain.model import Card, ProvenanceTier, Ruling, TermCacheRow

    from .remote import FetchedNameIndex


@dataclass(frozen=True, slots=True)
class StoredCard:
    """A card read from the local store together with the tier that wrote it."""

    card: Card
    tier: ProvenanceTier


@runtime_checkable
class TermCacheRepository(Protocol):
    def rows_for(self, term: str) -> list[TermCacheRow]: ...

    def upsert(self, rows: Iterable[TermCacheRow]) -> None: ...

    def delete_for_cards(self, card_ids: Collection[int], tier: ProvenanceTier) -> int: ...

    def clear(self, tier: ProvenanceTier | None = None) -> int: ...


@runtime_checkable
class CardRepository(Protocol):
    def get_by_id(self, card_id: int) -> StoredCard | None: ...

    def get_by_passcode(self, passcode: int) -> StoredCard | None: ...

    def get_by_name(self, name: str) -> StoredCard | None: ...

    def save(self, card: Card, tier: ProvenanceTier) -> None: ...

    def evict(self, card_ids: Collection[int], tier: ProvenanceTier) -> int: ...

    def clear(self, tier: ProvenanceTier | None = None) -> int: ...


@runtime_checkable
class RulingRepository(Protocol):
    def get(self, qa_id: int) -> Ruling | None: ...

    def save(self, ruling: Ruling) -> None: ...

    def evict(self, qa_ids: Collection[int]) -> int: ...

    def clear(self) -> int: ...


@runtime_checkable
class ManifestRepository(Protocol):
    def get_revision(self) -> int | None: ...

    def set_revision(self, revision: int) -> None: ...


@runtime_checkable
class NameIndexSnapshotStore(Protocol):
    """Durable copies of per-locale name indices."""

    def load(self, locale: str) -> FetchedNameIndex | None: ...

    def save(self, index: FetchedNameIndex) -> None: ...

    def delete(self, locale: str) -> None: ...
