"""Domain-facing access to the local card snapshot."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from cardresolve.domain.model import ProvenanceTier, numeric_term

if TYPE_CHECKING:
    from collections.abc import Callable

    from cardresolve.domain.model import Card, ChangeDescriptor
    from cardresolve.domain.ports import ResolutionUnitOfWork, StoredCard

log = getLogger(__name__)


class CardStore:
    """Looks cards up by id, passcode or name and caches remote results locally."""

    def __init__(self, unit_of_work_factory: Callable[[], ResolutionUnitOfWork]) -> None:
        self._unit_of_work_factory = unit_of_work_factory

    def find(self, term: str) -> StoredCard | None:
        number = numeric_term(term)
        with self._unit_of_work_factory() as uow:
            cards = uow.repositories.cards
            if number is not None:
                stored = cards.get_by_id(number) or cards.get_by_passcode(number)
                if stored is not None:
                    return stored
            return cards.get_by_name(term)

    def get(self, card_id: int) -> StoredCard | None:
        with self._unit_of_work_factory() as uow:
            return uow.repositories.cards.get_by_id(card_id)

    def save(self, card: Card, tier: ProvenanceTier) -> None:
        if card.card_id is None:
            log.debug("Not storing card without an id: %s", card.representative_term())
            return
        with self._unit_of_work_factory() as uow:
            uow.repositories.cards.save(card, tier)
            uow.commit()

    def enrich(self, card: Card) -> None:
        """Store ``card`` with gaps filled from the stored copy, keeping the stored tier."""

        if card.card_id is None:
            return
        with self._unit_of_work_factory() as uow:
            cards = uow.repositories.cards
            existing = cards.get_by_id(card.card_id)
            if existing is None:
                cards.save(card, ProvenanceTier.REMOTE)
            else:
                cards.save(card.merged_with(existing.card), existing.tier)
            uow.commit()

    def evict(self, card_ids: frozenset[int], tier: ProvenanceTier) -> int:
        if not card_ids:
            return 0
        with self._unit_of_work_factory() as uow:
            removed = uow.repositories.cards.evict(card_ids, tier)
            uow.commit()
        log.info("Evicted %d cached %s cards", removed, tier)
        return removed

    def clear(self, tier: ProvenanceTier | None = None) -> int:
        with self._unit_of_work_factory() as uow:
            removed = uow.repositories.cards.clear(tier)
            uow.commit()
        return removed

    def apply_changes(self, changes: ChangeDescriptor) -> None:
        self.evict(changes.entity_ids, ProvenanceTier.REMOTE)
