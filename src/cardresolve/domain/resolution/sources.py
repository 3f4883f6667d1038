"""Resolution tiers backed by secondary sources: artwork, prices, Q&A and the wiki."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING, Final

from cardresolve.domain.errors import RemoteSourceError
from cardresolve.domain.model import (
    PRICE_CATEGORIES,
    Category,
    Locale,
    ProvenanceTier,
    numeric_term,
)

from .stages import bounded

if TYPE_CHECKING:
    from cardresolve.domain.card_store import CardStore
    from cardresolve.domain.model import Card, Search
    from cardresolve.domain.ports import (
        ArtworkSource,
        FetchedRuling,
        PediaSource,
        PriceSource,
        RevisionObserver,
        RulingSource,
    )
    from cardresolve.domain.ruling_store import RulingStore
    from cardresolve.domain.term_cache import TermCache

    from .pipeline import ResolutionContext

log = getLogger(__name__)

PEDIA_CATEGORIES: Final[frozenset[Category]] = frozenset(
    {Category.INFO, Category.RULING, Category.ART, Category.DATE, Category.PEDIA}
)


def _identified(searches: list[Search]) -> list[tuple[Search, Card]]:
    return [
        (search, search.card)
        for search in searches
        if search.card is not None and search.card.card_id is not None
    ]


class ArtworkStage:
    """Attach artwork locations to cards that are already identified."""

    name = "artwork"
    categories = frozenset({Category.ART})
    use_for_official = False

    def __init__(
        self,
        *,
        artwork: ArtworkSource,
        card_store: CardStore,
        timeout_seconds: float | None = None,
    ) -> None:
        self._artwork = artwork
        self._cards = card_store
        self._timeout_seconds = timeout_seconds

    async def run(self, searches: list[Search], *, context: ResolutionContext) -> None:
        targets = _identified(searches)
        if not targets:
            return
        card_ids = sorted({card.card_id for _, card in targets if card.card_id is not None})
        try:
            artwork = await bounded(self._artwork.fetch_artwork(card_ids), self._timeout_seconds)
        except (RemoteSourceError, TimeoutError) as exc:
            log.warning("Could not read artwork for %s: %r", card_ids, exc)
            return

        for search, card in targets:
            images = artwork.get(card.card_id) if card.card_id is not None else None
            if not images:
                log.debug("No artwork for %r", search.canonical_term)
                continue
            search.card = replace(card, images=images)
            self._cards.enrich(search.card)


class PriceStage:
    """Quote market prices for identified cards by their English name."""

    name = "prices"
    use_for_official = True

    def __init__(
        self,
        *,
        prices: PriceSource,
        card_store: CardStore,
        timeout_seconds: float | None = None,
    ) -> None:
        self._prices = prices
        self._cards = card_store
        self._timeout_seconds = timeout_seconds
        self.categories = frozenset({PRICE_CATEGORIES[prices.region]})

    async def run(self, searches: list[Search], *, context: ResolutionContext) -> None:
        targets = [
            (search, card, name)
            for search, card in _identified(searches)
            if (name := card.names.get(Locale.EN.value))
        ]
        if not targets:
            return
        results = await asyncio.gather(
            *(
                bounded(self._prices.fetch_prices(name), self._timeout_seconds)
                for *_, name in targets
            ),
            return_exceptions=True,
        )
        region = self._prices.region
        for (search, card, name), result in zip(targets, results, strict=True):
            if isinstance(result, (RemoteSourceError, TimeoutError)):
                log.warning("Could not fetch %s prices for %r: %r", region, name, result)
                continue
            if isinstance(result, BaseException):
                raise result
            if not result:
                log.info("No %s prices for %r", region, name)
                continue
            search.card = replace(card, prices={**card.prices, region: result})
            self._cards.enrich(search.card)


class RulingStage:
    """Resolve Q&A searches by id, from the local store first and the remote source second."""

    name = "rulings"
    categories = frozenset({Category.QA})
    use_for_official = False

    def __init__(
        self,
        *,
        rulings: RulingSource,
        ruling_store: RulingStore,
        timeout_seconds: float | None = None,
        on_revision: RevisionObserver | None = None,
    ) -> None:
        self._rulings = rulings
        self._store = ruling_store
        self._timeout_seconds = timeout_seconds
        self._on_revision = on_revision

    def set_revision_observer(self, observer: RevisionObserver | None) -> None:
        self._on_revision = observer

    async def run(self, searches: list[Search], *, context: ResolutionContext) -> None:
        pending: list[tuple[Search, int]] = []
        for search in searches:
            qa_id = numeric_term(search.canonical_term)
            if qa_id is None:
                log.debug("Q&A search %r is not a numeric id", search.canonical_term)
                continue
            stored = self._store.get(qa_id)
            if stored is not None:
                search.ruling = stored
                continue
            pending.append((search, qa_id))
        if not pending:
            return

        results = await asyncio.gather(
            *(
                bounded(self._rulings.fetch_ruling(qa_id), self._timeout_seconds)
                for _, qa_id in pending
            ),
            return_exceptions=True,
        )
        fetched: list[tuple[Search, FetchedRuling]] = []
        for (search, qa_id), result in zip(pending, results, strict=True):
            if isinstance(result, (RemoteSourceError, TimeoutError)):
                log.warning("Could not fetch Q&A %s: %r", qa_id, result)
                continue
            if isinstance(result, BaseException):
                raise result
            fetched.append((search, result))

        revisions = [result.revision for _, result in fetched if result.revision is not None]
        if revisions and self._on_revision is not None:
            await self._on_revision(max(revisions))

        for search, result in fetched:
            if result.ruling is None:
                log.info("No Q&A entry %s", search.canonical_term)
                continue
            search.ruling = result.ruling
            self._store.save(result.ruling)


class PediaStage:
    """Last-resort title search on the community wiki."""

    name = "yugipedia"
    categories = PEDIA_CATEGORIES
    use_for_official = False

    def __init__(
        self,
        *,
        pedia: PediaSource,
        card_store: CardStore,
        term_cache: TermCache,
        timeout_seconds: float | None = None,
    ) -> None:
        self._pedia = pedia
        self._cards = card_store
        self._terms = term_cache
        self._timeout_seconds = timeout_seconds

    async def run(self, searches: list[Search], *, context: ResolutionContext) -> None:
        results = await asyncio.gather(
            *(
                bounded(self._pedia.search_card(search.canonical_term), self._timeout_seconds)
                for search in searches
            ),
            return_exceptions=True,
        )
        for search, result in zip(searches, results, strict=True):
            if isinstance(result, (RemoteSourceError, TimeoutError)):
                log.warning("Wiki search for %r failed: %r", search.canonical_term, result)
                continue
            if isinstance(result, BaseException):
                raise result
            if result is None:
                continue
            self._accept(search, result, context)

    def _accept(self, search: Search, card: Card, context: ResolutionContext) -> None:
        tier = ProvenanceTier.REMOTE
        if card.card_id is not None:
            stored = self._cards.get(card.card_id)
            if stored is not None:
                card = stored.card.merged_with(card)
                tier = stored.tier
        search.assign(card)
        if card.card_id is not None and search.card is not None:
            self._cards.enrich(search.card)
            self._terms.learn(search.card, tier, search.original_terms)
        better = card.representative_term()
        if better is not None:
            context.consolidation.update_canonical_term(search, better)
