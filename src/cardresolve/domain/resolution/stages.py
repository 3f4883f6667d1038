"""Resolution tiers: term cache, local snapshot, remote source."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING, Final

from cardresolve.domain.errors import RemoteSourceError
from cardresolve.domain.model import Category, Locale, ProvenanceTier, numeric_term

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from cardresolve.domain.card_store import CardStore
    from cardresolve.domain.model import Card, Search
    from cardresolve.domain.name_indices import NameIndexRegistry
    from cardresolve.domain.ports import CardRecordSource, FetchedCard, RevisionObserver
    from cardresolve.domain.term_cache import TermCache

    from .pipeline import ResolutionContext

log = getLogger(__name__)

ALL_CATEGORIES: Final[frozenset[Category]] = frozenset(Category)
CARD_CATEGORIES: Final[frozenset[Category]] = ALL_CATEGORIES - {Category.QA, Category.PEDIA}


async def bounded[T](awaitable: Awaitable[T], timeout_seconds: float | None) -> T:
    """Await ``awaitable``, raising :class:`TimeoutError` after ``timeout_seconds``."""

    if timeout_seconds is None:
        return await awaitable
    return await asyncio.wait_for(awaitable, timeout_seconds)


class TermCacheStage:
    """Rewrite known aliases to their canonical term and load the stored card."""

    name = "term-cache"
    categories = CARD_CATEGORIES
    use_for_official = False

    def __init__(self, *, term_cache: TermCache, card_store: CardStore) -> None:
        self._terms = term_cache
        self._cards = card_store

    async def run(self, searches: list[Search], *, context: ResolutionContext) -> None:
        for search in searches:
            row = self._terms.lookup(
                search.canonical_term,
                locales=search.locales,
                preferred_locale=context.locale,
            )
            if row is None or row.canonical_term is None:
                continue
            if context.consolidation.update_canonical_term(search, row.canonical_term):
                continue
            stored = self._cards.find(search.canonical_term)
            if stored is None:
                log.debug(
                    "Term %r maps to %s but the %s card is not stored",
                    row.term,
                    row.canonical_term,
                    row.tier,
                )
                continue
            search.assign(stored.card)


class SnapshotStage:
    """Look terms up in the local card snapshot by id, passcode, then name."""

    name = "snapshot"
    categories = CARD_CATEGORIES
    use_for_official = True

    def __init__(self, *, card_store: CardStore, term_cache: TermCache) -> None:
        self._cards = card_store
        self._terms = term_cache

    async def run(self, searches: list[Search], *, context: ResolutionContext) -> None:
        for search in searches:
            stored = self._cards.find(search.canonical_term)
            if stored is None:
                continue
            search.assign(stored.card)
            self._terms.learn(stored.card, stored.tier, search.original_terms)
            better = stored.card.representative_term()
            if better is not None:
                context.consolidation.update_canonical_term(search, better)


class RemoteStage:
    """Match names against the remote name index and fetch full records by id."""

    name = "remote"
    categories = CARD_CATEGORIES
    use_for_official = False

    def __init__(
        self,
        *,
        name_indices: NameIndexRegistry,
        records: CardRecordSource,
        term_cache: TermCache,
        card_store: CardStore,
        min_match_score: float = 0.5,
        timeout_seconds: float | None = None,
        on_revision: RevisionObserver | None = None,
    ) -> None:
        self._name_indices = name_indices
        self._records = records
        self._terms = term_cache
        self._cards = card_store
        self._min_match_score = min_match_score
        self._timeout_seconds = timeout_seconds
        self._on_revision = on_revision

    def set_revision_observer(self, observer: RevisionObserver | None) -> None:
        self._on_revision = observer

    async def run(self, searches: list[Search], *, context: ResolutionContext) -> None:
        targets: list[tuple[Search, int]] = []
        for search in searches:
            card_id = await self._card_id_for(search)
            if card_id is None:
                continue
            if context.consolidation.update_canonical_term(search, card_id):
                continue
            targets.append((search, card_id))
        if not targets:
            return

        results = await asyncio.gather(
            *(self._fetch(card_id) for _, card_id in targets),
            return_exceptions=True,
        )

        fetched: list[tuple[Search, FetchedCard]] = []
        for (search, card_id), result in zip(targets, results, strict=True):
            if isinstance(result, (RemoteSourceError, TimeoutError)):
                log.warning(
                    "Could not fetch card %s for %r: %r", card_id, search.canonical_term, result
                )
                continue
            if isinstance(result, BaseException):
                raise result
            fetched.append((search, result))

        revisions = [result.revision for _, result in fetched if result.revision is not None]
        if revisions and self._on_revision is not None:
            await self._on_revision(max(revisions))

        for search, result in fetched:
            if result.card is None:
                log.info("No remote record for %r", search.canonical_term)
                continue
            search.assign(result.card)
            self._remember(result.card, search)

    async def _fetch(self, card_id: int) -> FetchedCard:
        return await bounded(self._records.fetch_card(card_id), self._timeout_seconds)

    async def _card_id_for(self, search: Search) -> int | None:
        number = numeric_term(search.canonical_term)
        if number is not None:
            return number

        locales = [Locale.EN.value, *search.locales]
        matches = await self._name_indices.search(search.canonical_term, locales, limit=1)
        if not matches:
            log.debug("No name index match for %r", search.canonical_term)
            return None
        best = matches[0]
        if best.score < self._min_match_score:
            log.info(
                "Best match %s for %r scored %.2f, below %.2f",
                best.card_id,
                search.canonical_term,
                best.score,
                self._min_match_score,
            )
            return None
        return best.card_id

    def _remember(self, card: Card, search: Search) -> None:
        if card.card_id is not None:
            existing = self._cards.get(card.card_id)
            if existing is None or existing.tier is ProvenanceTier.REMOTE:
                self._cards.save(card, ProvenanceTier.REMOTE)
        self._terms.learn(card, ProvenanceTier.REMOTE, search.original_terms)
