"""Learned alias to canonical-identifier mapping shared across requests."""

from __future__ import annotations

import threading
from logging import getLogger
from typing import TYPE_CHECKING

from cardresolve.domain.model import Locale, ProvenanceTier, TermCacheRow, normalize_term

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from cardresolve.domain.model import Card, ChangeDescriptor
    from cardresolve.domain.ports import ResolutionUnitOfWork

log = getLogger(__name__)


def build_rows(
    card: Card,
    tier: ProvenanceTier,
    original_terms: Iterable[str] = (),
) -> list[TermCacheRow]:
    """Rows for every localized name of ``card`` and every alias that led to it."""

    if card.representative_term() is None:
        return []

    english = card.names.get(Locale.EN)
    locales = tuple(card.names) or (Locale.EN.value,)
    rows: dict[tuple[str, str], TermCacheRow] = {}

    def add(term: str, locale: str, name: str | None) -> None:
        key = normalize_term(term)
        if not key:
            return
        rows[(key, locale)] = TermCacheRow(
            term=key,
            locale=locale,
            card_id=card.card_id,
            passcode=card.passcode,
            name=name,
            tier=tier,
        )

    for locale, name in card.names.items():
        add(name, locale, name)
    originals = [normalize_term(term) for term in original_terms]
    for locale in locales:
        for term in originals:
            add(term, locale, card.names.get(locale) or english)
    return list(rows.values())


def select_representative(
    rows: Sequence[TermCacheRow],
    *,
    locales: Iterable[str] = (),
    preferred_locale: str | None = None,
) -> TermCacheRow | None:
    """Pick one row: the preferred locale's, else a requested locale's, else the first."""

    if not rows:
        return None
    if len({row.canonical_term for row in rows}) > 1:
        log.debug(
            "Conflicting term cache rows for %r: %s",
            rows[0].term,
            ", ".join(f"{row.locale}->{row.canonical_term}" for row in rows),
        )
    if preferred_locale is not None:
        for row in rows:
            if row.locale == preferred_locale:
                return row
    wanted = set(locales)
    for row in rows:
        if row.locale in wanted:
            return row
    return rows[0]


class TermCache:
    """Write-through cache of :class:`TermCacheRow` keyed by alias term.

    Reads are served from memory once a term has been seen; writes go to the
    store in one transaction and then invalidate the affected in-memory keys.
    A single lock per instance makes each write atomic with respect to reads.
    """

    def __init__(self, unit_of_work_factory: Callable[[], ResolutionUnitOfWork]) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._rows: dict[str, tuple[TermCacheRow, ...]] = {}
        self._lock = threading.RLock()

    def rows_for(self, term: str | int) -> tuple[TermCacheRow, ...]:
        key = normalize_term(term)
        with self._lock:
            cached = self._rows.get(key)
            if cached is not None:
                return cached
            with self._unit_of_work_factory() as uow:
                rows = tuple(uow.repositories.terms.rows_for(key))
            if rows:
                self._rows[key] = rows
            return rows

    def lookup(
        self,
        term: str | int,
        *,
        locales: Iterable[str] = (),
        preferred_locale: str | None = None,
    ) -> TermCacheRow | None:
        return select_representative(
            self.rows_for(term),
            locales=locales,
            preferred_locale=preferred_locale,
        )

    def learn(
        self,
        card: Card,
        tier: ProvenanceTier,
        original_terms: Iterable[str] = (),
    ) -> int:
        rows = build_rows(card, tier, original_terms)
        if not rows:
            return 0
        with self._lock:
            with self._unit_of_work_factory() as uow:
                uow.repositories.terms.upsert(rows)
                uow.commit()
            for row in rows:
                self._rows.pop(row.term, None)
        log.debug("Learned %d terms for card %s (%s)", len(rows), card.representative_term(), tier)
        return len(rows)

    def evict(self, card_ids: Iterable[int], tier: ProvenanceTier) -> int:
        """Remove rows pointing at ``card_ids`` that were learned from ``tier``."""

        ids = frozenset(card_ids)
        if not ids:
            return 0
        with self._lock:
            with self._unit_of_work_factory() as uow:
                removed = uow.repositories.terms.delete_for_cards(ids, tier)
                uow.commit()
            self._rows = {
                term: kept
                for term, rows in self._rows.items()
                if (kept := tuple(r for r in rows if r.card_id not in ids or r.tier != tier))
            }
        log.info("Evicted %d %s term cache rows for %d cards", removed, tier, len(ids))
        return removed

    def clear(self, tier: ProvenanceTier | None = None) -> int:
        with self._lock:
            with self._unit_of_work_factory() as uow:
                removed = uow.repositories.terms.clear(tier)
                uow.commit()
            self._rows.clear()
        log.info("Cleared %d term cache rows (tier=%s)", removed, tier or "all")
        return removed

    def apply_changes(self, changes: ChangeDescriptor) -> None:
        self.evict(changes.entity_ids, ProvenanceTier.REMOTE)
