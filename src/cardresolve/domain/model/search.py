"""In-flight resolution units: Search and Query."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from .enums import Category
from .requirements import is_satisfied

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from .card import Card
    from .ruling import Ruling

log = getLogger(__name__)


def normalize_term(term: str | int) -> str:
    """Lower-case ``term`` and collapse internal whitespace."""

    return " ".join(str(term).casefold().split())


def numeric_term(term: str) -> int | None:
    """Return ``term`` as an identifier when it is purely numeric."""

    return int(term) if term.isdecimal() else None


@dataclass(slots=True, eq=False)
class Search:
    """One resolution unit: an evolving canonical term plus what the caller wants."""

    canonical_term: str
    original_terms: set[str] = field(default_factory=set)
    requirements: dict[str, set[Category]] = field(default_factory=dict)
    card: Card | None = None
    ruling: Ruling | None = None

    def __post_init__(self) -> None:
        self.canonical_term = normalize_term(self.canonical_term)
        self.original_terms.add(self.canonical_term)

    @classmethod
    def for_term(
        cls,
        term: str | int,
        category: Category | None = None,
        locale: str | None = None,
    ) -> Search:
        search = cls(canonical_term=str(term))
        if category is not None and locale is not None:
            search.add_requirement(locale, category)
        return search

    @property
    def locales(self) -> tuple[str, ...]:
        return tuple(self.requirements)

    def add_requirement(self, locale: str, category: Category) -> None:
        self.requirements.setdefault(locale, set()).add(category)

    def has_category(self, category: Category) -> bool:
        """Return whether any tracked locale requires ``category``."""

        return any(category in categories for categories in self.requirements.values())

    def categories(self) -> set[Category]:
        combined: set[Category] = set()
        for categories in self.requirements.values():
            combined |= categories
        return combined

    def unresolved_requirements(self) -> dict[str, set[Category]]:
        """Map each locale to the categories the assigned data does not yet satisfy."""

        unresolved: dict[str, set[Category]] = {}
        for locale, categories in self.requirements.items():
            missing = {
                category
                for category in categories
                if not is_satisfied(self.card, locale, category, ruling=self.ruling)
            }
            if missing:
                unresolved[locale] = missing
        return unresolved

    def unresolved_categories(self) -> set[Category]:
        combined: set[Category] = set()
        for categories in self.unresolved_requirements().values():
            combined |= categories
        return combined

    def is_fully_resolved(self) -> bool:
        if self.card is None and self.ruling is None:
            return False
        return all(
            is_satisfied(self.card, locale, category, ruling=self.ruling)
            for locale, categories in self.requirements.items()
            for category in categories
        )

    def assign(self, card: Card) -> None:
        """Attach ``card``, merging with any card already assigned."""

        self.card = card if self.card is None else self.card.merged_with(card)

    def absorb(self, donor: Search) -> None:
        """Fold ``donor`` into this search, keeping this search's card if it has one."""

        self.original_terms.update(donor.original_terms)
        for locale, categories in donor.requirements.items():
            self.requirements.setdefault(locale, set()).update(categories)
        if self.card is None:
            self.card = donor.card
        if self.ruling is None:
            self.ruling = donor.ruling


@dataclass(slots=True)
class Query:
    """Deduplicated Searches from one request plus its display settings."""

    locale: str = "en"
    official_only: bool = False
    rulings: bool = False
    searches: list[Search] = field(default_factory=list)

    def __iter__(self) -> Iterator[Search]:
        return iter(tuple(self.searches))

    def __len__(self) -> int:
        return len(self.searches)

    def find(self, term: str | int) -> Search | None:
        normalized = normalize_term(term)
        for search in self.searches:
            if search.canonical_term == normalized:
                return search
        return None

    def add(
        self,
        term: str | int,
        category: Category,
        locale: str | None = None,
    ) -> Search:
        """Add a requirement for ``term``, reusing an existing search for the same term."""

        target_locale = locale or self.locale
        existing = self.find(term)
        if existing is not None:
            existing.add_requirement(target_locale, category)
            return existing
        search = Search.for_term(term, category, target_locale)
        self.searches.append(search)
        return search

    def update_canonical_term(self, search: Search, new_term: str | int) -> bool:
        """Rewrite ``search``'s canonical term, merging into a sibling that already owns it.

        Returns ``True`` when ``search`` was absorbed and removed from the query.
        """

        normalized = normalize_term(new_term)
        if search.canonical_term == normalized:
            return False
        sibling = self.find(normalized)
        if sibling is None:
            search.canonical_term = normalized
            return False
        log.debug("Merging search %r into %r", search.canonical_term, sibling.canonical_term)
        sibling.absorb(search)
        self.searches = [candidate for candidate in self.searches if candidate is not search]
        return True

    def unresolved_searches(self) -> list[Search]:
        return [search for search in self.searches if not search.is_fully_resolved()]

    def diff_from(self, previous: Query) -> Query:
        """Return the searches and requirements in this query that ``previous`` lacks."""

        diff = Query(locale=self.locale, official_only=self.official_only, rulings=self.rulings)
        for search in self.searches:
            known = previous.find(search.canonical_term)
            for locale, categories in search.requirements.items():
                seen = known.requirements.get(locale, set()) if known is not None else set()
                for category in sorted(categories - seen):
                    diff.add(search.canonical_term, category, locale)
        return diff


def build_query(
    entries: Iterable[tuple[str | int, Category, str | None]],
    *,
    locale: str = "en",
    official_only: bool = False,
    rulings: bool = False,
) -> Query:
    query = Query(locale=locale, official_only=official_only, rulings=rulings)
    for term, category, entry_locale in entries:
        query.add(term, category, entry_locale)
    return query
