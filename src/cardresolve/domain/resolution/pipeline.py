"""Ordered, stage-based resolution of Searches."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from cardresolve.domain.model import Category, Query, Search
    from cardresolve.domain.ports import ConsolidationSink

log = getLogger(__name__)


@dataclass(slots=True)
class ResolutionContext:
    """Per-request settings shared by every stage."""

    consolidation: ConsolidationSink
    locale: str = "en"
    official_only: bool = False

    @classmethod
    def for_query(cls, query: Query) -> ResolutionContext:
        return cls(consolidation=query, locale=query.locale, official_only=query.official_only)


class ResolverStage(Protocol):
    """Contract implemented by each resolution tier."""

    name: str
    categories: frozenset[Category]
    use_for_official: bool

    async def run(self, searches: list[Search], *, context: ResolutionContext) -> None: ...


class _DetachedSearches:
    """Consolidation sink for searches that do not belong to a Query."""

    def update_canonical_term(self, search: Search, new_term: str | int) -> bool:
        search.canonical_term = str(new_term)
        return False


@dataclass(slots=True)
class TieredResolver:
    """Run the configured stages in order until every Search is resolved.

    A failing stage is logged and skipped; later stages still see the Searches
    it could not resolve.
    """

    stages: Sequence[ResolverStage] = field(default_factory=tuple)

    def with_stage(self, stage: ResolverStage) -> TieredResolver:
        """Return a new resolver appending ``stage`` at the end."""

        return TieredResolver(stages=(*self.stages, stage))

    async def resolve(self, query: Query) -> Query:
        await self._run(query.unresolved_searches, ResolutionContext.for_query(query))
        return query

    async def resolve_searches(
        self,
        searches: Iterable[Search],
        *,
        locale: str = "en",
        official_only: bool = False,
    ) -> list[Search]:
        """Resolve searches that are not part of a Query; no consolidation happens."""

        pending = list(searches)
        context = ResolutionContext(
            consolidation=_DetachedSearches(),
            locale=locale,
            official_only=official_only,
        )
        await self._run(
            lambda: [search for search in pending if not search.is_fully_resolved()],
            context,
        )
        return pending

    async def _run(
        self,
        unresolved: Callable[[], list[Search]],
        context: ResolutionContext,
    ) -> None:
        for stage in self.stages:
            if context.official_only and not stage.use_for_official:
                log.debug("Skipping stage %s in official-only mode", stage.name)
                continue
            pending = unresolved()
            if not pending:
                break
            eligible = [
                search for search in pending if search.unresolved_categories() & stage.categories
            ]
            if not eligible:
                continue
            try:
                await stage.run(eligible, context=context)
            except Exception:
                log.exception("Resolver stage %s failed", stage.name)
                continue
            resolved = [search for search in eligible if search.is_fully_resolved()]
            for search in resolved:
                log.debug("Stage %s resolved %r", stage.name, search.canonical_term)
