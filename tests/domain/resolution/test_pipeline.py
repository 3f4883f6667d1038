from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from cardresolve.domain.model import Category, Search, build_query
from cardresolve.domain.resolution import ALL_CATEGORIES, TieredResolver
from tests.helpers.cards import make_card

if TYPE_CHECKING:
    from collections.abc import Callable

    from cardresolve.domain.model import Card
    from cardresolve.domain.resolution import ResolutionContext


class FakeStage:
    """Stage that assigns cards from a lookup table and records what it saw."""

    def __init__(
        self,
        name: str,
        cards: dict[str, Card] | None = None,
        *,
        categories: frozenset[Category] = ALL_CATEGORIES,
        use_for_official: bool = True,
        action: Callable[[list[Search]], None] | None = None,
    ) -> None:
        self.name = name
        self.categories = categories
        self.use_for_official = use_for_official
        self.cards = cards or {}
        self.action = action
        self.seen: list[list[str]] = []

    async def run(self, searches: list[Search], *, context: ResolutionContext) -> None:
        _ = context
        self.seen.append([search.canonical_term for search in searches])
        if self.action is not None:
            self.action(searches)
        for search in searches:
            card = self.cards.get(search.canonical_term)
            if card is not None:
                search.assign(card)


def test_stops_once_everything_is_resolved() -> None:
    first = FakeStage("first", {"dark magician": make_card(100)})
    second = FakeStage("second")
    query = build_query([("dark magician", Category.INFO, "en")])

    asyncio.run(TieredResolver(stages=(first, second)).resolve(query))

    assert query.searches[0].is_fully_resolved()
    assert first.seen == [["dark magician"]]
    assert second.seen == []


def test_later_stages_only_see_unresolved_searches() -> None:
    first = FakeStage("first", {"dark magician": make_card(100)})
    second = FakeStage("second", {"blue-eyes": make_card(200, "Blue-Eyes")})
    query = build_query(
        [("dark magician", Category.INFO, "en"), ("blue-eyes", Category.INFO, "en")]
    )

    asyncio.run(TieredResolver(stages=(first, second)).resolve(query))

    assert second.seen == [["blue-eyes"]]
    assert all(search.is_fully_resolved() for search in query)


def test_failing_stage_does_not_abort_resolution() -> None:
    def explode(_searches: list[Search]) -> None:
        raise RuntimeError("stage exploded")

    broken = FakeStage("broken", action=explode)
    fallback = FakeStage("fallback", {"dark magician": make_card(100)})
    query = build_query([("dark magician", Category.INFO, "en")])

    asyncio.run(TieredResolver(stages=(broken, fallback)).resolve(query))

    assert query.searches[0].is_fully_resolved()
    assert fallback.seen == [["dark magician"]]


def test_official_mode_skips_non_official_stages() -> None:
    remote = FakeStage("remote", {"dark magician": make_card(100)}, use_for_official=False)
    local = FakeStage("local")
    query = build_query([("dark magician", Category.INFO, "en")], official_only=True)

    asyncio.run(TieredResolver(stages=(remote, local)).resolve(query))

    assert remote.seen == []
    assert local.seen == [["dark magician"]]
    assert not query.searches[0].is_fully_resolved()


def test_stage_only_receives_searches_with_matching_categories() -> None:
    prices = FakeStage("prices", categories=frozenset({Category.PRICE_US}))
    query = build_query(
        [("dark magician", Category.INFO, "en"), ("kuriboh", Category.PRICE_US, "en")]
    )

    asyncio.run(TieredResolver(stages=(prices,)).resolve(query))

    assert prices.seen == [["kuriboh"]]


def test_with_stage_appends() -> None:
    resolver = TieredResolver().with_stage(FakeStage("a")).with_stage(FakeStage("b"))

    assert [stage.name for stage in resolver.stages] == ["a", "b"]


def test_resolve_searches_without_query() -> None:
    stage = FakeStage("only", {"dark magician": make_card(100)})
    searches = [Search.for_term("Dark Magician", Category.INFO, "en")]

    resolved = asyncio.run(TieredResolver(stages=(stage,)).resolve_searches(searches))

    assert resolved[0].is_fully_resolved()
