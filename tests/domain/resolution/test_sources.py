from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from cardresolve.domain.model import (
    Category,
    PriceQuote,
    PriceRegion,
    ProvenanceTier,
    build_query,
)
from cardresolve.domain.resolution import (
    ArtworkStage,
    PediaStage,
    PriceStage,
    ResolutionContext,
    RulingStage,
)
from cardresolve.domain.ruling_store import RulingStore
from tests.helpers.cards import (
    FakeArtworkSource,
    FakePediaSource,
    FakePriceSource,
    FakeRemoteSource,
    make_card,
    make_ruling,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from cardresolve.adapters.sqlalchemy import SqlAlchemyUnitOfWork
    from cardresolve.domain.card_store import CardStore
    from cardresolve.domain.model import Query
    from cardresolve.domain.term_cache import TermCache


@pytest.fixture
def ruling_store(sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork]) -> RulingStore:
    return RulingStore(sqlite_unit_of_work)


def _run(stage: ArtworkStage | PriceStage | RulingStage | PediaStage, query: Query) -> None:
    asyncio.run(stage.run(query.searches, context=ResolutionContext.for_query(query)))


def test_artwork_stage_attaches_images_and_stores_them(card_store: CardStore) -> None:
    card_store.save(make_card(4007, "Dark Magician"), ProvenanceTier.SNAPSHOT)
    artwork = FakeArtworkSource({4007: {1: "https://art.example.test/4007.png"}})
    stage = ArtworkStage(artwork=artwork, card_store=card_store)
    query = build_query([("4007", Category.ART, "en"), ("5000", Category.ART, "en")])
    dark_magician, unknown = query.searches
    dark_magician.assign(make_card(4007, "Dark Magician"))
    unknown.assign(make_card(5000, "Dark Magician Girl"))

    _run(stage, query)

    assert dark_magician.is_fully_resolved()
    assert not unknown.is_fully_resolved()
    assert artwork.calls == [(4007, 5000)]
    stored = card_store.get(4007)
    assert stored is not None
    assert stored.tier is ProvenanceTier.SNAPSHOT
    assert stored.card.images == {1: "https://art.example.test/4007.png"}


def test_artwork_stage_ignores_unidentified_searches(card_store: CardStore) -> None:
    artwork = FakeArtworkSource({4007: {1: "https://art.example.test/4007.png"}})
    stage = ArtworkStage(artwork=artwork, card_store=card_store)
    query = build_query([("mystery", Category.ART, "en")])
    query.searches[0].assign(make_card(None, "Mystery"))

    _run(stage, query)

    assert artwork.calls == []


def test_artwork_outage_is_logged_not_raised(card_store: CardStore) -> None:
    artwork = FakeArtworkSource()
    artwork.fail = True
    stage = ArtworkStage(artwork=artwork, card_store=card_store)
    query = build_query([("4007", Category.ART, "en")])
    query.searches[0].assign(make_card(4007))

    _run(stage, query)

    assert query.searches[0].card is not None
    assert query.searches[0].card.images == {}


def test_price_stage_quotes_by_english_name(card_store: CardStore) -> None:
    quote = PriceQuote(print_code="LOB-005", market=3.25)
    prices = FakePriceSource({"Dark Magician": (quote,)})
    stage = PriceStage(prices=prices, card_store=card_store)
    query = build_query([("4007", Category.PRICE_US, "de"), ("5000", Category.PRICE_US, "en")])
    priced, unpriced = query.searches
    priced.assign(
        make_card(4007, "Dark Magician").merged_with(
            make_card(4007, "Schwarzer Magier", locale="de")
        )
    )
    unpriced.assign(make_card(5000, "Dark Magician Girl"))

    _run(stage, query)

    assert stage.categories == frozenset({Category.PRICE_US})
    assert stage.use_for_official
    assert prices.calls == ["Dark Magician", "Dark Magician Girl"]
    assert priced.is_fully_resolved()
    assert priced.card is not None
    assert priced.card.prices == {PriceRegion.US: (quote,)}
    assert not unpriced.is_fully_resolved()
    stored = card_store.get(4007)
    assert stored is not None
    assert stored.tier is ProvenanceTier.REMOTE
    assert stored.card.prices[PriceRegion.US] == (quote,)


def test_ruling_stage_fetches_then_reuses_stored_rulings(ruling_store: RulingStore) -> None:
    source = FakeRemoteSource(rulings={123: make_ruling(123)}, revision=7)
    revisions: list[int] = []

    async def observe(revision: int) -> None:
        revisions.append(revision)

    stage = RulingStage(rulings=source, ruling_store=ruling_store, on_revision=observe)

    first = build_query([(123, Category.QA, "en"), (999, Category.QA, "en")])
    _run(stage, first)
    second = build_query([(123, Category.QA, "en")])
    _run(stage, second)

    found, missing = first.searches
    assert found.is_fully_resolved()
    assert missing.ruling is None
    assert not missing.is_fully_resolved()
    assert second.searches[0].is_fully_resolved()
    assert source.ruling_calls == [123, 999]
    assert revisions == [7]


def test_ruling_in_other_locale_does_not_satisfy_request(ruling_store: RulingStore) -> None:
    source = FakeRemoteSource(rulings={123: make_ruling(123, locale="ja")})
    stage = RulingStage(rulings=source, ruling_store=ruling_store)
    query = build_query([(123, Category.QA, "en")])

    _run(stage, query)

    search = query.searches[0]
    assert search.ruling is not None
    assert search.unresolved_categories() == {Category.QA}


def test_ruling_stage_skips_non_numeric_terms(ruling_store: RulingStore) -> None:
    source = FakeRemoteSource()
    stage = RulingStage(rulings=source, ruling_store=ruling_store)

    _run(stage, build_query([("targeting", Category.QA, "en")]))

    assert source.ruling_calls == []


def test_pedia_stage_stores_identified_cards(
    card_store: CardStore,
    term_cache: TermCache,
) -> None:
    card_store.save(
        make_card(4007, "Dark Magician", images={1: "https://art.example.test/4007.png"}),
        ProvenanceTier.SNAPSHOT,
    )
    pedia = FakePediaSource(
        {"dm": make_card(4007, "Dark Magician", text="Wiki text.", passcode=46986414)}
    )
    stage = PediaStage(pedia=pedia, card_store=card_store, term_cache=term_cache)
    query = build_query([("dm", Category.PEDIA, "en")])

    _run(stage, query)

    search = query.searches[0]
    assert search.canonical_term == "4007"
    assert search.is_fully_resolved()
    assert search.card is not None
    assert search.card.images == {1: "https://art.example.test/4007.png"}
    assert search.card.texts == {"en": "The ultimate wizard in terms of attack and defense."}
    stored = card_store.get(4007)
    assert stored is not None
    assert stored.tier is ProvenanceTier.SNAPSHOT
    assert stored.card.passcode == 46986414
    row = term_cache.lookup("dm")
    assert row is not None
    assert row.card_id == 4007


def test_pedia_stage_keeps_cards_without_id_out_of_the_store(
    card_store: CardStore,
    term_cache: TermCache,
) -> None:
    pedia = FakePediaSource({"anime card": make_card(None, "Anime Card")})
    stage = PediaStage(pedia=pedia, card_store=card_store, term_cache=term_cache)
    query = build_query([("anime card", Category.INFO, "en"), ("nothing", Category.INFO, "en")])

    _run(stage, query)

    found, missing = query.searches
    assert found.is_fully_resolved()
    assert missing.card is None
    assert card_store.find("anime card") is None
    assert term_cache.lookup("anime card") is None
    assert pedia.calls == ["anime card", "nothing"]
