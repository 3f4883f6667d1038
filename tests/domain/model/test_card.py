from __future__ import annotations

from cardresolve.domain.model import (
    Card,
    Category,
    FaqBlock,
    PriceQuote,
    PriceRegion,
    is_satisfied,
)
from tests.helpers.cards import make_card, make_ruling


def test_representative_term_prefers_id_then_passcode_then_name() -> None:
    assert make_card(9000, passcode=12345).representative_term() == "9000"
    assert make_card(None, passcode=12345).representative_term() == "12345"
    assert make_card(None, "Dark Magician").representative_term() == "dark magician"
    assert make_card(None, "Magicien Sombre", locale="fr").representative_term() == (
        "magicien sombre"
    )
    assert Card().representative_term() is None


def test_merge_never_loses_locale_data() -> None:
    english = make_card(100, "Dark Magician", text="english text")
    french = Card(card_id=100, names={"fr": "Magicien Sombre", "en": "Other"}, texts={"fr": "x"})

    merged = english.merged_with(french)

    assert merged.names == {"en": "Dark Magician", "fr": "Magicien Sombre"}
    assert merged.texts == {"en": "english text", "fr": "x"}
    assert english.names == {"en": "Dark Magician"}


def test_merge_fills_missing_structure_only() -> None:
    bare = make_card(100, attack=2500)
    richer = make_card(100, attack=3000, defense=2100, type_tags=("Spellcaster",))

    merged = bare.merged_with(richer)

    assert merged.attack == 2500
    assert merged.defense == 2100
    assert merged.type_tags == ("Spellcaster",)


def test_merge_returns_same_instance_when_nothing_new() -> None:
    card = make_card(100)

    assert card.merged_with(make_card(100)) is card


def test_faq_block_sort_key_puts_non_numeric_last() -> None:
    blocks = [FaqBlock("x"), FaqBlock("101"), FaqBlock("2")]

    ordered = sorted(blocks, key=lambda block: block.sort_key)

    assert [block.index for block in ordered] == ["2", "101", "x"]


def test_required_fields_per_category() -> None:
    card = make_card(
        100,
        images={1: "100.png"},
        prints={"en": {"LOB-005": "2002-03-08"}},
        faq={"en": (FaqBlock("1", ("line",)),)},
        prices={PriceRegion.US: (PriceQuote(print_code="LOB-005", low=1.0),)},
    )

    assert is_satisfied(card, "en", Category.INFO)
    assert is_satisfied(card, "en", Category.RULING)
    assert is_satisfied(card, "de", Category.ART)
    assert is_satisfied(card, "en", Category.DATE)
    assert not is_satisfied(card, "de", Category.DATE)
    assert is_satisfied(card, "en", Category.FAQ)
    assert is_satisfied(card, "en", Category.PRICE_US)
    assert not is_satisfied(card, "en", Category.PRICE_EU)
    assert not is_satisfied(card, "de", Category.INFO)
    assert not is_satisfied(None, "en", Category.INFO)


def test_price_quote_without_values_does_not_count() -> None:
    card = make_card(100, prices={PriceRegion.EU: (PriceQuote(print_code="LOB-005"),)})

    assert not is_satisfied(card, "en", Category.PRICE_EU)


def test_ruling_category_needs_faq_in_locale() -> None:
    card = make_card(100, faq={"ja": (FaqBlock("1", ("line",)),)})

    assert not is_satisfied(card, "en", Category.RULING)
    assert is_satisfied(card, "en", Category.INFO)
    assert is_satisfied(
        make_card(100, locale="ja", faq={"ja": (FaqBlock("1", ("line",)),)}),
        "ja",
        Category.RULING,
    )


def test_wiki_category_needs_only_a_name() -> None:
    nameless_text = make_card(100, text=None)

    assert is_satisfied(nameless_text, "en", Category.PEDIA)
    assert not is_satisfied(nameless_text, "en", Category.INFO)
    assert not is_satisfied(nameless_text, "de", Category.PEDIA)


def test_qa_category_is_met_by_a_ruling_in_locale() -> None:
    ruling = make_ruling(123)

    assert is_satisfied(None, "en", Category.QA, ruling=ruling)
    assert not is_satisfied(None, "ja", Category.QA, ruling=ruling)
    assert not is_satisfied(make_card(100), "en", Category.QA)
