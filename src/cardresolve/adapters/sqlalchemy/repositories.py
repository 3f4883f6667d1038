"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, select

from cardresolve.adapters.sqlalchemy.mappings import (
    CARD_CHILD_TABLES,
    RULING_TABLES,
    card_faq_table,
    card_image_table,
    card_link_marker_table,
    card_price_table,
    card_print_table,
    card_table,
    card_text_table,
    card_type_tag_table,
    manifest_table,
    qa_card_table,
    qa_ruling_table,
    qa_tag_table,
    term_cache_table,
)
from cardresolve.domain.model import (
    Card,
    FaqBlock,
    PriceQuote,
    PriceRegion,
    ProvenanceTier,
    Ruling,
    TermCacheRow,
    normalize_term,
)
from cardresolve.domain.ports import StoredCard

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable

    from sqlalchemy import Row
    from sqlalchemy.orm import Session

_MANIFEST_ROW_ID = 1


class SqlAlchemyTermCacheRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def rows_for(self, term: str) -> list[TermCacheRow]:
        stmt = (
            select(term_cache_table)
            .where(term_cache_table.c.term == term)
            .order_by(term_cache_table.c.locale)
        )
        return [
            TermCacheRow(
                term=row.term,
                locale=row.locale,
                card_id=row.card_id,
                passcode=row.passcode,
                name=row.name,
                tier=ProvenanceTier(row.tier),
            )
            for row in self.session.execute(stmt)
        ]

    def upsert(self, rows: Iterable[TermCacheRow]) -> None:
        values = [
            {
                "term": row.term,
                "locale": row.locale,
                "card_id": row.card_id,
                "passcode": row.passcode,
                "name": row.name,
                "tier": row.tier,
            }
            for row in rows
        ]
        if values:
            self.session.execute(term_cache_table.insert().prefix_with("OR REPLACE"), values)

    def delete_for_cards(self, card_ids: Collection[int], tier: ProvenanceTier) -> int:
        stmt = (
            delete(term_cache_table)
            .where(term_cache_table.c.card_id.in_(list(card_ids)))
            .where(term_cache_table.c.tier == tier)
        )
        return self.session.execute(stmt).rowcount

    def clear(self, tier: ProvenanceTier | None = None) -> int:
        stmt = delete(term_cache_table)
        if tier is not None:
            stmt = stmt.where(term_cache_table.c.tier == tier)
        return self.session.execute(stmt).rowcount


class SqlAlchemyCardRepository:
    """Stores cards across the ``card`` table and its per-locale/junction tables."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_id(self, card_id: int) -> StoredCard | None:
        row = self.session.execute(
            select(card_table).where(card_table.c.card_id == card_id)
        ).one_or_none()
        return self._load(row) if row is not None else None

    def get_by_passcode(self, passcode: int) -> StoredCard | None:
        row = self.session.execute(
            select(card_table)
            .where(card_table.c.passcode == passcode)
            .order_by(card_table.c.card_id)
            .limit(1)
        ).one_or_none()
        return self._load(row) if row is not None else None

    def get_by_name(self, name: str) -> StoredCard | None:
        card_id = self.session.execute(
            select(card_text_table.c.card_id)
            .where(card_text_table.c.name_key == normalize_term(name))
            .order_by(card_text_table.c.card_id)
            .limit(1)
        ).scalar_one_or_none()
        return self.get_by_id(card_id) if card_id is not None else None

    def save(self, card: Card, tier: ProvenanceTier) -> None:
        if card.card_id is None:
            raise ValueError("Cannot store a card without a card_id")
        card_id = card.card_id
        self._delete_cards([card_id])

        self.session.execute(
            card_table.insert(),
            {
                "card_id": card_id,
                "passcode": card.passcode,
                "tier": tier,
                "card_type": card.card_type,
                "card_property": card.card_property,
                "attribute": card.attribute,
                "level_rank": card.level_rank,
                "attack": card.attack,
                "defense": card.defense,
                "pendulum_scale": card.pendulum_scale,
            },
        )
        locales = {*card.names, *card.texts, *card.secondary_texts}
        self._insert(
            card_text_table,
            [
                {
                    "card_id": card_id,
                    "locale": locale,
                    "name": card.names.get(locale),
                    "name_key": (
                        normalize_term(card.names[locale]) if locale in card.names else None
                    ),
                    "text": card.texts.get(locale),
                    "secondary_text": card.secondary_texts.get(locale),
                }
                for locale in sorted(locales)
            ],
        )
        self._insert(
            card_type_tag_table,
            [
                {"card_id": card_id, "position": position, "tag": tag}
                for position, tag in enumerate(card.type_tags)
            ],
        )
        self._insert(
            card_link_marker_table,
            [
                {"card_id": card_id, "position": position, "marker": marker}
                for position, marker in enumerate(card.link_markers)
            ],
        )
        self._insert(
            card_print_table,
            [
                {"card_id": card_id, "locale": locale, "code": code, "date": date}
                for locale, prints in card.prints.items()
                for code, date in prints.items()
            ],
        )
        self._insert(
            card_price_table,
            [
                {
                    "card_id": card_id,
                    "region": region,
                    "position": position,
                    "print_code": quote.print_code,
                    "rarity": quote.rarity,
                    "low": quote.low,
                    "mid": quote.mid,
                    "high": quote.high,
                    "market": quote.market,
                }
                for region, quotes in card.prices.items()
                for position, quote in enumerate(quotes)
            ],
        )
        self._insert(
            card_image_table,
            [
                {"card_id": card_id, "variant_id": variant_id, "location": location}
                for variant_id, location in card.images.items()
            ],
        )
        self._insert(
            card_faq_table,
            [
                {
                    "card_id": card_id,
                    "locale": locale,
                    "block_index": block.index,
                    "position": position,
                    "line": line,
                }
                for locale, blocks in card.faq.items()
                for block in blocks
                for position, line in enumerate(block.lines)
            ],
        )

    def evict(self, card_ids: Collection[int], tier: ProvenanceTier) -> int:
        matching = self.session.execute(
            select(card_table.c.card_id)
            .where(card_table.c.card_id.in_(list(card_ids)))
            .where(card_table.c.tier == tier)
        ).scalars()
        return self._delete_cards(list(matching))

    def clear(self, tier: ProvenanceTier | None = None) -> int:
        stmt = select(card_table.c.card_id)
        if tier is not None:
            stmt = stmt.where(card_table.c.tier == tier)
        return self._delete_cards(list(self.session.execute(stmt).scalars()))

    def _insert(self, table: Any, values: list[dict[str, Any]]) -> None:
        if values:
            self.session.execute(table.insert(), values)

    def _delete_cards(self, card_ids: list[int]) -> int:
        if not card_ids:
            return 0
        for table in CARD_CHILD_TABLES:
            self.session.execute(delete(table).where(table.c.card_id.in_(card_ids)))
        return self.session.execute(
            delete(card_table).where(card_table.c.card_id.in_(card_ids))
        ).rowcount

    def _load(self, row: Row[Any]) -> StoredCard:
        card_id: int = row.card_id

        def rows_of(table: Any, *order: Any) -> list[Row[Any]]:
            stmt = select(table).where(table.c.card_id == card_id).order_by(*order)
            return list(self.session.execute(stmt))

        texts = rows_of(card_text_table, card_text_table.c.locale)
        prints: dict[str, dict[str, str]] = {}
        for item in rows_of(card_print_table, card_print_table.c.locale, card_print_table.c.code):
            prints.setdefault(item.locale, {})[item.code] = item.date
        prices: dict[PriceRegion, list[PriceQuote]] = {}
        price_rows = rows_of(
            card_price_table, card_price_table.c.region, card_price_table.c.position
        )
        for item in price_rows:
            prices.setdefault(PriceRegion(item.region), []).append(
                PriceQuote(
                    print_code=item.print_code,
                    rarity=item.rarity,
                    low=item.low,
                    mid=item.mid,
                    high=item.high,
                    market=item.market,
                )
            )
        faq_lines: dict[str, dict[str, list[str]]] = {}
        for item in rows_of(card_faq_table, card_faq_table.c.position):
            faq_lines.setdefault(item.locale, {}).setdefault(item.block_index, []).append(item.line)

        card = Card(
            card_id=card_id,
            passcode=row.passcode,
            names={item.locale: item.name for item in texts if item.name is not None},
            texts={item.locale: item.text for item in texts if item.text is not None},
            secondary_texts={
                item.locale: item.secondary_text
                for item in texts
                if item.secondary_text is not None
            },
            card_type=row.card_type,
            card_property=row.card_property,
            attribute=row.attribute,
            level_rank=row.level_rank,
            attack=row.attack,
            defense=row.defense,
            pendulum_scale=row.pendulum_scale,
            link_markers=tuple(
                item.marker
                for item in rows_of(card_link_marker_table, card_link_marker_table.c.position)
            ),
            type_tags=tuple(
                item.tag for item in rows_of(card_type_tag_table, card_type_tag_table.c.position)
            ),
            prints=prints,
            faq={
                locale: tuple(
                    sorted(
                        (FaqBlock(index, tuple(lines)) for index, lines in blocks.items()),
                        key=lambda block: block.sort_key,
                    )
                )
                for locale, blocks in faq_lines.items()
            },
            prices={region: tuple(quotes) for region, quotes in prices.items()},
            images={
                item.variant_id: item.location
                for item in rows_of(card_image_table, card_image_table.c.variant_id)
            },
        )
        return StoredCard(card=card, tier=ProvenanceTier(row.tier))


class SqlAlchemyManifestRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get_revision(self) -> int | None:
        return self.session.execute(
            select(manifest_table.c.revision).where(manifest_table.c.id == _MANIFEST_ROW_ID)
        ).scalar_one_or_none()

    def set_revision(self, revision: int) -> None:
        self.session.execute(
            manifest_table.insert().prefix_with("OR REPLACE"),
            {"id": _MANIFEST_ROW_ID, "revision": revision},
        )


class SqlAlchemyRulingRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, qa_id: int) -> Ruling | None:
        texts = list(
            self.session.execute(
                select(qa_ruling_table)
                .where(qa_ruling_table.c.qa_id == qa_id)
                .order_by(qa_ruling_table.c.locale)
            )
        )
        if not texts:
            return None
        card_ids = self.session.execute(
            select(qa_card_table.c.card_id)
            .where(qa_card_table.c.qa_id == qa_id)
            .order_by(qa_card_table.c.position)
        ).scalars()
        tags = self.session.execute(
            select(qa_tag_table.c.tag)
            .where(qa_tag_table.c.qa_id == qa_id)
            .order_by(qa_tag_table.c.position)
        ).scalars()
        return Ruling(
            qa_id=qa_id,
            titles={row.locale: row.title for row in texts if row.title is not None},
            questions={row.locale: row.question for row in texts if row.question is not None},
            answers={row.locale: row.answer for row in texts if row.answer is not None},
            dates={row.locale: row.date for row in texts if row.date is not None},
            card_ids=tuple(card_ids),
            tags=tuple(tags),
        )

    def save(self, ruling: Ruling) -> None:
        qa_id = ruling.qa_id
        self._delete([qa_id])
        locales = sorted({*ruling.titles, *ruling.questions, *ruling.answers})
        if locales:
            self.session.execute(
                qa_ruling_table.insert(),
                [
                    {
                        "qa_id": qa_id,
                        "locale": locale,
                        "title": ruling.titles.get(locale),
                        "question": ruling.questions.get(locale),
                        "answer": ruling.answers.get(locale),
                        "date": ruling.dates.get(locale),
                    }
                    for locale in locales
                ],
            )
        if ruling.card_ids:
            self.session.execute(
                qa_card_table.insert(),
                [
                    {"qa_id": qa_id, "position": position, "card_id": card_id}
                    for position, card_id in enumerate(ruling.card_ids)
                ],
            )
        if ruling.tags:
            self.session.execute(
                qa_tag_table.insert(),
                [
                    {"qa_id": qa_id, "position": position, "tag": tag}
                    for position, tag in enumerate(ruling.tags)
                ],
            )

    def evict(self, qa_ids: Collection[int]) -> int:
        return self._delete(list(qa_ids))

    def clear(self) -> int:
        qa_ids = self.session.execute(select(qa_ruling_table.c.qa_id).distinct()).scalars()
        return self._delete(list(qa_ids))

    def _delete(self, qa_ids: list[int]) -> int:
        if not qa_ids:
            return 0
        present = self.session.execute(
            select(qa_ruling_table.c.qa_id)
            .where(qa_ruling_table.c.qa_id.in_(qa_ids))
            .distinct()
        ).scalars()
        removed = len(list(present))
        for table in RULING_TABLES:
            self.session.execute(delete(table).where(table.c.qa_id.in_(qa_ids)))
        return removed
