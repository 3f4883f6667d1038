"""SQLAlchemy table metadata for the term cache, card snapshot, rulings and manifest."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
)

from cardresolve.domain.model import PriceRegion, ProvenanceTier

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

metadata = MetaData()


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _tier_column() -> Column[ProvenanceTier]:
    return Column("tier", Enum(ProvenanceTier, native_enum=False), nullable=False)


def _card_fk() -> Column[int]:
    return Column(
        "card_id",
        Integer,
        ForeignKey("card.card_id", ondelete="CASCADE"),
        primary_key=True,
    )


term_cache_table = Table(
    "term_cache",
    metadata,
    Column("term", String, primary_key=True),
    Column("locale", String(8), primary_key=True),
    Column("card_id", Integer, nullable=True),
    Column("passcode", Integer, nullable=True),
    Column("name", String, nullable=True),
    _tier_column(),
    Index("ix_term_cache_card_tier", "card_id", "tier"),
)

card_table = Table(
    "card",
    metadata,
    Column("card_id", Integer, primary_key=True, autoincrement=False),
    Column("passcode", Integer, nullable=True, index=True),
    _tier_column(),
    Column("card_type", String, nullable=True),
    Column("card_property", String, nullable=True),
    Column("attribute", String, nullable=True),
    Column("level_rank", Integer, nullable=True),
    Column("attack", Integer, nullable=True),
    Column("defense", Integer, nullable=True),
    Column("pendulum_scale", Integer, nullable=True),
    Column("updated_at", UTCDateTime(), nullable=False, default=_utcnow),
)

card_text_table = Table(
    "card_text",
    metadata,
    _card_fk(),
    Column("locale", String(8), primary_key=True),
    Column("name", String, nullable=True),
    Column("name_key", String, nullable=True, index=True),
    Column("text", Text, nullable=True),
    Column("secondary_text", Text, nullable=True),
)

card_type_tag_table = Table(
    "card_type_tag",
    metadata,
    _card_fk(),
    Column("position", Integer, primary_key=True),
    Column("tag", String, nullable=False),
)

card_link_marker_table = Table(
    "card_link_marker",
    metadata,
    _card_fk(),
    Column("position", Integer, primary_key=True),
    Column("marker", Integer, nullable=False),
)

card_print_table = Table(
    "card_print",
    metadata,
    _card_fk(),
    Column("locale", String(8), primary_key=True),
    Column("code", String, primary_key=True),
    Column("date", String, nullable=True),
)

card_price_table = Table(
    "card_price",
    metadata,
    _card_fk(),
    Column("region", Enum(PriceRegion, native_enum=False), primary_key=True),
    Column("position", Integer, primary_key=True),
    Column("print_code", String, nullable=True),
    Column("rarity", String, nullable=True),
    Column("low", Float, nullable=True),
    Column("mid", Float, nullable=True),
    Column("high", Float, nullable=True),
    Column("market", Float, nullable=True),
)

card_image_table = Table(
    "card_image",
    metadata,
    _card_fk(),
    Column("variant_id", Integer, primary_key=True),
    Column("location", String, nullable=False),
)

card_faq_table = Table(
    "card_faq",
    metadata,
    _card_fk(),
    Column("locale", String(8), primary_key=True),
    Column("block_index", String, primary_key=True),
    Column("position", Integer, primary_key=True),
    Column("line", Text, nullable=False),
)

qa_ruling_table = Table(
    "qa_ruling",
    metadata,
    Column("qa_id", Integer, primary_key=True, autoincrement=False),
    Column("locale", String(8), primary_key=True),
    Column("title", Text, nullable=True),
    Column("question", Text, nullable=True),
    Column("answer", Text, nullable=True),
    Column("date", String, nullable=True),
)

qa_card_table = Table(
    "qa_card",
    metadata,
    Column("qa_id", Integer, primary_key=True, autoincrement=False),
    Column("position", Integer, primary_key=True),
    Column("card_id", Integer, nullable=False, index=True),
)

qa_tag_table = Table(
    "qa_tag",
    metadata,
    Column("qa_id", Integer, primary_key=True, autoincrement=False),
    Column("position", Integer, primary_key=True),
    Column("tag", String, nullable=False),
)

RULING_TABLES = (qa_ruling_table, qa_card_table, qa_tag_table)

manifest_table = Table(
    "manifest",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("revision", Integer, nullable=False),
)

CARD_CHILD_TABLES = (
    card_text_table,
    card_type_tag_table,
    card_link_marker_table,
    card_print_table,
    card_price_table,
    card_image_table,
    card_faq_table,
)


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    metadata.create_all(engine)
