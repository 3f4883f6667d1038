from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from cardresolve.adapters.sqlalchemy import Database, SqlAlchemyUnitOfWork
from cardresolve.domain.card_store import CardStore
from cardresolve.domain.term_cache import TermCache

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def database(sqlite_engine: Engine) -> Iterator[Database]:
    db = Database(engine=sqlite_engine)
    db.startup()
    try:
        yield db
    finally:
        db.shutdown()


@pytest.fixture
def sqlite_unit_of_work(database: Database) -> Callable[[], SqlAlchemyUnitOfWork]:
    return database.unit_of_work


@pytest.fixture
def term_cache(sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork]) -> TermCache:
    return TermCache(sqlite_unit_of_work)


@pytest.fixture
def card_store(sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork]) -> CardStore:
    return CardStore(sqlite_unit_of_work)
