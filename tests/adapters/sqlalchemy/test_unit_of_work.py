from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from cardresolve.adapters.sqlalchemy import Database, StartupError
from cardresolve.domain.model import ProvenanceTier, TermCacheRow

if TYPE_CHECKING:
    from collections.abc import Callable

    from cardresolve.adapters.sqlalchemy import SqlAlchemyUnitOfWork


def test_exception_rolls_back(sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork]) -> None:
    with pytest.raises(RuntimeError), sqlite_unit_of_work() as uow:
        uow.repositories.terms.upsert([TermCacheRow(term="dm", locale="en", card_id=1)])
        raise RuntimeError("abort")

    with sqlite_unit_of_work() as uow:
        assert uow.repositories.terms.rows_for("dm") == []


def test_uncommitted_work_is_discarded(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.terms.upsert(
            [TermCacheRow(term="dm", locale="en", card_id=1, tier=ProvenanceTier.SNAPSHOT)]
        )

    with sqlite_unit_of_work() as uow:
        assert uow.repositories.terms.rows_for("dm") == []


def test_repositories_unavailable_outside_context(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    uow = sqlite_unit_of_work()

    with pytest.raises(StartupError):
        _ = uow.repositories


def test_database_lifecycle() -> None:
    database = Database(database_uri="sqlite+pysqlite:///:memory:")

    with pytest.raises(StartupError):
        database.unit_of_work()

    database.startup()
    assert database.is_started
    with pytest.raises(StartupError):
        database.startup()

    with database.unit_of_work() as uow:
        assert uow.repositories.manifest.get_revision() is None

    database.shutdown()
    assert not database.is_started
