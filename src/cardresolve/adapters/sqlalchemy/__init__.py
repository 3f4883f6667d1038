"""SQLAlchemy adapter package for cardresolve."""

from __future__ import annotations

from .mappings import create_all_tables, metadata
from .repositories import (
    SqlAlchemyCardRepository,
    SqlAlchemyManifestRepository,
    SqlAlchemyRulingRepository,
    SqlAlchemyTermCacheRepository,
)
from .unit_of_work import Database, SqlAlchemyUnitOfWork, StartupError

__all__ = [
    "Database",
    "SqlAlchemyCardRepository",
    "SqlAlchemyManifestRepository",
    "SqlAlchemyRulingRepository",
    "SqlAlchemyTermCacheRepository",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "create_all_tables",
    "metadata",
]
