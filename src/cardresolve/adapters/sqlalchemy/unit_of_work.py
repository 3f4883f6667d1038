"""SQLAlchemy engine ownership and units of work."""

from __future__ import annotations

from abc import ABC, abstractmethod
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from cardresolve.adapters.sqlalchemy.mappings import create_all_tables
from cardresolve.adapters.sqlalchemy.repositories import (
    SqlAlchemyCardRepository,
    SqlAlchemyManifestRepository,
    SqlAlchemyRulingRepository,
    SqlAlchemyTermCacheRepository,
)
from cardresolve.config.storage import get_database_config
from cardresolve.domain.ports.unit_of_work import RepositoryCollection, ResolutionRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the database is used before :meth:`Database.startup` or after shutdown."""


def _create_engine(uri: str) -> Engine:
    if uri.startswith("sqlite") and (":memory:" in uri or uri.rstrip("/").endswith("sqlite:")):
        return create_engine(
            uri,
            future=True,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_engine(uri, future=True)


class Database:
    """One long-lived engine plus the session factory units of work draw from."""

    def __init__(self, *, engine: Engine | None = None, database_uri: str | None = None) -> None:
        self._engine = engine
        self._database_uri = database_uri
        self._session_factory: sessionmaker[Session] | None = None

    @property
    def is_started(self) -> bool:
        return self._session_factory is not None

    @property
    def engine(self) -> Engine:
        if self._engine is None or self._session_factory is None:
            raise StartupError("Database not started. Call Database.startup() first.")
        return self._engine

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._session_factory is None:
            raise StartupError("Database not started. Call Database.startup() first.")
        return self._session_factory

    def startup(self) -> None:
        """Create the engine (if none was given) and the schema."""

        if self._session_factory is not None:
            raise StartupError("Database already started.")
        if self._engine is None:
            uri = self._database_uri or get_database_config().uri
            self._engine = _create_engine(uri)
        create_all_tables(self._engine)
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        log.debug("Database started on %s", self._engine.url)

    def shutdown(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
        self._session_factory = None

    def unit_of_work(self) -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(self.session_factory)


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """Generic SQLAlchemy unit of work with pluggable repository collections."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory
        self._session: Session | None = None
        self._repositories: TRepositories | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        self.session = self.session_factory()
        self._repositories = self._build_repositories(self.session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        if exc_type is not None:
            session.rollback()
        session.close()
        self.session = None
        self._repositories = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> TRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


class SqlAlchemyUnitOfWork(BaseSqlAlchemyUnitOfWork[ResolutionRepositories]):
    """Unit of work over the term cache, card snapshot, ruling and manifest repositories."""

    def _build_repositories(self, session: Session) -> ResolutionRepositories:
        return ResolutionRepositories(
            terms=SqlAlchemyTermCacheRepository(session),
            cards=SqlAlchemyCardRepository(session),
            manifest=SqlAlchemyManifestRepository(session),
            rulings=SqlAlchemyRulingRepository(session),
        )


if TYPE_CHECKING:
    from cardresolve.domain.ports import ResolutionUnitOfWork

    _uow_check: ResolutionUnitOfWork = SqlAlchemyUnitOfWork(sessionmaker())
