"""Application wiring and entry points for the resolution engine."""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from cardresolve.adapters.name_index_files import FileNameIndexSnapshotStore
from cardresolve.adapters.sqlalchemy import Database
from cardresolve.adapters.tcgplayer import TcgPlayerClient
from cardresolve.adapters.ygoresources import YgoArtworkClient, YgoResourcesClient
from cardresolve.adapters.yugipedia import YugipediaClient
from cardresolve.config import (
    MissingConfigurationError,
    get_artwork_config,
    get_database_config,
    get_resolution_config,
    get_storage_config,
    get_tcgplayer_config,
    get_ygoresources_config,
    get_yugipedia_config,
)
from cardresolve.domain.card_store import CardStore
from cardresolve.domain.invalidation import ManifestTracker
from cardresolve.domain.model import ProvenanceTier
from cardresolve.domain.name_indices import NameIndexRegistry
from cardresolve.domain.parsing import parse_query
from cardresolve.domain.rate_limit import SlidingWindowLimiter
from cardresolve.domain.resolution import (
    ArtworkStage,
    PediaStage,
    PriceStage,
    RemoteStage,
    RulingStage,
    SnapshotStage,
    TermCacheStage,
    TieredResolver,
)
from cardresolve.domain.ruling_store import RulingStore
from cardresolve.domain.term_cache import TermCache

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from types import TracebackType

    from cardresolve.adapters.http_resilience import ResilientClient
    from cardresolve.config import ResilienceConfig, ResolutionConfig, StorageConfig
    from cardresolve.domain.model import Card, Category, Query, Ruling, Search
    from cardresolve.domain.ports import (
        ArtworkSource,
        NameIndexSnapshotStore,
        PediaSource,
        PriceSource,
        RemoteSource,
    )
    from cardresolve.domain.resolution import ResolverStage
    from cardresolve.domain.rate_limit import Clock, RateDecision

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SearchReport:
    """What the caller needs to render one Search or report that nothing matched."""

    canonical_term: str
    original_terms: frozenset[str]
    card: Card | None
    ruling: Ruling | None = None
    requested: Mapping[str, frozenset[Category]] = field(default_factory=dict)
    unresolved: Mapping[str, frozenset[Category]] = field(default_factory=dict)

    @property
    def resolved(self) -> bool:
        return (self.card is not None or self.ruling is not None) and not self.unresolved

    @classmethod
    def from_search(cls, search: Search) -> SearchReport:
        return cls(
            canonical_term=search.canonical_term,
            original_terms=frozenset(search.original_terms),
            card=search.card,
            ruling=search.ruling,
            requested={
                locale: frozenset(categories)
                for locale, categories in search.requirements.items()
            },
            unresolved={
                locale: frozenset(categories)
                for locale, categories in search.unresolved_requirements().items()
            },
        )


@dataclass(frozen=True, slots=True)
class RequestOutcome:
    query: Query
    rate: RateDecision | None = None
    reports: tuple[SearchReport, ...] = ()

    @property
    def rejected(self) -> bool:
        return self.rate is not None and not self.rate.allowed


class ResolutionEngine:
    """Owns every long-lived piece of resolution state.

    Term cache, card and ruling stores, name indices, manifest tracker, rate
    limiter and the remote clients are built here and handed to collaborators
    explicitly. The artwork, price and wiki sources are optional; without one,
    the categories only it can fill stay unresolved. Call :meth:`start` to begin
    periodic manifest checks and :meth:`aclose` to stop them and release the
    database and HTTP clients.
    """

    def __init__(
        self,
        *,
        database: Database,
        remote: RemoteSource,
        config: ResolutionConfig,
        snapshots: NameIndexSnapshotStore | None = None,
        artwork: ArtworkSource | None = None,
        prices: PriceSource | None = None,
        pedia: PediaSource | None = None,
        limiter_clock: Clock | None = None,
    ) -> None:
        self.config = config
        self.database = database
        self._remote = remote
        self._secondary = tuple(source for source in (artwork, prices, pedia) if source is not None)
        self._manifest_task: asyncio.Task[None] | None = None

        unit_of_work_factory = database.unit_of_work
        self.term_cache = TermCache(unit_of_work_factory)
        self.card_store = CardStore(unit_of_work_factory)
        self.ruling_store = RulingStore(unit_of_work_factory)
        self.tracker = ManifestTracker(source=remote, unit_of_work_factory=unit_of_work_factory)
        self.name_indices = NameIndexRegistry(
            remote,
            snapshots=snapshots,
            on_revision=self.tracker.observe_revision,
        )
        for sink in (self.term_cache, self.card_store, self.ruling_store, self.name_indices):
            self.tracker.add_sink(sink)

        timeout = config.stage_timeout_seconds
        stages: list[ResolverStage] = [
            TermCacheStage(term_cache=self.term_cache, card_store=self.card_store),
            SnapshotStage(card_store=self.card_store, term_cache=self.term_cache),
            RemoteStage(
                name_indices=self.name_indices,
                records=remote,
                term_cache=self.term_cache,
                card_store=self.card_store,
                min_match_score=config.min_match_score,
                timeout_seconds=timeout,
                on_revision=self.tracker.observe_revision,
            ),
        ]
        if artwork is not None:
            stages.append(
                ArtworkStage(artwork=artwork, card_store=self.card_store, timeout_seconds=timeout)
            )
        if prices is not None:
            stages.append(
                PriceStage(prices=prices, card_store=self.card_store, timeout_seconds=timeout)
            )
        stages.append(
            RulingStage(
                rulings=remote,
                ruling_store=self.ruling_store,
                timeout_seconds=timeout,
                on_revision=self.tracker.observe_revision,
            )
        )
        if pedia is not None:
            stages.append(
                PediaStage(
                    pedia=pedia,
                    card_store=self.card_store,
                    term_cache=self.term_cache,
                    timeout_seconds=timeout,
                )
            )
        self.resolver = TieredResolver(stages=tuple(stages))
        if limiter_clock is None:
            self.limiter = SlidingWindowLimiter(config.search_limit, config.search_window_seconds)
        else:
            self.limiter = SlidingWindowLimiter(
                config.search_limit, config.search_window_seconds, clock=limiter_clock
            )

    async def __aenter__(self) -> ResolutionEngine:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def start(self) -> None:
        """Schedule periodic manifest checks on the running event loop."""

        if self._manifest_task is None:
            self._manifest_task = asyncio.create_task(
                self.tracker.run_periodically(self.config.manifest_interval_seconds)
            )

    async def aclose(self) -> None:
        if self._manifest_task is not None:
            self._manifest_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._manifest_task
            self._manifest_task = None
        await self._remote.aclose()
        for source in self._secondary:
            await source.aclose()
        self.database.shutdown()

    async def resolve(self, query: Query) -> Query:
        return await self.resolver.resolve(query)

    async def handle_request(
        self,
        user_id: str,
        text: str,
        *,
        locale: str | None = None,
        rulings: bool = False,
        official_only: bool = False,
    ) -> RequestOutcome:
        """Parse ``text``, apply the per-user limit, and resolve what was asked for."""

        query = parse_query(
            text,
            locale=locale or self.config.default_locale,
            rulings=rulings,
            official_only=official_only,
        )
        if not query.searches:
            return RequestOutcome(query=query)

        decision = self.limiter.try_acquire(user_id, len(query))
        if not decision.allowed:
            log.info(
                "Rejected %d searches from %s: %d/%d used in window",
                len(query),
                user_id,
                decision.used,
                decision.limit,
            )
            return RequestOutcome(query=query, rate=decision)

        await self.resolve(query)
        return RequestOutcome(
            query=query,
            rate=decision,
            reports=tuple(SearchReport.from_search(search) for search in query.searches),
        )

    async def check_for_updates(self) -> bool:
        return await self.tracker.check_for_updates()

    def reset_caches(self, *, include_snapshot_terms: bool = False) -> None:
        """Forget everything learned from the remote source.

        Terms pointing at snapshot cards survive unless ``include_snapshot_terms``.
        """

        self.term_cache.clear(None if include_snapshot_terms else ProvenanceTier.REMOTE)
        self.card_store.clear(ProvenanceTier.REMOTE)
        self.ruling_store.clear()
        self.name_indices.drop(self.name_indices.loaded_locales)


def build_engine(
    *,
    database_uri: str | None = None,
    resolution: ResolutionConfig | None = None,
    storage: StorageConfig | None = None,
    client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    persist_name_indices: bool = True,
) -> ResolutionEngine:
    """Build an engine from environment configuration."""

    storage_config = storage or get_storage_config()
    database = Database(
        database_uri=database_uri or get_database_config(storage=storage_config).uri
    )
    database.startup()
    remote = YgoResourcesClient(config=get_ygoresources_config(), client_factory=client_factory)
    snapshots = (
        FileNameIndexSnapshotStore.from_storage(storage_config) if persist_name_indices else None
    )
    artwork = YgoArtworkClient(
        config=get_artwork_config(storage=storage_config), client_factory=client_factory
    )
    pedia = YugipediaClient(config=get_yugipedia_config(), client_factory=client_factory)
    prices: TcgPlayerClient | None
    try:
        prices = TcgPlayerClient(config=get_tcgplayer_config(), client_factory=client_factory)
    except MissingConfigurationError as exc:
        log.info("Price lookups disabled: %s", exc)
        prices = None
    return ResolutionEngine(
        database=database,
        remote=remote,
        config=resolution or get_resolution_config(),
        snapshots=snapshots,
        artwork=artwork,
        prices=prices,
        pedia=pedia,
    )


def resolve_text(
    text: str,
    *,
    user_id: str = "cli",
    locale: str | None = None,
    rulings: bool = False,
    official_only: bool = False,
    engine_factory: Callable[[], ResolutionEngine] = build_engine,
) -> RequestOutcome:
    """Resolve one message's worth of searches with a short-lived engine."""

    async def run() -> RequestOutcome:
        async with engine_factory() as engine:
            return await engine.handle_request(
                user_id,
                text,
                locale=locale,
                rulings=rulings,
                official_only=official_only,
            )

    return asyncio.run(run())


def check_manifest(
    *,
    engine_factory: Callable[[], ResolutionEngine] = build_engine,
) -> bool:
    """Run one manifest check and apply any evictions it reports."""

    async def run() -> bool:
        async with engine_factory() as engine:
            return await engine.check_for_updates()

    return asyncio.run(run())


def reset_cache(
    *,
    include_snapshot_terms: bool = False,
    engine_factory: Callable[[], ResolutionEngine] = build_engine,
) -> None:
    async def run() -> None:
        async with engine_factory() as engine:
            engine.reset_caches(include_snapshot_terms=include_snapshot_terms)

    asyncio.run(run())
