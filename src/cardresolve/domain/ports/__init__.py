"""Narrow interfaces between the resolution domain and its adapters."""

from __future__ import annotations

from .persistence import (
    CardRepository,
    ManifestRepository,
    NameIndexSnapshotStore,
    RulingRepository,
    StoredCard,
    TermCacheRepository,
)
from .remote import (
    ArtworkSource,
    CardRecordSource,
    FetchedCard,
    FetchedNameIndex,
    FetchedRuling,
    ManifestSource,
    NameIndexSource,
    PediaSource,
    PriceSource,
    RemoteSource,
    RulingSource,
)
from .sinks import ConsolidationSink, EvictionSink, RevisionObserver
from .unit_of_work import (
    RepositoryCollection,
    ResolutionRepositories,
    ResolutionUnitOfWork,
    UnitOfWork,
)

__all__ = [
    "ArtworkSource",
    "CardRecordSource",
    "CardRepository",
    "ConsolidationSink",
    "EvictionSink",
    "FetchedCard",
    "FetchedNameIndex",
    "FetchedRuling",
    "ManifestRepository",
    "ManifestSource",
    "NameIndexSnapshotStore",
    "NameIndexSource",
    "PediaSource",
    "PriceSource",
    "RemoteSource",
    "RepositoryCollection",
    "ResolutionRepositories",
    "ResolutionUnitOfWork",
    "RevisionObserver",
    "RulingRepository",
    "RulingSource",
    "StoredCard",
    "TermCacheRepository",
    "UnitOfWork",
]
