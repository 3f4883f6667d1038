"""Shared per-locale fuzzy name indices with lazy loading and invalidation."""

from __future__ import annotations

import asyncio
import threading
from logging import getLogger
from typing import TYPE_CHECKING

from cardresolve.domain.errors import RemoteSourceError
from cardresolve.domain.matching import NameIndex, merge_locale_matches

if TYPE_CHECKING:
    from collections.abc import Iterable

    from cardresolve.domain.matching import NameMatch
    from cardresolve.domain.model import ChangeDescriptor
    from cardresolve.domain.ports import (
        FetchedNameIndex,
        NameIndexSnapshotStore,
        NameIndexSource,
        RevisionObserver,
    )

log = getLogger(__name__)


class NameIndexRegistry:
    """Owns one :class:`NameIndex` per locale.

    Missing locales are loaded on first use, from a disk snapshot when one is
    available and from the remote source otherwise. The revision reported by a
    remote response is handed to ``on_revision`` before the fetched index is
    installed, so pending invalidations are applied first.
    """

    def __init__(
        self,
        source: NameIndexSource,
        *,
        snapshots: NameIndexSnapshotStore | None = None,
        on_revision: RevisionObserver | None = None,
    ) -> None:
        self._source = source
        self._snapshots = snapshots
        self._on_revision = on_revision
        self._indices: dict[str, NameIndex] = {}
        self._loading: dict[str, asyncio.Event] = {}
        self._lock = threading.RLock()

    def set_revision_observer(self, observer: RevisionObserver | None) -> None:
        self._on_revision = observer

    @property
    def loaded_locales(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._indices)

    def get(self, locale: str) -> NameIndex | None:
        with self._lock:
            return self._indices.get(locale)

    def install(self, fetched: FetchedNameIndex) -> NameIndex:
        index = NameIndex(fetched.locale, fetched.entries)
        with self._lock:
            self._indices[fetched.locale] = index
        log.info("Loaded %s name index with %d names", fetched.locale, len(index))
        return index

    def drop(self, locales: Iterable[str]) -> None:
        """Forget ``locales`` so they are rebuilt on next use."""

        for locale in locales:
            with self._lock:
                removed = self._indices.pop(locale, None)
            if self._snapshots is not None:
                self._snapshots.delete(locale)
            if removed is not None:
                log.info("Dropped stale %s name index", locale)

    def apply_changes(self, changes: ChangeDescriptor) -> None:
        if changes.name_index_locales:
            self.drop(changes.name_index_locales)

    async def ensure(self, locales: Iterable[str]) -> None:
        """Load any of ``locales`` that are not held yet.

        Callers arriving while a locale is already loading wait for that load
        instead of starting their own.
        """

        missing = [locale for locale in dict.fromkeys(locales) if self.get(locale) is None]
        if not missing:
            return

        claimed: list[str] = []
        waiting: list[asyncio.Event] = []
        for locale in missing:
            pending = self._loading.get(locale)
            if pending is None:
                self._loading[locale] = asyncio.Event()
                claimed.append(locale)
            else:
                waiting.append(pending)
        try:
            if claimed:
                await self._load(claimed)
        finally:
            for locale in claimed:
                self._loading.pop(locale).set()
        for event in waiting:
            await event.wait()

    async def _load(self, missing: list[str]) -> None:
        remaining: list[str] = []
        for locale in missing:
            snapshot = self._snapshots.load(locale) if self._snapshots is not None else None
            if snapshot is None:
                remaining.append(locale)
            else:
                self.install(snapshot)
        if not remaining:
            return

        results = await asyncio.gather(
            *(self._source.fetch_name_index(locale) for locale in remaining),
            return_exceptions=True,
        )

        fetched: list[FetchedNameIndex] = []
        for locale, result in zip(remaining, results, strict=True):
            if isinstance(result, RemoteSourceError):
                log.warning("Could not load %s name index: %s", locale, result)
                continue
            if isinstance(result, BaseException):
                raise result
            fetched.append(result)

        revisions = [item.revision for item in fetched if item.revision is not None]
        if revisions and self._on_revision is not None:
            await self._on_revision(max(revisions))

        for item in fetched:
            self.install(item)
            if self._snapshots is not None:
                self._snapshots.save(item)

    async def search(
        self,
        term: str,
        locales: Iterable[str],
        *,
        limit: int = 1,
    ) -> list[NameMatch]:
        """Search ``term`` across ``locales``, keeping each card's best score."""

        ordered = list(dict.fromkeys(locales))
        await self.ensure(ordered)
        indices = [index for index in (self.get(locale) for locale in ordered) if index is not None]
        if not indices:
            return []
        groups = await asyncio.gather(
            *(asyncio.to_thread(index.search, term, limit) for index in indices)
        )
        if len(groups) == 1:
            return groups[0]
        return merge_locale_matches(groups, limit)
