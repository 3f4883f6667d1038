"""Manifest revision tracking and cache invalidation."""

from __future__ import annotations

import asyncio
import threading
from logging import getLogger
from typing import TYPE_CHECKING

from cardresolve.domain.errors import RemoteSourceError
from cardresolve.domain.model import ManifestState

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from cardresolve.domain.model import ChangeDescriptor
    from cardresolve.domain.ports import EvictionSink, ManifestSource, ResolutionUnitOfWork

log = getLogger(__name__)


class ManifestTracker:
    """Follow the authoritative revision counter and evict what it reports as stale.

    The tracker is either ``IDLE`` or ``REFRESHING``. A check that finds a newer
    revision fetches the change descriptor, hands it to every eviction sink and
    only then persists the new revision. Any remote failure leaves the stored
    revision untouched so the next check retries the same range.
    """

    def __init__(
        self,
        *,
        source: ManifestSource,
        unit_of_work_factory: Callable[[], ResolutionUnitOfWork],
        sinks: Iterable[EvictionSink] = (),
    ) -> None:
        self._source = source
        self._unit_of_work_factory = unit_of_work_factory
        self._sinks: list[EvictionSink] = list(sinks)
        self._state = ManifestState.IDLE
        self._revision: int | None = None
        self._revision_loaded = False
        self._lock = threading.Lock()

    @property
    def state(self) -> ManifestState:
        return self._state

    @property
    def revision(self) -> int | None:
        if not self._revision_loaded:
            with self._unit_of_work_factory() as uow:
                self._revision = uow.repositories.manifest.get_revision()
            self._revision_loaded = True
        return self._revision

    def add_sink(self, sink: EvictionSink) -> None:
        self._sinks.append(sink)

    async def observe_revision(self, revision: int) -> bool:
        """React to a revision seen on some other response."""

        cached = self.revision
        if cached is not None and revision <= cached:
            return False
        return await self.check_for_updates(observed_revision=revision)

    async def check_for_updates(self, *, observed_revision: int | None = None) -> bool:
        """Return ``True`` when a newer revision was found and its changes applied."""

        if not self._begin():
            log.debug("Manifest refresh already in progress")
            return False
        try:
            return await self._refresh(observed_revision)
        except RemoteSourceError as exc:
            log.warning("Manifest check failed, keeping revision %s: %s", self._revision, exc)
            return False
        finally:
            self._finish()

    async def run_periodically(self, interval_seconds: float) -> None:
        while True:
            try:
                await self.check_for_updates()
            except Exception:
                log.exception("Unexpected error while applying manifest changes")
            await asyncio.sleep(interval_seconds)

    async def _refresh(self, observed_revision: int | None) -> bool:
        cached = self.revision
        latest = (
            observed_revision
            if observed_revision is not None
            else await self._source.fetch_revision()
        )
        if cached is not None and latest <= cached:
            log.debug("Manifest revision %s is current (upstream %s)", cached, latest)
            return False
        if cached is None:
            log.info("No cached manifest revision, recording baseline %s", latest)
            self._store_revision(latest)
            return False

        changes = await self._source.fetch_changes(cached)
        self._apply(changes)
        self._store_revision(max(latest, changes.revision))
        log.info(
            "Manifest %s -> %s: %d cards changed, name indices changed for %s",
            cached,
            self._revision,
            len(changes.entity_ids),
            ", ".join(sorted(changes.name_index_locales)) or "no locales",
        )
        return True

    def _apply(self, changes: ChangeDescriptor) -> None:
        if changes.is_empty:
            return
        for sink in self._sinks:
            sink.apply_changes(changes)

    def _store_revision(self, revision: int) -> None:
        if self._revision is not None and revision <= self._revision:
            return
        with self._unit_of_work_factory() as uow:
            uow.repositories.manifest.set_revision(revision)
            uow.commit()
        self._revision = revision
        self._revision_loaded = True

    def _begin(self) -> bool:
        with self._lock:
            if self._state is ManifestState.REFRESHING:
                return False
            self._state = ManifestState.REFRESHING
            return True

    def _finish(self) -> None:
        with self._lock:
            self._state = ManifestState.IDLE
