"""Domain-facing access to cached Q&A rulings."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from cardresolve.domain.model import ChangeDescriptor, Ruling
    from cardresolve.domain.ports import ResolutionUnitOfWork

log = getLogger(__name__)


class RulingStore:
    def __init__(self, unit_of_work_factory: Callable[[], ResolutionUnitOfWork]) -> None:
        self._unit_of_work_factory = unit_of_work_factory

    def get(self, qa_id: int) -> Ruling | None:
        with self._unit_of_work_factory() as uow:
            return uow.repositories.rulings.get(qa_id)

    def save(self, ruling: Ruling) -> None:
        with self._unit_of_work_factory() as uow:
            uow.repositories.rulings.save(ruling)
            uow.commit()

    def clear(self) -> int:
        with self._unit_of_work_factory() as uow:
            removed = uow.repositories.rulings.clear()
            uow.commit()
        return removed

    def apply_changes(self, changes: ChangeDescriptor) -> None:
        if not changes.qa_ids:
            return
        with self._unit_of_work_factory() as uow:
            removed = uow.repositories.rulings.evict(changes.qa_ids)
            uow.commit()
        log.info("Evicted %d cached rulings", removed)
