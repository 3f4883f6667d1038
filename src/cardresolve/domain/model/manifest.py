"""Change descriptors published by the authoritative source."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class ChangeDescriptor:
    """What changed upstream between the cached revision and ``revision``."""

    revision: int
    entity_ids: frozenset[int] = field(default_factory=frozenset)
    name_index_locales: frozenset[str] = field(default_factory=frozenset)
    qa_ids: frozenset[int] = field(default_factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return not (self.entity_ids or self.name_index_locales or self.qa_ids)
