"""Term cache rows."""

from __future__ import annotations

from dataclasses import dataclass

from .enums import ProvenanceTier


@dataclass(frozen=True, slots=True, kw_only=True)
class TermCacheRow:
    """One learned alias pointing at a card held by ``tier``."""

    term: str
    locale: str
    card_id: int | None = None
    passcode: int | None = None
    name: str | None = None
    tier: ProvenanceTier = ProvenanceTier.REMOTE

    @property
    def canonical_term(self) -> str | None:
        if self.card_id is not None:
            return str(self.card_id)
        if self.passcode is not None:
            return str(self.passcode)
        if self.name:
            return self.name.lower()
        return None
