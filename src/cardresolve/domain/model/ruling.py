"""Question-and-answer rulings published alongside the card database."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True, slots=True, kw_only=True)
class Ruling:
    """One Q&A entry, with per-locale title, question and answer."""

    qa_id: int
    titles: Mapping[str, str] = field(default_factory=dict)
    questions: Mapping[str, str] = field(default_factory=dict)
    answers: Mapping[str, str] = field(default_factory=dict)
    dates: Mapping[str, str] = field(default_factory=dict)
    card_ids: tuple[int, ...] = ()
    tags: tuple[str, ...] = ()

    @property
    def locales(self) -> tuple[str, ...]:
        return tuple(self.questions)

    def has_text_in(self, locale: str) -> bool:
        return bool(
            self.titles.get(locale) and self.questions.get(locale) and self.answers.get(locale)
        )

    def title_in(self, locale: str) -> str | None:
        """Return the title in ``locale``, falling back to English."""

        return self.titles.get(locale) or self.titles.get("en")
