"""Token-level fuzzy name matching.

Names are split into script-aware tokens; reference tokens are paired with
candidate tokens by a minimum-cost assignment over a capped edit distance, and
the total cost is normalised so identical names score exactly ``1.0``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

import numpy as np
from rapidfuzz.distance import OSA
from scipy.optimize import linear_sum_assignment

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

MAX_DISTANCE: Final[int] = 4
SUBSTRING_DISTANCE: Final[int] = 1
OUT_OF_POSITION_PENALTY: Final[float] = 0.5

_TOKEN_PATTERN: Final[re.Pattern[str]] = re.compile(
    "[一-龠]+"  # kanji
    "|[ぁ-ゔ]+"  # hiragana
    "|[ァ-ヴー]+"  # katakana
    "|[0-9a-zÀ-ÖØ-öø-ɏ]+"  # latin, digits
    "|[０-９Ａ-Ｚａ-ｚ]+"  # full-width latin
    "|[々〆〤]"  # iteration marks
    "|[가-힣]"  # hangul, one syllable per token
)


@dataclass(frozen=True, slots=True)
class NameMatch:
    card_id: int
    score: float
    name: str | None = None


def tokenize(text: str) -> tuple[str, ...]:
    return tuple(_TOKEN_PATTERN.findall(text.casefold()))


def token_distance(reference: str, candidate: str) -> int:
    """Edit distance between two tokens, capped at ``MAX_DISTANCE``."""

    if reference == candidate:
        return 0
    if reference in candidate:
        return SUBSTRING_DISTANCE
    if abs(len(reference) - len(candidate)) >= MAX_DISTANCE:
        return MAX_DISTANCE
    return min(OSA.distance(reference, candidate, score_cutoff=MAX_DISTANCE), MAX_DISTANCE)


def similarity(reference: Sequence[str], candidate: Sequence[str]) -> float:
    """Score ``candidate`` tokens against ``reference`` tokens; ``1.0`` is a perfect match."""

    if not reference or not candidate:
        return 0.0

    ref_len = len(reference)
    width = max(len(candidate), ref_len)
    costs = np.full((ref_len, width), float(MAX_DISTANCE))
    for i, ref_token in enumerate(reference):
        for j, candidate_token in enumerate(candidate):
            cost = float(token_distance(ref_token, candidate_token))
            if ref_len > 1 and i != j:
                cost += OUT_OF_POSITION_PENALTY
            costs[i, j] = cost

    rows, cols = linear_sum_assignment(costs)
    total = float(costs[rows, cols].sum())
    # unmatched candidate words
    total += max(len(candidate) - ref_len, 0) / len(candidate)

    ceiling = MAX_DISTANCE * ref_len
    return (ceiling - total) / ceiling


def name_similarity(reference: str, candidate: str) -> float:
    return similarity(tokenize(reference), tokenize(candidate))


def rank_matches(matches: Iterable[NameMatch], limit: int) -> list[NameMatch]:
    """Order by score descending, then card id ascending, and keep ``limit``."""

    ordered = sorted(matches, key=lambda match: (-match.score, match.card_id))
    return ordered[: max(limit, 0)]


def merge_locale_matches(groups: Iterable[Iterable[NameMatch]], limit: int) -> list[NameMatch]:
    """Combine per-locale results keeping each card's best score."""

    best: dict[int, NameMatch] = {}
    for group in groups:
        for match in group:
            current = best.get(match.card_id)
            if current is None or match.score > current.score:
                best[match.card_id] = match
    return rank_matches(best.values(), limit)


class NameIndex:
    """Lower-cased name to card-id lookup for a single locale."""

    def __init__(self, locale: str, entries: Mapping[str, Iterable[int]]) -> None:
        self.locale = locale
        self._entries: dict[str, tuple[int, ...]] = {}
        for name, card_ids in entries.items():
            key = _name_key(name)
            # non-positive ids are skills and never resolvable
            kept = [card_id for card_id in card_ids if card_id > 0]
            if not kept:
                continue
            merged = dict.fromkeys((*self._entries.get(key, ()), *kept))
            self._entries[key] = tuple(merged)
        self._tokens = {name: tokenize(name) for name in self._entries}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and _name_key(name) in self._entries

    def ids_for(self, name: str) -> tuple[int, ...]:
        return self._entries.get(_name_key(name), ())

    def search(self, term: str, limit: int = 1) -> list[NameMatch]:
        reference = tokenize(term)
        if not reference or limit < 1:
            return []

        best: dict[int, NameMatch] = {}
        for name, card_ids in self._entries.items():
            score = similarity(reference, self._tokens[name])
            if score <= 0:
                continue
            for card_id in card_ids:
                current = best.get(card_id)
                if current is None or score > current.score:
                    best[card_id] = NameMatch(card_id=card_id, score=score, name=name)
        return rank_matches(best.values(), limit)


def _name_key(name: str) -> str:
    return " ".join(name.casefold().split())
