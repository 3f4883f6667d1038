"""Translate Yugipedia card pages into domain cards.

Card pages carry their data in a ``CardTable2`` template, one ``| key = value``
parameter per line.
"""

from __future__ import annotations

import re
from logging import getLogger
from typing import TYPE_CHECKING, Final

from cardresolve.domain.model import Card, Locale

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .schema import YugipediaPage

log = getLogger(__name__)

ANIME_MARKER: Final[str] = "(anime)"

_RUBY = re.compile(r"\{\{Ruby\|([^|}]*)\|[^}]*\}\}")
_LINK = re.compile(r"\[\[(?:[^|\]]*\|)?([^\]]*)\]\]")
_BREAK = re.compile(r"<br\s*/?>", re.IGNORECASE)
_EMPHASIS = re.compile(r"'{2,}")


def select_page(pages: Sequence[YugipediaPage], term: str) -> YugipediaPage | None:
    """Pick the first page that is not an anime card, unless the term asks for one."""

    if not pages:
        return None
    wants_anime = "anime" in term
    for page in pages:
        if ANIME_MARKER in page.title and not wants_anime:
            continue
        return page
    return pages[0]


def find_property(name: str, wikitext: str) -> str | None:
    """Return the cleaned value of the ``name`` template parameter, if present."""

    match = re.search(rf"\| {re.escape(name)}\s*= (.*?)\n(?:\||\}})", wikitext, re.DOTALL)
    if match is None:
        return None
    value = _clean(match.group(1))
    return value or None


def _clean(value: str) -> str:
    value = _RUBY.sub(r"\1", value)
    value = _LINK.sub(r"\1", value)
    value = _BREAK.sub("\n", value)
    value = _EMPHASIS.sub("", value)
    return value.strip()


def _int_property(name: str, wikitext: str) -> int | None:
    raw = find_property(name, wikitext)
    if raw is None:
        return None
    token = raw.split()[0]
    return int(token) if token.lstrip("-").isdecimal() else None


def translate_page(page: YugipediaPage) -> Card:
    wikitext = page.wikitext
    names: dict[str, str] = {Locale.EN.value: find_property("en_name", wikitext) or page.title}
    texts: dict[str, str] = {}
    secondary_texts: dict[str, str] = {}

    lore = find_property("lore", wikitext)
    if lore:
        texts[Locale.EN.value] = lore
    pendulum = find_property("pendulum_effect", wikitext)
    if pendulum:
        secondary_texts[Locale.EN.value] = pendulum
    for locale in Locale:
        if locale is Locale.EN:
            continue
        name = find_property(f"{locale}_name", wikitext)
        if name:
            names[locale.value] = name
        text = find_property(f"{locale}_lore", wikitext)
        if text:
            texts[locale.value] = text

    card_type = (find_property("card_type", wikitext) or "monster").lower()
    card_property = find_property("property", wikitext) if card_type != "monster" else None
    attribute = find_property("attribute", wikitext)
    types = find_property("types", wikitext)
    level = _int_property("level", wikitext)
    if level is None:
        level = _int_property("rank", wikitext)

    return Card(
        card_id=_int_property("database_id", wikitext),
        passcode=_int_property("password", wikitext),
        names=names,
        texts=texts,
        secondary_texts=secondary_texts,
        card_type=card_type,
        card_property=card_property.lower() if card_property else None,
        attribute=attribute.lower() if attribute else None,
        level_rank=level,
        attack=_int_property("atk", wikitext),
        defense=_int_property("def", wikitext),
        pendulum_scale=_int_property("pendulum_scale", wikitext),
        type_tags=tuple(part.strip() for part in types.split("/")) if types else (),
        images={1: page.original.source} if page.original is not None else {},
    )
