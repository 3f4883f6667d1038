"""Extract searches from free-form message text."""

from __future__ import annotations

import re
from typing import Final

from cardresolve.domain.model import Category, Locale, Query

_CODE_SPANS: Final = re.compile(r"`+.*?`+", re.DOTALL)
_SPOILERS: Final = re.compile(r"\|{2}.*?\|{2}", re.DOTALL)
_QUOTE_LINES: Final = re.compile(r"^\s*> .*$", re.MULTILINE)

_CATEGORY_CHARS: Final = re.escape("".join(category.value for category in Category))
_SEARCH_SYNTAX: Final = re.compile(
    rf"(?P<categories>[{_CATEGORY_CHARS}]*)\[(?P<term>[^\[\]]+?)\]"
    r"(?P<locale>de|en|es|fr|it|ja|jp|ko|pt)?"
)
_CARD_LINKS: Final = (
    re.compile(
        r"https?://www\.db\.yugioh-card\.com/yugiohdb/(?:card_search|faq_search)\.action"
        r"\?ope=[24]&cid=(\d+)"
    ),
    re.compile(r"https?://db\.(?:ygorganization|ygoresources)\.com/card#(\d+)"),
)
_QA_LINKS: Final = (
    re.compile(
        r"https?://www\.db\.yugioh-card\.com/yugiohdb/faq_search\.action\?ope=5&fid=(\d+)"
    ),
    re.compile(r"https?://db\.(?:ygorganization|ygoresources)\.com/qa#(\d+)"),
)


def strip_ignored(text: str) -> str:
    """Remove code spans, spoilers and quoted lines, then lower-case."""

    text = _CODE_SPANS.sub("", text)
    text = _SPOILERS.sub("", text)
    text = _QUOTE_LINES.sub("", text)
    return text.lower()


def parse_query(
    text: str,
    *,
    locale: str = Locale.EN,
    rulings: bool = False,
    official_only: bool = False,
) -> Query:
    """Build a :class:`Query` from ``<categories>[term]<locale>`` syntax and card links.

    ``ir[dark magician]ja`` asks for info and rulings in Japanese; without a
    prefix the default category is ruling in rulings mode and info otherwise.
    Q&A links become Q&A searches on their numeric id.
    """

    default_category = Category.RULING if rulings else Category.INFO
    query = Query(locale=locale, official_only=official_only, rulings=rulings)
    content = strip_ignored(text)

    for match in _SEARCH_SYNTAX.finditer(content):
        term = match.group("term").strip()
        if not term:
            continue
        parsed_locale = Locale.parse(match.group("locale") or "")
        target_locale = parsed_locale.value if parsed_locale is not None else locale
        categories = [Category(char) for char in match.group("categories")] or [default_category]
        for category in categories:
            query.add(term, category, target_locale)

    for pattern in _CARD_LINKS:
        for match in pattern.finditer(content):
            query.add(int(match.group(1)), default_category, locale)

    for pattern in _QA_LINKS:
        for match in pattern.finditer(content):
            query.add(int(match.group(1)), Category.QA, locale)

    return query
