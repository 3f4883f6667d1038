"""Translate YGOResources payloads into domain objects."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from cardresolve.domain.errors import MalformedPayloadError
from cardresolve.domain.model import Card, ChangeDescriptor, FaqBlock, Ruling

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .schema import YgoCardResponse, YgoFaqData, YgoManifestChanges, YgoQaResponse

log = getLogger(__name__)

PENDULUM_FAQ_OFFSET = 100


def translate_card(response: YgoCardResponse) -> Card:
    """Build a :class:`Card` from a card-data response.

    Structural fields repeat in every locale; the first locale that carries one wins.
    """

    names: dict[str, str] = {}
    texts: dict[str, str] = {}
    secondary_texts: dict[str, str] = {}
    prints: dict[str, dict[str, str]] = {}
    structure: dict[str, object] = {}

    def first(key: str, value: object) -> None:
        if value is not None and structure.get(key) is None:
            structure[key] = value

    for locale, data in response.card_data.items():
        if data.name:
            names[locale] = data.name
        if data.effect_text:
            texts[locale] = data.effect_text
        if data.pendulum_effect_text:
            secondary_texts[locale] = data.pendulum_effect_text
        if data.prints:
            prints[locale] = {item.code: item.date or "" for item in data.prints}

        first("card_type", data.card_type)
        if data.card_type == "monster":
            first("attribute", data.attribute)
            first("level_rank", data.level if data.level is not None else data.rank)
            if data.link_arrows:
                markers = tuple(int(char) for char in data.link_arrows if char.isdigit())
                first("link_markers", markers)
            if data.properties:
                first("type_tags", tuple(str(item) for item in data.properties))
            first("attack", _stat(data.atk))
            first("defense", _stat(data.def_))
            first("pendulum_scale", data.pendulum_scale)
        else:
            first("card_property", data.property)

    return Card(
        card_id=response.card_id,
        names=names,
        texts=texts,
        secondary_texts=secondary_texts,
        prints=prints,
        faq=_translate_faq(response.faq_data) if response.faq_data else {},
        **structure,  # pyright: ignore[reportArgumentType]
    )


def _stat(value: int | str | None) -> int | None:
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.lstrip("-").isdecimal():
        return int(value)
    return None


def _translate_faq(faq: YgoFaqData) -> dict[str, tuple[FaqBlock, ...]]:
    lines: dict[str, dict[str, list[str]]] = {}

    def add(locale: str, index: str, text: str) -> None:
        lines.setdefault(locale, {}).setdefault(index, []).append(text)

    for effect, entries in faq.entries.items():
        for entry in entries:
            for locale, text in entry.items():
                add(locale, effect, text)
    for effect, entries in faq.pend_entries.items():
        index = _offset_index(effect)
        for entry in entries:
            for locale, text in entry.items():
                add(locale, index, text)

    return {
        locale: tuple(
            sorted(
                (FaqBlock(index, tuple(texts)) for index, texts in blocks.items()),
                key=lambda block: block.sort_key,
            )
        )
        for locale, blocks in lines.items()
    }


def _offset_index(effect: str) -> str:
    try:
        value = float(effect) + PENDULUM_FAQ_OFFSET
    except ValueError:
        return effect
    return str(int(value)) if value.is_integer() else str(value)


def translate_changes(changes: YgoManifestChanges, *, revision: int) -> ChangeDescriptor:
    raw_ids = [*changes.card, *changes.entity]
    try:
        entity_ids = frozenset(int(raw) for raw in raw_ids)
        qa_ids = frozenset(int(raw) for raw in changes.qa)
    except ValueError as exc:
        raise MalformedPayloadError(f"Non-numeric id in manifest: {changes!r}") from exc
    return ChangeDescriptor(
        revision=revision,
        entity_ids=entity_ids,
        name_index_locales=frozenset(changes.idx.name),
        qa_ids=qa_ids,
    )


def translate_name_index(payload: Mapping[str, int | list[int]]) -> dict[str, tuple[int, ...]]:
    entries: dict[str, tuple[int, ...]] = {}
    for name, ids in payload.items():
        values = (ids,) if isinstance(ids, int) else tuple(ids)
        key = name.lower()
        entries[key] = (*entries.get(key, ()), *values)
    return entries


def translate_ruling(qa_id: int, response: YgoQaResponse) -> Ruling:
    """Build a :class:`Ruling`, skipping translations marked as outdated."""

    titles: dict[str, str] = {}
    questions: dict[str, str] = {}
    answers: dict[str, str] = {}
    dates: dict[str, str] = {}
    for locale, data in response.qa_data.items():
        if data.translation_status == "outdated":
            continue
        if data.title:
            titles[locale] = data.title
        if data.question:
            questions[locale] = data.question
        if data.answer:
            answers[locale] = data.answer
        if data.this_src is not None and data.this_src.date:
            dates[locale] = data.this_src.date
    return Ruling(
        qa_id=qa_id,
        titles=titles,
        questions=questions,
        answers=answers,
        dates=dates,
        card_ids=tuple(response.cards),
        tags=tuple(response.tags),
    )
