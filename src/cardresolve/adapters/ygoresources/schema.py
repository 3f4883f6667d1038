"""YGOResources response schemas."""

from __future__ import annotations

import logging
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

log = logging.getLogger(__name__)


class YgoResourcesBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug(
            "YGOResources %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class YgoPrint(YgoResourcesBaseModel):
    code: str
    date: str | None = None


class YgoLocaleCardData(YgoResourcesBaseModel):
    name: str | None = None
    effect_text: str | None = Field(default=None, alias="effectText")
    pendulum_effect_text: str | None = Field(default=None, alias="pendulumEffectText")
    prints: list[YgoPrint] = Field(default_factory=list)
    card_type: str | None = Field(default=None, alias="cardType")
    attribute: str | None = None
    level: int | None = None
    rank: int | None = None
    link_arrows: str | None = Field(default=None, alias="linkArrows")
    properties: list[int | str] = Field(default_factory=list)
    atk: int | str | None = None
    def_: int | str | None = Field(default=None, alias="def")
    pendulum_scale: int | None = Field(default=None, alias="pendulumScale")
    property: str | None = None


class YgoFaqData(YgoResourcesBaseModel):
    entries: dict[str, list[dict[str, str]]] = Field(default_factory=dict)
    pend_entries: dict[str, list[dict[str, str]]] = Field(default_factory=dict, alias="pendEntries")


class YgoCardResponse(YgoResourcesBaseModel):
    card_id: int = Field(alias="cardId")
    card_data: dict[str, YgoLocaleCardData] = Field(default_factory=dict, alias="cardData")
    faq_data: YgoFaqData | None = Field(default=None, alias="faqData")


class YgoQaSource(YgoResourcesBaseModel):
    date: str | None = None


class YgoQaLocaleData(YgoResourcesBaseModel):
    title: str | None = None
    question: str | None = None
    answer: str | None = None
    this_src: YgoQaSource | None = Field(default=None, alias="thisSrc")
    translation_status: str | None = Field(default=None, alias="translationStatus")


class YgoQaResponse(YgoResourcesBaseModel):
    qa_data: dict[str, YgoQaLocaleData] = Field(default_factory=dict, alias="qaData")
    cards: list[int] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class YgoIndexChanges(YgoResourcesBaseModel):
    name: dict[str, Any] = Field(default_factory=dict)


class YgoManifestChanges(YgoResourcesBaseModel):
    card: dict[str, Any] = Field(default_factory=dict)
    qa: dict[str, Any] = Field(default_factory=dict)
    idx: YgoIndexChanges = Field(default_factory=YgoIndexChanges)
    entity: list[int | str] = Field(default_factory=list)


class YgoManifestResponse(YgoResourcesBaseModel):
    data: YgoManifestChanges


NAME_INDEX_ADAPTER: TypeAdapter[dict[str, int | list[int]]] = TypeAdapter(
    dict[str, int | list[int]]
)


class YgoArtworkEntry(YgoResourcesBaseModel):
    best_art: str | None = Field(default=None, alias="bestArt")


class YgoArtworkManifest(YgoResourcesBaseModel):
    cards: dict[str, dict[str, YgoArtworkEntry]] = Field(default_factory=dict)
