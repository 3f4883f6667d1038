"""Yugipedia MediaWiki query response schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class YugipediaBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class YugipediaRevision(YugipediaBaseModel):
    content: str = ""


class YugipediaImage(YugipediaBaseModel):
    source: str


class YugipediaPage(YugipediaBaseModel):
    page_id: int | None = Field(default=None, alias="pageid")
    title: str
    revisions: list[YugipediaRevision] = Field(default_factory=list)
    original: YugipediaImage | None = None

    @property
    def wikitext(self) -> str:
        return self.revisions[0].content if self.revisions else ""


class YugipediaQuery(YugipediaBaseModel):
    pages: list[YugipediaPage] = Field(default_factory=list)


class YugipediaQueryResponse(YugipediaBaseModel):
    query: YugipediaQuery | None = None
