"""Pydantic views over the Canvas REST payloads the tooling reads."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ModuleSummary(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str


class ModuleItem(BaseModel):
    """One entry in a module outline (page reference, subheader, quiz, ...)."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: int
    title: str = ""
    type: str
    position: int
    page_url: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def coerce_title(cls, value: object) -> str:
        return "" if value is None else str(value)

    @property
    def is_page(self) -> bool:
        return self.type == "Page"

    @property
    def is_subheader(self) -> bool:
        return self.type == "SubHeader"


class PageRecord(BaseModel):
    """A wiki page; ``body`` is only present on single-page reads."""

    model_config = ConfigDict(extra="ignore")

    url: str
    title: str
    body: Optional[str] = None
    published: Optional[bool] = Field(default=None)


__all__ = ["ModuleItem", "ModuleSummary", "PageRecord"]
