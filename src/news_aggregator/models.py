"""Data models for the news aggregator."""

from enum import Enum
from typing import Iterable, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

NAME_MIN_LENGTH = 1
NAME_MAX_LENGTH = 20


class Thumbnail(BaseModel):
    url: str
    width: Optional[int] = None
    height: Optional[int] = None


class Article(BaseModel):
    """Canonical representation of a news item produced by every parser."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    link: str = Field("", validation_alias=AliasChoices("link", "url"))
    publication_date: str = Field(
        "",
        validation_alias=AliasChoices("publishedAt", "pubDate", "publication_date"),
        serialization_alias="publishedAt",
        description="Raw publication date as the source wrote it; parsed lazily.",
    )
    description: str = ""
    publisher: str = Field("", validation_alias=AliasChoices("publisher", "Publisher"))
    category: Optional[str] = None
    thumbnails: List[Thumbnail] = Field(default_factory=list)

    @model_validator(mode="after")
    def _require_title_or_link(self) -> "Article":
        if not self.title.strip() and not self.link.strip():
            raise ValueError("an article needs a title or a link")
        return self


class SourceFormat(str, Enum):
    """Wire formats a source can be declared with."""

    XML = "xml"
    JSON = "json"
    HTML = "html"


class SourceDescriptor(BaseModel):
    """Registered source: unique name, declared format and physical location."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH)
    format: SourceFormat
    endpoint: str

    def to_manifest(self) -> dict:
        return {"name": self.name, "format": self.format.value, "endpoint": self.endpoint}


class FilterCriteria(BaseModel):
    """
    Filtering parameters for one request.

    - keywords: comma-separated OR list; empty means no constraint
    - date_start / date_end: free-form date strings; empty means unbounded
    - sources: logical source names; empty means every source
    """

    model_config = ConfigDict(frozen=True)

    keywords: str = ""
    date_start: str = ""
    date_end: str = ""
    sources: frozenset[str] = frozenset()

    @field_validator("sources", mode="before")
    @classmethod
    def _coerce_sources(cls, value):
        if value is None:
            return frozenset()
        if isinstance(value, str):
            value = value.split(",")
        return frozenset(s.strip() for s in value if s and s.strip())

    @classmethod
    def from_strings(
        cls,
        keywords: str = "",
        date_start: str = "",
        date_end: str = "",
        sources: str | Iterable[str] = "",
    ) -> "FilterCriteria":
        return cls(
            keywords=keywords or "",
            date_start=(date_start or "").strip(),
            date_end=(date_end or "").strip(),
            sources=sources,
        )

    @property
    def has_date_bounds(self) -> bool:
        return bool(self.date_start or self.date_end)
