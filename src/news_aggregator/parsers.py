"""
Format parsers that turn a source document into canonical Articles.

Three strategies exist, one per declared SourceFormat:
- XmlParser: RSS channel/item documents (feedparser)
- JsonParser: the article-search envelope `{status, totalResults, articles}`,
  or a bare list of Articles as written to snapshot archives
- HtmlParser: a scraped page keyed to a fixed anchor/timestamp selector pattern

Malformed individual entries are skipped. A location that cannot be read, or a
document whose root cannot be decoded, raises ParseFailureError.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

import feedparser
import requests
from bs4 import BeautifulSoup
from pydantic import BaseModel, ValidationError

from .config import get_settings
from .errors import ParseFailureError, UnsupportedFormatError
from .logging_config import create_logger
from .models import Article, SourceFormat, Thumbnail

logger = create_logger("parsers")

USER_AGENT = "news-aggregator/1.0 (feed reader)"

# Selectors for the scraped HTML front page.
ANCHOR_SELECTOR = "a.section-helper-flex.section-helper-row.ten-column.spacer-small.p1-container"
TITLE_SELECTOR = "div.p1-title-spacer"
TIMESTAMP_SELECTOR = "lit-timestamp"
TIMESTAMP_ATTRIBUTE = "publishdate"


def _is_url(location: str) -> bool:
    return location.lower().startswith(("http://", "https://"))


def resolve_location(location: str, data_dir: Optional[Path] = None) -> Path:
    path = Path(location).expanduser()
    if path.is_absolute():
        return path
    base = data_dir if data_dir is not None else get_settings().data_dir
    return Path(base) / path


def read_location(
    location: str,
    *,
    source: str = "",
    data_dir: Optional[Path] = None,
    timeout: Optional[float] = None,
) -> bytes:
    """Fetch an http(s) location or read a local file; raise ParseFailureError on I/O errors."""
    if not location:
        raise ParseFailureError(source, location, "empty location")

    if _is_url(location):
        try:
            response = requests.get(
                location,
                timeout=timeout if timeout is not None else get_settings().http_timeout,
                headers={"User-Agent": USER_AGENT},
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise ParseFailureError(source, location, str(exc)) from exc
        return response.content

    path = resolve_location(location, data_dir)
    try:
        return path.read_bytes()
    except OSError as exc:
        raise ParseFailureError(source, str(path), str(exc)) from exc


class Parser(ABC):
    """A source bound to one wire format and one physical location."""

    fmt: SourceFormat

    def __init__(
        self,
        location: str,
        source_name: str = "",
        *,
        data_dir: Optional[Path] = None,
        timeout: Optional[float] = None,
    ):
        self.location = location
        self.source_name = source_name
        self.data_dir = data_dir
        self.timeout = timeout

    def parse(self) -> List[Article]:
        raw = read_location(
            self.location,
            source=self.source_name,
            data_dir=self.data_dir,
            timeout=self.timeout,
        )
        articles = self.decode(raw)
        logger.debug(
            f"Parsed {len(articles)} articles from {self.source_name or self.location}"
        )
        return articles

    @abstractmethod
    def decode(self, raw: bytes) -> List[Article]:
        """Turn a whole document into Articles, preserving document order."""

    def _fail(self, reason: str) -> ParseFailureError:
        return ParseFailureError(self.source_name, self.location, reason)

    def _build(self, **fields: Any) -> Optional[Article]:
        if not str(fields.get("title") or "").strip():
            logger.debug(f"Skipping entry without title from {self.source_name or self.location}")
            return None
        try:
            return Article(**fields)
        except ValidationError as exc:
            logger.debug(f"Skipping malformed entry from {self.source_name}: {exc}")
            return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(source={self.source_name!r}, location={self.location!r})"


def _to_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class XmlParser(Parser):
    fmt = SourceFormat.XML

    def decode(self, raw: bytes) -> List[Article]:
        feed = feedparser.parse(raw)
        if not feed.get("version") and not feed.entries:
            reason = str(feed.get("bozo_exception") or "document is not an RSS feed")
            raise self._fail(reason)

        publisher = self.source_name or str(feed.feed.get("title", "")).strip()
        articles: List[Article] = []
        for entry in feed.entries:
            tags = entry.get("tags") or []
            category = next((t.get("term") for t in tags if t.get("term")), None)
            thumbnails = [
                Thumbnail(
                    url=thumb["url"],
                    width=_to_int(thumb.get("width")),
                    height=_to_int(thumb.get("height")),
                )
                for thumb in entry.get("media_thumbnail") or []
                if thumb.get("url")
            ]
            article = self._build(
                title=str(entry.get("title", "")).strip(),
                link=str(entry.get("link", "")).strip(),
                publication_date=str(entry.get("published", "")).strip(),
                description=str(entry.get("summary", "")).strip(),
                publisher=publisher,
                category=category,
                thumbnails=thumbnails,
            )
            if article is not None:
                articles.append(article)
        return articles


class JsonSource(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None


class JsonArticle(BaseModel):
    source: Optional[JsonSource] = None
    author: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    urlToImage: Optional[str] = None
    publishedAt: Optional[str] = None
    content: Optional[str] = None


class JsonParser(Parser):
    fmt = SourceFormat.JSON

    def decode(self, raw: bytes) -> List[Article]:
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise self._fail(f"invalid JSON: {exc}") from exc

        if isinstance(data, list):
            return self._decode_archive(data)
        if isinstance(data, dict) and isinstance(data.get("articles"), list):
            return self._decode_envelope(data["articles"])
        raise self._fail("expected an article envelope or a list of articles")

    def _decode_archive(self, items: List[Any]) -> List[Article]:
        articles: List[Article] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            try:
                articles.append(Article.model_validate(item))
            except ValidationError as exc:
                logger.debug(f"Skipping malformed archived article in {self.location}: {exc}")
        return articles

    def _decode_envelope(self, items: List[Any]) -> List[Article]:
        articles: List[Article] = []
        for item in items:
            try:
                entry = JsonArticle.model_validate(item)
            except ValidationError as exc:
                logger.debug(f"Skipping malformed JSON entry from {self.source_name}: {exc}")
                continue
            source_name = entry.source.name if entry.source else None
            thumbnails = [Thumbnail(url=entry.urlToImage)] if entry.urlToImage else []
            article = self._build(
                title=(entry.title or "").strip(),
                link=(entry.url or "").strip(),
                publication_date=(entry.publishedAt or "").strip(),
                description=(entry.description or "").strip(),
                publisher=self.source_name or (source_name or ""),
                thumbnails=thumbnails,
            )
            if article is not None:
                articles.append(article)
        return articles


class HtmlParser(Parser):
    fmt = SourceFormat.HTML

    def decode(self, raw: bytes) -> List[Article]:
        soup = BeautifulSoup(raw, "html.parser")
        if soup.find() is None:
            raise self._fail("document has no HTML elements")

        articles: List[Article] = []
        for anchor in soup.select(ANCHOR_SELECTOR):
            title_node = anchor.select_one(TITLE_SELECTOR)
            title = title_node.get_text(strip=True) if title_node else ""
            if not title:
                title = str(anchor.get("title", "")).strip()

            timestamp = anchor.select_one(TIMESTAMP_SELECTOR)
            if timestamp is None:
                # Only the element right after the anchor belongs to it.
                following = anchor.find_next_sibling()
                if following is not None and following.name == TIMESTAMP_SELECTOR:
                    timestamp = following
            published = str(timestamp.get(TIMESTAMP_ATTRIBUTE, "")).strip() if timestamp else ""

            href = str(anchor.get("href", "")).strip()
            if href and _is_url(self.location):
                href = urljoin(self.location, href)

            article = self._build(
                title=title,
                link=href,
                publication_date=published,
                description=anchor.get_text(" ", strip=True),
                publisher=self.source_name,
            )
            if article is not None:
                articles.append(article)
        return articles


PARSERS: Dict[SourceFormat, type[Parser]] = {
    SourceFormat.XML: XmlParser,
    SourceFormat.JSON: JsonParser,
    SourceFormat.HTML: HtmlParser,
}


def coerce_format(fmt: SourceFormat | str) -> SourceFormat:
    if isinstance(fmt, SourceFormat):
        return fmt
    try:
        return SourceFormat(str(fmt).strip().lower())
    except ValueError:
        raise UnsupportedFormatError(fmt) from None


def create_parser(
    fmt: SourceFormat | str,
    location: str,
    source_name: str = "",
    *,
    data_dir: Optional[Path] = None,
    timeout: Optional[float] = None,
) -> Parser:
    """Return the parser bound to `location` for the declared format."""
    parser_cls = PARSERS[coerce_format(fmt)]
    return parser_cls(location, source_name, data_dir=data_dir, timeout=timeout)
