import json
from pathlib import Path

import pytest

from news_aggregator.config import get_settings
from news_aggregator.registry import SourceRegistry

RSS_SAMPLE = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/">
  <channel>
    <title>ABC News: International</title>
    <link>https://abcnews.go.com</link>
    <description>International headlines</description>
    <item>
      <title>Hang glider crosses the Alps</title>
      <link>https://abcnews.go.com/story/glider</link>
      <pubDate>Sun, 19 May 2024 09:02:27 GMT</pubDate>
      <description>A record flight over the mountains.</description>
      <category>International</category>
      <media:thumbnail url="https://abcnews.go.com/img/glider.jpg" width="240" height="160" />
    </item>
    <item>
      <link>https://abcnews.go.com/story/untitled</link>
      <pubDate>Sun, 19 May 2024 10:00:00 GMT</pubDate>
      <description>No title on this one.</description>
    </item>
    <item>
      <title>Markets open higher</title>
      <link>https://abcnews.go.com/story/markets</link>
      <pubDate>Sat, 18 May 2024 08:00:00 GMT</pubDate>
      <description>Stocks rally on Monday.</description>
    </item>
  </channel>
</rss>
"""

JSON_ENVELOPE_SAMPLE = {
    "status": "ok",
    "totalResults": 3,
    "articles": [
        {
            "source": {"id": "nbc-news", "name": "NBC News"},
            "author": "Staff",
            "title": "Ukraine talks resume",
            "description": "Negotiators meet again.",
            "url": "https://nbcnews.com/ukraine-talks",
            "urlToImage": "https://nbcnews.com/img/talks.jpg",
            "publishedAt": "2024-05-17T14:58:52Z",
            "content": "Full text",
        },
        {
            "source": {"id": None, "name": "NBC News"},
            "title": None,
            "description": "Entry without a title.",
            "url": "https://nbcnews.com/untitled",
            "publishedAt": "2024-05-17T15:00:00Z",
        },
        {
            "source": {"id": None, "name": "NBC News"},
            "title": "Weather update",
            "description": None,
            "url": "https://nbcnews.com/weather",
            "publishedAt": "2024-05-18T06:30:00Z",
        },
    ],
}

HTML_SAMPLE = """<html><body>
<main>
  <a class="section-helper-flex section-helper-row ten-column spacer-small p1-container"
     href="/story/news/politics/1">
    <div class="p1-title-spacer">Senate passes budget</div>
    <lit-timestamp publishdate="2024-05-19T12:00:00Z"></lit-timestamp>
  </a>
  <a class="section-helper-flex section-helper-row ten-column spacer-small p1-container"
     href="/story/news/missing">
    <span>Teaser without a headline</span>
  </a>
  <a class="section-helper-flex section-helper-row ten-column spacer-small p1-container"
     href="/story/sports/2" title="Playoffs tip off">
    <span>Playoffs tip off tonight</span>
  </a>
  <lit-timestamp publishdate="May 18, 2024"></lit-timestamp>
  <a class="unrelated" href="/ad">Advertisement</a>
</main>
</body></html>
"""


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def rss_file(tmp_path: Path) -> Path:
    path = tmp_path / "feeds" / "abc.xml"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(RSS_SAMPLE, encoding="utf-8")
    return path


@pytest.fixture
def json_file(tmp_path: Path) -> Path:
    path = tmp_path / "feeds" / "nbc-news.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(JSON_ENVELOPE_SAMPLE), encoding="utf-8")
    return path


@pytest.fixture
def html_file(tmp_path: Path) -> Path:
    path = tmp_path / "feeds" / "usa-today.html"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(HTML_SAMPLE, encoding="utf-8")
    return path


@pytest.fixture
def empty_registry(tmp_path: Path) -> SourceRegistry:
    return SourceRegistry(tmp_path / "sources.json", defaults=())


@pytest.fixture
def local_registry(empty_registry, rss_file, json_file, html_file) -> SourceRegistry:
    empty_registry.register("abc", "xml", str(rss_file))
    empty_registry.register("nbc", "json", str(json_file))
    empty_registry.register("usatoday", "html", str(html_file))
    return empty_registry


def write_archive(storage: Path, day: str, articles: list) -> Path:
    storage.mkdir(parents=True, exist_ok=True)
    path = storage / f"{day}.json"
    path.write_text(json.dumps(articles), encoding="utf-8")
    return path


@pytest.fixture
def archive_writer():
    return write_archive
