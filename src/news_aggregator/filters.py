"""Filter chain narrowing an article set by source, publication date and keyword."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional, Protocol, Sequence, Tuple

from .dates import end_of_day, is_date_only, parse_date
from .errors import DateParseError
from .models import Article, FilterCriteria


class ArticleFilter(Protocol):
    def apply(self, article: Article, criteria: FilterCriteria) -> bool: ...


class SourceFilter:
    """Keep articles whose publisher is one of the requested sources."""

    def apply(self, article: Article, criteria: FilterCriteria) -> bool:
        if not criteria.sources:
            return True
        return article.publisher in criteria.sources


class KeywordFilter:
    """
    Keep articles whose title or description contains any keyword.

    Matching is case-sensitive. An empty keyword string splits into [""], which
    is a substring of everything, so no keywords means no constraint.
    """

    def apply(self, article: Article, criteria: FilterCriteria) -> bool:
        for keyword in criteria.keywords.split(","):
            if keyword in article.title or keyword in article.description:
                return True
        return False


def resolve_bounds(criteria: FilterCriteria) -> Tuple[Optional[datetime], Optional[datetime]]:
    """
    Parse the criteria's date bounds.

    A date-only end bound covers the whole day. Raises DateParseError when a
    bound is set but matches no accepted layout.
    """
    start = parse_date(criteria.date_start) if criteria.date_start else None
    end = None
    if criteria.date_end:
        end = parse_date(criteria.date_end)
        if is_date_only(criteria.date_end):
            end = end_of_day(end)
    return start, end


class DateRangeFilter:
    """
    Keep articles published within [date_start, date_end], inclusive.

    Without bounds every article passes, dated or not. With any bound set, an
    article whose date matches no accepted layout is excluded.
    """

    def apply(
        self,
        article: Article,
        criteria: FilterCriteria,
        bounds: Optional[Tuple[Optional[datetime], Optional[datetime]]] = None,
    ) -> bool:
        if not criteria.has_date_bounds:
            return True
        start, end = bounds if bounds is not None else resolve_bounds(criteria)
        try:
            published = parse_date(article.publication_date)
        except DateParseError:
            return False
        if start is not None and published < start:
            return False
        if end is not None and published > end:
            return False
        return True


class FilterChain:
    """Ordered predicates combined with short-circuit AND."""

    def __init__(self, filters: Optional[Sequence[ArticleFilter]] = None):
        self.source_filter = SourceFilter()
        self.date_filter = DateRangeFilter()
        self.keyword_filter = KeywordFilter()
        self.filters: Tuple[ArticleFilter, ...] = tuple(
            filters
            if filters is not None
            else (self.source_filter, self.date_filter, self.keyword_filter)
        )

    def matches(self, article: Article, criteria: FilterCriteria) -> bool:
        return all(f.apply(article, criteria) for f in self.filters)

    def apply(self, articles: Iterable[Article], criteria: FilterCriteria) -> List[Article]:
        """Return the articles passing every filter, in input order."""
        # Fail on a malformed bound even when there is nothing to filter.
        bounds = resolve_bounds(criteria)
        kept: List[Article] = []
        for article in articles:
            passed = True
            for f in self.filters:
                if isinstance(f, DateRangeFilter):
                    ok = f.apply(article, criteria, bounds)
                else:
                    ok = f.apply(article, criteria)
                if not ok:
                    passed = False
                    break
            if passed:
                kept.append(article)
        return kept


DEFAULT_CHAIN = FilterChain()


def apply_filters(articles: Iterable[Article], criteria: FilterCriteria) -> List[Article]:
    return DEFAULT_CHAIN.apply(articles, criteria)


def sort_by_publication_date(articles: Iterable[Article], reverse: bool = False) -> List[Article]:
    """
    Stable sort by parsed publication date.

    Articles whose date does not parse keep their relative order after the dated ones.
    """
    dated: List[Tuple[datetime, Article]] = []
    undated: List[Article] = []
    for article in articles:
        try:
            dated.append((parse_date(article.publication_date), article))
        except DateParseError:
            undated.append(article)
    dated.sort(key=lambda pair: pair[0], reverse=reverse)
    return [article for _, article in dated] + undated


__all__ = [
    "DateRangeFilter",
    "FilterChain",
    "KeywordFilter",
    "SourceFilter",
    "apply_filters",
    "resolve_bounds",
    "sort_by_publication_date",
]
