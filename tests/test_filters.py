import pytest

from news_aggregator.errors import DateParseError
from news_aggregator.filters import (
    DateRangeFilter,
    FilterChain,
    KeywordFilter,
    SourceFilter,
    apply_filters,
    sort_by_publication_date,
)
from news_aggregator.models import Article, FilterCriteria


def make_article(**overrides) -> Article:
    base = {
        "title": "Sample headline",
        "link": "https://example.com/story",
        "publication_date": "2024-05-17T14:58:52Z",
        "description": "Sample description",
        "publisher": "abc",
    }
    base.update(overrides)
    return Article(**base)


ARTICLES = [
    make_article(title="Paraglide season opens", publisher="abc"),
    make_article(title="Markets rally", description="Stocks climb", publisher="bbc"),
    make_article(title="Storm warning", publication_date="not a date", publisher="nbc"),
]


@pytest.mark.parametrize("article", ARTICLES)
def test_empty_keywords_match_every_article(article):
    assert KeywordFilter().apply(article, FilterCriteria(keywords="")) is True


def test_keyword_filter_returns_only_matching_article_unchanged():
    original = ARTICLES[0].model_copy(deep=True)
    result = apply_filters(ARTICLES, FilterCriteria(keywords="glide"))

    assert result == [original]


def test_keywords_are_an_or_list_over_title_and_description():
    result = apply_filters(ARTICLES, FilterCriteria(keywords="Storm,climb"))
    assert [a.title for a in result] == ["Markets rally", "Storm warning"]


def test_keyword_match_is_case_sensitive():
    assert apply_filters(ARTICLES, FilterCriteria(keywords="GLIDE")) == []


def test_source_filter():
    criteria = FilterCriteria.from_strings(sources="bbc, nbc")
    assert SourceFilter().apply(ARTICLES[0], criteria) is False
    assert [a.publisher for a in apply_filters(ARTICLES, criteria)] == ["bbc", "nbc"]
    assert SourceFilter().apply(ARTICLES[0], FilterCriteria()) is True


@pytest.mark.parametrize("article", ARTICLES)
def test_no_date_bounds_pass_even_unparseable_dates(article):
    assert DateRangeFilter().apply(article, FilterCriteria()) is True


def test_unparseable_date_is_excluded_once_a_bound_is_set():
    undated = ARTICLES[2]
    assert DateRangeFilter().apply(undated, FilterCriteria(date_start="2024-01-01")) is False
    assert DateRangeFilter().apply(undated, FilterCriteria(date_end="2030-01-01")) is False


def test_date_range_is_inclusive_across_layouts():
    rss = make_article(publication_date="Sun, 19 May 2024 09:02:27 GMT")
    json_article = make_article(publication_date="2024-05-17T14:58:52Z")
    criteria = FilterCriteria(date_start="2024-05-17", date_end="2024-05-19")

    assert apply_filters([rss, json_article], criteria) == [rss, json_article]


def test_date_start_excludes_earlier_articles():
    early = make_article(publication_date="2024-05-18T23:59:59Z")
    late = make_article(publication_date="2024-05-19T00:00:00Z")
    assert apply_filters([early, late], FilterCriteria(date_start="2024-05-19")) == [late]


def test_date_end_excludes_later_articles():
    inside = make_article(publication_date="Sun, 19 May 2024 23:59:00 GMT")
    outside = make_article(publication_date="Mon, 20 May 2024 00:00:01 GMT")
    assert apply_filters([inside, outside], FilterCriteria(date_end="2024-05-19")) == [inside]


def test_invalid_bound_is_a_caller_error():
    with pytest.raises(DateParseError):
        apply_filters(ARTICLES, FilterCriteria(date_start="someday"))
    with pytest.raises(DateParseError):
        apply_filters([], FilterCriteria(date_end="19/05/2024"))


def test_filters_compose_with_and():
    criteria = FilterCriteria.from_strings(
        keywords="Markets,Storm", date_start="2024-05-01", sources="bbc,nbc"
    )
    # nbc matches keyword and source but its date does not parse.
    assert [a.title for a in apply_filters(ARTICLES, criteria)] == ["Markets rally"]


def test_chain_short_circuits_in_order():
    calls = []

    class Recorder:
        def apply(self, article, criteria):
            calls.append(article.title)
            return True

    chain = FilterChain([SourceFilter(), Recorder()])
    result = chain.apply(ARTICLES, FilterCriteria(sources=["abc"]))

    assert [a.publisher for a in result] == ["abc"]
    assert calls == ["Paraglide season opens"]


def test_apply_preserves_input_order():
    reversed_articles = list(reversed(ARTICLES))
    assert apply_filters(reversed_articles, FilterCriteria()) == reversed_articles


def test_sort_by_publication_date_puts_undated_last():
    older = make_article(title="older", publication_date="Sat, 18 May 2024 08:00:00 GMT")
    newer = make_article(title="newer", publication_date="2024-05-19T08:00:00Z")
    undated = make_article(title="undated", publication_date="")

    assert [a.title for a in sort_by_publication_date([undated, newer, older])] == [
        "older",
        "newer",
        "undated",
    ]
    assert [a.title for a in sort_by_publication_date([older, newer], reverse=True)] == [
        "newer",
        "older",
    ]


def test_criteria_are_immutable():
    criteria = FilterCriteria(keywords="glide")
    with pytest.raises(Exception):
        criteria.keywords = "other"
