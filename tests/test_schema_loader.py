import pytest

from news_aggregator import schema


def test_loads_default_schema():
    loaded = schema.load_schema()
    assert loaded.get("title") == "SourcesManifest"
    assert loaded["items"]["required"] == ["name", "format", "endpoint"]


def test_validate_accepts_manifest():
    payload = [
        {"name": "abc", "format": "xml", "endpoint": "https://abcnews.go.com/rss"},
        {"name": "nbc", "format": "json", "endpoint": "nbc-news.json"},
    ]
    assert schema.validate_manifest(payload) == payload


def test_validate_rejects_long_name():
    payload = [{"name": "x" * 21, "format": "xml", "endpoint": "x.xml"}]
    with pytest.raises(ValueError) as excinfo:
        schema.validate_manifest(payload)
    assert "0.name" in str(excinfo.value)


def test_validate_rejects_missing_endpoint():
    with pytest.raises(ValueError) as excinfo:
        schema.validate_manifest([{"name": "abc", "format": "xml"}])
    assert "endpoint" in str(excinfo.value)


def test_validate_rejects_non_list_root():
    with pytest.raises(ValueError):
        schema.validate_manifest({"abc": "xml"})


def test_validate_rejects_duplicate_names():
    payload = [
        {"name": "abc", "format": "xml", "endpoint": "a.xml"},
        {"name": "abc", "format": "json", "endpoint": "a.json"},
    ]
    with pytest.raises(ValueError) as excinfo:
        schema.validate_manifest(payload)
    assert "abc" in str(excinfo.value)
