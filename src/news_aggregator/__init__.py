"""Package for aggregating, filtering and archiving news articles from registered feeds."""

__all__ = [
    "config",
    "dates",
    "errors",
    "filters",
    "models",
    "parsers",
    "registry",
    "retrieval",
    "snapshot",
]
