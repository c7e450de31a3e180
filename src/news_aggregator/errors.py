"""Error taxonomy shared by parsers, the registry, filters and retrieval."""

from __future__ import annotations


class NewsAggregatorError(Exception):
    """Base class for every error raised by the aggregator core."""


class UnsupportedFormatError(NewsAggregatorError, ValueError):
    def __init__(self, fmt: object):
        self.format = fmt
        super().__init__(f"data format {fmt!r} is not supported (expected xml, json or html)")


class InvalidSourceNameError(NewsAggregatorError, ValueError):
    def __init__(self, name: object):
        self.name = name
        super().__init__(f"source name must be 1-20 characters long, got {name!r}")


class DuplicateSourceError(NewsAggregatorError, ValueError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"source {name!r} is already registered")


class SourceNotFoundError(NewsAggregatorError, KeyError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"source {self.name!r} is not registered"


class DateParseError(NewsAggregatorError, ValueError):
    def __init__(self, value: str, detail: str = "no accepted layout matched"):
        self.value = value
        super().__init__(f"could not parse date {value!r}: {detail}")


class InvalidDateRangeError(NewsAggregatorError, ValueError):
    def __init__(self, start: str, end: str):
        self.start = start
        self.end = end
        super().__init__(f"start date {start} must be before or equal to end date {end}")


class ParseFailureError(NewsAggregatorError):
    """A source document could not be read or decoded as a whole."""

    def __init__(self, source: str, location: str, reason: str):
        self.source = source
        self.location = location
        self.reason = reason
        super().__init__(f"failed to parse source {source!r} at {location}: {reason}")


class AggregationError(NewsAggregatorError):
    """First failure observed among concurrent per-day snapshot workers."""

    def __init__(self, date: str, error: BaseException):
        self.date = date
        self.error = error
        super().__init__(f"snapshot retrieval failed for {date}: {error}")


class ManifestError(NewsAggregatorError):
    def __init__(self, path: object, reason: str):
        self.path = path
        super().__init__(f"invalid sources manifest {path}: {reason}")


class SnapshotError(NewsAggregatorError):
    """Wraps a failure of one stage of writing a dated snapshot archive."""

    STAGES = ("create", "parse", "encode", "write", "close")

    def __init__(self, stage: str, reason: str):
        self.stage = stage
        super().__init__(f"snapshot {stage} failed: {reason}")
