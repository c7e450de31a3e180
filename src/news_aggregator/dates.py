"""Date parsing against the layouts used by existing feeds and archives."""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional

from dateutil.parser import parse as parse_fuzzy_date

from .errors import DateParseError, InvalidDateRangeError

DAY_LAYOUT = "%Y-%m-%d"

# Tried in order; the first layout that parses wins.
DATE_LAYOUTS: tuple[str, ...] = (
    "%Y-%m-%dT%H:%M:%S%z",  # RFC3339
    "%Y-%m-%dT%H:%M:%S.%f%z",  # RFC3339 with fractional seconds
    "%a, %d %b %Y %H:%M:%S %z",  # RFC1123 / RFC1123Z
    "%d %b %Y %H:%M:%S %z",  # RFC1123 without weekday
    "%d %b %y %H:%M %z",  # RFC822 / RFC822Z
    "%a, %d %b %y %H:%M:%S %z",  # RFC822 with weekday and seconds
    "%A, %d-%b-%y %H:%M:%S %z",  # RFC850
    "%a %b %d %H:%M:%S %Y",  # ANSI C
    "%a %b %d %H:%M:%S %z %Y",  # Unix date
    "%Y-%m-%d %H:%M:%S",
    DAY_LAYOUT,
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%B %d, %Y %I:%M %p",
)

ZONE_OFFSETS = {
    "GMT": "+0000",
    "UTC": "+0000",
    "UT": "+0000",
    "EST": "-0500",
    "EDT": "-0400",
    "CST": "-0600",
    "CDT": "-0500",
    "MST": "-0700",
    "MDT": "-0600",
    "PST": "-0800",
    "PDT": "-0700",
    "BST": "+0100",
    "CET": "+0100",
    "CEST": "+0200",
    "AEST": "+1000",
    "AEDT": "+1100",
}
_ZONE_NAME = re.compile(r"\b(" + "|".join(sorted(ZONE_OFFSETS, key=len, reverse=True)) + r")\b")
_TRAILING_ZONE = re.compile(r"\b[A-Z]{2,5}$")
_DAY_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _normalize_zone(value: str) -> str:
    """Replace a zone abbreviation with its numeric offset so %z can read it."""
    return _ZONE_NAME.sub(lambda m: ZONE_OFFSETS[m.group(1)], value)


def _zone_for(name: str, offset: Optional[int]) -> timezone:
    """tzinfos hook for dateutil: known abbreviations map to their offset, unknown ones to UTC."""
    if offset is not None:
        return timezone(timedelta(seconds=offset))
    code = ZONE_OFFSETS.get(name)
    if code is None:
        return timezone.utc
    return datetime.strptime(code, "%z").tzinfo


def parse_date(value: str) -> datetime:
    """
    Parse `value` with the first matching layout in DATE_LAYOUTS.

    Returns a timezone-aware datetime; layouts without a zone are read as UTC.
    A value ending in a zone abbreviation no layout accepts is handed to
    dateutil, with unknown abbreviations read as UTC. Raises DateParseError
    when nothing matches.
    """
    if value is None:
        raise DateParseError("", "empty date")
    text = " ".join(str(value).split())
    if not text:
        raise DateParseError(value, "empty date")

    normalized = _normalize_zone(text)
    for layout in DATE_LAYOUTS:
        try:
            parsed = datetime.strptime(normalized, layout)
        except ValueError:
            continue
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    if _TRAILING_ZONE.search(text):
        try:
            parsed = parse_fuzzy_date(text, tzinfos=_zone_for)
        except (ValueError, OverflowError) as exc:
            raise DateParseError(value, str(exc)) from exc
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    raise DateParseError(value)


def is_date_only(value: str) -> bool:
    return bool(_DAY_ONLY.match(value.strip()))


def end_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.max, tzinfo=moment.tzinfo)


def _parse_day(value: str) -> date:
    if not is_date_only(value):
        raise DateParseError(value, "expected YYYY-MM-DD")
    try:
        return datetime.strptime(value.strip(), DAY_LAYOUT).date()
    except ValueError as exc:
        raise DateParseError(value, str(exc)) from exc


def generate_date_range(date_start: str, date_end: str) -> List[str]:
    """
    Return every calendar day between two YYYY-MM-DD dates, both inclusive.

    Raises DateParseError for malformed input and InvalidDateRangeError when
    the start is after the end.
    """
    start = _parse_day(date_start)
    end = _parse_day(date_end)
    if start > end:
        raise InvalidDateRangeError(date_start, date_end)
    return [
        (start + timedelta(days=offset)).strftime(DAY_LAYOUT)
        for offset in range((end - start).days + 1)
    ]


def today() -> str:
    """Today's date (UTC) in YYYY-MM-DD form, the name of today's archive."""
    return datetime.now(timezone.utc).strftime(DAY_LAYOUT)
