"""
Live and snapshot retrieval of articles.

Live retrieval runs registered parsers one after another. Snapshot retrieval
reads one dated archive per calendar day on a bounded thread pool and merges
the results. Both are fail-fast: the first error aborts the call and no
partial result is returned.

Snapshot results come back in no particular order; use
`filters.sort_by_publication_date` when a stable order matters.
"""

from __future__ import annotations

import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .config import Settings, get_settings
from .dates import generate_date_range
from .errors import AggregationError, ParseFailureError
from .filters import apply_filters
from .logging_config import create_logger
from .models import Article, FilterCriteria
from .parsers import JsonParser
from .registry import SourceRegistry

logger = create_logger("retrieval")

ARCHIVE_SUFFIX = ".json"


def archive_path(storage_dir: Path, day: str) -> Path:
    return Path(storage_dir) / f"{day}{ARCHIVE_SUFFIX}"


class RetrievalEngine:
    def __init__(
        self,
        registry: SourceRegistry,
        *,
        storage_dir: Path | str,
        max_workers: int = 8,
        skip_missing: bool = False,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1.")
        self.registry = registry
        self.storage_dir = Path(storage_dir)
        self.max_workers = max_workers
        self.skip_missing = skip_missing

    @classmethod
    def from_settings(
        cls, registry: SourceRegistry, settings: Optional[Settings] = None
    ) -> "RetrievalEngine":
        settings = settings or get_settings()
        return cls(
            registry,
            storage_dir=settings.storage_dir,
            max_workers=settings.max_snapshot_workers,
            skip_missing=settings.snapshot_skip_missing,
        )

    # --- live -------------------------------------------------------------

    def parse_by_source(self, names: Optional[Sequence[str]] = None) -> List[Article]:
        """
        Run the parsers of `names` (every registered source when empty).

        Unknown names are skipped. The first parser failure propagates and
        discards whatever the other sources returned.
        """
        articles: List[Article] = []
        for parser in self.registry.parsers(names):
            parsed = parser.parse()
            logger.info(f"Retrieved {len(parsed)} articles from {parser.source_name}")
            articles.extend(parsed)
        return articles

    # --- snapshots --------------------------------------------------------

    def from_files(self, date_start: str, date_end: str) -> List[Article]:
        """
        Read and merge the archives for every day in [date_start, date_end].

        Raises InvalidDateRangeError / DateParseError for a bad range and
        AggregationError wrapping the first per-day failure.
        """
        days = generate_date_range(date_start, date_end)

        articles: List[Article] = []
        articles_lock = threading.Lock()
        errors: "queue.Queue[Tuple[str, BaseException]]" = queue.Queue()
        cancelled = threading.Event()

        def fetch_day(day: str) -> None:
            if cancelled.is_set():
                return
            path = archive_path(self.storage_dir, day)
            if self.skip_missing and not path.exists():
                logger.debug(f"No archive for {day}; skipping")
                return
            try:
                parsed = JsonParser(str(path.resolve()), day).parse()
            except (ParseFailureError, OSError) as exc:
                cancelled.set()
                errors.put((day, exc))
                return
            if cancelled.is_set():
                return
            with articles_lock:
                articles.extend(parsed)

        worker_count = min(self.max_workers, len(days))
        logger.debug(f"Reading {len(days)} archives with {worker_count} workers")
        with ThreadPoolExecutor(max_workers=worker_count) as executor:
            futures = [executor.submit(fetch_day, day) for day in days]
        # Leaving the executor joins every worker; surface anything unexpected.
        for future, day in zip(futures, days):
            exc = future.exception()
            if exc is not None:
                errors.put((day, exc))

        if not errors.empty():
            day, exc = errors.get()
            logger.error(f"Snapshot retrieval {date_start}..{date_end} failed on {day}: {exc}")
            raise AggregationError(day, exc) from exc

        logger.info(f"Read {len(articles)} articles from {len(days)} archives")
        return articles

    # --- convenience --------------------------------------------------------

    def retrieve(self, criteria: FilterCriteria, *, from_snapshots: bool = False) -> List[Article]:
        """
        Retrieve then filter.

        Snapshot mode needs both dates; it reads the archives for that range.
        Otherwise the criteria's sources are parsed live.
        """
        if from_snapshots:
            if not (criteria.date_start and criteria.date_end):
                raise ValueError("Snapshot retrieval needs both date_start and date_end.")
            articles = self.from_files(criteria.date_start, criteria.date_end)
        else:
            articles = self.parse_by_source(sorted(criteria.sources))
        return apply_filters(articles, criteria)
