"""Write filtered live retrieval results to dated snapshot archives."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Iterable, List

from .dates import today
from .errors import NewsAggregatorError, ParseFailureError, SnapshotError
from .file_lock import locked_path
from .filters import apply_filters
from .logging_config import create_logger
from .models import Article, FilterCriteria
from .parsers import JsonParser
from .registry import write_json_atomic
from .retrieval import RetrievalEngine, archive_path

logger = create_logger("snapshot")


def encode_articles(articles: Iterable[Article]) -> str:
    return json.dumps(
        [article.model_dump(by_alias=True) for article in articles], ensure_ascii=False
    )


def read_snapshot(path: Path | str) -> List[Article]:
    """Load one archive file; raises ParseFailureError if it is missing or malformed."""
    resolved = Path(path).resolve()
    return JsonParser(str(resolved), resolved.stem).parse()


class SnapshotWriter:
    """
    Capture today's articles for the external scheduler.

    Each run overwrites the archive for `criteria.date_start`; retries are the
    scheduler's job.
    """

    def __init__(self, engine: RetrievalEngine):
        self.engine = engine

    def execute(self, criteria: FilterCriteria, storage_path: Path | str) -> Path:
        if not criteria.date_start:
            raise SnapshotError("create", "criteria.date_start names the archive and is required")
        target = archive_path(Path(storage_path), criteria.date_start)

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise SnapshotError("create", str(exc)) from exc

        try:
            articles = self.engine.parse_by_source(None)
            articles = apply_filters(articles, criteria)
        except NewsAggregatorError as exc:
            raise SnapshotError("parse", str(exc)) from exc

        try:
            payload = encode_articles(articles)
        except (TypeError, ValueError) as exc:
            raise SnapshotError("encode", str(exc)) from exc

        with locked_path(target):
            try:
                fd, tmp_name = tempfile.mkstemp(
                    dir=target.parent, prefix=f".{target.name}.", suffix=".tmp"
                )
            except OSError as exc:
                raise SnapshotError("create", str(exc)) from exc
            handle = os.fdopen(fd, "w", encoding="utf-8")
            try:
                try:
                    handle.write(payload)
                except OSError as exc:
                    raise SnapshotError("write", str(exc)) from exc
                finally:
                    try:
                        handle.close()
                    except OSError as exc:
                        raise SnapshotError("close", str(exc)) from exc
                os.replace(tmp_name, target)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise

        logger.info(f"Wrote {len(articles)} articles to {target}")
        return target


def run_daily_job(engine: RetrievalEngine, storage_path: Path | str) -> Path:
    """Archive everything published today across all registered sources."""
    criteria = FilterCriteria(date_start=today())
    return SnapshotWriter(engine).execute(criteria, storage_path)


def purge_source(
    storage_path: Path | str, source: str, dates: Iterable[str]
) -> List[Path]:
    """
    Drop a deleted source's articles from existing archives.

    Archives that do not exist are skipped. Returns the archives that were rewritten.
    """
    rewritten: List[Path] = []
    for day in dates:
        path = archive_path(Path(storage_path), day)
        if not path.exists():
            continue
        with locked_path(path):
            try:
                articles = read_snapshot(path)
            except ParseFailureError as exc:
                raise SnapshotError("parse", str(exc)) from exc
            kept = [a for a in articles if a.publisher != source]
            if len(kept) == len(articles):
                continue
            write_json_atomic(path, [a.model_dump(by_alias=True) for a in kept])
        logger.info(f"Removed {len(articles) - len(kept)} {source} articles from {path}")
        rewritten.append(path)
    return rewritten


__all__ = [
    "SnapshotWriter",
    "encode_articles",
    "purge_source",
    "read_snapshot",
    "run_daily_job",
]
