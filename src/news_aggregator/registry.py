"""Source registry: logical feed name -> declared format, location and bound parser."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .config import Settings, get_settings
from .errors import (
    DuplicateSourceError,
    InvalidSourceNameError,
    ManifestError,
    SourceNotFoundError,
)
from .file_lock import ReadWriteLock, locked_path
from .logging_config import create_logger
from .models import NAME_MAX_LENGTH, NAME_MIN_LENGTH, SourceDescriptor, SourceFormat
from .parsers import Parser, coerce_format, create_parser
from .schema import validate_manifest

logger = create_logger("registry")

DEFAULT_SOURCES: Tuple[SourceDescriptor, ...] = (
    SourceDescriptor(
        name="abc",
        format=SourceFormat.XML,
        endpoint="https://abcnews.go.com/abcnews/internationalheadlines",
    ),
    SourceDescriptor(
        name="bbc", format=SourceFormat.XML, endpoint="https://feeds.bbci.co.uk/news/rss.xml"
    ),
    SourceDescriptor(
        name="washingtontimes",
        format=SourceFormat.XML,
        endpoint="https://www.washingtontimes.com/rss/headlines/news/world",
    ),
    SourceDescriptor(name="nbc", format=SourceFormat.JSON, endpoint="nbc-news.json"),
    SourceDescriptor(name="usatoday", format=SourceFormat.HTML, endpoint="https://usatoday.com"),
)


def validate_source_name(name: str) -> str:
    cleaned = (name or "").strip() if isinstance(name, str) else ""
    if not NAME_MIN_LENGTH <= len(cleaned) <= NAME_MAX_LENGTH:
        raise InvalidSourceNameError(name)
    return cleaned


def write_json_atomic(path: Path, payload: object) -> None:
    """Write JSON next to `path` and swap it into place so readers never see a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class SourceRegistry:
    """
    Process-wide mapping of source name -> descriptor and bound parser.

    Reads (list, lookups) may run concurrently; mutations are serialized and
    each one rewrites the manifest before returning. The registry is the only
    writer of the manifest file.
    """

    def __init__(
        self,
        manifest_path: Path | str,
        *,
        defaults: Iterable[SourceDescriptor] = DEFAULT_SOURCES,
        data_dir: Optional[Path] = None,
        timeout: Optional[float] = None,
    ):
        self.manifest_path = Path(manifest_path)
        self.data_dir = data_dir
        self.timeout = timeout
        self._defaults = tuple(defaults)
        self._descriptors: Dict[str, SourceDescriptor] = {}
        self._parsers: Dict[str, Parser] = {}
        self._lock = ReadWriteLock()
        self._load()

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SourceRegistry":
        settings = settings or get_settings()
        return cls(
            settings.sources_manifest,
            data_dir=settings.data_dir,
            timeout=settings.http_timeout,
        )

    # --- persistence ------------------------------------------------------

    def _read_manifest(self) -> List[SourceDescriptor]:
        try:
            payload = json.loads(self.manifest_path.read_text(encoding="utf-8"))
            validate_manifest(payload)
        except (OSError, json.JSONDecodeError, ValueError) as exc:
            raise ManifestError(self.manifest_path, str(exc)) from exc
        return [SourceDescriptor(**item) for item in payload]

    def _load(self) -> None:
        with self._lock.write():
            if self.manifest_path.exists():
                descriptors = self._read_manifest()
                logger.info(f"Loaded {len(descriptors)} sources from {self.manifest_path}")
            else:
                descriptors = list(self._defaults)
                logger.info(
                    f"No sources manifest at {self.manifest_path}; seeding {len(descriptors)} defaults"
                )
            self._descriptors = {d.name: d for d in descriptors}
            self._parsers = {d.name: self._bind(d) for d in descriptors}
            if not self.manifest_path.exists():
                self._persist(self._descriptors)

    def _persist(self, descriptors: Dict[str, SourceDescriptor]) -> None:
        payload = [descriptors[name].to_manifest() for name in sorted(descriptors)]
        with locked_path(self.manifest_path):
            write_json_atomic(self.manifest_path, payload)

    def _bind(self, descriptor: SourceDescriptor) -> Parser:
        return create_parser(
            descriptor.format,
            descriptor.endpoint,
            descriptor.name,
            data_dir=self.data_dir,
            timeout=self.timeout,
        )

    def _sorted(self) -> List[SourceDescriptor]:
        return [self._descriptors[name] for name in sorted(self._descriptors)]

    # --- mutations --------------------------------------------------------

    def register(self, name: str, fmt: SourceFormat | str, endpoint: str) -> SourceDescriptor:
        name = validate_source_name(name)
        descriptor = SourceDescriptor(name=name, format=coerce_format(fmt), endpoint=endpoint)
        with self._lock.write():
            if name in self._descriptors:
                raise DuplicateSourceError(name)
            parser = self._bind(descriptor)
            self._persist({**self._descriptors, name: descriptor})
            self._descriptors[name] = descriptor
            self._parsers[name] = parser
        logger.info(f"Registered source {name} ({descriptor.format.value}) at {endpoint}")
        return descriptor

    def update(
        self,
        name: str,
        fmt: SourceFormat | str | None = None,
        endpoint: Optional[str] = None,
    ) -> SourceDescriptor:
        new_format = coerce_format(fmt) if fmt else None
        with self._lock.write():
            current = self._descriptors.get(name)
            if current is None:
                raise SourceNotFoundError(name)
            if new_format is None and endpoint is None:
                return current
            changes = {}
            if new_format is not None:
                changes["format"] = new_format
            if endpoint is not None:
                changes["endpoint"] = endpoint
            updated = current.model_copy(update=changes)
            parser = self._bind(updated)
            self._persist({**self._descriptors, name: updated})
            self._descriptors[name] = updated
            self._parsers[name] = parser
        logger.info(f"Updated source {name}: {', '.join(sorted(changes))}")
        return updated

    def delete(self, name: str) -> SourceDescriptor:
        with self._lock.write():
            removed = self._descriptors.get(name)
            if removed is None:
                raise SourceNotFoundError(name)
            remaining = {k: v for k, v in self._descriptors.items() if k != name}
            self._persist(remaining)
            self._descriptors = remaining
            self._parsers.pop(name, None)
        logger.info(f"Deleted source {name}")
        return removed

    # --- reads ------------------------------------------------------------

    def list(self) -> List[SourceDescriptor]:
        """Name-sorted snapshot of the registered sources."""
        with self._lock.read():
            return self._sorted()

    def names(self) -> List[str]:
        with self._lock.read():
            return sorted(self._descriptors)

    def get(self, name: str) -> SourceDescriptor:
        with self._lock.read():
            descriptor = self._descriptors.get(name)
        if descriptor is None:
            raise SourceNotFoundError(name)
        return descriptor

    def parser_for(self, name: str) -> Parser:
        with self._lock.read():
            parser = self._parsers.get(name)
        if parser is None:
            raise SourceNotFoundError(name)
        return parser

    def parsers(self, names: Optional[Sequence[str]] = None) -> List[Parser]:
        """
        Bound parsers for `names` (all sources when empty), name-sorted.

        Names that are not registered are skipped.
        """
        with self._lock.read():
            if not names:
                return [self._parsers[name] for name in sorted(self._parsers)]
            wanted = []
            for name in dict.fromkeys(names):
                parser = self._parsers.get(name)
                if parser is None:
                    logger.warning(f"Skipping unknown source {name!r}")
                    continue
                wanted.append(parser)
            return wanted

    def __contains__(self, name: object) -> bool:
        with self._lock.read():
            return name in self._descriptors

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._descriptors)
