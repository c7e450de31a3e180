"""FastAPI service exposing source administration and filtered news retrieval."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .config import get_settings
from .errors import (
    DuplicateSourceError,
    NewsAggregatorError,
    SourceNotFoundError,
)
from .models import FilterCriteria, SourceDescriptor, SourceFormat
from .registry import SourceRegistry
from .retrieval import RetrievalEngine


app = FastAPI(title="News Aggregator")


class SourcePayload(BaseModel):
    name: str
    format: str
    endpoint: str


class SourceUpdatePayload(BaseModel):
    format: Optional[str] = None
    endpoint: Optional[str] = None


@lru_cache(maxsize=1)
def get_registry() -> SourceRegistry:
    """Registry shared by every request; override in tests via dependency_overrides."""
    return SourceRegistry.from_settings(get_settings())


def get_engine(registry: SourceRegistry = Depends(get_registry)) -> RetrievalEngine:
    return RetrievalEngine.from_settings(registry, get_settings())


def _error_response(exc: Exception) -> HTTPException:
    """Map core errors onto HTTP status codes."""
    if isinstance(exc, SourceNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, DuplicateSourceError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, ValueError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _source_body(descriptor: SourceDescriptor) -> Dict[str, str]:
    return descriptor.to_manifest()


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/news")
def get_news(
    keywords: str = "",
    date_from: str = Query("", alias="date-from"),
    date_end: str = Query("", alias="date-end"),
    sources: str = "",
    snapshots: bool = False,
    engine: RetrievalEngine = Depends(get_engine),
) -> List[Dict[str, Any]]:
    """
    Filtered articles. With `snapshots=true` the dated archives for
    [date-from, date-end] are read instead of the live sources.
    """
    try:
        criteria = FilterCriteria.from_strings(keywords, date_from, date_end, sources)
        articles = engine.retrieve(criteria, from_snapshots=snapshots)
    except (ValueError, NewsAggregatorError) as exc:
        raise _error_response(exc) from exc
    return [article.model_dump(by_alias=True) for article in articles]


@app.get("/sources")
def list_sources(registry: SourceRegistry = Depends(get_registry)) -> List[Dict[str, str]]:
    return [_source_body(d) for d in registry.list()]


@app.get("/sources/{name}")
def get_source(name: str, registry: SourceRegistry = Depends(get_registry)) -> Dict[str, str]:
    try:
        return _source_body(registry.get(name))
    except NewsAggregatorError as exc:
        raise _error_response(exc) from exc


@app.post("/sources", status_code=status.HTTP_201_CREATED)
def register_source(
    payload: SourcePayload, registry: SourceRegistry = Depends(get_registry)
) -> JSONResponse:
    try:
        descriptor = registry.register(payload.name, payload.format, payload.endpoint)
    except NewsAggregatorError as exc:
        raise _error_response(exc) from exc
    return JSONResponse(status_code=status.HTTP_201_CREATED, content=_source_body(descriptor))


@app.put("/sources/{name}")
def update_source(
    name: str,
    payload: SourceUpdatePayload,
    registry: SourceRegistry = Depends(get_registry),
) -> Dict[str, str]:
    if payload.format is None and payload.endpoint is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide a new format and/or endpoint.",
        )
    try:
        return _source_body(registry.update(name, payload.format, payload.endpoint))
    except NewsAggregatorError as exc:
        raise _error_response(exc) from exc


@app.delete("/sources/{name}")
def delete_source(name: str, registry: SourceRegistry = Depends(get_registry)) -> Dict[str, str]:
    try:
        registry.delete(name)
    except NewsAggregatorError as exc:
        raise _error_response(exc) from exc
    return {"status": "deleted", "name": name}


@app.get("/formats")
def list_formats() -> List[str]:
    return [fmt.value for fmt in SourceFormat]


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "news_aggregator.server:app",
        host=os.getenv("NEWS_HOST", "0.0.0.0"),
        port=int(os.getenv("NEWS_PORT", "8000")),
        reload=os.getenv("NEWS_RELOAD", "false").lower() == "true",
    )
