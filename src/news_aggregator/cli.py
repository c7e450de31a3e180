"""Command-line entry points for fetching, archiving and managing news sources."""

import json
from pathlib import Path
from typing import Any, List, Optional, Tuple

import typer
from rich import print as rprint

from .config import get_settings
from .dates import generate_date_range
from .errors import NewsAggregatorError
from .filters import sort_by_publication_date
from .models import Article, FilterCriteria
from .registry import SourceRegistry
from .retrieval import RetrievalEngine
from .snapshot import purge_source, run_daily_job

app = typer.Typer(help="Fetch, filter and archive articles from registered news sources.")
sources_app = typer.Typer(help="Manage the registered news sources.")
app.add_typer(sources_app, name="sources")


def _build() -> Tuple[SourceRegistry, RetrievalEngine]:
    settings = get_settings()
    registry = SourceRegistry.from_settings(settings)
    return registry, RetrievalEngine.from_settings(registry, settings)


def _to_plain(articles: List[Article]) -> List[dict]:
    return [article.model_dump(by_alias=True) for article in articles]


def _write_output(out_path: Path, payload: Any) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


def _render(article: Article) -> str:
    lines = [f"[bold]{article.title}[/bold]"]
    meta = " | ".join(p for p in (article.publisher, article.publication_date) if p)
    if meta:
        lines.append(f"[dim]{meta}[/dim]")
    if article.description:
        lines.append(article.description)
    if article.link:
        lines.append(f"[cyan]{article.link}[/cyan]")
    return "\n".join(lines)


@app.command("fetch")
def fetch_command(
    keywords: str = typer.Option(
        "",
        "--keywords",
        "-k",
        help="Comma-separated keywords; an article matches if it contains any of them.",
    ),
    date_from: str = typer.Option(
        "", "--date-from", help="Earliest publication date, e.g. 2024-05-24."
    ),
    date_end: str = typer.Option(
        "", "--date-end", help="Latest publication date (inclusive), e.g. 2024-05-24."
    ),
    sources: str = typer.Option(
        "", "--sources", "-s", help="Comma-separated source names; empty means all."
    ),
    snapshots: bool = typer.Option(
        False,
        "--snapshots",
        help="Read the dated archives for [date-from, date-end] instead of live sources.",
    ),
    sort: bool = typer.Option(
        True, "--sort/--no-sort", help="Sort results by publication date."
    ),
    out: Optional[Path] = typer.Option(
        None, "--out", "-o", help="Optional JSON file to write the articles to."
    ),
):
    """Retrieve articles and print (or write) the ones matching the filters."""
    criteria = FilterCriteria.from_strings(keywords, date_from, date_end, sources)
    _, engine = _build()
    try:
        articles = engine.retrieve(criteria, from_snapshots=snapshots)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    except NewsAggregatorError as exc:
        rprint(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    if sort:
        articles = sort_by_publication_date(articles, reverse=True)

    if out:
        _write_output(out, _to_plain(articles))
        rprint(f"[cyan]Wrote {len(articles)} articles to {out}[/cyan]")
        return

    for article in articles:
        rprint(_render(article))
        rprint("")
    rprint(f"[green]{len(articles)} articles[/green]")


@app.command("snapshot")
def snapshot_command(
    storage: Optional[Path] = typer.Option(
        None, "--storage", help="Snapshot root; defaults to NEWS_STORAGE_DIR."
    ),
):
    """Archive today's articles from every registered source."""
    _, engine = _build()
    target_dir = storage or engine.storage_dir
    try:
        path = run_daily_job(engine, target_dir)
    except NewsAggregatorError as exc:
        rprint(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    rprint(f"[green]Stored at {path}[/green]")


@sources_app.command("list")
def sources_list():
    """Show every registered source."""
    registry, _ = _build()
    for descriptor in registry.list():
        rprint(f"{descriptor.name}\t{descriptor.format.value}\t{descriptor.endpoint}")


@sources_app.command("add")
def sources_add(
    name: str = typer.Argument(..., help="Unique source name (1-20 characters)."),
    fmt: str = typer.Argument(..., metavar="FORMAT", help="xml, json or html."),
    endpoint: str = typer.Argument(..., help="URL or file name of the feed."),
):
    """Register a new source."""
    registry, _ = _build()
    try:
        descriptor = registry.register(name, fmt, endpoint)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    rprint(f"[green]Registered {descriptor.name}[/green]")


@sources_app.command("update")
def sources_update(
    name: str = typer.Argument(..., help="Registered source name."),
    fmt: Optional[str] = typer.Option(None, "--format", "-f", help="New format."),
    endpoint: Optional[str] = typer.Option(None, "--endpoint", "-e", help="New location."),
):
    """Change the format and/or location of a source."""
    if fmt is None and endpoint is None:
        raise typer.BadParameter("Provide --format and/or --endpoint.")
    registry, _ = _build()
    try:
        descriptor = registry.update(name, fmt, endpoint)
    except (ValueError, KeyError) as exc:
        raise typer.BadParameter(str(exc)) from exc
    rprint(f"[green]Updated {descriptor.name}: {descriptor.format.value} {descriptor.endpoint}[/green]")


@sources_app.command("remove")
def sources_remove(
    name: str = typer.Argument(..., help="Registered source name."),
    purge_from: Optional[str] = typer.Option(
        None, "--purge-from", help="Also drop the source's articles from archives since this date."
    ),
    purge_to: Optional[str] = typer.Option(
        None, "--purge-to", help="Last archive date to purge (defaults to --purge-from)."
    ),
):
    """Delete a source, optionally purging its articles from stored archives."""
    registry, engine = _build()
    try:
        registry.delete(name)
    except KeyError as exc:
        raise typer.BadParameter(str(exc)) from exc
    rprint(f"[green]Deleted {name}[/green]")

    if purge_from:
        try:
            days = generate_date_range(purge_from, purge_to or purge_from)
        except ValueError as exc:
            raise typer.BadParameter(str(exc)) from exc
        try:
            rewritten = purge_source(engine.storage_dir, name, days)
        except NewsAggregatorError as exc:
            rprint(f"[red]{exc}[/red]")
            raise typer.Exit(code=1) from exc
        rprint(f"[cyan]Purged {name} from {len(rewritten)} archives[/cyan]")


def main():
    app()


if __name__ == "__main__":
    main()
