"""
Command-line interface for livesearch.

Main Commands:
    find: Stream the matches of one query across the search paths
    files: Print the resolved, sorted set of searchable files

Example Usage:
    Basic search:
        $ livesearch find "def main" --path .

    Narrowed, with statistics:
        $ livesearch find TODO --include "src/**,*.md" --exclude "**/vendor" --stats

    Machine-readable output:
        $ livesearch find needle --format json

The exit status follows grep: 0 when something matched, 1 when nothing did,
2 on usage or configuration errors.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click
from rich.console import Console

from ..core.api import SearchEngine
from ..core.config import SearchConfig
from ..core.types import Done, FileResult, FirstBatch, MoreResults, OutputFormat, SearchStats
from ..utils.error_handling import SearchError
from ..utils.formatter import format_stats, format_text, render_highlight_console, to_json_bytes
from ..utils.logging_config import LogFormat, LogLevel, configure_logging


@click.group()
def cli() -> None:
    """livesearch - incremental full-text search across a workspace"""
    pass


def _setup_logging(debug: bool, log_file: str | None) -> None:
    configure_logging(
        level=LogLevel.DEBUG if debug else LogLevel.WARNING,
        format_type=LogFormat.DETAILED if debug else LogFormat.SIMPLE,
        log_file=Path(log_file) if log_file else None,
        enable_file=bool(log_file),
        enable_console=True,
    )


def _build_engine(cfg: SearchConfig) -> SearchEngine:
    try:
        return SearchEngine(cfg)
    except SearchError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)


async def _run_find(
    engine: SearchEngine,
    pattern: str,
    include: str | None,
    exclude: str | None,
    fmt: OutputFormat,
) -> tuple[list[FileResult], SearchStats | None]:
    session_id = await engine.open_session()
    collected: list[FileResult] = []
    stats: SearchStats | None = None
    query_len = len(pattern.strip())
    use_rich = fmt == OutputFormat.HIGHLIGHT and sys.stdout.isatty()
    console = Console() if use_rich else None

    try:
        stream = await engine.submit_query(session_id, pattern, include=include, exclude=exclude)
        async for event in stream:
            if isinstance(event, (FirstBatch, MoreResults)):
                collected.extend(event.results)
                if fmt == OutputFormat.JSON:
                    continue
                if use_rich:
                    render_highlight_console(event.results, query_len, console)
                else:
                    highlight = fmt == OutputFormat.HIGHLIGHT
                    click.echo(format_text(event.results, query_len, highlight=highlight))
            elif isinstance(event, Done):
                stats = event.stats
    finally:
        engine.close_session(session_id)
    return collected, stats


@cli.command("find")
@click.argument("pattern")
@click.option("--path", "paths", multiple=True, default=["."], help="Search root; may be repeated")
@click.option("--include", default=None, help="Comma-separated globs a path must match")
@click.option("--exclude", default=None, help="Comma-separated globs of paths to skip")
@click.option("--max-results", type=int, default=None, help="Stop after this many matching files")
@click.option(
    "--max-matches-per-file", type=int, default=None, help="Keep at most this many matches per file"
)
@click.option("--max-files", type=int, default=None, help="Search at most this many files")
@click.option(
    "--max-file-size", type=int, default=None, help="Skip files larger than this many bytes"
)
@click.option("--batch-size", type=int, default=None, help="Files scanned concurrently per batch")
@click.option(
    "--format",
    "fmt",
    type=click.Choice([e.value for e in OutputFormat]),
    default=OutputFormat.TEXT.value,
    help="Output format",
)
@click.option("--stats", is_flag=True, default=False, help="Print run statistics to stderr")
@click.option("--debug", is_flag=True, default=False, help="Enable debug logging")
@click.option("--log-file", default=None, help="Also write logs to this file")
def find_cmd(
    pattern: str,
    paths: tuple[str, ...],
    include: str | None,
    exclude: str | None,
    max_results: int | None,
    max_matches_per_file: int | None,
    max_files: int | None,
    max_file_size: int | None,
    batch_size: int | None,
    fmt: str,
    stats: bool,
    debug: bool,
    log_file: str | None,
) -> None:
    """Search for PATTERN (literal, case-insensitive) and stream the matches."""
    _setup_logging(debug, log_file)

    if not pattern.strip():
        click.echo("Error: the search pattern must not be empty", err=True)
        sys.exit(2)

    cfg = SearchConfig(
        paths=list(paths) or ["."],
        max_results=max_results,
        max_matches_per_file=max_matches_per_file,
        max_files_to_search=max_files,
    )
    if max_file_size is not None:
        cfg.max_file_size = max_file_size
    if batch_size is not None:
        cfg.batch_size = batch_size

    engine = _build_engine(cfg)
    output = OutputFormat(fmt)
    results, run_stats = asyncio.run(_run_find(engine, pattern, include, exclude, output))

    if output == OutputFormat.JSON:
        sys.stdout.write(to_json_bytes(results, run_stats).decode("utf-8"))
        sys.stdout.write("\n")

    if stats and run_stats is not None:
        sys.stderr.write(format_stats(run_stats) + "\n")

    if not results:
        sys.exit(1)


@cli.command("files")
@click.option("--path", "paths", multiple=True, default=["."], help="Search root; may be repeated")
@click.option("--max-files", type=int, default=None, help="List at most this many files")
@click.option("--debug", is_flag=True, default=False, help="Enable debug logging")
def files_cmd(paths: tuple[str, ...], max_files: int | None, debug: bool) -> None:
    """List the searchable files in folder-tree order."""
    _setup_logging(debug, None)
    engine = _build_engine(SearchConfig(paths=list(paths) or ["."], max_files_to_search=max_files))

    async def resolve() -> list[str]:
        session_id = await engine.open_session()
        try:
            return [ref.display_path for ref in engine.session_files(session_id)]
        finally:
            engine.close_session(session_id)

    for display_path in asyncio.run(resolve()):
        click.echo(display_path)


def main() -> None:
    cli(prog_name="livesearch")


if __name__ == "__main__":
    main()
