"""
Output formatting for livesearch results.

Results arrive batch by batch, so every function here formats a list of
``FileResult`` objects rather than one finished result set; callers render
each batch as it streams in.

Key Functions:
    format_text: ``display_path:line:column: preview`` lines, one per match
    to_json_bytes: orjson serialization of results plus run statistics
    render_highlight_console: rich console output with the match styled
    format_stats: one-line summary of a run's counters

Columns are printed 1-based, as editors and grep display them; the
``Match`` objects themselves keep 0-based columns.

Example:
    >>> from livesearch.utils.formatter import format_text
    >>> print(format_text(batch))
    src/app.ts:12:5: const foo = bar();
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict

import orjson
from rich.console import Console
from rich.text import Text

from ..core.types import FileResult, Match, SearchStats


def highlight_spans(
    line: str, spans: list[tuple[int, int]], marker_left: str = "[", marker_right: str = "]"
) -> str:
    """Wrap each ``(start, end)`` span of ``line`` in plain-text markers."""
    if not spans:
        return line
    spans = sorted(spans, key=lambda x: x[0])
    out: list[str] = []
    last = 0
    for a, b in spans:
        a = max(0, min(len(line), a))
        b = max(0, min(len(line), b))
        if a < last:
            a = last
        if b < a:
            continue
        out.append(line[last:a])
        out.append(marker_left)
        out.append(line[a:b])
        out.append(marker_right)
        last = b
    out.append(line[last:])
    return "".join(out)


def _match_span(m: Match, match_length: int) -> tuple[int, int]:
    return m.preview_column, m.preview_column + match_length


def format_match(m: Match, match_length: int = 0, highlight: bool = False) -> str:
    preview = m.preview
    if highlight and match_length:
        preview = highlight_spans(
            preview, [_match_span(m, match_length)], marker_left="[[", marker_right="]]"
        )
    return f"{m.display_path}:{m.line}:{m.column + 1}: {preview}"


def format_text(
    results: Sequence[FileResult], match_length: int = 0, highlight: bool = False
) -> str:
    """
    Format file results as plain text, one line per match.

    Args:
        results: File results of one or more batches
        match_length: Length of the query; needed only for highlighting
        highlight: Wrap the matched text in ``[[`` and ``]]`` markers

    Returns:
        Newline-joined match lines (no trailing newline)
    """
    return "\n".join(
        format_match(m, match_length, highlight) for r in results for m in r.matches
    )


def format_stats(stats: SearchStats) -> str:
    return (
        f"# files_total={stats.files_total} files_scanned={stats.files_scanned} "
        f"files_matched={stats.files_matched} matches={stats.matches} "
        f"skipped={stats.files_skipped} failed={stats.files_failed} "
        f"batches={stats.batches} elapsed_ms={stats.elapsed_ms:.2f}"
    )


def to_json_bytes(results: Sequence[FileResult], stats: SearchStats | None = None) -> bytes:
    """Serialize results (and optionally run statistics) with orjson."""
    payload: dict[str, object] = {"results": [r.to_dict() for r in results]}
    if stats is not None:
        payload["stats"] = asdict(stats)
    return orjson.dumps(payload, option=orjson.OPT_INDENT_2)


def render_highlight_console(
    results: Sequence[FileResult], match_length: int, console: Console | None = None
) -> None:
    """Render results grouped by file, with each match span styled."""
    if console is None:
        console = Console()
    for r in results:
        console.print(Text(r.display_path, style="bold magenta"))
        for m in r.matches:
            line = Text(f"{m.line:6d}:{m.column + 1:<4d} ", style="dim")
            preview = Text(m.preview)
            a, b = _match_span(m, match_length)
            preview.stylize("bold red", a, min(b, len(m.preview)))
            line.append_text(preview)
            console.print(line)
        console.print()
