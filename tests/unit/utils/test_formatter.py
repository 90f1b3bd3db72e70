"""Tests for livesearch.utils.formatter module."""

from __future__ import annotations

import orjson
from rich.console import Console

from livesearch.core.types import FileResult, Match, SearchStats
from livesearch.utils.formatter import (
    format_stats,
    format_text,
    highlight_spans,
    render_highlight_console,
    to_json_bytes,
)


def _result(display_path: str = "src/app.ts") -> FileResult:
    path = f"/w/{display_path}"
    return FileResult(
        path,
        display_path,
        [
            Match(path, display_path, 3, 6, "const foo = 1;", 6),
            Match(path, display_path, 9, 0, "foo()", 0),
        ],
    )


class TestHighlightSpans:
    """Tests for highlight_spans function."""

    def test_single_span(self):
        assert highlight_spans("say foo now", [(4, 7)]) == "say [foo] now"

    def test_spans_clamped_and_sorted(self):
        assert highlight_spans("abcdef", [(4, 99), (0, 1)], "<", ">") == "<a>bcd<ef>"

    def test_no_spans(self):
        assert highlight_spans("abc", []) == "abc"


class TestFormatText:
    """Tests for format_text function."""

    def test_one_line_per_match(self):
        out = format_text([_result()])
        assert out.splitlines() == [
            "src/app.ts:3:7: const foo = 1;",
            "src/app.ts:9:1: foo()",
        ]

    def test_highlight_markers(self):
        out = format_text([_result()], match_length=3, highlight=True)
        assert out.splitlines()[0] == "src/app.ts:3:7: const [[foo]] = 1;"

    def test_empty(self):
        assert format_text([]) == ""


class TestToJsonBytes:
    """Tests for to_json_bytes function."""

    def test_results_and_stats(self):
        payload = orjson.loads(to_json_bytes([_result()], SearchStats(files_total=4, matches=2)))
        assert payload["results"][0]["display_path"] == "src/app.ts"
        assert payload["results"][0]["matches"][1] == {
            "path": "/w/src/app.ts",
            "display_path": "src/app.ts",
            "line": 9,
            "column": 0,
            "preview": "foo()",
            "preview_column": 0,
        }
        assert payload["stats"]["files_total"] == 4

    def test_without_stats(self):
        payload = orjson.loads(to_json_bytes([]))
        assert payload == {"results": []}

    def test_decoration_included_when_set(self):
        result = _result()
        result.decoration = {"icon": "ts"}
        payload = orjson.loads(to_json_bytes([result]))
        assert payload["results"][0]["decoration"] == {"icon": "ts"}


class TestRendering:
    """Tests for stats line and rich rendering."""

    def test_format_stats(self):
        line = format_stats(SearchStats(files_total=10, files_matched=2, matches=5, elapsed_ms=1.5))
        assert line.startswith("# files_total=10")
        assert "matches=5" in line
        assert "elapsed_ms=1.50" in line

    def test_render_highlight_console(self):
        console = Console(record=True, width=120)
        render_highlight_console([_result()], 3, console)
        text = console.export_text()
        assert "src/app.ts" in text
        assert "const foo = 1;" in text
