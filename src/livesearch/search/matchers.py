"""
Line-level literal matching with bounded previews.

``extract_matches`` is a pure function: the same text and query always give
the same matches. Lines are split on ``\\n`` only, so a Windows ``\\r`` stays
at the end of the line content and counts towards its length. Matching is
case-insensitive through ``fold_case``, which keeps the line length, so
columns index the original line.
"""

from __future__ import annotations

from ..core.types import Match, fold_case

DEFAULT_PREVIEW_RADIUS = 50


def contains_query(text: str, query_lower: str) -> bool:
    """Quick reject: does the case-folded text contain the query at all."""
    return query_lower in fold_case(text)


def find_line_matches(line_lower: str, query_lower: str, limit: int | None = None) -> list[int]:
    """Start columns of all non-overlapping occurrences, left to right."""
    starts: list[int] = []
    if not query_lower:
        return starts
    step = len(query_lower)
    start = 0
    while limit is None or len(starts) < limit:
        j = line_lower.find(query_lower, start)
        if j == -1:
            break
        starts.append(j)
        start = j + step
    return starts


def make_preview(line: str, start: int, length: int, radius: int) -> tuple[str, int]:
    """
    Clamp ``line`` to a window around a match and trim whitespace.

    Returns ``(preview, preview_column)`` where ``preview_column`` is the
    match start inside the preview.
    """
    lo = max(0, start - radius)
    hi = min(len(line), start + length + radius)
    window = line[lo:hi]
    trimmed = window.lstrip()
    leading = len(window) - len(trimmed)
    return trimmed.rstrip(), start - lo - leading


def extract_matches(
    path: str,
    display_path: str,
    text: str,
    query_lower: str,
    max_matches_per_file: int | None = None,
    preview_radius: int = DEFAULT_PREVIEW_RADIUS,
) -> list[Match]:
    """
    Find every occurrence of ``query_lower`` in ``text``, line by line.

    Args:
        path: Absolute path of the file the text came from
        display_path: Workspace-relative path of the same file
        text: Decoded file content
        query_lower: Lower-cased query
        max_matches_per_file: Stop scanning once this many matches are found
        preview_radius: Characters kept on each side of a match in the preview

    Returns:
        Matches in line order, then column order.
    """
    matches: list[Match] = []
    if not query_lower:
        return matches

    for index, line in enumerate(text.split("\n")):
        remaining = None
        if max_matches_per_file is not None:
            remaining = max_matches_per_file - len(matches)
            if remaining <= 0:
                break

        line_lower = fold_case(line)
        for column in find_line_matches(line_lower, query_lower, remaining):
            preview, preview_column = make_preview(line, column, len(query_lower), preview_radius)
            matches.append(
                Match(
                    path=path,
                    display_path=display_path,
                    line=index + 1,
                    column=column,
                    preview=preview,
                    preview_column=preview_column,
                )
            )
    return matches
