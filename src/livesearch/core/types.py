"""
Core data types for livesearch.

This module contains the value types that flow through the search pipeline:
the resolved file references, the normalized query, the per-line matches,
the per-file results, and the events streamed to a consumer.

Key Types:
    FileRef: A searchable file (absolute path plus display path)
    SearchQuery: A normalized query string with its lower-cased form
    Match: One occurrence of the query inside one line of one file
    FileResult: All matches found in one file
    StreamEvent: Base class of FirstBatch, MoreResults, NoResults and Done
    ExecutorState: Lifecycle of a single query run
    SearchStats: Counters collected during a run

Example:
    >>> from livesearch.core.types import SearchQuery
    >>> q = SearchQuery.parse("  Foo ")
    >>> q.text, q.lower
    ('Foo', 'foo')
    >>> SearchQuery.parse("   ") is None
    True
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


def fold_case(text: str) -> str:
    """
    Lower-case ``text`` without changing its length.

    Characters whose lower-case form is longer than one code point (such as
    U+0130) are kept as they are, so every index into the folded string is
    also an index into ``text``.
    """
    lowered = text.lower()
    if len(lowered) == len(text):
        return lowered
    return "".join(c if len(c.lower()) != 1 else c.lower() for c in text)


class OutputFormat(str, Enum):
    TEXT = "text"
    JSON = "json"
    HIGHLIGHT = "highlight"


class ExecutorState(str, Enum):
    """Lifecycle of one query run."""

    IDLE = "idle"
    SCANNING = "scanning"
    COMPLETED = "completed"
    SUPERSEDED = "superseded"
    SESSION_CLOSED = "session_closed"

    @property
    def is_terminal(self) -> bool:
        return self not in (ExecutorState.IDLE, ExecutorState.SCANNING)


@dataclass(frozen=True, slots=True)
class FileRef:
    """
    A searchable file.

    Attributes:
        path: Absolute path, as understood by the file store
        display_path: Workspace-relative path shown to the user and used for
            include/exclude glob matching

    The byte size is not stored: it is fetched from the store when the file
    is scanned, since a snapshot of refs outlives changes to file contents.
    """

    path: str
    display_path: str


@dataclass(frozen=True, slots=True)
class SearchQuery:
    """
    A normalized query.

    Two queries are equal iff their trimmed texts are equal; the lower-cased
    form (see ``fold_case``) is derived and excluded from comparison.
    """

    text: str
    lower: str = field(compare=False)

    @classmethod
    def parse(cls, raw: str | None) -> SearchQuery | None:
        """Normalize raw user input, or return None for empty input."""
        if raw is None:
            return None
        text = raw.strip()
        if not text:
            return None
        return cls(text=text, lower=fold_case(text))

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True, slots=True)
class Match:
    """
    One occurrence of the query within one line.

    Attributes:
        path: Absolute path of the file
        display_path: Workspace-relative path of the file
        line: 1-based line number
        column: 0-based column of the match start within the full line
        preview: Trimmed window of the line around the match
        preview_column: Column of the match start within ``preview``
    """

    path: str
    display_path: str
    line: int
    column: int
    preview: str
    preview_column: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "display_path": self.display_path,
            "line": self.line,
            "column": self.column,
            "preview": self.preview,
            "preview_column": self.preview_column,
        }


@dataclass(slots=True)
class FileResult:
    """
    All matches of one file, in top-to-bottom, left-to-right order.

    ``decoration`` is an opaque value attached by the host (an icon
    descriptor, for example). The engine never reads it.
    """

    path: str
    display_path: str
    matches: list[Match]
    decoration: Any = None

    def __post_init__(self) -> None:
        if not self.matches:
            raise ValueError(f"FileResult for {self.path} must hold at least one match")
        for m in self.matches:
            if m.path != self.path:
                raise ValueError(f"Match for {m.path} does not belong to {self.path}")

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "path": self.path,
            "display_path": self.display_path,
            "matches": [m.to_dict() for m in self.matches],
        }
        if self.decoration is not None:
            out["decoration"] = self.decoration
        return out


@dataclass(slots=True)
class SearchStats:
    """
    Counters collected during one query run.

    Attributes:
        files_total: Files in the (filtered) snapshot handed to the run
        files_scanned: Files whose content was read and checked
        files_skipped: Files skipped for exceeding the size limit
        files_failed: Files that could not be stat'ed, read or decoded
        files_matched: Files with at least one match
        matches: Total matches across all files
        batches: Batches dispatched
        elapsed_ms: Wall time of the run in milliseconds
    """

    files_total: int = 0
    files_scanned: int = 0
    files_skipped: int = 0
    files_failed: int = 0
    files_matched: int = 0
    matches: int = 0
    batches: int = 0
    elapsed_ms: float = 0.0


@dataclass(frozen=True, slots=True)
class StreamEvent:
    """Base class of everything a query run emits."""

    session_id: str
    query: SearchQuery


@dataclass(frozen=True, slots=True)
class FirstBatch(StreamEvent):
    """The first batch with at least one matching file."""

    results: list[FileResult] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class MoreResults(StreamEvent):
    """Every later batch with at least one matching file."""

    results: list[FileResult] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class NoResults(StreamEvent):
    """The scan finished without a single matching file."""


@dataclass(frozen=True, slots=True)
class Done(StreamEvent):
    """The scan finished, or stopped early at the result limit."""

    stats: SearchStats = field(default_factory=SearchStats)


@dataclass(slots=True)
class SearchResult:
    """Everything one complete, non-streamed search produced."""

    results: list[FileResult] = field(default_factory=list)
    stats: SearchStats = field(default_factory=SearchStats)

    @property
    def files_matched(self) -> int:
        return len(self.results)

    @property
    def total_matches(self) -> int:
        return sum(len(r.matches) for r in self.results)
