"""
Core search pipeline.

- types: value types and stream events
- config: search configuration
- session: per-session live-query registry
- resolver: searchable file-set resolution
- executor: batched scan-and-stream loop
- api: the ``SearchEngine`` facade
"""

from .types import (
    Done,
    ExecutorState,
    FileRef,
    FileResult,
    FirstBatch,
    Match,
    MoreResults,
    NoResults,
    OutputFormat,
    SearchQuery,
    SearchResult,
    SearchStats,
    StreamEvent,
)
from .config import SearchConfig
from .session import SessionRegistry
from .resolver import FileSetResolver, compare_paths, filter_file_refs, sort_file_refs
from .executor import QueryExecutor
from .api import SearchEngine

__all__ = [
    "Done",
    "ExecutorState",
    "FileRef",
    "FileResult",
    "FirstBatch",
    "Match",
    "MoreResults",
    "NoResults",
    "OutputFormat",
    "SearchQuery",
    "SearchResult",
    "SearchStats",
    "StreamEvent",
    "SearchConfig",
    "SessionRegistry",
    "FileSetResolver",
    "compare_paths",
    "filter_file_refs",
    "sort_file_refs",
    "QueryExecutor",
    "SearchEngine",
]
