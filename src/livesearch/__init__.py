"""
livesearch: incremental, cancelable full-text search over a workspace.

livesearch streams literal, case-insensitive substring matches across many
files in batches, so a host can render the first results while the rest of
the workspace is still being scanned. Several independent search sessions
can run side by side; a new query in a session makes its older scans stop
at their next batch boundary.

Main Classes:
    SearchEngine: Facade owning sessions, file snapshots and query runs
    SearchConfig: Exclusions, limits and batching parameters
    SearchQuery: Normalized query text
    FileResult / Match: Per-file and per-occurrence results
    FirstBatch / MoreResults / NoResults / Done: Stream events

Core Modules:
    core.resolver: Searchable file-set resolution and folder-tree ordering
    core.executor: Batched scan-and-stream loop
    core.session: Live-query registry
    search.matchers: Line matching and preview extraction
    search.globs: Glob pattern matching
    storage: File stores and the preview content cache
    cli: Command-line interface

Example Usage:
    >>> import asyncio
    >>> from livesearch import SearchEngine, SearchConfig
    >>> engine = SearchEngine(SearchConfig(paths=["."]))
    >>> result = asyncio.run(engine.search("TODO"))
    >>> for r in result.results:
    ...     print(r.display_path, len(r.matches))

    CLI usage:
        $ livesearch find TODO --path . --include "src/**" --stats
"""

from .core.types import (
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
from .core.config import SearchConfig
from .core.session import SessionRegistry
from .core.resolver import FileSetResolver
from .core.executor import QueryExecutor
from .core.api import SearchEngine
from .storage import ContentCache, FileStore, LocalFileStore, MemoryFileStore
from .utils.error_handling import (
    ConfigurationError,
    EncodingError,
    FileAccessError,
    PermissionError,
    SearchError,
    SessionError,
)
from .utils.logging_config import configure_logging, disable_logging, enable_debug_logging, get_logger

__version__ = "0.1.0"
__description__ = "Incremental, cancelable multi-file full-text search"

__all__ = [
    # Main classes
    "SearchEngine",
    "SearchConfig",
    "SessionRegistry",
    "FileSetResolver",
    "QueryExecutor",
    # Data types
    "ExecutorState",
    "FileRef",
    "SearchQuery",
    "Match",
    "FileResult",
    "SearchStats",
    "SearchResult",
    "OutputFormat",
    # Stream events
    "StreamEvent",
    "FirstBatch",
    "MoreResults",
    "NoResults",
    "Done",
    # Storage
    "FileStore",
    "LocalFileStore",
    "MemoryFileStore",
    "ContentCache",
    # Logging
    "configure_logging",
    "get_logger",
    "enable_debug_logging",
    "disable_logging",
    # Exceptions
    "SearchError",
    "FileAccessError",
    "PermissionError",
    "EncodingError",
    "ConfigurationError",
    "SessionError",
    "__version__",
    "__description__",
]
