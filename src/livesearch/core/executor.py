"""
Batched scan-and-stream loop for one query.

A run registers its query as the session's live query, then walks the
resolved file list in consecutive batches. Batches run one after another;
the files inside a batch are scanned concurrently, so the batch size is the
concurrency width of a scan and bounds how much file content is held in
memory at once.

Liveness is checked before a batch is dispatched and again once its reads
have all completed, right before its results would be emitted. A run whose
query is no longer live ends silently. In-flight reads are never
interrupted: a new query only stops future batches of an older run.

Example:
    >>> async def show(store, files):
    ...     registry = SessionRegistry()
    ...     query = SearchQuery.parse("foo")
    ...     async for event in QueryExecutor(store, registry).run("s1", query, files):
    ...         print(type(event).__name__)
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator, Sequence
from pathlib import Path

from ..search.matchers import DEFAULT_PREVIEW_RADIUS, contains_query, extract_matches
from ..storage.file_store import FileStore
from ..utils.error_handling import ErrorCollector, handle_file_error
from ..utils.logging_config import SearchLogger, get_logger
from .config import DEFAULT_BATCH_SIZE, DEFAULT_MAX_FILE_SIZE
from .session import SessionRegistry
from .types import (
    Done,
    ExecutorState,
    FileRef,
    FileResult,
    FirstBatch,
    MoreResults,
    NoResults,
    SearchQuery,
    SearchStats,
    StreamEvent,
)


class QueryExecutor:
    """
    Runs one query over one file snapshot and streams its results.

    An executor is single-use: ``run`` may be called once. Its ``state``,
    ``stats`` and ``errors`` remain readable after the stream ends.
    """

    def __init__(
        self,
        store: FileStore,
        registry: SessionRegistry,
        logger: SearchLogger | None = None,
    ) -> None:
        self.store = store
        self.registry = registry
        self.logger = logger or get_logger()
        self.state = ExecutorState.IDLE
        self.stats = SearchStats()
        self.errors = ErrorCollector()

    def run(
        self,
        session_id: str,
        query: SearchQuery,
        files: Sequence[FileRef],
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        max_results: int | None = None,
        max_matches_per_file: int | None = None,
        preview_radius: int = DEFAULT_PREVIEW_RADIUS,
    ) -> AsyncIterator[StreamEvent]:
        """
        Register ``query`` as live for the session and return its event stream.

        Registration happens immediately, so any older run of the same
        session stops at its next batch boundary even if the returned stream
        is never consumed.
        """
        if self.state is not ExecutorState.IDLE:
            raise RuntimeError("QueryExecutor.run() may only be called once")
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        self.registry.set_live(session_id, query)
        self.state = ExecutorState.SCANNING
        return self._stream(
            session_id,
            query,
            files,
            batch_size,
            max_file_size,
            max_results,
            max_matches_per_file,
            preview_radius,
        )

    def _still_live(self, session_id: str, query: SearchQuery) -> bool:
        if self.registry.is_live(session_id, query):
            return True
        if self.registry.is_open(session_id):
            self.state = ExecutorState.SUPERSEDED
        else:
            self.state = ExecutorState.SESSION_CLOSED
        self.logger.log_query_superseded(session_id, query.text, self.state.value)
        return False

    async def _stream(
        self,
        session_id: str,
        query: SearchQuery,
        files: Sequence[FileRef],
        batch_size: int,
        max_file_size: int,
        max_results: int | None,
        max_matches_per_file: int | None,
        preview_radius: int,
    ) -> AsyncIterator[StreamEvent]:
        t0 = time.perf_counter()
        self.stats.files_total = len(files)
        self.logger.log_query_start(session_id, query.text, len(files))
        emitted = False

        for start in range(0, len(files), batch_size):
            if max_results is not None and self.stats.files_matched >= max_results:
                break
            if not self._still_live(session_id, query):
                return

            batch = files[start : start + batch_size]
            self.stats.batches += 1
            outcomes = await asyncio.gather(
                *(
                    self._scan_file(ref, query, max_file_size, max_matches_per_file, preview_radius)
                    for ref in batch
                )
            )
            # gather keeps input order, so results follow the file list
            results = [r for r in outcomes if r is not None]

            if not self._still_live(session_id, query):
                return
            if not results:
                continue

            self.stats.files_matched += len(results)
            self.stats.matches += sum(len(r.matches) for r in results)
            if emitted:
                yield MoreResults(session_id, query, results)
            else:
                emitted = True
                yield FirstBatch(session_id, query, results)

        if not self._still_live(session_id, query):
            return

        self.state = ExecutorState.COMPLETED
        self.stats.elapsed_ms = (time.perf_counter() - t0) * 1000.0
        self.logger.log_query_complete(
            session_id,
            query.text,
            self.stats.files_matched,
            self.stats.elapsed_ms,
            files_failed=self.stats.files_failed,
        )
        if self.stats.files_matched == 0:
            yield NoResults(session_id, query)
        yield Done(session_id, query, self.stats)

    async def _scan_file(
        self,
        ref: FileRef,
        query: SearchQuery,
        max_file_size: int,
        max_matches_per_file: int | None,
        preview_radius: int,
    ) -> FileResult | None:
        operation = "stat"
        try:
            size = await self.store.stat_size(ref.path)
            if size > max_file_size:
                self.stats.files_skipped += 1
                return None

            operation = "read"
            data = await self.store.read_bytes(ref.path)

            operation = "decode"
            text = data.decode("utf-8-sig", errors="replace")
            self.stats.files_scanned += 1

            if not contains_query(text, query.lower):
                return None

            operation = "match"
            matches = extract_matches(
                ref.path,
                ref.display_path,
                text,
                query.lower,
                max_matches_per_file=max_matches_per_file,
                preview_radius=preview_radius,
            )
        except Exception as e:
            self.stats.files_failed += 1
            handle_file_error(Path(ref.path), operation, e, self.errors, self.logger)
            return None

        if not matches:
            return None
        return FileResult(ref.path, ref.display_path, matches)
