"""
Engine facade for search hosts.

``SearchEngine`` is what a host (an editor panel, a TUI, the CLI) talks to.
It owns the session registry and one resolved file snapshot per session,
and starts a fresh ``QueryExecutor`` for every submitted query.

Typical host flow:
    >>> engine = SearchEngine(SearchConfig(paths=["."]))
    >>> session = await engine.open_session()
    >>> async for event in await engine.submit_query(session, "needle"):
    ...     handle(event)
    >>> engine.close_session(session)

Submitting a new query for a session makes every older run of that session
stop at its next batch boundary; none of its later batches are delivered.
"""

from __future__ import annotations

import asyncio
import threading
import uuid
from collections.abc import AsyncIterator, Callable
from typing import Any

from ..search.globs import GlobSet
from ..storage.content_cache import ContentCache
from ..storage.file_store import FileStore, LocalFileStore
from ..utils.error_handling import SessionError
from ..utils.logging_config import get_logger
from .config import SearchConfig
from .executor import QueryExecutor
from .resolver import FileSetResolver, filter_file_refs
from .session import SessionRegistry
from .types import (
    Done,
    FileRef,
    FileResult,
    FirstBatch,
    MoreResults,
    SearchQuery,
    SearchResult,
    StreamEvent,
)

InvalidationListener = Callable[[str], None]
Decorator = Callable[[FileResult], Any]


async def _empty_stream() -> AsyncIterator[StreamEvent]:
    return
    yield  # pragma: no cover


class SearchEngine:
    """
    Incremental multi-session search over a file store.

    Args:
        config: Search configuration (defaults when omitted)
        store: File store to search; a ``LocalFileStore`` over
            ``config.paths`` when omitted
        decorator: Optional callable whose return value is attached to every
            emitted ``FileResult`` as its opaque ``decoration``
        content_cache: Optional preview cache; it is subscribed to
            ``invalidate`` and used by ``get_file_content``
    """

    def __init__(
        self,
        config: SearchConfig | None = None,
        store: FileStore | None = None,
        decorator: Decorator | None = None,
        content_cache: ContentCache | None = None,
    ) -> None:
        self.cfg = config or SearchConfig()
        self.cfg.validate()
        self.store = store or LocalFileStore(self.cfg.paths, follow_symlinks=self.cfg.follow_symlinks)
        self.registry = SessionRegistry()
        self.resolver = FileSetResolver(self.store)
        self.decorator = decorator
        self.logger = get_logger()

        self._snapshots: dict[str, list[FileRef]] = {}
        self._stale: set[str] = set()
        self._submissions: dict[str, int] = {}
        self._executors: dict[str, QueryExecutor] = {}
        self._resolve_locks: dict[str, asyncio.Lock] = {}
        self._listeners: list[InvalidationListener] = []
        # guards state touched from watcher threads
        self._lock = threading.Lock()

        self.content_cache = content_cache
        if content_cache is not None:
            content_cache.attach(self)

    # Sessions

    async def open_session(self, session_id: str | None = None) -> str:
        """Open a session and resolve its file snapshot. Returns the session id."""
        sid = session_id or uuid.uuid4().hex
        self.registry.open(sid)
        self._submissions.setdefault(sid, 0)
        await self._refresh_snapshot(sid)
        return sid

    def close_session(self, session_id: str) -> None:
        """Close a session. Its in-flight run stops at the next batch boundary."""
        self.registry.clear(session_id)
        with self._lock:
            self._snapshots.pop(session_id, None)
            self._stale.discard(session_id)
        self._submissions.pop(session_id, None)
        self._executors.pop(session_id, None)
        self._resolve_locks.pop(session_id, None)

    async def refresh_session(self, session_id: str) -> list[FileRef]:
        """Re-resolve the file snapshot of a session."""
        self._require_session(session_id)
        return await self._refresh_snapshot(session_id)

    def session_files(self, session_id: str) -> list[FileRef]:
        self._require_session(session_id)
        with self._lock:
            return list(self._snapshots.get(session_id, ()))

    def current_executor(self, session_id: str) -> QueryExecutor | None:
        """The executor of the most recent query submitted for the session."""
        return self._executors.get(session_id)

    def _require_session(self, session_id: str) -> None:
        if not self.registry.is_open(session_id):
            raise SessionError(f"Unknown or closed search session: {session_id}", session_id)

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._resolve_locks.get(session_id)
        if lock is None:
            lock = self._resolve_locks[session_id] = asyncio.Lock()
        return lock

    async def _refresh_snapshot(self, session_id: str) -> list[FileRef]:
        async with self._lock_for(session_id):
            files = await self.resolver.resolve(
                self.cfg.get_exclude_patterns(),
                self.cfg.binary_extensions,
                max_files=self.cfg.max_files_to_search,
                time_budget=self.cfg.enumeration_timeout,
            )
            if self.registry.is_open(session_id):
                with self._lock:
                    self._snapshots[session_id] = files
                    self._stale.discard(session_id)
            return files

    async def _snapshot(self, session_id: str) -> list[FileRef]:
        with self._lock:
            files = self._snapshots.get(session_id)
            stale = session_id in self._stale
        if files is None or stale:
            files = await self._refresh_snapshot(session_id)
        return files

    # Queries

    async def submit_query(
        self,
        session_id: str,
        raw_text: str | None,
        include: str | None = None,
        exclude: str | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """
        Submit a query for a session and return its event stream.

        Args:
            session_id: An open session
            raw_text: User input; empty or whitespace-only input clears the
                session's live query and yields an empty stream
            include: Comma-joined globs a file's display path must match
            exclude: Comma-joined globs of display paths to skip

        Raises:
            SessionError: If the session is not open
        """
        self._require_session(session_id)
        seq = self._submissions.get(session_id, 0) + 1
        self._submissions[session_id] = seq

        query = SearchQuery.parse(raw_text)
        if query is None:
            self.registry.retire(session_id)
            return _empty_stream()

        files = await self._snapshot(session_id)
        # a newer submission or a close may have arrived while resolving
        if self._submissions.get(session_id) != seq or not self.registry.is_open(session_id):
            return _empty_stream()

        if include or exclude:
            files = filter_file_refs(files, GlobSet.from_csv(include), GlobSet.from_csv(exclude))

        executor = QueryExecutor(self.store, self.registry, self.logger)
        self._executors[session_id] = executor
        stream = executor.run(
            session_id,
            query,
            files,
            batch_size=self.cfg.batch_size,
            max_file_size=self.cfg.max_file_size,
            max_results=self.cfg.max_results,
            max_matches_per_file=self.cfg.max_matches_per_file,
            preview_radius=self.cfg.preview_radius,
        )
        if self.decorator is not None:
            stream = self._decorate(stream)
        return stream

    async def _decorate(self, stream: AsyncIterator[StreamEvent]) -> AsyncIterator[StreamEvent]:
        async for event in stream:
            if isinstance(event, (FirstBatch, MoreResults)):
                for result in event.results:
                    result.decoration = self.decorator(result)
            yield event

    async def search(
        self, pattern: str, include: str | None = None, exclude: str | None = None
    ) -> SearchResult:
        """One-shot search in a throwaway session; collects every batch."""
        session_id = await self.open_session()
        result = SearchResult()
        try:
            stream = await self.submit_query(session_id, pattern, include=include, exclude=exclude)
            async for event in stream:
                if isinstance(event, (FirstBatch, MoreResults)):
                    result.results.extend(event.results)
                elif isinstance(event, Done):
                    result.stats = event.stats
        finally:
            self.close_session(session_id)
        return result

    # Invalidation

    def add_invalidation_listener(self, listener: InvalidationListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_invalidation_listener(self, listener: InvalidationListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def invalidate(self, path: str) -> None:
        """Tell content caches layered on the engine that ``path`` changed."""
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(path)
            except Exception as e:
                self.logger.error(f"Invalidation listener failed for {path}: {e}")

    def invalidate_file_set(self) -> None:
        """Mark every session snapshot stale; the next query re-resolves."""
        with self._lock:
            self._stale.update(self._snapshots)

    def is_stale(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._stale

    # Preview content

    async def get_file_content(self, path: str) -> str:
        """Read a file for preview, through the content cache when attached."""
        cache = self.content_cache
        if cache is None:
            data = await self.store.read_bytes(path)
            return data.decode("utf-8-sig", errors="replace")

        cached = cache.get(path)
        if cached is not None:
            return cached
        generation = cache.generation
        data = await self.store.read_bytes(path)
        text = data.decode("utf-8-sig", errors="replace")
        cache.put_if_current(path, text, generation)
        return text
