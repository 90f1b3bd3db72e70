"""Tests for livesearch.core.executor module."""

from __future__ import annotations

import asyncio

import pytest

from livesearch.core.executor import QueryExecutor
from livesearch.core.resolver import FileSetResolver
from livesearch.core.session import SessionRegistry
from livesearch.core.types import (
    Done,
    ExecutorState,
    FileRef,
    FirstBatch,
    MoreResults,
    NoResults,
    SearchQuery,
)
from livesearch.storage.file_store import MemoryFileStore
from livesearch.utils.error_handling import ErrorCategory


def q(text: str) -> SearchQuery:
    query = SearchQuery.parse(text)
    assert query is not None
    return query


async def refs_of(store: MemoryFileStore) -> list[FileRef]:
    return await FileSetResolver(store).resolve([], [])


async def collect(stream) -> list:
    return [event async for event in stream]


def names(events) -> list[str]:
    return [type(e).__name__ for e in events]


class FailingStore(MemoryFileStore):
    """Memory store whose reads fail for selected relative paths."""

    def __init__(self, files, failing: dict[str, Exception]) -> None:
        super().__init__(files)
        self.failing = {f"{self.root}/{rel}": exc for rel, exc in failing.items()}

    async def read_bytes(self, path: str) -> bytes:
        if path in self.failing:
            raise self.failing[path]
        return await super().read_bytes(path)


async def run(store, query, session_id="s1", registry=None, **kwargs):
    executor = QueryExecutor(store, registry or SessionRegistry())
    files = await refs_of(store)
    events = await collect(executor.run(session_id, q(query), files, **kwargs))
    return executor, events


class TestStreaming:
    """Tests for the event sequence of a run."""

    @pytest.mark.asyncio
    async def test_directory_entries_first(self):
        store = MemoryFileStore({"a/x.ts": "foo bar", "a/y.ts": "nothing here", "b.ts": "foo"})
        executor, events = await run(store, "foo")

        assert names(events) == ["FirstBatch", "Done"]
        results = events[0].results
        assert [r.display_path for r in results] == ["a/x.ts", "b.ts"]
        assert all(len(r.matches) == 1 and r.matches[0].line == 1 for r in results)
        assert executor.state is ExecutorState.COMPLETED

    @pytest.mark.asyncio
    async def test_first_then_more_results(self):
        store = MemoryFileStore({"a.txt": "foo", "b.txt": "none", "c.txt": "foo", "d.txt": "foo"})
        _, events = await run(store, "foo", batch_size=1)

        assert names(events) == ["FirstBatch", "MoreResults", "MoreResults", "Done"]
        assert [e.results[0].display_path for e in events[:3]] == ["a.txt", "c.txt", "d.txt"]

    @pytest.mark.asyncio
    async def test_batches_without_matches_are_not_emitted(self):
        store = MemoryFileStore({"a.txt": "none", "b.txt": "none", "c.txt": "foo"})
        executor, events = await run(store, "foo", batch_size=1)

        assert names(events) == ["FirstBatch", "Done"]
        assert executor.stats.batches == 3

    @pytest.mark.asyncio
    async def test_no_results(self):
        store = MemoryFileStore({"a.txt": "nothing", "b.txt": "here"})
        executor, events = await run(store, "foo")

        assert names(events) == ["NoResults", "Done"]
        assert executor.stats.files_scanned == 2
        assert executor.state is ExecutorState.COMPLETED

    @pytest.mark.asyncio
    async def test_empty_file_set(self):
        _, events = await run(MemoryFileStore(), "foo")
        assert names(events) == ["NoResults", "Done"]

    @pytest.mark.asyncio
    async def test_events_carry_session_and_query(self):
        store = MemoryFileStore({"a.txt": "foo"})
        _, events = await run(store, "  FOO ", session_id="panel-2")
        assert {e.session_id for e in events} == {"panel-2"}
        assert {e.query.text for e in events} == {"FOO"}

    @pytest.mark.asyncio
    async def test_order_within_batch_follows_file_list(self):
        files = {f"f{i}.txt": "foo" if i % 2 else "bar" for i in range(10)}
        store = MemoryFileStore(files)
        _, events = await run(store, "foo", batch_size=100)
        assert [r.display_path for r in events[0].results] == [
            "f1.txt",
            "f3.txt",
            "f5.txt",
            "f7.txt",
            "f9.txt",
        ]

    @pytest.mark.asyncio
    async def test_preview_contains_query_at_preview_column(self):
        line = "    " + "x" * 80 + " Needle " + "y" * 80 + "   "
        store = MemoryFileStore({"a.txt": f"{line}\nneedle\n"})
        _, events = await run(store, "needle")

        for m in events[0].results[0].matches:
            assert 0 <= m.preview_column <= len(m.preview)
            assert m.preview[m.preview_column : m.preview_column + 6].lower() == "needle"

    @pytest.mark.asyncio
    async def test_run_is_single_use(self):
        store = MemoryFileStore({"a.txt": "foo"})
        executor = QueryExecutor(store, SessionRegistry())
        files = await refs_of(store)
        await collect(executor.run("s1", q("foo"), files))
        with pytest.raises(RuntimeError):
            executor.run("s1", q("foo"), files)


class TestLimits:
    """Tests for size and count limits."""

    @pytest.mark.asyncio
    async def test_oversized_file_is_skipped(self):
        big = "foo\n" * (600 * 1024 // 4)
        store = MemoryFileStore({"big.txt": big, "small.txt": "foo"})
        executor, events = await run(store, "foo", max_file_size=500 * 1024)

        assert [r.display_path for r in events[0].results] == ["small.txt"]
        assert executor.stats.files_skipped == 1
        assert executor.stats.files_failed == 0
        assert executor.errors.total == 0

    @pytest.mark.asyncio
    async def test_max_matches_per_file(self):
        store = MemoryFileStore({"a.txt": "foo\nfoo\nfoo\n"})
        _, events = await run(store, "foo", max_matches_per_file=1)

        matches = events[0].results[0].matches
        assert len(matches) == 1
        assert matches[0].line == 1

    @pytest.mark.asyncio
    async def test_max_results_emits_whole_batch_then_stops(self):
        store = MemoryFileStore({f"f{i}.txt": "foo" for i in range(6)})
        executor, events = await run(store, "foo", batch_size=2, max_results=3)

        assert names(events) == ["FirstBatch", "MoreResults", "Done"]
        assert executor.stats.files_matched == 4
        assert executor.stats.batches == 2


class TestFileFaults:
    """Per-file failures are skipped, counted and never raised."""

    @pytest.mark.asyncio
    async def test_read_failure_is_skipped(self):
        store = FailingStore(
            {"a.txt": "foo", "b.txt": "foo", "c.txt": "foo"},
            failing={"b.txt": PermissionError("denied")},
        )
        executor, events = await run(store, "foo")

        assert [r.display_path for r in events[0].results] == ["a.txt", "c.txt"]
        assert executor.stats.files_failed == 1
        assert executor.errors.total == 1
        assert executor.errors.errors[0].category is ErrorCategory.PERMISSION
        assert isinstance(events[-1], Done)

    @pytest.mark.asyncio
    async def test_file_deleted_after_resolution(self):
        store = MemoryFileStore({"a.txt": "foo", "b.txt": "foo"})
        executor = QueryExecutor(store, SessionRegistry())
        files = await refs_of(store)
        store.delete("a.txt")

        events = await collect(executor.run("s1", q("foo"), files))
        assert [r.display_path for r in events[0].results] == ["b.txt"]
        assert executor.errors.errors[0].category is ErrorCategory.FILE_ACCESS

    @pytest.mark.asyncio
    async def test_invalid_utf8_is_decoded_leniently(self):
        store = MemoryFileStore({"a.bin.txt": b"\xff\xfe foo \x80"})
        executor, events = await run(store, "foo")
        assert events[0].results[0].matches[0].column == 3
        assert executor.stats.files_failed == 0

    @pytest.mark.asyncio
    async def test_byte_order_mark_is_stripped(self):
        store = MemoryFileStore({"a.txt": b"\xef\xbb\xbffoo"})
        _, events = await run(store, "foo")
        assert events[0].results[0].matches[0].column == 0


class TestCancellation:
    """Superseded and closed runs stop at batch boundaries."""

    @pytest.mark.asyncio
    async def test_superseded_run_delivers_nothing_stale(self):
        store = MemoryFileStore(
            {"a.txt": "cat dog", "b.txt": "cat", "c.txt": "dog"}, read_delay=0.05
        )
        registry = SessionRegistry()
        files = await refs_of(store)

        cat = QueryExecutor(store, registry)
        cat_task = asyncio.create_task(collect(cat.run("s1", q("cat"), files, batch_size=1)))
        await asyncio.sleep(0.01)

        dog = QueryExecutor(store, registry)
        dog_events = await collect(dog.run("s1", q("dog"), files, batch_size=1))
        cat_events = await cat_task

        assert cat_events == []
        assert cat.state is ExecutorState.SUPERSEDED
        assert {e.query.text for e in dog_events} == {"dog"}
        assert names(dog_events) == ["FirstBatch", "MoreResults", "Done"]

    @pytest.mark.asyncio
    async def test_registration_happens_at_submission(self):
        store = MemoryFileStore({"a.txt": "cat"})
        registry = SessionRegistry()
        files = await refs_of(store)

        first = QueryExecutor(store, registry)
        first_stream = first.run("s1", q("cat"), files)
        QueryExecutor(store, registry).run("s1", q("category"), files)  # never consumed

        assert await collect(first_stream) == []
        assert first.state is ExecutorState.SUPERSEDED

    @pytest.mark.asyncio
    async def test_other_sessions_are_unaffected(self):
        store = MemoryFileStore({"a.txt": "cat", "b.txt": "cat"})
        registry = SessionRegistry()
        files = await refs_of(store)

        one = QueryExecutor(store, registry).run("s1", q("cat"), files)
        QueryExecutor(store, registry).run("s2", q("dog"), files)

        events = await collect(one)
        assert names(events) == ["FirstBatch", "Done"]

    @pytest.mark.asyncio
    async def test_session_closed_mid_scan(self):
        store = MemoryFileStore({"a.txt": "cat", "b.txt": "cat"}, read_delay=0.05)
        registry = SessionRegistry()
        files = await refs_of(store)

        executor = QueryExecutor(store, registry)
        task = asyncio.create_task(collect(executor.run("s1", q("cat"), files, batch_size=1)))
        await asyncio.sleep(0.01)
        registry.clear("s1")

        assert await task == []
        assert executor.state is ExecutorState.SESSION_CLOSED

    @pytest.mark.asyncio
    async def test_supersede_between_batches(self):
        store = MemoryFileStore({"a.txt": "cat", "b.txt": "cat", "c.txt": "cat"})
        registry = SessionRegistry()
        files = await refs_of(store)

        executor = QueryExecutor(store, registry)
        stream = executor.run("s1", q("cat"), files, batch_size=1)
        first = await stream.__anext__()
        assert isinstance(first, FirstBatch)

        registry.set_live("s1", q("dog"))
        rest = await collect(stream)
        assert rest == []
        assert executor.state is ExecutorState.SUPERSEDED
        assert not any(isinstance(e, (MoreResults, NoResults, Done)) for e in rest)
