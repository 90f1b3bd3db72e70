"""
Searchable file-set resolution.

The file set is resolved once when a session opens, not on every keystroke.
Resolution builds one exclusion predicate from the configured exclude globs
and the binary extension denylist, enumerates the store under a soft
deadline and a hard file cap, and sorts the result into folder-tree order:
at each directory level, directories come before files, then entries are
ordered alphabetically ignoring case and accents.

Example:
    >>> import asyncio
    >>> from livesearch.storage.file_store import MemoryFileStore
    >>> store = MemoryFileStore({"b.ts": "", "a/x.ts": "", "A/y.ts": ""})
    >>> refs = asyncio.run(FileSetResolver(store).resolve(["**/*.md"], {"png"}))
    >>> [r.display_path for r in refs]
    ['a/x.ts', 'A/y.ts', 'b.ts']
"""

from __future__ import annotations

import asyncio
import time
import unicodedata
from collections.abc import Iterable, Sequence
from contextlib import aclosing
from functools import cmp_to_key, lru_cache

from ..search.globs import GlobSet
from ..storage.file_store import FileStore
from ..utils.logging_config import get_logger
from .types import FileRef


@lru_cache(maxsize=4096)
def collation_key(segment: str) -> str:
    """Case- and accent-insensitive comparison key of one path segment."""
    decomposed = unicodedata.normalize("NFKD", segment)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def _segments(path: str) -> list[str]:
    return path.replace("\\", "/").split("/")


def compare_paths(a: str, b: str) -> int:
    """
    Folder-tree comparison of two paths.

    Segment by segment: an intermediate segment (a directory) sorts before a
    terminal one (a file); otherwise segments compare by collation key. When
    every shared segment is equal the shorter path comes first, and exact
    ties fall back to plain string order so that sorting is deterministic.
    """
    seg_a = _segments(a)
    seg_b = _segments(b)
    for i in range(min(len(seg_a), len(seg_b))):
        last_a = i == len(seg_a) - 1
        last_b = i == len(seg_b) - 1
        if last_a != last_b:
            return 1 if last_a else -1
        ka = collation_key(seg_a[i])
        kb = collation_key(seg_b[i])
        if ka != kb:
            return -1 if ka < kb else 1
    if len(seg_a) != len(seg_b):
        return len(seg_a) - len(seg_b)
    if a == b:
        return 0
    return -1 if a < b else 1


folder_tree_sort_key = cmp_to_key(compare_paths)


def sort_file_refs(refs: Iterable[FileRef]) -> list[FileRef]:
    return sorted(refs, key=lambda r: folder_tree_sort_key(r.path))


def has_binary_extension(path: str, binary_extensions: frozenset[str]) -> bool:
    name = path.rsplit("/", 1)[-1]
    if "." not in name:
        return False
    return name.rsplit(".", 1)[-1].lower() in binary_extensions


def filter_file_refs(
    files: Sequence[FileRef],
    include: GlobSet | None = None,
    exclude: GlobSet | None = None,
) -> list[FileRef]:
    """
    Narrow a resolved snapshot with per-query include/exclude globs.

    Patterns are matched against display paths. An empty include set keeps
    everything; an exclude pattern that names a directory drops its contents.
    """
    out: list[FileRef] = []
    for ref in files:
        if include and not include.matches(ref.display_path):
            continue
        if exclude and exclude.matches_path_or_parent(ref.display_path):
            continue
        out.append(ref)
    return out


class FileSetResolver:
    """Enumerates, filters and sorts the searchable file set of a store."""

    def __init__(self, store: FileStore) -> None:
        self.store = store
        self.logger = get_logger()
        self.last_timed_out = False

    def build_exclusion(
        self, exclude_globs: Iterable[str], binary_extensions: Iterable[str]
    ):
        """Combine exclude globs and binary extensions into one predicate."""
        globs = GlobSet(exclude_globs)
        binary = frozenset(ext.lower().lstrip(".") for ext in binary_extensions)

        def is_excluded(display_path: str, is_dir: bool) -> bool:
            if globs.matches(display_path):
                return True
            # the extension denylist names file types, not directories
            return not is_dir and has_binary_extension(display_path, binary)

        return is_excluded

    async def resolve(
        self,
        exclude_globs: Iterable[str],
        binary_extensions: Iterable[str],
        max_files: int | None = None,
        time_budget: float = 1.0,
    ) -> list[FileRef]:
        """
        Resolve the searchable file set.

        Args:
            exclude_globs: Glob patterns of paths to leave out (duplicates ignored)
            binary_extensions: Extensions (without dot) never searched
            max_files: Hard cap on the number of files returned
            time_budget: Seconds after which enumeration stops and whatever
                was gathered so far is returned

        Returns:
            File refs in folder-tree order.
        """
        t0 = time.perf_counter()
        is_excluded = self.build_exclusion(exclude_globs, binary_extensions)
        gathered: list[str] = []

        async def collect() -> None:
            async with aclosing(self.store.iter_files(is_excluded)) as paths:
                async for path in paths:
                    gathered.append(path)
                    if max_files is not None and len(gathered) >= max_files:
                        break

        self.last_timed_out = False
        try:
            await asyncio.wait_for(collect(), timeout=time_budget)
        except asyncio.TimeoutError:
            self.last_timed_out = True

        refs = sort_file_refs(FileRef(p, self.store.relative_path(p)) for p in gathered)
        self.logger.log_file_set_resolved(
            len(refs), (time.perf_counter() - t0) * 1000.0, timed_out=self.last_timed_out
        )
        return refs
