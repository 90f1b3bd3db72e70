"""
File store backends.

The engine never touches the file system directly: it enumerates, stats and
reads through a ``FileStore``. Enumeration, size lookups and reads are the
only operations that may suspend; everything else in the pipeline is pure
in-memory work.

Classes:
    FileStore: Abstract base class for file stores
    LocalFileStore: Real file system under one or more root directories
    MemoryFileStore: In-memory mapping of relative paths to contents

Example:
    >>> import asyncio
    >>> store = MemoryFileStore({"a/x.ts": "foo bar", "b.ts": "foo"})
    >>> async def listing():
    ...     return [p async for p in store.iter_files(lambda rel: False)]
    >>> asyncio.run(listing())
    ['/workspace/a/x.ts', '/workspace/b.ts']
"""

from __future__ import annotations

import asyncio
import os
import posixpath
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable, Iterable, Mapping
from pathlib import Path

from ..utils.logging_config import get_logger

ExclusionPredicate = Callable[[str, bool], bool]


class FileStore(ABC):
    """Abstract base class for file stores."""

    @abstractmethod
    def iter_files(self, is_excluded: ExclusionPredicate) -> AsyncIterator[str]:
        """
        Yield the absolute path of every file that is not excluded.

        ``is_excluded`` receives the display path of each directory and file
        together with an ``is_dir`` flag; a store should not descend into an
        excluded directory.
        """

    @abstractmethod
    async def stat_size(self, path: str) -> int:
        """Return the byte size of a file without reading it."""

    @abstractmethod
    async def read_bytes(self, path: str) -> bytes:
        """Return the full content of a file."""

    @abstractmethod
    def relative_path(self, path: str) -> str:
        """Map an absolute path to its workspace-relative display path."""


class LocalFileStore(FileStore):
    """
    File store over the local file system.

    Directories are listed one at a time in a worker thread, so enumeration
    can be cancelled between directories. Excluded directories are pruned
    and never listed.
    """

    def __init__(self, roots: Iterable[str | Path], follow_symlinks: bool = False) -> None:
        self.roots: list[Path] = [Path(r).resolve() for r in roots]
        self.follow_symlinks = follow_symlinks
        self.logger = get_logger()

    def relative_path(self, path: str) -> str:
        p = Path(path)
        for root in self.roots:
            try:
                rel = p.relative_to(root).as_posix()
            except ValueError:
                continue
            if len(self.roots) > 1:
                return f"{root.name}/{rel}"
            return rel
        return path

    def _scan_dir(self, directory: Path) -> list[tuple[Path, bool]]:
        """List ``(child, is_dir)`` pairs of one directory."""
        entries: list[tuple[Path, bool]] = []
        with os.scandir(directory) as it:
            for entry in it:
                try:
                    if entry.is_dir(follow_symlinks=self.follow_symlinks):
                        entries.append((Path(entry.path), True))
                    elif entry.is_file():
                        entries.append((Path(entry.path), False))
                except OSError:
                    continue
        return entries

    async def iter_files(self, is_excluded: ExclusionPredicate) -> AsyncIterator[str]:
        visited: set[Path] = set()
        for root in self.roots:
            if not root.is_dir():
                self.logger.debug(f"Skipping missing search root: {root}")
                continue
            pending = [root]
            while pending:
                directory = pending.pop()
                if self.follow_symlinks:
                    real = directory.resolve()
                    if real in visited:
                        continue
                    visited.add(real)
                try:
                    entries = await asyncio.to_thread(self._scan_dir, directory)
                except OSError as e:
                    self.logger.debug(f"Cannot list directory {directory}: {e}")
                    continue

                subdirs: list[Path] = []
                for child, is_dir in entries:
                    if is_excluded(self.relative_path(str(child)), is_dir):
                        continue
                    if is_dir:
                        subdirs.append(child)
                    else:
                        yield str(child)
                # depth-first, in listing order
                pending.extend(reversed(subdirs))

    async def stat_size(self, path: str) -> int:
        st = await asyncio.to_thread(os.stat, path)
        return st.st_size

    async def read_bytes(self, path: str) -> bytes:
        return await asyncio.to_thread(Path(path).read_bytes)


class MemoryFileStore(FileStore):
    """
    File store backed by a mapping of relative paths to contents.

    Useful for hosts that own their documents and for tests. ``read_delay``
    simulates I/O latency on every read.
    """

    def __init__(
        self,
        files: Mapping[str, str | bytes] | None = None,
        root: str = "/workspace",
        read_delay: float = 0.0,
    ) -> None:
        self.root = root.rstrip("/") or "/"
        self.read_delay = read_delay
        self._files: dict[str, bytes] = {}
        for rel, content in (files or {}).items():
            self.write(rel, content)

    def _abs(self, rel: str) -> str:
        return posixpath.join(self.root, rel.lstrip("/"))

    def write(self, rel: str, content: str | bytes) -> str:
        data = content.encode("utf-8") if isinstance(content, str) else content
        path = self._abs(rel)
        self._files[path] = data
        return path

    def delete(self, rel: str) -> None:
        self._files.pop(self._abs(rel), None)

    def relative_path(self, path: str) -> str:
        prefix = self.root if self.root.endswith("/") else self.root + "/"
        if path.startswith(prefix):
            return path[len(prefix):]
        return path

    async def iter_files(self, is_excluded: ExclusionPredicate) -> AsyncIterator[str]:
        for path in list(self._files):
            rel = self.relative_path(path)
            parts = rel.split("/")
            if any(is_excluded("/".join(parts[:i]), True) for i in range(1, len(parts))):
                continue
            if is_excluded(rel, False):
                continue
            # yield to the loop so a deadline can interrupt enumeration
            await asyncio.sleep(0)
            yield path

    def _get(self, path: str) -> bytes:
        try:
            return self._files[path]
        except KeyError:
            raise FileNotFoundError(path) from None

    async def stat_size(self, path: str) -> int:
        return len(self._get(path))

    async def read_bytes(self, path: str) -> bytes:
        if self.read_delay:
            await asyncio.sleep(self.read_delay)
        return self._get(path)
