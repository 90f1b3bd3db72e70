"""Tests for livesearch.storage.file_store module."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from livesearch.core.config import SearchConfig
from livesearch.core.resolver import FileSetResolver
from livesearch.search.globs import GlobSet
from livesearch.storage.file_store import LocalFileStore, MemoryFileStore


async def listing(store, excludes=()) -> list[str]:
    globs = GlobSet(excludes)

    def is_excluded(display_path: str, is_dir: bool) -> bool:
        return globs.matches(display_path)

    return [store.relative_path(p) async for p in store.iter_files(is_excluded)]


class TestLocalFileStore:
    """Tests for LocalFileStore class."""

    @pytest.mark.asyncio
    async def test_lists_all_files(self, sample_tree: Path):
        store = LocalFileStore([sample_tree])
        assert sorted(await listing(store)) == sorted(
            [
                "README.md",
                "docs/guide.md",
                "logo.png",
                "node_modules/lib/index.js",
                "src/app.ts",
                "src/foo.ts",
                "src/util/strings.ts",
            ]
        )

    @pytest.mark.asyncio
    async def test_excluded_directory_is_pruned(self, sample_tree: Path):
        store = LocalFileStore([sample_tree])
        paths = await listing(store, ["**/node_modules", "docs"])
        assert not any(p.startswith(("node_modules/", "docs/")) for p in paths)
        assert "src/app.ts" in paths

    @pytest.mark.asyncio
    async def test_stat_and_read(self, sample_tree: Path):
        store = LocalFileStore([sample_tree])
        path = str(sample_tree / "src" / "foo.ts")
        data = await store.read_bytes(path)
        assert await store.stat_size(path) == len(data)
        assert data.startswith(b"export function foo()")

    @pytest.mark.asyncio
    async def test_missing_file_raises(self, tmp_path: Path):
        store = LocalFileStore([tmp_path])
        with pytest.raises(FileNotFoundError):
            await store.read_bytes(str(tmp_path / "missing.txt"))

    @pytest.mark.asyncio
    async def test_missing_root_yields_nothing(self, tmp_path: Path):
        store = LocalFileStore([tmp_path / "does-not-exist"])
        assert await listing(store) == []

    def test_multi_root_display_paths(self, tmp_path: Path):
        one = tmp_path / "one"
        two = tmp_path / "two"
        one.mkdir()
        two.mkdir()
        store = LocalFileStore([one, two])
        assert store.relative_path(str(one / "a.txt")) == "one/a.txt"
        assert store.relative_path(str(two / "b" / "c.txt")) == "two/b/c.txt"

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    @pytest.mark.asyncio
    async def test_symlink_loop_is_visited_once(self, tmp_path: Path):
        (tmp_path / "d").mkdir()
        (tmp_path / "d" / "a.txt").write_text("x")
        try:
            os.symlink(tmp_path / "d", tmp_path / "d" / "loop", target_is_directory=True)
        except OSError:
            pytest.skip("cannot create symlinks here")
        store = LocalFileStore([tmp_path], follow_symlinks=True)
        assert await listing(store) == ["d/a.txt"]

    @pytest.mark.asyncio
    async def test_resolves_real_tree(self, sample_tree: Path):
        cfg = SearchConfig(paths=[str(sample_tree)])
        refs = await FileSetResolver(LocalFileStore(cfg.paths)).resolve(
            cfg.get_exclude_patterns(), cfg.binary_extensions
        )
        assert [r.display_path for r in refs] == [
            "docs/guide.md",
            "src/util/strings.ts",
            "src/app.ts",
            "src/foo.ts",
            "README.md",
        ]

    @pytest.mark.asyncio
    async def test_directory_with_binary_extension_is_searched(self, tmp_path: Path):
        (tmp_path / "assets.db").mkdir()
        (tmp_path / "assets.db" / "notes.txt").write_text("x")
        (tmp_path / "data.db").write_bytes(b"\x00")
        cfg = SearchConfig(paths=[str(tmp_path)])
        refs = await FileSetResolver(LocalFileStore(cfg.paths)).resolve(
            cfg.get_exclude_patterns(), cfg.binary_extensions
        )
        assert [r.display_path for r in refs] == ["assets.db/notes.txt"]


class TestMemoryFileStore:
    """Tests for MemoryFileStore class."""

    @pytest.mark.asyncio
    async def test_write_read_delete(self):
        store = MemoryFileStore(root="/ws")
        path = store.write("a/b.txt", "héllo")
        assert path == "/ws/a/b.txt"
        assert await store.read_bytes(path) == "héllo".encode()
        assert await store.stat_size(path) == len("héllo".encode())

        store.delete("a/b.txt")
        with pytest.raises(FileNotFoundError):
            await store.stat_size(path)

    @pytest.mark.asyncio
    async def test_excluded_parent_hides_children(self):
        store = MemoryFileStore({"build/out/x.js": "", "src/x.js": ""})
        assert await listing(store, ["build"]) == ["src/x.js"]

    def test_relative_path(self):
        store = MemoryFileStore()
        assert store.relative_path("/workspace/src/a.ts") == "src/a.ts"
        assert store.relative_path("/elsewhere/a.ts") == "/elsewhere/a.ts"
