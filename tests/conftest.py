"""
Shared test fixtures for livesearch tests.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from livesearch import MemoryFileStore, SearchConfig, SearchEngine
from livesearch.utils.logging_config import disable_logging

SAMPLE_FILES: dict[str, str] = {
    "src/app.ts": "import { foo } from './foo';\nconst x = foo();\n",
    "src/foo.ts": "export function foo() {\n  return 'bar';\n}\n",
    "src/util/strings.ts": "export const FOO = 'Foo';\n",
    "README.md": "# Demo\nCall foo() to get bar.\n",
    "docs/guide.md": "Nothing to see here.\n",
    "node_modules/lib/index.js": "module.exports = foo;\n",
    "logo.png": "foo",
}


@pytest.fixture(autouse=True)
def _quiet_logging():
    disable_logging()
    yield


@pytest.fixture
def memory_store() -> MemoryFileStore:
    return MemoryFileStore(SAMPLE_FILES)


@pytest.fixture
def engine(memory_store: MemoryFileStore) -> SearchEngine:
    return SearchEngine(SearchConfig(), store=memory_store)


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """Write ``SAMPLE_FILES`` into a temporary directory."""
    for rel, content in SAMPLE_FILES.items():
        target = tmp_path / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    return tmp_path


