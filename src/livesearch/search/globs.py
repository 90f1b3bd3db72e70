"""
Glob pattern matching for workspace-relative paths.

Semantics:
    - ``*`` matches any run of characters inside one path segment (no ``/``)
    - ``**`` as a whole segment matches any number of segments, including zero
    - ``?`` matches exactly one non-separator character
    - every other character is literal

Several patterns joined with commas are OR'd together (``GlobSet.from_csv``).
Paths and patterns use ``/`` as separator; backslashes are normalized.

Example:
    >>> gs = GlobSet(["**/node_modules", "*.min.js"])
    >>> gs.matches("node_modules")
    True
    >>> gs.matches_path_or_parent("web/node_modules/react/index.js")
    True
    >>> gs.matches("web/app.min.js")
    False
"""

from __future__ import annotations

from collections.abc import Iterable
from functools import lru_cache

import regex as regex_mod


def _translate_segment(segment: str) -> str:
    out: list[str] = []
    for ch in segment:
        if ch == "*":
            out.append("[^/]*")
        elif ch == "?":
            out.append("[^/]")
        else:
            out.append(regex_mod.escape(ch))
    return "".join(out)


def _normalize(path: str) -> str:
    return path.replace("\\", "/")


def glob_to_regex(pattern: str) -> str:
    """Translate one glob pattern to an (unanchored) regular expression."""
    pattern = _normalize(pattern.strip())
    if len(pattern) > 1:
        pattern = pattern.rstrip("/")
    segments = pattern.split("/")
    n = len(segments)

    out: list[str] = []
    for i, seg in enumerate(segments):
        last = i == n - 1
        if seg == "**":
            if n == 1:
                out.append(".*")
            elif last:
                # the separator before it was withheld, see below
                out.append("(?:/.*)?")
            else:
                out.append("(?:.*/)?")
            continue

        out.append(_translate_segment(seg))
        if not last:
            next_is_trailing_globstar = segments[i + 1] == "**" and i + 1 == n - 1
            if not next_is_trailing_globstar:
                out.append("/")
    return "".join(out)


@lru_cache(maxsize=256)
def compile_glob(pattern: str) -> regex_mod.Pattern:
    return regex_mod.compile(f"(?:{glob_to_regex(pattern)})")


def matches_glob(pattern: str, path: str) -> bool:
    """Return True if ``path`` matches ``pattern`` in full."""
    return compile_glob(pattern).fullmatch(_normalize(path)) is not None


class GlobSet:
    """An OR of glob patterns compiled into one expression."""

    __slots__ = ("patterns", "_rx")

    def __init__(self, patterns: Iterable[str]) -> None:
        cleaned = (p.strip() for p in patterns)
        self.patterns: tuple[str, ...] = tuple(dict.fromkeys(p for p in cleaned if p))
        if self.patterns:
            alternatives = "|".join(f"(?:{glob_to_regex(p)})" for p in self.patterns)
            self._rx: regex_mod.Pattern | None = regex_mod.compile(alternatives)
        else:
            self._rx = None

    @classmethod
    def from_csv(cls, text: str | None) -> GlobSet:
        """Build a set from comma-joined patterns, e.g. ``"src/**,*.md"``."""
        if not text:
            return cls(())
        return cls(text.split(","))

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def __len__(self) -> int:
        return len(self.patterns)

    def __repr__(self) -> str:
        return f"GlobSet({list(self.patterns)!r})"

    def matches(self, path: str) -> bool:
        if self._rx is None:
            return False
        return self._rx.fullmatch(_normalize(path)) is not None

    def matches_path_or_parent(self, path: str) -> bool:
        """
        Return True if the path or any of its ancestor directories matches.

        A pattern naming a directory (``**/node_modules``) thereby excludes
        everything beneath it.
        """
        if self._rx is None:
            return False
        parts = _normalize(path).split("/")
        for i in range(1, len(parts) + 1):
            if self._rx.fullmatch("/".join(parts[:i])) is not None:
                return True
        return False
