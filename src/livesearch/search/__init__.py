"""
Matching primitives: glob patterns over paths and substring matches in text.
"""

from .globs import GlobSet, compile_glob, glob_to_regex, matches_glob
from .matchers import contains_query, extract_matches, find_line_matches, make_preview

__all__ = [
    "GlobSet",
    "compile_glob",
    "glob_to_regex",
    "matches_glob",
    "contains_query",
    "extract_matches",
    "find_line_matches",
    "make_preview",
]
