"""
Storage layer: file stores the engine reads through, and the preview cache.
"""

from .content_cache import CacheStats, ContentCache
from .file_store import FileStore, LocalFileStore, MemoryFileStore

__all__ = [
    "CacheStats",
    "ContentCache",
    "FileStore",
    "LocalFileStore",
    "MemoryFileStore",
]
