"""
Configuration module for livesearch.

This module defines the SearchConfig class, the single configuration object
for file-set resolution and query execution.

Key Configuration Areas:
    - Scope: root paths and the two exclude-pattern maps
    - Limits: result, per-file match, file count and file size caps
    - Performance: batch size (the concurrency width of a scan)
    - Presentation: preview radius around each match

Example:
    Basic configuration:
        >>> from livesearch.core.config import SearchConfig
        >>> config = SearchConfig(paths=["."], max_results=200, batch_size=50)
        >>> config.validate()

    From host settings (camelCase keys accepted):
        >>> config = SearchConfig.from_mapping({"maxResults": 100, "maxFileSize": 1024})
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any

from ..utils.error_handling import ConfigurationError

DEFAULT_MAX_FILE_SIZE = 500 * 1024  # 500KB
DEFAULT_BATCH_SIZE = 100
DEFAULT_PREVIEW_RADIUS = 50
DEFAULT_ENUMERATION_TIMEOUT = 1.0  # seconds

BINARY_EXTENSIONS: frozenset[str] = frozenset(
    {
        # images
        "jpg", "jpeg", "png", "gif", "bmp", "ico", "svg", "webp",
        # audio / video
        "mp4", "avi", "mov", "wmv", "flv", "mp3", "wav", "ogg",
        # documents and archives
        "pdf", "zip", "tar", "gz", "rar", "7z",
        # compiled binaries and data blobs
        "exe", "dll", "so", "bin", "dat", "db", "sqlite",
        "class", "jar", "war", "ear", "o", "a", "lib", "dylib",
        # fonts
        "woff", "woff2", "ttf", "eot",
    }
)


def _default_files_exclude() -> dict[str, bool]:
    return {
        "**/.git": True,
        "**/.svn": True,
        "**/.hg": True,
        "**/CVS": True,
        "**/.DS_Store": True,
        "**/Thumbs.db": True,
    }


def _default_search_exclude() -> dict[str, bool]:
    return {
        "**/node_modules": True,
        "**/bower_components": True,
        "**/*.code-search": True,
    }


@dataclass(slots=True)
class SearchConfig:
    # Scope
    paths: list[str] = field(default_factory=lambda: ["."], metadata={"help": "Root search paths."})
    files_exclude: dict[str, bool] = field(default_factory=_default_files_exclude)
    search_exclude: dict[str, bool] = field(default_factory=_default_search_exclude)
    binary_extensions: frozenset[str] = BINARY_EXTENSIONS
    follow_symlinks: bool = False

    # Limits (None = unlimited)
    max_results: int | None = None
    max_matches_per_file: int | None = None
    max_files_to_search: int | None = None
    max_file_size: int = DEFAULT_MAX_FILE_SIZE

    # Performance
    batch_size: int = DEFAULT_BATCH_SIZE
    # soft deadline for enumerating the file set
    enumeration_timeout: float = DEFAULT_ENUMERATION_TIMEOUT

    # Presentation
    preview_radius: int = DEFAULT_PREVIEW_RADIUS

    def get_exclude_patterns(self) -> list[str]:
        """
        Merge both exclude maps into one de-duplicated pattern list.

        Enabled ``search_exclude`` patterns come first. A ``files_exclude``
        pattern is added only when ``search_exclude`` does not mention it at
        all, so disabling a pattern in ``search_exclude`` overrides it.
        """
        patterns = [p for p, enabled in self.search_exclude.items() if enabled]
        for pattern, enabled in self.files_exclude.items():
            if enabled and pattern not in self.search_exclude:
                patterns.append(pattern)
        return list(dict.fromkeys(patterns))

    def validate(self) -> None:
        """Raise ConfigurationError on values the engine cannot work with."""
        if not self.paths:
            raise ConfigurationError("At least one search path is required")
        if self.batch_size < 1:
            raise ConfigurationError(
                f"batch_size must be positive, got {self.batch_size}",
                context={"batch_size": self.batch_size},
            )
        if self.max_file_size < 0:
            raise ConfigurationError(
                f"max_file_size must not be negative, got {self.max_file_size}",
                context={"max_file_size": self.max_file_size},
            )
        if self.preview_radius < 0:
            raise ConfigurationError(
                f"preview_radius must not be negative, got {self.preview_radius}",
                context={"preview_radius": self.preview_radius},
            )
        if self.enumeration_timeout <= 0:
            raise ConfigurationError(
                f"enumeration_timeout must be positive, got {self.enumeration_timeout}",
                context={"enumeration_timeout": self.enumeration_timeout},
            )
        for name in ("max_results", "max_matches_per_file", "max_files_to_search"):
            value = getattr(self, name)
            if value is not None and value < 1:
                raise ConfigurationError(
                    f"{name} must be positive or unset, got {value}",
                    context={name: value},
                )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> SearchConfig:
        """
        Build a validated config from a host settings mapping.

        Keys may be snake_case (``max_results``) or camelCase
        (``maxResults``). Unknown keys raise ConfigurationError.
        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _snake_case(key)
            if name not in known:
                raise ConfigurationError(f"Unknown configuration option: {key}", context={"key": key})
            kwargs[name] = value

        if "binary_extensions" in kwargs:
            kwargs["binary_extensions"] = frozenset(
                ext.lower().lstrip(".") for ext in kwargs["binary_extensions"]
            )
        if "paths" in kwargs and isinstance(kwargs["paths"], str):
            kwargs["paths"] = [kwargs["paths"]]

        try:
            config = cls(**kwargs)
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e
        config.validate()
        return config


_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def _snake_case(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()
