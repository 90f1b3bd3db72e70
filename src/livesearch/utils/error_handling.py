"""
Error handling and reporting for livesearch.

The engine follows a skip-and-continue policy: a file that cannot be
stat'ed, read or decoded is treated as non-matching and the scan carries
on. Those failures are still classified and collected here so that hosts
and the CLI can report them on request, without ever surfacing them as a
query-level failure.

Classes:
    ErrorSeverity: Error severity levels (LOW, MEDIUM, HIGH, CRITICAL)
    ErrorCategory: Error classification categories
    ErrorInfo: Detailed error information container
    ErrorCollector: Bounded error collection with per-category counts
    SearchError: Base exception class for livesearch errors

Functions:
    handle_file_error: Classify, collect and log a per-file failure
    create_error_report: Human-readable summary of collected errors

Example:
    >>> from pathlib import Path
    >>> collector = ErrorCollector()
    >>> try:
    ...     Path("missing.txt").read_bytes()
    ... except OSError as e:
    ...     handle_file_error(Path("missing.txt"), "read", e, collector)
    >>> collector.get_summary()["total_errors"]
    1
"""

from __future__ import annotations

import builtins
import sys
import time
import traceback
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

BuiltinPermissionError = builtins.PermissionError


class ErrorSeverity(str, Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """Error categories for classification."""

    FILE_ACCESS = "file_access"
    PERMISSION = "permission"
    ENCODING = "encoding"
    TIMEOUT = "timeout"
    CONFIGURATION = "configuration"
    SESSION = "session"
    UNKNOWN = "unknown"


@dataclass
class ErrorInfo:
    """Detailed error information."""

    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    file_path: Path | None = None
    exception_type: str | None = None
    traceback_str: str | None = None
    timestamp: float = field(default_factory=time.time)
    context: dict[str, Any] = field(default_factory=dict)
    suggestions: list[str] = field(default_factory=list)


class SearchError(Exception):
    """Base exception for search-related errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        file_path: Path | None = None,
        suggestions: list[str] | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        self.category: ErrorCategory = category
        self.severity: ErrorSeverity = severity
        self.file_path: Path | None = file_path
        self.suggestions: list[str] = suggestions or []
        self.context: dict[str, Any] = context or {}
        self.timestamp: float = time.time()


class FileAccessError(SearchError):
    """Error accessing files."""

    def __init__(
        self, message: str, file_path: Path, context: dict[str, Any] | None = None
    ) -> None:
        super().__init__(
            message,
            category=ErrorCategory.FILE_ACCESS,
            severity=ErrorSeverity.LOW,
            file_path=file_path,
            context=context,
        )


class PermissionError(SearchError):
    """Permission-related errors."""

    def __init__(
        self, message: str, file_path: Path, context: dict[str, Any] | None = None
    ) -> None:
        super().__init__(
            message,
            category=ErrorCategory.PERMISSION,
            severity=ErrorSeverity.LOW,
            file_path=file_path,
            suggestions=[
                "Check file permissions",
                "Exclude the directory from the search",
            ],
            context=context,
        )


class EncodingError(SearchError):
    """File decoding errors."""

    def __init__(
        self,
        message: str,
        file_path: Path,
        encoding: str = "utf-8",
        context: dict[str, Any] | None = None,
    ) -> None:
        merged_context: dict[str, Any] = {}
        if context:
            merged_context.update(context)
        merged_context["encoding"] = encoding

        super().__init__(
            message,
            category=ErrorCategory.ENCODING,
            severity=ErrorSeverity.LOW,
            file_path=file_path,
            suggestions=["Check if file is binary", "Add its extension to the binary denylist"],
            context=merged_context,
        )


class ConfigurationError(SearchError):
    """Configuration-related errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(
            message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.HIGH,
            suggestions=[
                "Check the option names and value ranges",
                "Use the default configuration",
            ],
            context=context,
        )


class SessionError(SearchError):
    """Operation on a session that was never opened or is already closed."""

    def __init__(self, message: str, session_id: str) -> None:
        super().__init__(
            message,
            category=ErrorCategory.SESSION,
            severity=ErrorSeverity.MEDIUM,
            suggestions=["Open the session before submitting queries"],
            context={"session_id": session_id},
        )
        self.session_id = session_id


class ErrorCollector:
    """Collects and manages errors during search operations."""

    def __init__(self, max_errors: int = 100) -> None:
        self.max_errors = max_errors
        self.errors: list[ErrorInfo] = []
        self.error_counts: dict[ErrorCategory, int] = {}

    def add_error(
        self,
        exception: Exception,
        category: ErrorCategory | None = None,
        severity: ErrorSeverity | None = None,
        file_path: Path | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Add an error to the collection."""
        if isinstance(exception, SearchError):
            error_category = exception.category
            error_severity = exception.severity
            error_file_path = exception.file_path or file_path
            error_suggestions = exception.suggestions
            error_context = {**exception.context, **(context or {})}
        else:
            error_category = category or self._classify_exception(exception)
            error_severity = severity or ErrorSeverity.MEDIUM
            error_file_path = file_path
            error_suggestions = []
            error_context = context or {}

        error_info = ErrorInfo(
            category=error_category,
            severity=error_severity,
            message=str(exception),
            file_path=error_file_path,
            exception_type=type(exception).__name__,
            traceback_str=traceback.format_exc() if sys.exc_info()[0] else None,
            context=error_context,
            suggestions=error_suggestions,
        )

        if len(self.errors) < self.max_errors:
            self.errors.append(error_info)

        self.error_counts[error_category] = self.error_counts.get(error_category, 0) + 1

    def _classify_exception(self, exception: Exception) -> ErrorCategory:
        if isinstance(exception, BuiltinPermissionError):
            return ErrorCategory.PERMISSION
        if isinstance(exception, (FileNotFoundError, IsADirectoryError, NotADirectoryError)):
            return ErrorCategory.FILE_ACCESS
        if isinstance(exception, UnicodeError):
            return ErrorCategory.ENCODING
        if isinstance(exception, TimeoutError):
            return ErrorCategory.TIMEOUT
        if isinstance(exception, OSError):
            return ErrorCategory.FILE_ACCESS
        return ErrorCategory.UNKNOWN

    def get_errors_by_category(self, category: ErrorCategory) -> list[ErrorInfo]:
        return [error for error in self.errors if error.category == category]

    def get_errors_by_severity(self, severity: ErrorSeverity) -> list[ErrorInfo]:
        return [error for error in self.errors if error.severity == severity]

    @property
    def total(self) -> int:
        """Number of errors seen, including those past ``max_errors``."""
        return sum(self.error_counts.values())

    def get_summary(self) -> dict[str, Any]:
        """Get error summary statistics."""
        return {
            "total_errors": self.total,
            "by_category": {cat.value: n for cat, n in self.error_counts.items()},
            "by_severity": {
                severity.value: len(self.get_errors_by_severity(severity))
                for severity in ErrorSeverity
            },
        }

    def clear(self) -> None:
        self.errors.clear()
        self.error_counts.clear()


def handle_file_error(
    file_path: Path,
    operation: str,
    exception: Exception,
    error_collector: ErrorCollector | None = None,
    logger: Any | None = None,
) -> SearchError:
    """
    Classify a per-file failure, collect it, and log it.

    Args:
        file_path: Path to the file that caused the error
        operation: Operation being performed (e.g., "stat", "read", "decode")
        exception: The exception that occurred
        error_collector: Optional error collector to add the error to
        logger: Optional ``SearchLogger`` to log the error

    Returns:
        The classified error. It is returned, not raised.
    """
    error: SearchError
    if isinstance(exception, BuiltinPermissionError):
        error = PermissionError(f"Permission denied during {operation}: {exception}", file_path)
    elif isinstance(exception, (FileNotFoundError, IsADirectoryError, NotADirectoryError)):
        error = FileAccessError(f"Cannot {operation} file: {exception}", file_path)
    elif isinstance(exception, UnicodeError):
        error = EncodingError(f"Encoding error during {operation}: {exception}", file_path)
    elif isinstance(exception, OSError):
        error = FileAccessError(f"I/O error during {operation}: {exception}", file_path)
    else:
        error = SearchError(
            f"Unexpected error during {operation}: {exception}",
            file_path=file_path,
            severity=ErrorSeverity.LOW,
        )

    if error_collector is not None:
        error_collector.add_error(error)

    if logger is not None:
        logger.log_file_error(str(file_path), error.message, file_operation=operation)

    return error


def create_error_report(error_collector: ErrorCollector) -> str:
    """Create a human-readable error report."""
    if not error_collector.errors:
        return "No errors occurred during the search operation."

    summary = error_collector.get_summary()

    report = ["Search Error Report", "=" * 50, ""]
    report.append(f"Total errors: {summary['total_errors']}")
    report.append("")

    report.append("Errors by category:")
    for category, count in summary["by_category"].items():
        report.append(f"  {category}: {count}")
    report.append("")

    report.append("Skipped files:")
    for error in error_collector.errors:
        location = f"{error.file_path}: " if error.file_path else ""
        report.append(f"  - {location}{error.message}")

    return "\n".join(report)
