"""
Utility modules: error handling and logging.

The formatter and file watcher depend on the core engine and are imported
from their own modules (``livesearch.utils.formatter``,
``livesearch.utils.file_watcher``).
"""

from .error_handling import (
    ConfigurationError,
    EncodingError,
    ErrorCollector,
    FileAccessError,
    PermissionError,
    SearchError,
    SessionError,
    create_error_report,
    handle_file_error,
)
from .logging_config import configure_logging, disable_logging, enable_debug_logging, get_logger

__all__ = [
    "ConfigurationError",
    "EncodingError",
    "ErrorCollector",
    "FileAccessError",
    "PermissionError",
    "SearchError",
    "SessionError",
    "create_error_report",
    "handle_file_error",
    "configure_logging",
    "disable_logging",
    "enable_debug_logging",
    "get_logger",
]
