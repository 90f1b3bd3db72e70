"""
Command-line interface for livesearch.

The CLI opens one search session over the given paths, submits a single
query and prints each batch of results as soon as it arrives.
"""

from .main import cli, main

__all__ = [
    "cli",
    "main",
]
