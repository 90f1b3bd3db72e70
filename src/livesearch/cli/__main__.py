"""
CLI entry point for ``python -m livesearch.cli``.
"""

from .main import main

if __name__ == "__main__":
    main()
