"""
Per-session live-query registry.

Each open session holds at most one live query. Submitting a new query
overwrites it, and every older run for that session notices at its next
batch boundary that it is no longer live. There are no cancellation tokens:
liveness is the comparison of a run's query against the stored one.
"""

from __future__ import annotations

import threading

from .types import SearchQuery


class SessionRegistry:
    """
    Maps session ids to the query currently considered live.

    A session present with ``None`` is open but idle (its last query was
    retired); a session absent from the map is closed or was never opened.
    """

    def __init__(self) -> None:
        self._live: dict[str, SearchQuery | None] = {}
        self._lock = threading.Lock()

    def open(self, session_id: str) -> None:
        """Register a session with no live query. Keeps an existing entry."""
        with self._lock:
            self._live.setdefault(session_id, None)

    def set_live(self, session_id: str, query: SearchQuery) -> None:
        """Make ``query`` the live query of the session, opening it if needed."""
        with self._lock:
            self._live[session_id] = query

    def is_live(self, session_id: str, query: SearchQuery) -> bool:
        with self._lock:
            current = self._live.get(session_id)
        return current is not None and current == query

    def live_query(self, session_id: str) -> SearchQuery | None:
        with self._lock:
            return self._live.get(session_id)

    def retire(self, session_id: str) -> None:
        """Drop the live query but keep the session open."""
        with self._lock:
            if session_id in self._live:
                self._live[session_id] = None

    def clear(self, session_id: str) -> None:
        """Forget the session entirely; pending runs starve at their next boundary."""
        with self._lock:
            self._live.pop(session_id, None)

    def is_open(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._live

    def session_ids(self) -> list[str]:
        with self._lock:
            return list(self._live)

    def __len__(self) -> int:
        with self._lock:
            return len(self._live)
