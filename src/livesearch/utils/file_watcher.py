"""
File watching for livesearch engines.

Watches the configured search roots with watchdog and turns file system
events into engine invalidations:

- a modified file invalidates its cached content (``engine.invalidate``)
- a created, deleted or moved file also marks every session's file
  snapshot stale (``engine.invalidate_file_set``), so the next query
  re-resolves the searchable set

Events under excluded paths are ignored, and repeats of the same event for
the same path inside a short window are dropped (editors often save in
several writes).

Classes:
    EventType: Kinds of file system events
    FileEvent: One normalized file system event
    EngineEventHandler: watchdog handler feeding a ``SearchEngine``
    FileWatcher: Observer lifecycle over the engine's roots

Example:
    >>> watcher = FileWatcher(engine)
    >>> watcher.start()
    >>> ...
    >>> watcher.stop()
"""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..search.globs import GlobSet
from .logging_config import get_logger

if TYPE_CHECKING:
    from ..core.api import SearchEngine


class EventType(Enum):
    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"
    MOVED = "moved"


@dataclass(slots=True)
class FileEvent:
    path: str
    event_type: EventType
    timestamp: float
    is_directory: bool = False
    old_path: str | None = None


class EngineEventHandler(FileSystemEventHandler):
    """
    Translates watchdog events into engine invalidations.

    Runs on the observer thread; the engine's invalidation entry points are
    thread-safe.
    """

    def __init__(self, engine: SearchEngine, duplicate_threshold: float = 0.1) -> None:
        super().__init__()
        self.engine = engine
        self.excludes = GlobSet(engine.cfg.get_exclude_patterns())
        self.logger = get_logger()
        self.events_processed = 0

        self._recent_events: deque[tuple[str, EventType, float]] = deque(maxlen=1000)
        self._duplicate_threshold = duplicate_threshold
        self._lock = threading.Lock()

    def _is_excluded(self, path: str) -> bool:
        rel = self.engine.store.relative_path(path)
        return self.excludes.matches_path_or_parent(rel)

    def _is_duplicate_event(self, path: str, event_type: EventType, timestamp: float) -> bool:
        with self._lock:
            cutoff = timestamp - self._duplicate_threshold
            while self._recent_events and self._recent_events[0][2] < cutoff:
                self._recent_events.popleft()

            for p, t, _ in self._recent_events:
                if p == path and t is event_type:
                    return True

            self._recent_events.append((path, event_type, timestamp))
            return False

    def _create_file_event(
        self,
        src_path: str,
        event_type: EventType,
        is_directory: bool = False,
        old_path: str | None = None,
    ) -> FileEvent | None:
        timestamp = time.time()
        if self._is_excluded(src_path) and (old_path is None or self._is_excluded(old_path)):
            return None
        if self._is_duplicate_event(src_path, event_type, timestamp):
            return None
        return FileEvent(src_path, event_type, timestamp, is_directory, old_path)

    def on_created(self, event: FileSystemEvent) -> None:
        self._dispatch(str(event.src_path), EventType.CREATED, event.is_directory)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._dispatch(str(event.src_path), EventType.MODIFIED, event.is_directory)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._dispatch(str(event.src_path), EventType.DELETED, event.is_directory)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._dispatch(
            str(event.dest_path), EventType.MOVED, event.is_directory, str(event.src_path)
        )

    def _dispatch(
        self,
        path: str,
        event_type: EventType,
        is_directory: bool,
        old_path: str | None = None,
    ) -> None:
        file_event = self._create_file_event(path, event_type, is_directory, old_path)
        if file_event is None:
            return
        try:
            self.process_event(file_event)
        except Exception as e:
            self.logger.error(f"Error processing file event {file_event.path}: {e}")

    def process_event(self, event: FileEvent) -> None:
        self.events_processed += 1
        if event.event_type is EventType.MODIFIED:
            # directory mtime changes carry no content change of their own
            if not event.is_directory:
                self.engine.invalidate(event.path)
            return

        if event.old_path is not None:
            self.engine.invalidate(event.old_path)
        self.engine.invalidate(event.path)
        self.engine.invalidate_file_set()
        self.logger.debug(f"File set changed ({event.event_type.value}): {event.path}")


class FileWatcher:
    """
    Watches an engine's search roots and keeps its snapshots and caches honest.

    Args:
        engine: Engine to notify
        paths: Directories to watch; the engine's configured paths when omitted
        recursive: Watch subdirectories as well
    """

    def __init__(
        self,
        engine: SearchEngine,
        paths: list[str | Path] | None = None,
        recursive: bool = True,
        **handler_kwargs: Any,
    ) -> None:
        self.engine = engine
        self.paths = [Path(p).resolve() for p in (paths or engine.cfg.paths)]
        self.recursive = recursive
        self.logger = get_logger()
        self.handler = EngineEventHandler(engine, **handler_kwargs)
        self._observer: Any = None
        self._start_time: float | None = None

    @property
    def is_watching(self) -> bool:
        return self._observer is not None

    def start(self) -> bool:
        """Start the observer. Returns False if no root could be watched."""
        if self._observer is not None:
            return True

        observer = Observer()
        scheduled = 0
        for path in self.paths:
            if not path.is_dir():
                self.logger.warning(f"Cannot watch missing directory: {path}")
                continue
            observer.schedule(self.handler, str(path), recursive=self.recursive)
            scheduled += 1
        if not scheduled:
            return False

        observer.start()
        self._observer = observer
        self._start_time = time.time()
        self.logger.info(f"Watching {scheduled} director{'y' if scheduled == 1 else 'ies'}")
        return True

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join()
        self._observer = None
        self.logger.info("File watching stopped")

    def get_stats(self) -> dict[str, Any]:
        return {
            "is_watching": self.is_watching,
            "paths": [str(p) for p in self.paths],
            "events_processed": self.handler.events_processed,
            "uptime": time.time() - self._start_time if self._start_time else 0.0,
        }

    def __enter__(self) -> FileWatcher:
        self.start()
        return self

    def __exit__(self, *exc: object) -> None:
        self.stop()
