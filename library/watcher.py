"""
Library Folder Watcher.
Monitors the library root recursively and reports every change so the caller
can invalidate cached songs and rescan.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler, FileSystemEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeEvent:
    """A single filesystem change under the library root."""
    kind: str  # created, modified, deleted, moved
    path: str
    is_directory: bool = False


class LibraryChangeHandler(FileSystemEventHandler):
    """Forwards every add/modify/remove/move event. No debouncing: one event, one callback."""

    def __init__(self, on_change: Callable[[ChangeEvent], None]):
        self.on_change = on_change

    def on_any_event(self, event: FileSystemEvent):
        if event.event_type not in ("created", "modified", "deleted", "moved"):
            return
        change = ChangeEvent(
            kind=event.event_type,
            path=str(event.src_path),
            is_directory=event.is_directory,
        )
        try:
            self.on_change(change)
        except Exception:
            logger.exception("Watcher: change callback failed for %s", change.path)


class LibraryWatcher:
    def __init__(self, root_directory: str, on_change: Callable[[ChangeEvent], None]):
        self.root = str(Path(root_directory).expanduser())
        self.handler = LibraryChangeHandler(on_change)
        self.observer: Optional[Observer] = None

    def start(self) -> bool:
        """Start monitoring the library root. Returns False when it does not exist."""
        path = Path(self.root)
        if not path.is_dir():
            logger.warning("Watcher: %s is not a directory, not watching.", path)
            return False
        self.observer = Observer()
        self.observer.schedule(self.handler, str(path), recursive=True)
        self.observer.daemon = True
        self.observer.start()
        logger.info("Watcher: Monitoring %s", path)
        return True

    @property
    def is_alive(self) -> bool:
        return self.observer is not None and self.observer.is_alive()

    def stop(self):
        if self.observer is None:
            return
        self.observer.stop()
        self.observer.join(timeout=5)
        self.observer = None
        logger.info("Watcher: Stopped monitoring %s", self.root)
