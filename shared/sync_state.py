"""
Sync state shared by the host and remote surfaces.
Tracks whether remote caches of songs/playlists are stale and keeps the last
playback status reported by the host UI.

Ownership: the host side marks data dirty and overwrites the status; the
remote side clears a flag, and only after it produced the fresh response.
"""
import logging
import threading
from typing import Any, Optional

logger = logging.getLogger(__name__)


class _DirtyFlag:
    """
    A dirty flag backed by two counters.

    ``changed`` grows on every mark, ``served`` records the last generation a
    remote poll delivered. The flag is dirty while they differ, so a mark that
    happens while a response is being built is never lost.
    """

    def __init__(self, name: str):
        self.name = name
        self.changed = 1  # dirty at startup so the first poll gets data
        self.served = 0

    @property
    def dirty(self) -> bool:
        return self.changed != self.served

    def mark(self) -> None:
        self.changed += 1

    def begin(self, force: bool) -> Optional[int]:
        if force or self.dirty:
            return self.changed
        return None

    def commit(self, token: int) -> None:
        if token > self.served:
            self.served = token


class SyncCoordinator:
    """Process-wide dirty flags and playback-status cache, constructed at startup."""

    def __init__(self):
        self._lock = threading.Lock()
        self._songs = _DirtyFlag("songs")
        self._playlists = _DirtyFlag("playlists")
        self._status: Any = ""
        self._closed = False

    # --- Host side ---

    def mark_songs_dirty(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._songs.mark()
        logger.debug("Songs marked dirty")

    def mark_playlists_dirty(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._playlists.mark()
        logger.debug("Playlists marked dirty")

    def set_status(self, status: Any) -> None:
        """Replace the cached playback status wholesale."""
        with self._lock:
            if self._closed:
                return
            self._status = status

    # --- Remote side ---

    def begin_songs(self, force: bool = False) -> Optional[int]:
        """Token to pass to commit_songs() once fresh songs were served, None when unchanged."""
        with self._lock:
            return self._songs.begin(force)

    def commit_songs(self, token: int) -> None:
        with self._lock:
            self._songs.commit(token)

    def begin_playlists(self, force: bool = False) -> Optional[int]:
        with self._lock:
            return self._playlists.begin(force)

    def commit_playlists(self, token: int) -> None:
        with self._lock:
            self._playlists.commit(token)

    # --- Reads ---

    @property
    def songs_dirty(self) -> bool:
        with self._lock:
            return self._songs.dirty

    @property
    def playlists_dirty(self) -> bool:
        with self._lock:
            return self._playlists.dirty

    @property
    def status(self) -> Any:
        with self._lock:
            return self._status

    def close(self) -> None:
        """End of lifecycle; later host-side writes are ignored."""
        with self._lock:
            self._closed = True
