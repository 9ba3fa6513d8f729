"""
State Store for settings and playlists.
Owns both documents in memory and persists every mutation to JSON files.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from shared.constants import (
    LOOP_MODES,
    MIN_VOLUME,
    MAX_VOLUME,
    SETTINGS_FILENAME,
    PLAYLISTS_FILENAME,
)
from shared.errors import (
    ValidationError,
    InvalidNameError,
    NotFoundError,
    SongNotFoundError,
    ConflictError,
    DuplicateError,
    PersistenceError,
)
from shared.models import LoopMode, Settings, Playlist, playlists_to_dict
from shared.paths import normalize_song_path

logger = logging.getLogger(__name__)

SETTINGS = "settings"
PLAYLISTS = "playlists"


def _validate_library_directory(value: Any) -> None:
    if not isinstance(value, str):
        raise ValidationError("Library directory must be a string.")


def _validate_loop(value: Any) -> None:
    if not isinstance(value, str) or value not in {mode.value for mode in LoopMode}:
        raise ValidationError(f"Loop must be one of: {', '.join(LOOP_MODES)}.")


def _validate_volume(value: Any) -> None:
    # bool is an int subclass; True is not a volume.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("Volume value wasn't an integer.")
    if not MIN_VOLUME <= value <= MAX_VOLUME:
        raise ValidationError(f"Volume must be between {MIN_VOLUME} and {MAX_VOLUME}.")


def _validate_allow_remote(value: Any) -> None:
    if not isinstance(value, bool):
        raise ValidationError("Boolean data type only.")


SETTINGS_SCHEMA: Dict[str, Callable[[Any], None]] = {
    "libraryDirectory": _validate_library_directory,
    "loop": _validate_loop,
    "volume": _validate_volume,
    "allowRemote": _validate_allow_remote,
}


def _clean_name(name: Any) -> str:
    cleaned = str(name).strip() if name is not None else ""
    if not cleaned:
        raise InvalidNameError("Invalid playlist name.")
    return cleaned


class StateStore:
    """
    Single-writer store for the settings document and the playlist mapping.

    Reads are served from the last committed in-memory snapshot. Every
    mutation is validated, written to disk atomically and only then
    committed in memory, so a failed write leaves the previous state intact.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir).expanduser()
        self.settings_file = self.data_dir / SETTINGS_FILENAME
        self.playlists_file = self.data_dir / PLAYLISTS_FILENAME

        self._settings = Settings.defaults()
        self._playlists: Dict[str, Playlist] = {}
        self._lock = threading.RLock()
        self._on_change_callbacks: List[Callable[[str], None]] = []

    # --- Lifecycle ---

    def open(self) -> 'StateStore':
        """Create missing state files with defaults, then load both documents."""
        self._ensure_files()
        self.load_settings()
        self.load_playlists()
        return self

    def _ensure_files(self) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            if not self.settings_file.exists():
                logger.info("Creating default settings at %s", self.settings_file)
                self._write_json(self.settings_file, Settings.defaults().to_dict())
            if not self.playlists_file.exists():
                logger.info("Creating empty playlists file at %s", self.playlists_file)
                self.playlists_file.write_text("", encoding="utf-8")
        except (OSError, PersistenceError) as e:
            raise PersistenceError(f"Could not create the required user files: {e}") from e

    def load_settings(self) -> Settings:
        """Read the settings document from disk. Missing or corrupt files are fatal."""
        raw = self._read_text(self.settings_file)
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Invalid settings file {self.settings_file}: {e}") from e
        if not isinstance(data, dict):
            raise PersistenceError(f"Invalid settings file {self.settings_file}: not an object")

        for key, validator in SETTINGS_SCHEMA.items():
            if key not in data:
                continue
            try:
                validator(data[key])
            except ValidationError as e:
                raise PersistenceError(
                    f"Invalid settings file {self.settings_file}: {key}: {e.message}") from e

        settings = Settings.from_dict(data)
        with self._lock:
            self._settings = settings
        logger.info("Loaded settings from %s", self.settings_file)
        return Settings(**settings.to_dict())

    def load_playlists(self) -> Dict[str, Playlist]:
        """Read the playlist mapping from disk. An empty file is an empty mapping."""
        raw = self._read_text(self.playlists_file)
        playlists: Dict[str, Playlist] = {}
        if raw.strip():
            try:
                data = json.loads(raw)
            except json.JSONDecodeError as e:
                raise PersistenceError(f"Invalid playlists file {self.playlists_file}: {e}") from e
            if not isinstance(data, dict):
                raise PersistenceError(f"Invalid playlists file {self.playlists_file}: not an object")
            playlists = {name: Playlist.from_dict(name, value) for name, value in data.items()}

        with self._lock:
            self._playlists = playlists
        logger.info("Loaded %d playlists from %s", len(playlists), self.playlists_file)
        return self.playlists

    # --- Snapshots ---

    @property
    def settings(self) -> Settings:
        with self._lock:
            return Settings(**self._settings.to_dict())

    @property
    def playlists(self) -> Dict[str, Playlist]:
        with self._lock:
            return {name: playlist.copy() for name, playlist in self._playlists.items()}

    def playlists_dict(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            return playlists_to_dict(self._playlists)

    # --- Settings ---

    def update_setting(self, key: str, value: Any) -> Settings:
        """Validate and persist a single settings field. Returns the new document."""
        validator = SETTINGS_SCHEMA.get(key)
        if validator is None:
            raise ValidationError(f"Unknown setting: {key}")
        validator(value)

        with self._lock:
            data = self._settings.to_dict()
            data[key] = value
            self._write_json(self.settings_file, data)
            self._settings = Settings.from_dict(data)
            logger.info("Setting %s updated", key)
            result = self.settings
        self._notify_change(SETTINGS)
        return result

    def reset_settings(self) -> Settings:
        """Replace the settings with the defaults."""
        defaults = Settings.defaults()
        with self._lock:
            self._write_json(self.settings_file, defaults.to_dict())
            self._settings = defaults
            logger.info("Settings reset to defaults")
            result = self.settings
        self._notify_change(SETTINGS)
        return result

    # --- Playlists ---

    def create_playlist(self, name: str) -> Playlist:
        name = _clean_name(name)
        with self._lock:
            if name in self._playlists:
                raise ConflictError("A playlist with that name already exists.")
            updated = dict(self._playlists)
            updated[name] = Playlist(name=name)
            self._commit_playlists(updated)
            logger.info("Created playlist %r", name)
            playlist = updated[name].copy()
        self._notify_change(PLAYLISTS)
        return playlist

    def rename_playlist(self, old_name: str, new_name: str) -> Playlist:
        old_name = _clean_name(old_name)
        new_name = _clean_name(new_name)
        with self._lock:
            if old_name not in self._playlists:
                raise NotFoundError("A playlist with that name doesn't exist.")
            if new_name in self._playlists:
                raise ConflictError("A playlist with that name already exists.")
            # Rebuild to keep the playlist at its original position.
            updated: Dict[str, Playlist] = {}
            for name, playlist in self._playlists.items():
                if name == old_name:
                    updated[new_name] = Playlist(name=new_name, songs=list(playlist.songs))
                else:
                    updated[name] = playlist
            self._commit_playlists(updated)
            logger.info("Renamed playlist %r to %r", old_name, new_name)
            playlist = updated[new_name].copy()
        self._notify_change(PLAYLISTS)
        return playlist

    def delete_playlist(self, name: str) -> None:
        name = _clean_name(name)
        with self._lock:
            if name not in self._playlists:
                raise NotFoundError("That playlist doesn't exist.")
            updated = {k: v for k, v in self._playlists.items() if k != name}
            self._commit_playlists(updated)
            logger.info("Deleted playlist %r", name)
        self._notify_change(PLAYLISTS)

    def add_song_to_playlist(self, name: str, file_path: str) -> Playlist:
        name = _clean_name(name)
        song = self._clean_song(file_path)
        with self._lock:
            playlist = self._playlists.get(name)
            if playlist is None:
                raise NotFoundError("That playlist doesn't exist.")
            if song in playlist.songs:
                raise DuplicateError("That playlist already has that song.")
            updated = dict(self._playlists)
            updated[name] = Playlist(name=name, songs=playlist.songs + [song])
            self._commit_playlists(updated)
            logger.info("Added %r to playlist %r", song, name)
            result = updated[name].copy()
        self._notify_change(PLAYLISTS)
        return result

    def remove_song_from_playlist(self, name: str, file_path: str) -> Playlist:
        name = _clean_name(name)
        song = self._clean_song(file_path)
        with self._lock:
            playlist = self._playlists.get(name)
            if playlist is None:
                raise NotFoundError("That playlist doesn't exist.")
            if song not in playlist.songs:
                raise SongNotFoundError("Could not find that song in that playlist.")
            songs = list(playlist.songs)
            songs.remove(song)
            updated = dict(self._playlists)
            updated[name] = Playlist(name=name, songs=songs)
            self._commit_playlists(updated)
            logger.info("Removed %r from playlist %r", song, name)
            result = updated[name].copy()
        self._notify_change(PLAYLISTS)
        return result

    def _clean_song(self, file_path: Any) -> str:
        path = str(file_path).strip() if file_path is not None else ""
        if not path:
            raise ValidationError("Invalid playlist name or audio file.")
        with self._lock:
            root = self._settings.libraryDirectory
        song = normalize_song_path(path, root)
        if not song:
            raise ValidationError("Invalid playlist name or audio file.")
        return song

    def _commit_playlists(self, updated: Dict[str, Playlist]) -> None:
        """Write first, swap the in-memory mapping only when the write succeeded."""
        self._write_json(self.playlists_file, playlists_to_dict(updated))
        self._playlists = updated

    # --- Change callbacks ---

    def add_change_callback(self, callback: Callable[[str], None]) -> None:
        """Register a callback invoked with "settings" or "playlists" after each commit."""
        if callback not in self._on_change_callbacks:
            self._on_change_callbacks.append(callback)

    def remove_change_callback(self, callback: Callable[[str], None]) -> None:
        if callback in self._on_change_callbacks:
            self._on_change_callbacks.remove(callback)

    def _notify_change(self, document: str) -> None:
        for callback in list(self._on_change_callbacks):
            try:
                callback(document)
            except Exception:
                logger.exception("Error in store change callback")

    # --- File I/O ---

    @staticmethod
    def _read_text(path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Could not read {path}: {e}") from e

    @staticmethod
    def _write_json(path: Path, data: Any) -> None:
        """Atomic replace: write a temp file next to the target, fsync, rename over it."""
        tmp_path: Optional[str] = None
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
            tmp_path = None
        except OSError as e:
            logger.error("Could not write %s: %s", path, e)
            raise PersistenceError(f"Could not write to {path.name}.") from e
        finally:
            if tmp_path and os.path.exists(tmp_path):
                try:
                    os.unlink(tmp_path)
                except OSError:
                    logger.warning("Could not remove temp file %s", tmp_path)
