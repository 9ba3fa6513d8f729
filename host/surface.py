"""
Local Control Surface.
Receives intents from the trusted host UI, applies them to the state store or
the scanner, and answers every intent with exactly one message: the requested
data or a notification describing what went wrong.
"""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from shared.constants import DONE
from shared.errors import KPlayerError, ValidationError
from shared.models import Notification
from shared.network import NetworkInfo, build_info
from shared.paths import resolve_song_path, is_within
from shared.store import StateStore, SETTINGS, PLAYLISTS
from shared.sync_state import SyncCoordinator
from library.audio import AudioProcessor
from library.scanner import LibraryScanner
from library.watcher import LibraryWatcher, ChangeEvent
from host.channel import UIChannel
from host.shell import HostShell

logger = logging.getLogger(__name__)


@dataclass
class Reply:
    """A data message for the UI."""
    event: str
    data: Any = None


Outcome = Union[Reply, Notification]

_INTENTS: Dict[str, Callable[['LocalSurface', Any], Outcome]] = {}


def intent(name: str):
    """Register a LocalSurface method as the handler for a UI operation."""
    def decorator(func):
        _INTENTS[name] = func
        return func
    return decorator


def _require_text(value: Any, message: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(message)
    return str(value).strip()


def _require_mapping(value: Any, message: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ValidationError(message)
    return value


def _parse_volume(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError("Volume value wasn't an integer.")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError("Volume value wasn't an integer.")


class LocalSurface:
    """One handler per host UI intent, dispatched by operation name."""

    def __init__(self, store: StateStore, scanner: LibraryScanner,
                 coordinator: SyncCoordinator, channel: UIChannel,
                 network: NetworkInfo, shell: Optional[HostShell] = None):
        self.store = store
        self.scanner = scanner
        self.coordinator = coordinator
        self.channel = channel
        self.network = network
        self.shell = shell or HostShell()

        self._watcher: Optional[LibraryWatcher] = None
        self._watch_lock = threading.Lock()
        self._library_root = store.settings.libraryDirectory
        self.store.add_change_callback(self._on_store_change)

    @staticmethod
    def operations() -> List[str]:
        return sorted(_INTENTS)

    # --- Dispatch ---

    def dispatch(self, op: str, payload: Any = None) -> Outcome:
        """Run the handler for op and send its outcome to the UI."""
        handler = _INTENTS.get(op)
        if handler is None:
            outcome: Outcome = Notification.error(f"Unknown operation: {op}")
        else:
            try:
                outcome = handler(self, payload)
            except KPlayerError as e:
                logger.warning("%s failed: %s", op, e.message)
                outcome = Notification.error(e.message, title=e.title)
            except Exception:
                logger.exception("Unexpected error while handling %s", op)
                outcome = Notification.error("Something went wrong. Check the logs.")
        self._deliver(outcome)
        return outcome

    def _deliver(self, outcome: Outcome) -> None:
        try:
            if isinstance(outcome, Notification):
                self.channel.notify(outcome)
            else:
                self.channel.send(outcome.event, outcome.data)
        except Exception:
            logger.exception("Could not deliver %s to the UI", getattr(outcome, "event", "notification"))

    def info(self, force_update: bool = False) -> Dict[str, Any]:
        return build_info(self.store, self.network, force_update)

    def _info_reply(self, force_update: bool = False) -> Reply:
        return Reply("getInfo", self.info(force_update))

    # --- Queries ---

    @intent("getInfo")
    def get_info(self, payload: Any = None) -> Outcome:
        return self._info_reply(False)

    @intent("getSongs")
    def get_songs(self, payload: Any = None) -> Outcome:
        root = self.store.settings.libraryDirectory
        if not root:
            return Reply("getSongs", [])
        self.ensure_watch(root)
        result = self.scanner.scan(root)
        if result.failures:
            logger.warning("Couldn't parse the metadata of %d file(s) in %s: %s",
                           len(result.failures), root,
                           ", ".join(path for path, _ in result.failures))
        return Reply("getSongs", result.to_list())

    @intent("playSong")
    def play_song(self, payload: Any) -> Outcome:
        path = _require_text(payload, "Invalid audio file.")
        path = resolve_song_path(path, self.store.settings.libraryDirectory)
        mime = AudioProcessor.resolve_mime(path)
        if mime is None:
            return Notification.error("Invalid file type.")
        try:
            encoded = AudioProcessor.encode_file(path)
        except OSError as e:
            logger.error("Couldn't read %s: %s", path, e)
            return Notification.error("Couldn't read the audio file.")
        return Reply("playSong", {"base64": encoded, "mime": mime})

    @intent("setStatus")
    def set_status(self, payload: Any) -> Outcome:
        self.coordinator.set_status(payload)
        return Reply("statusSaved", DONE)

    # --- Settings ---

    @intent("browseFiles")
    def browse_files(self, payload: Any = None) -> Outcome:
        if isinstance(payload, dict):
            directory = payload.get("directory")
        elif isinstance(payload, str) and payload.strip():
            directory = payload
        else:
            directory = self.shell.choose_directory()

        if not directory or not Path(str(directory)).expanduser().is_dir():
            return Notification.error("Invalid library directory.")
        self.store.update_setting("libraryDirectory", str(Path(str(directory)).expanduser()))
        return self._info_reply(False)

    @intent("loopSetting")
    def loop_setting(self, payload: Any) -> Outcome:
        self.store.update_setting("loop", payload)
        return self._info_reply(False)

    @intent("allowRemote")
    def allow_remote(self, payload: Any) -> Outcome:
        self.store.update_setting("allowRemote", payload)
        return self._info_reply(False)

    @intent("setVolume")
    def set_volume(self, payload: Any) -> Outcome:
        self.store.update_setting("volume", _parse_volume(payload))
        return self._info_reply(False)

    @intent("resetSettings")
    def reset_settings(self, payload: Any = None) -> Outcome:
        self.store.reset_settings()
        self.coordinator.mark_songs_dirty()
        self.coordinator.mark_playlists_dirty()
        return self._info_reply(False)

    # --- Playlists ---

    @intent("addPlaylist")
    def add_playlist(self, payload: Any) -> Outcome:
        self.store.create_playlist(payload)
        return self._info_reply(False)

    @intent("removePlaylist")
    def remove_playlist(self, payload: Any) -> Outcome:
        self.store.delete_playlist(payload)
        return self._info_reply(False)

    @intent("renamePlaylist")
    def rename_playlist(self, payload: Any) -> Outcome:
        data = _require_mapping(payload, "Invalid playlist name.")
        self.store.rename_playlist(data.get("current"), data.get("new"))
        return self._info_reply(True)

    @intent("playlistAddSong")
    def playlist_add_song(self, payload: Any) -> Outcome:
        data = _require_mapping(payload, "Invalid playlist name or audio file.")
        self.store.add_song_to_playlist(data.get("playlist"), data.get("file"))
        return self._info_reply(True)

    @intent("playlistRemoveSong")
    def playlist_remove_song(self, payload: Any) -> Outcome:
        data = _require_mapping(payload, "Invalid playlist name or audio file.")
        self.store.remove_song_from_playlist(data.get("playlist"), data.get("file"))
        return self._info_reply(True)

    # --- Host window ---

    @intent("openFileLocation")
    def open_file_location(self, payload: Any) -> Outcome:
        root = self.store.settings.libraryDirectory
        path = resolve_song_path(_require_text(payload, "Invalid audio file."), root)
        if not is_within(path, root):
            raise ValidationError("Access not authorized.")
        self.shell.show_item_in_folder(path)
        return Reply("openFileLocation", DONE)

    @intent("minimizeApp")
    def minimize_app(self, payload: Any = None) -> Outcome:
        self.shell.minimize()
        return Reply("minimizeApp", DONE)

    @intent("maximizeApp")
    def maximize_app(self, payload: Any = None) -> Outcome:
        self.shell.toggle_maximize()
        return Reply("maximizeApp", DONE)

    @intent("quitApp")
    def quit_app(self, payload: Any = None) -> Outcome:
        self.shell.quit()
        return Reply("quitApp", DONE)

    # --- Change propagation ---

    def _on_store_change(self, document: str) -> None:
        if document == PLAYLISTS:
            # Remote song views show playlist membership too.
            self.coordinator.mark_playlists_dirty()
            self.coordinator.mark_songs_dirty()
        elif document == SETTINGS:
            root = self.store.settings.libraryDirectory
            if root != self._library_root:
                self._library_root = root
                self.coordinator.mark_songs_dirty()
                if self._watcher is not None:
                    self.ensure_watch(root)

    def ensure_watch(self, root: str) -> None:
        """Watch the library root, replacing a watcher on a previous root."""
        with self._watch_lock:
            target = str(Path(root).expanduser()) if root else ""
            if self._watcher is not None:
                if self._watcher.root == target and self._watcher.is_alive:
                    return
                self._watcher.stop()
                self._watcher = None
            if not target:
                return
            watcher = LibraryWatcher(target, self._on_library_change)
            if watcher.start():
                self._watcher = watcher

    def _on_library_change(self, event: ChangeEvent) -> None:
        logger.debug("Library change: %s %s", event.kind, event.path)
        self.coordinator.mark_songs_dirty()
        try:
            self.channel.send("getInfo", self.info(True))
            self.channel.notify(Notification.info("Refreshing", "Your music library is being updated."))
        except Exception:
            logger.exception("Could not push library refresh to the UI")

    def close(self) -> None:
        self.store.remove_change_callback(self._on_store_change)
        with self._watch_lock:
            if self._watcher is not None:
                self._watcher.stop()
                self._watcher = None
