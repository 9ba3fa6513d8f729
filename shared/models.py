"""
Data models for settings, playlists, tracks and UI notifications.

This module defines the documents the state store persists and the
derived structures the scanner and both control surfaces exchange.
"""

from dataclasses import dataclass, asdict, field, fields
from typing import List, Dict, Optional, Any
from enum import Enum

from shared.constants import DEFAULT_SETTINGS, DEFAULT_NOTIFICATION_DURATION


class LoopMode(Enum):
    """Playback loop behaviour stored in the settings document."""
    NONE = "none"
    LIST = "list"
    SONG = "song"


class Severity(Enum):
    """Notification severity shown by the host UI."""
    INFO = "info"
    ERROR = "error"


@dataclass
class Settings:
    """
    The single settings document.

    Attributes:
        libraryDirectory: Root directory of the music library ("" when unset)
        loop: One of "none", "list", "song"
        volume: Integer volume in [0, 100]
        allowRemote: Gate for every remote endpoint
    """
    libraryDirectory: str = DEFAULT_SETTINGS["libraryDirectory"]
    loop: str = DEFAULT_SETTINGS["loop"]
    volume: int = DEFAULT_SETTINGS["volume"]
    allowRemote: bool = DEFAULT_SETTINGS["allowRemote"]

    @classmethod
    def defaults(cls) -> 'Settings':
        return cls()

    @classmethod
    def keys(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Settings':
        """Create Settings from a dictionary, ignoring unknown keys."""
        field_names = set(cls.keys())
        filtered_data = {k: v for k, v in data.items() if k in field_names}
        return cls(**filtered_data)


@dataclass
class Playlist:
    """A named, ordered list of library-relative song paths."""
    name: str
    songs: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        # The name is the mapping key on disk, not part of the value.
        return {"songs": list(self.songs)}

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> 'Playlist':
        songs = data.get("songs", []) if isinstance(data, dict) else []
        return cls(name=name, songs=[str(s) for s in songs])

    def copy(self) -> 'Playlist':
        return Playlist(name=self.name, songs=list(self.songs))


@dataclass
class Track:
    """
    A scanned audio file. Derived from the filesystem, never persisted.

    Attributes:
        file: Absolute path of the audio file
        title: Title tag, or the file name without extension
        artist: Artist tag, or "Unknown Artist"
        album: Album tag, or "Unknown Album"
        duration: Duration in seconds, None when the format does not report it
    """
    file: str
    title: str
    artist: str
    album: str
    duration: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Notification:
    """Uniform message the local surface sends when an intent fails or to inform the user."""
    title: str
    description: str
    severity: Severity = Severity.ERROR
    duration: int = DEFAULT_NOTIFICATION_DURATION

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['severity'] = self.severity.value
        return data

    @classmethod
    def error(cls, description: str, title: str = "Error") -> 'Notification':
        return cls(title=title, description=description, severity=Severity.ERROR)

    @classmethod
    def info(cls, title: str, description: str) -> 'Notification':
        return cls(title=title, description=description, severity=Severity.INFO)


def playlists_to_dict(playlists: Dict[str, Playlist]) -> Dict[str, Dict[str, Any]]:
    """Serialize a playlist mapping to its on-disk/wire shape."""
    return {name: playlist.to_dict() for name, playlist in playlists.items()}
