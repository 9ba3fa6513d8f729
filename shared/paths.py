"""
Path helpers for library-relative song references.

Playlists store songs relative to the library root with forward slashes so
they survive the library being moved or opened from another OS.
"""

import os
from pathlib import Path, PurePosixPath


def to_posix(path: str) -> str:
    """Replace Windows separators with forward slashes."""
    return str(path).replace("\\", "/")


def normalize_song_path(file_path: str, library_root: str) -> str:
    """
    Normalize a song path for storage in a playlist.

    Paths under the library root become relative POSIX paths
    ("Artist/Album/song.mp3"). Paths already relative are cleaned up.
    Anything outside the root is kept as an absolute POSIX path.
    """
    path = to_posix(file_path.strip())
    root = to_posix(library_root.strip()).rstrip("/")

    if root and (path == root or path.startswith(root + "/")):
        path = path[len(root):]
        return path.lstrip("/")

    if not PurePosixPath(path).is_absolute() and not _has_drive(path):
        return path.lstrip("/")
    return path


def resolve_song_path(song: str, library_root: str) -> str:
    """Turn a stored playlist entry (or any client-supplied path) into an absolute path."""
    path = to_posix(song.strip())
    if PurePosixPath(path).is_absolute() or _has_drive(path) or not library_root:
        return os.path.normpath(path)
    return os.path.normpath(os.path.join(library_root, path))


def is_within(path: str, root: str) -> bool:
    """True when path resolves to root or somewhere below it."""
    if not root:
        return False
    try:
        target = Path(path).expanduser().resolve()
        base = Path(root).expanduser().resolve()
    except (OSError, RuntimeError):
        return False
    return target == base or base in target.parents


def _has_drive(path: str) -> bool:
    return len(path) > 1 and path[1] == ":"

