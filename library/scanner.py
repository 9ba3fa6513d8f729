"""
Library Scanner.
Recursively discovers audio files under the library root and extracts their
metadata on a worker pool. The filesystem is the source of truth; tracks are
rebuilt on every scan.
"""

import os
import logging
import threading
import concurrent.futures
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from shared.constants import DEFAULT_SCAN_WORKERS, UNKNOWN_ARTIST, UNKNOWN_ALBUM
from shared.errors import ScanError, MetadataError
from shared.models import Track
from library.audio import AudioProcessor

logger = logging.getLogger(__name__)


def _blank(value: Optional[str]) -> bool:
    return value is None or str(value).strip() == ""


def build_track(file_path: Path, meta: Dict) -> Track:
    """
    Apply the field-default policy to raw metadata.

    Blank or missing title falls back to the file name without its last
    extension; blank artist/album become "Unknown Artist"/"Unknown Album".
    Duration is passed through, unknown stays None.
    """
    title = meta.get('title')
    artist = meta.get('artist')
    album = meta.get('album')

    if _blank(title):
        title = Path(file_path).stem
    if _blank(artist):
        artist = UNKNOWN_ARTIST
    if _blank(album):
        album = UNKNOWN_ALBUM

    return Track(
        file=str(file_path),
        title=title,
        artist=artist,
        album=album,
        duration=meta.get('duration'),
    )


@dataclass
class ScanResult:
    """Outcome of one scan: tracks in discovery order plus per-file failures."""
    root: str
    tracks: List[Track] = field(default_factory=list)
    failures: List[Tuple[str, str]] = field(default_factory=list)  # (path, reason)

    def __iter__(self) -> Iterator[Track]:
        return iter(self.tracks)

    def __len__(self) -> int:
        return len(self.tracks)

    def to_list(self) -> List[Dict]:
        return [t.to_dict() for t in self.tracks]


class LibraryScanner:
    """
    Scans a library directory. Metadata extraction fans out on a bounded
    thread pool shared by every scan; each scan waits for all of its own
    extractions before its result is complete.
    """

    def __init__(self, max_workers: int = DEFAULT_SCAN_WORKERS,
                 extractor: Callable[[str], Dict] = AudioProcessor.extract_metadata):
        self.max_workers = max_workers
        self._extractor = extractor
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="kplayer-scan"
        )
        self._lock = threading.Lock()
        self._closed = False

    def discover(self, root_directory: Optional[str]) -> List[Path]:
        """Find all supported audio files below the root, sorted by path."""
        if not root_directory or not str(root_directory).strip():
            return []

        root_path = Path(root_directory).expanduser()
        if not root_path.is_dir():
            raise ScanError(f"Couldn't fetch songs: {root_path} is not a directory.")

        def _on_error(error: OSError):
            # Only the root itself is fatal; unreadable subfolders are skipped.
            if Path(error.filename or "") == root_path:
                raise ScanError(f"Couldn't fetch songs: {error}") from error
            logger.warning("Skipping unreadable folder %s: %s", error.filename, error.strerror)

        audio_files = []
        for root, _, filenames in os.walk(root_path, onerror=_on_error):
            for filename in filenames:
                file_path = Path(root) / filename
                if AudioProcessor.is_supported_format(str(file_path)):
                    audio_files.append(file_path)

        audio_files.sort()
        logger.info("Found %d audio files in %s", len(audio_files), root_path)
        return audio_files

    def scan(self, root_directory: Optional[str]) -> ScanResult:
        """
        Main entry point for scanning a directory.

        Raises:
            ScanError: The root directory could not be listed
        """
        result = ScanResult(root=str(root_directory or ""))
        audio_files = self.discover(root_directory)
        if not audio_files:
            return result

        future_to_index = self._submit_all(audio_files)
        done, _ = concurrent.futures.wait(future_to_index)

        tracks: Dict[int, Track] = {}
        for future in done:
            index = future_to_index[future]
            f_path = audio_files[index]
            track, reason = self._collect(future, f_path)
            if track is not None:
                tracks[index] = track
            else:
                result.failures.append((str(f_path), reason))

        result.tracks = [tracks[i] for i in sorted(tracks)]
        result.failures.sort()
        logger.info("Scanned %d tracks (%d failed) in %s",
                    len(result.tracks), len(result.failures), root_directory)
        return result

    def iter_tracks(self, root_directory: Optional[str]) -> Iterator[Track]:
        """Lazy variant of scan(): yields tracks as their extraction completes."""
        audio_files = self.discover(root_directory)
        if not audio_files:
            return
        future_to_index = self._submit_all(audio_files)
        for future in concurrent.futures.as_completed(future_to_index):
            track, _ = self._collect(future, audio_files[future_to_index[future]])
            if track is not None:
                yield track

    def shutdown(self) -> None:
        """Stop accepting scans; in-flight extractions are abandoned."""
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _submit_all(self, audio_files: List[Path]) -> Dict[concurrent.futures.Future, int]:
        with self._lock:
            if self._closed:
                raise ScanError("Scanner is shut down.")
            return {
                self._executor.submit(self._process_file, f): i
                for i, f in enumerate(audio_files)
            }

    def _collect(self, future: concurrent.futures.Future, f_path: Path) -> Tuple[Optional[Track], str]:
        if future.cancelled():
            return None, "cancelled"
        try:
            return future.result(), ""
        except MetadataError as e:
            logger.warning("Error processing %s: %s", f_path.name, e.message)
            return None, e.message
        except Exception as e:
            logger.exception("Unexpected error processing %s", f_path.name)
            return None, str(e)

    def _process_file(self, file_path: Path) -> Track:
        """Process a single file: Extract Metadata -> Create Track."""
        meta = self._extractor(str(file_path))
        return build_track(file_path, meta)
