"""
Audio file utilities.

This module handles format checks, content-based MIME resolution and
metadata extraction for the library scanner and both control surfaces.
"""

import base64
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from mutagen import File as MutagenFile
from mutagen import MutagenError
from mutagen.id3 import ID3
from mutagen.mp3 import MP3
from mutagen.wave import WAVE
from mutagen.ogg import OggFileType
from mutagen.oggvorbis import OggVorbis
from mutagen.oggopus import OggOpus
from mutagen.oggflac import OggFLAC
from mutagen.oggspeex import OggSpeex

from shared.constants import (
    SUPPORTED_AUDIO_FORMATS,
    ALLOWED_MIME_TYPES,
    MIME_MPEG,
    MIME_WAV,
    MIME_OGG_AUDIO,
    MIME_OGG,
)
from shared.errors import MetadataError

logger = logging.getLogger(__name__)

OGG_AUDIO_TYPES = (OggVorbis, OggOpus, OggFLAC, OggSpeex)


class AudioProcessor:
    """Handler for audio file operations."""

    @staticmethod
    def is_supported_format(file_path: str) -> bool:
        """
        Check if file format is supported.

        Args:
            file_path: Path to audio file

        Returns:
            True if the extension is one of mp3, wav, ogg
        """
        ext = Path(file_path).suffix.lower()
        return ext in SUPPORTED_AUDIO_FORMATS

    @staticmethod
    def extract_metadata(file_path: str) -> Dict[str, Any]:
        """
        Extract metadata from an audio file using mutagen.

        Args:
            file_path: Path to audio file

        Returns:
            Dictionary with raw metadata, values are None when absent:
                - title: Title tag
                - artist: Artist tag
                - album: Album tag
                - duration: Duration in seconds (float)

        Raises:
            MetadataError: The file could not be opened or parsed
        """
        try:
            audio = MutagenFile(file_path, easy=False)
        except (MutagenError, OSError, ValueError) as e:
            raise MetadataError(f"Couldn't parse the metadata: {e}", path=str(file_path)) from e
        if audio is None:
            raise MetadataError("Couldn't parse the metadata: unknown format", path=str(file_path))

        metadata: Dict[str, Any] = {
            'title': None,
            'artist': None,
            'album': None,
            'duration': None,
        }

        info = getattr(audio, 'info', None)
        length = getattr(info, 'length', None)
        if length is not None:
            metadata['duration'] = float(length)

        tags = audio.tags
        if not tags:
            return metadata

        # MP3 and WAVE both carry ID3 frames
        if isinstance(tags, ID3):
            metadata['title'] = _id3_text(tags, 'TIT2')
            metadata['artist'] = _id3_text(tags, 'TPE1')
            metadata['album'] = _id3_text(tags, 'TALB')

        # Ogg containers carry Vorbis comments
        elif isinstance(audio, OggFileType):
            metadata['title'] = _vorbis_text(tags, 'title')
            metadata['artist'] = _vorbis_text(tags, 'artist')
            metadata['album'] = _vorbis_text(tags, 'album')

        return metadata

    @staticmethod
    def resolve_mime(file_path: str) -> Optional[str]:
        """
        Resolve the MIME type of an audio file from its content.

        The extension has to be supported and mutagen has to recognise the
        data as MP3, WAVE or Ogg. Anything else (e.g. a text file renamed to
        .mp3) resolves to None.
        """
        if not AudioProcessor.is_supported_format(file_path):
            return None
        try:
            audio = MutagenFile(file_path)
        except Exception as e:
            logger.debug("Content check failed for %s: %s", file_path, e)
            return None

        if isinstance(audio, MP3):
            mime = MIME_MPEG
        elif isinstance(audio, WAVE):
            mime = MIME_WAV
        elif isinstance(audio, OGG_AUDIO_TYPES):
            mime = MIME_OGG_AUDIO
        elif isinstance(audio, OggFileType):
            mime = MIME_OGG
        else:
            return None
        return mime if mime in ALLOWED_MIME_TYPES else None

    @staticmethod
    def encode_file(file_path: str) -> str:
        """Read a file and return its content as base64 text."""
        with open(file_path, 'rb') as f:
            return base64.b64encode(f.read()).decode('ascii')


def _id3_text(tags: ID3, frame_id: str) -> Optional[str]:
    frame = tags.get(frame_id)
    if frame is None or not getattr(frame, 'text', None):
        return None
    return str(frame.text[0])


def _vorbis_text(tags: Any, key: str) -> Optional[str]:
    values = tags.get(key)
    if not values:
        return None
    return str(values[0])
