"""
Shared constants used across the host and remote surfaces.
"""

APP_NAME = "KPlayer"
APP_VERSION = "1.0.0"

# Network
LOCAL_PORT = 3030   # host UI, bound to localhost only
REMOTE_PORT = 1998  # LAN-facing remote control

# Persisted state
DEFAULT_DATA_DIR = "~/.config/x-music"
SETTINGS_FILENAME = "settings.json"
PLAYLISTS_FILENAME = "playlists.json"

LOOP_MODES = ("none", "list", "song")
MIN_VOLUME = 0
MAX_VOLUME = 100

DEFAULT_SETTINGS = {
    "libraryDirectory": "",
    "loop": "none",
    "volume": 100,
    "allowRemote": True,
}

# Audio formats
SUPPORTED_AUDIO_FORMATS = [".mp3", ".wav", ".ogg"]

MIME_MPEG = "audio/mpeg"
MIME_WAV = "audio/x-wav"
MIME_OGG_AUDIO = "audio/ogg"
MIME_OGG = "application/ogg"
ALLOWED_MIME_TYPES = (MIME_MPEG, MIME_WAV, MIME_OGG_AUDIO, MIME_OGG)

UNKNOWN_ARTIST = "Unknown Artist"
UNKNOWN_ALBUM = "Unknown Album"

# Scanning
DEFAULT_SCAN_WORKERS = 4

# Notifications
NOTIFY_EVENT = "notify"
DEFAULT_NOTIFICATION_DURATION = 5000  # milliseconds

# Remote sentinels
UNCHANGED = "unchanged"
DONE = "done"
