import struct
import wave
from pathlib import Path

import pytest
from mutagen.id3 import TIT2, TPE1, TALB
from mutagen.mp3 import MP3
from mutagen.ogg import OggPage
from mutagen.wave import WAVE

from shared.network import NetworkInfo
from shared.store import StateStore
from shared.sync_state import SyncCoordinator
from library.scanner import LibraryScanner
from host.channel import UIChannel
from host.shell import HostShell


def write_wav(path: Path, frames: int = 800, rate: int = 8000) -> Path:
    """Write a short silent mono WAV file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with wave.open(str(path), "wb") as w:
        w.setnchannels(1)
        w.setsampwidth(2)
        w.setframerate(rate)
        w.writeframes(b"\x00\x00" * frames)
    return path


def _add_id3(audio, path: Path, title, artist, album) -> Path:
    audio.add_tags()
    if title is not None:
        audio.tags.add(TIT2(encoding=3, text=[title]))
    if artist is not None:
        audio.tags.add(TPE1(encoding=3, text=[artist]))
    if album is not None:
        audio.tags.add(TALB(encoding=3, text=[album]))
    audio.save()
    return path


def tag_wav(path: Path, title=None, artist=None, album=None) -> Path:
    return _add_id3(WAVE(str(path)), path, title, artist, album)


# MPEG-1 Layer III, 128 kbps, 44.1 kHz, no CRC, no padding: 417 bytes per frame.
MP3_FRAME = b"\xff\xfb\x90\x00" + b"\x00" * 413


def write_mp3(path: Path, frames: int = 20) -> Path:
    """Write a run of silent MPEG frames, enough for mutagen to sync on."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(MP3_FRAME * frames)
    return path


def tag_mp3(path: Path, title=None, artist=None, album=None) -> Path:
    return _add_id3(MP3(str(path)), path, title, artist, album)


def _comment_block(tags) -> bytes:
    vendor = b"kplayer tests"
    entries = [f"{key}={value}".encode("utf-8") for key, value in tags.items()]
    data = struct.pack("<I", len(vendor)) + vendor + struct.pack("<I", len(entries))
    for entry in entries:
        data += struct.pack("<I", len(entry)) + entry
    return data + b"\x01"


def _write_ogg(path: Path, header_packets, final_position: int) -> Path:
    """One logical stream: a page per header packet, then a final data page."""
    pages = []
    for sequence, packet in enumerate(header_packets + [b"\x00" * 16]):
        page = OggPage()
        page.serial = 1
        page.sequence = sequence
        page.position = 0
        page.packets = [packet]
        pages.append(page)
    pages[0].first = True
    pages[-1].last = True
    pages[-1].position = final_position
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"".join(page.write() for page in pages))
    return path


def write_ogg_vorbis(path: Path, seconds: int = 1, **tags) -> Path:
    """Ogg Vorbis headers (no audio data) for a mono 44.1 kHz stream."""
    rate = 44100
    ident = (b"\x01vorbis" + struct.pack("<I", 0)
             + struct.pack("<BI3i", 1, rate, 0, 128000, 0) + b"\xb8\x01")
    comment = b"\x03vorbis" + _comment_block(tags)
    return _write_ogg(path, [ident, comment], final_position=rate * seconds)


def write_ogg_theora(path: Path, frames: int = 50) -> Path:
    """Ogg Theora headers (video, no audio) at 25 fps."""
    ident = (b"\x80theora" + bytes([3, 2, 0]) + b"\x00" * 12
             + struct.pack(">2I", 25, 1) + b"\x00" * 7 + b"\x00" * 3 + b"\x00" * 2)
    comment = b"\x81theora" + _comment_block({})
    return _write_ogg(path, [ident, comment], final_position=frames)


def write_fake_mp3(path: Path) -> Path:
    """A text file wearing an .mp3 extension."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("this is not audio, just some notes\n" * 20)
    return path


class RecordingChannel(UIChannel):
    def __init__(self):
        self.sent = []

    def send(self, event, data=None):
        self.sent.append((event, data))

    def events(self):
        return [event for event, _ in self.sent]

    def last(self):
        return self.sent[-1]


class RecordingShell(HostShell):
    def __init__(self, directory=None):
        super().__init__()
        self.directory = directory
        self.calls = []

    def choose_directory(self):
        self.calls.append("choose_directory")
        return self.directory

    def show_item_in_folder(self, path):
        self.calls.append(("show_item_in_folder", path))

    def minimize(self):
        self.calls.append("minimize")

    def toggle_maximize(self):
        self.calls.append("toggle_maximize")

    def quit(self):
        self.calls.append("quit")


class FakeWatcher:
    instances = []

    def __init__(self, root, on_change):
        self.root = root
        self.on_change = on_change
        self.started = False
        self.stopped = False
        FakeWatcher.instances.append(self)

    def start(self):
        self.started = True
        return True

    @property
    def is_alive(self):
        return self.started and not self.stopped

    def stop(self):
        self.stopped = True


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture
def library_dir(tmp_path):
    root = tmp_path / "library"
    root.mkdir()
    return root


@pytest.fixture
def store(data_dir):
    return StateStore(data_dir).open()


@pytest.fixture
def coordinator():
    return SyncCoordinator()


@pytest.fixture
def scanner():
    s = LibraryScanner(max_workers=2)
    yield s
    s.shutdown()


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def shell():
    return RecordingShell()


@pytest.fixture
def network():
    return NetworkInfo(address="192.168.1.20", local_port=3030, remote_port=1998)


@pytest.fixture
def surface(store, scanner, coordinator, channel, network, shell, monkeypatch):
    from host.surface import LocalSurface

    FakeWatcher.instances = []
    monkeypatch.setattr("host.surface.LibraryWatcher", FakeWatcher)
    s = LocalSurface(store, scanner, coordinator, channel, network, shell)
    yield s
    s.close()
