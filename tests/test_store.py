import json
import os

import pytest

from shared.errors import (
    ValidationError,
    InvalidNameError,
    NotFoundError,
    SongNotFoundError,
    ConflictError,
    DuplicateError,
    PersistenceError,
)
from shared.models import LoopMode, Settings
from shared.store import StateStore


def test_open_creates_default_files(data_dir):
    store = StateStore(data_dir).open()

    assert json.loads((data_dir / "settings.json").read_text()) == Settings.defaults().to_dict()
    assert (data_dir / "playlists.json").read_text() == ""
    assert store.playlists == {}
    assert store.settings.allowRemote is True


def test_settings_survive_restart(data_dir):
    store = StateStore(data_dir).open()
    store.update_setting("volume", 42)
    store.update_setting("loop", "song")
    store.update_setting("allowRemote", False)

    reloaded = StateStore(data_dir).open()
    assert reloaded.load_settings() == Settings(libraryDirectory="", loop="song", volume=42, allowRemote=False)


@pytest.mark.parametrize("key,value", [
    ("volume", 150),
    ("volume", -1),
    ("volume", "50"),
    ("volume", True),
    ("loop", "shuffle"),
    ("loop", ["list"]),
    ("loop", "LIST"),
    ("allowRemote", "yes"),
    ("libraryDirectory", 3),
    ("theme", "dark"),
])
def test_invalid_setting_leaves_document_unchanged(store, data_dir, key, value):
    before = store.settings
    on_disk = (data_dir / "settings.json").read_text()

    with pytest.raises(ValidationError):
        store.update_setting(key, value)

    assert store.settings == before
    assert (data_dir / "settings.json").read_text() == on_disk


def test_reset_settings(store):
    store.update_setting("volume", 10)
    assert store.reset_settings() == Settings.defaults()
    assert store.load_settings() == Settings.defaults()


def test_create_playlist_twice_conflicts(store):
    store.create_playlist("Road Trip")
    with pytest.raises(ConflictError):
        store.create_playlist("  Road Trip ")
    assert list(store.playlists) == ["Road Trip"]


@pytest.mark.parametrize("name", ["", "   ", None])
def test_create_playlist_rejects_blank_names(store, name):
    with pytest.raises(InvalidNameError):
        store.create_playlist(name)


def test_rename_playlist_keeps_position_and_songs(store):
    store.create_playlist("A")
    store.create_playlist("B")
    store.create_playlist("C")
    store.add_song_to_playlist("B", "x.mp3")

    store.rename_playlist("B", "Bee")

    assert list(store.playlists) == ["A", "Bee", "C"]
    assert store.playlists["Bee"].songs == ["x.mp3"]
    assert list(StateStore(store.data_dir).open().playlists) == ["A", "Bee", "C"]


def test_rename_playlist_errors(store):
    store.create_playlist("A")
    store.create_playlist("B")
    with pytest.raises(NotFoundError):
        store.rename_playlist("Missing", "New")
    with pytest.raises(ConflictError):
        store.rename_playlist("A", "B")


def test_delete_playlist(store):
    store.create_playlist("Road Trip")
    store.delete_playlist("Road Trip")
    assert store.playlists == {}
    with pytest.raises(NotFoundError):
        store.delete_playlist("Road Trip")


def test_add_same_song_twice_is_rejected(store, library_dir):
    store.update_setting("libraryDirectory", str(library_dir))
    store.create_playlist("Road Trip")
    song = str(library_dir / "Artist" / "song.mp3")

    store.add_song_to_playlist("Road Trip", song)
    with pytest.raises(DuplicateError):
        store.add_song_to_playlist("Road Trip", "Artist/song.mp3")

    assert store.playlists["Road Trip"].songs == ["Artist/song.mp3"]


def test_add_song_to_missing_playlist(store):
    with pytest.raises(NotFoundError):
        store.add_song_to_playlist("Nope", "a.mp3")


def test_remove_song(store, library_dir):
    store.update_setting("libraryDirectory", str(library_dir))
    store.create_playlist("Mix")
    store.add_song_to_playlist("Mix", "a.mp3")
    store.add_song_to_playlist("Mix", "b.mp3")

    store.remove_song_from_playlist("Mix", str(library_dir / "a.mp3"))

    assert store.playlists["Mix"].songs == ["b.mp3"]
    with pytest.raises(SongNotFoundError):
        store.remove_song_from_playlist("Mix", "a.mp3")
    with pytest.raises(NotFoundError):
        store.remove_song_from_playlist("Other", "b.mp3")


def test_playlists_file_format(store, data_dir):
    store.create_playlist("Mix")
    store.add_song_to_playlist("Mix", "a.mp3")
    assert json.loads((data_dir / "playlists.json").read_text()) == {"Mix": {"songs": ["a.mp3"]}}


def test_whitespace_playlists_file_is_empty_mapping(data_dir):
    data_dir.mkdir(parents=True)
    (data_dir / "playlists.json").write_text("  \n")
    assert StateStore(data_dir).open().playlists == {}


def test_corrupt_settings_fail_fast(data_dir):
    data_dir.mkdir(parents=True)
    (data_dir / "settings.json").write_text("{not json")
    with pytest.raises(PersistenceError):
        StateStore(data_dir).open()


@pytest.mark.parametrize("key,value", [
    ("allowRemote", "false"),
    ("allowRemote", 0),
    ("volume", 150),
    ("volume", True),
    ("loop", "shuffle"),
    ("libraryDirectory", 42),
])
def test_out_of_range_settings_on_disk_fail_fast(data_dir, key, value):
    data_dir.mkdir(parents=True)
    (data_dir / "settings.json").write_text(json.dumps({key: value}))
    with pytest.raises(PersistenceError) as exc:
        StateStore(data_dir).open()
    assert key in exc.value.message


def test_missing_file_after_startup_fails_load(store, data_dir):
    os.remove(data_dir / "playlists.json")
    with pytest.raises(PersistenceError):
        store.load_playlists()


def test_unknown_settings_keys_are_ignored(data_dir):
    data_dir.mkdir(parents=True)
    (data_dir / "settings.json").write_text(json.dumps({"volume": 30, "legacy": 1}))
    settings = StateStore(data_dir).open().settings
    assert settings.volume == 30
    assert settings.loop == "none"


def test_failed_write_keeps_last_committed_state(store, data_dir, monkeypatch):
    store.create_playlist("Keep")
    on_disk = (data_dir / "playlists.json").read_text()

    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("shared.store.os.replace", broken_replace)

    with pytest.raises(PersistenceError):
        store.create_playlist("Lost")
    with pytest.raises(PersistenceError):
        store.update_setting("volume", 5)

    assert list(store.playlists) == ["Keep"]
    assert store.settings.volume == 100
    assert (data_dir / "playlists.json").read_text() == on_disk
    assert [p.name for p in data_dir.iterdir() if p.name.endswith(".tmp")] == []


def test_unwritable_data_dir_is_fatal(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("")
    with pytest.raises(PersistenceError):
        StateStore(blocker / "data").open()


def test_change_callbacks(store):
    seen = []
    store.add_change_callback(seen.append)
    store.add_change_callback(lambda doc: 1 / 0)  # failures are logged, not raised

    store.update_setting("loop", "list")
    store.create_playlist("Mix")

    assert seen == ["settings", "playlists"]


def test_snapshots_are_copies(store):
    store.create_playlist("Mix")
    snapshot = store.playlists
    snapshot["Mix"].songs.append("sneaky.mp3")
    assert store.playlists["Mix"].songs == []


@pytest.mark.parametrize("mode", [mode.value for mode in LoopMode])
def test_every_loop_mode_is_accepted(store, mode):
    assert store.update_setting("loop", mode).loop == mode
