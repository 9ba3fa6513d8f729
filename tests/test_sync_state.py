from shared.sync_state import SyncCoordinator


def test_flags_start_dirty():
    coordinator = SyncCoordinator()
    assert coordinator.songs_dirty
    assert coordinator.playlists_dirty


def test_commit_clears_and_unchanged_until_next_mark():
    coordinator = SyncCoordinator()
    token = coordinator.begin_songs()
    coordinator.commit_songs(token)

    assert not coordinator.songs_dirty
    assert coordinator.begin_songs() is None

    coordinator.mark_songs_dirty()
    assert coordinator.begin_songs() is not None


def test_force_always_returns_a_token():
    coordinator = SyncCoordinator()
    coordinator.commit_playlists(coordinator.begin_playlists())
    assert coordinator.begin_playlists(force=True) is not None


def test_mark_during_serve_is_not_lost():
    coordinator = SyncCoordinator()
    token = coordinator.begin_playlists()
    # host mutates while the remote response is being built
    coordinator.mark_playlists_dirty()
    coordinator.commit_playlists(token)

    assert coordinator.playlists_dirty


def test_stale_commit_does_not_rewind():
    coordinator = SyncCoordinator()
    old = coordinator.begin_songs()
    coordinator.mark_songs_dirty()
    new = coordinator.begin_songs()
    coordinator.commit_songs(new)
    coordinator.commit_songs(old)

    assert not coordinator.songs_dirty


def test_flags_are_independent():
    coordinator = SyncCoordinator()
    coordinator.commit_songs(coordinator.begin_songs())
    coordinator.commit_playlists(coordinator.begin_playlists())

    coordinator.mark_playlists_dirty()

    assert coordinator.playlists_dirty
    assert not coordinator.songs_dirty


def test_status_is_replaced_wholesale():
    coordinator = SyncCoordinator()
    assert coordinator.status == ""
    coordinator.set_status({"song": "a", "time": 1})
    coordinator.set_status({"view": "albums"})
    assert coordinator.status == {"view": "albums"}


def test_close_ignores_later_writes():
    coordinator = SyncCoordinator()
    coordinator.commit_songs(coordinator.begin_songs())
    coordinator.close()

    coordinator.mark_songs_dirty()
    coordinator.set_status("late")

    assert not coordinator.songs_dirty
    assert coordinator.status == ""
