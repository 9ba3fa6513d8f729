"""
KPlayer

A desktop music player host: it keeps the user's settings and playlists,
scans the local music library, and lets phones on the same network control
playback through a small HTTP remote.

Repository Structure:
- shared/: State store, sync flags, models, constants and config
- library/: Audio metadata, concurrent library scanner and folder watcher
- host/: Local control surface for the host UI and process wiring
- remote/: LAN remote control API
- tests/: Unit and integration tests

License: MIT
"""
