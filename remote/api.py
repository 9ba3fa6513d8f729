"""
Remote API for KPlayer.
Network-facing endpoints for untrusted LAN clients (e.g. a phone browser).
Playback commands are relayed to the host UI; queries are served from the
state store and the scanner, using the sync coordinator's dirty flags so
clients that poll only receive data when it changed.
"""

import logging
from dataclasses import dataclass
from functools import wraps
from typing import Any, Dict, Optional

from flask import Blueprint, Flask, Response, current_app, jsonify, request
from flask_cors import CORS

from shared.constants import DONE, UNCHANGED
from shared.errors import KPlayerError, NotFoundError, ValidationError, ScanError, PersistenceError
from shared.network import NetworkInfo, build_info
from shared.paths import resolve_song_path, is_within
from shared.store import StateStore
from shared.sync_state import SyncCoordinator
from library.audio import AudioProcessor
from library.scanner import LibraryScanner
from host.channel import UIChannel

logger = logging.getLogger(__name__)

remote = Blueprint('remote', __name__)


@dataclass
class RemoteContext:
    store: StateStore
    scanner: LibraryScanner
    coordinator: SyncCoordinator
    channel: UIChannel
    network: NetworkInfo


def _ctx() -> RemoteContext:
    return current_app.extensions['kplayer']


def _withheld() -> Response:
    return Response(status=403)


def remote_gate(view):
    """Refuse the request, without a body, while remote access is disabled."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not _ctx().store.settings.allowRemote:
            logger.info("Remote: refused %s (remote access disabled)", request.path)
            return _withheld()
        return view(*args, **kwargs)
    return wrapper


def _body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _force_requested() -> bool:
    force = _body().get('force', request.args.get('force'))
    if isinstance(force, str):
        return force.strip().lower() in ("1", "true", "yes")
    return bool(force)


def _relay(event: str, data: Any = None) -> str:
    """Fire-and-forget: the host UI is told, nobody waits for it to apply the command."""
    _ctx().channel.send(event, data)
    return DONE


# --- Playback relays ---

@remote.route('/remotePlaySong', methods=['POST'])
@remote_gate
def remote_play_song():
    return _relay('remotePlaySong', _body())


@remote.route('/resumeSong', methods=['GET'])
@remote_gate
def resume_song():
    return _relay('resumeSong')


@remote.route('/pauseSong', methods=['GET'])
@remote_gate
def pause_song():
    return _relay('pauseSong')


@remote.route('/stopSong', methods=['GET'])
@remote_gate
def stop_song():
    return _relay('stopSong')


@remote.route('/playPreviousSong', methods=['GET'])
@remote_gate
def play_previous_song():
    return _relay('playPreviousSong')


@remote.route('/playNextSong', methods=['GET'])
@remote_gate
def play_next_song():
    return _relay('playNextSong')


@remote.route('/setSlider', methods=['POST'])
@remote_gate
def set_slider():
    return _relay('setSlider', _body().get('slider'))


@remote.route('/setVolume', methods=['POST'])
@remote_gate
def set_volume():
    return _relay('setVolume', _body().get('volume'))


@remote.route('/setLoop', methods=['GET'])
@remote_gate
def set_loop():
    return _relay('setLoop')


@remote.route('/setView', methods=['POST'])
@remote_gate
def set_view():
    return _relay('setView', _body())


# --- Queries ---

@remote.route('/checkStatus', methods=['GET'])
@remote_gate
def check_status():
    """Return the last status the host reported and ask it for a fresh one."""
    ctx = _ctx()
    ctx.channel.send('setStatus')
    return jsonify(ctx.coordinator.status)


@remote.route('/getSongs', methods=['POST'])
@remote_gate
def get_songs():
    ctx = _ctx()
    token: Optional[int] = ctx.coordinator.begin_songs(force=_force_requested())
    if token is None:
        return UNCHANGED

    root = ctx.store.settings.libraryDirectory
    result = ctx.scanner.scan(root)
    response = jsonify(result.to_list())
    # Cleared only once the fresh list exists.
    ctx.coordinator.commit_songs(token)
    return response


@remote.route('/getPlaylists', methods=['GET', 'POST'])
@remote_gate
def get_playlists():
    ctx = _ctx()
    token = ctx.coordinator.begin_playlists(force=_force_requested())
    if token is None:
        return UNCHANGED
    response = jsonify(ctx.store.playlists_dict())
    ctx.coordinator.commit_playlists(token)
    return response


@remote.route('/getInfo', methods=['GET'])
@remote_gate
def get_info():
    ctx = _ctx()
    return jsonify(build_info(ctx.store, ctx.network, force_update=True))


@remote.route('/playSong', methods=['POST'])
@remote_gate
def play_song():
    """Serve an audio file from the library as base64 with its MIME type."""
    ctx = _ctx()
    raw_path = _body().get('file')
    if not isinstance(raw_path, str) or not raw_path.strip():
        raise ValidationError("Invalid audio file.")

    root = ctx.store.settings.libraryDirectory
    path = resolve_song_path(raw_path, root)
    if not is_within(path, root):
        logger.warning("Remote: blocked access outside the library: %s", path)
        return jsonify({"error": "Access not authorized."}), 403

    mime = AudioProcessor.resolve_mime(path)
    if mime is None:
        return jsonify({"error": "Invalid file type."}), 415
    try:
        encoded = AudioProcessor.encode_file(path)
    except OSError as e:
        logger.error("Remote: couldn't read %s: %s", path, e)
        raise NotFoundError("Couldn't read the audio file.") from e
    return jsonify({"base64": encoded, "mime": mime})


# --- Errors ---

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (ScanError, 500),
    (PersistenceError, 500),
)


@remote.errorhandler(KPlayerError)
def handle_kplayer_error(error: KPlayerError):
    status = next((code for kind, code in _STATUS_BY_ERROR if isinstance(error, kind)), 409)
    logger.warning("Remote: %s %s -> %d: %s", request.method, request.path, status, error.message)
    return jsonify({"error": error.message}), status


def create_remote_app(store: StateStore, scanner: LibraryScanner, coordinator: SyncCoordinator,
                      channel: UIChannel, network: NetworkInfo) -> Flask:
    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = 1024 * 1024  # remote bodies are small commands
    CORS(app)
    app.extensions['kplayer'] = RemoteContext(
        store=store,
        scanner=scanner,
        coordinator=coordinator,
        channel=channel,
        network=network,
    )
    app.register_blueprint(remote)
    return app
