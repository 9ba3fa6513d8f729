"""
Station: builds every component once at startup and tears them down at exit.
"""
import logging
import threading
from pathlib import Path
from typing import Optional

from werkzeug.serving import make_server

from shared.constants import LOCAL_PORT, REMOTE_PORT, DEFAULT_SCAN_WORKERS
from shared.network import NetworkInfo
from shared.store import StateStore
from shared.sync_state import SyncCoordinator
from library.scanner import LibraryScanner
from host.channel import SocketIOChannel
from host.server import create_local_app, register_intents
from host.shell import HostShell
from host.surface import LocalSurface
from remote.api import create_remote_app

logger = logging.getLogger(__name__)


class Station:
    def __init__(self, data_dir: Path, local_port: int = LOCAL_PORT, remote_port: int = REMOTE_PORT,
                 workers: int = DEFAULT_SCAN_WORKERS, shell: Optional[HostShell] = None):
        self.local_port = local_port
        self.remote_port = remote_port

        # PersistenceError here is fatal: nothing works without the state files.
        self.store = StateStore(data_dir).open()
        self.coordinator = SyncCoordinator()
        self.scanner = LibraryScanner(max_workers=workers)
        self.network = NetworkInfo.detect(local_port, remote_port)

        self.local_app, self.socketio = create_local_app()
        self.channel = SocketIOChannel(self.socketio)
        self.shell = shell or HostShell()
        if self.shell.on_quit is None:
            self.shell.on_quit = self.request_shutdown
        self.surface = LocalSurface(self.store, self.scanner, self.coordinator,
                                    self.channel, self.network, self.shell)
        register_intents(self.socketio, self.surface)

        self.remote_app = create_remote_app(self.store, self.scanner, self.coordinator,
                                            self.channel, self.network)
        self._remote_server = None
        self._remote_thread: Optional[threading.Thread] = None
        self._stopped = False
        self._stop_lock = threading.Lock()

    def start_remote(self) -> None:
        self._remote_server = make_server('0.0.0.0', self.remote_port, self.remote_app, threaded=True)
        self._remote_thread = threading.Thread(target=self._remote_server.serve_forever,
                                               name="kplayer-remote", daemon=True)
        self._remote_thread.start()
        logger.info("Remote surface listening on 0.0.0.0:%d", self.remote_port)

    def serve_forever(self, debug: bool = False) -> None:
        """Start both surfaces; blocks on the local server until shutdown."""
        self.start_remote()
        logger.info("Local surface listening on 127.0.0.1:%d", self.local_port)
        try:
            self.socketio.run(self.local_app, host='127.0.0.1', port=self.local_port,
                              debug=debug, use_reloader=False, allow_unsafe_werkzeug=True)
        finally:
            self.shutdown()

    def request_shutdown(self) -> None:
        """Shutdown from inside a request handler without blocking it."""
        threading.Thread(target=self.shutdown, name="kplayer-shutdown", daemon=True).start()

    def shutdown(self) -> None:
        with self._stop_lock:
            if self._stopped:
                return
            self._stopped = True

        logger.info("Shutting down...")
        if self._remote_server is not None:
            self._remote_server.shutdown()
            self._remote_server = None
        try:
            self.socketio.stop()
        except RuntimeError as e:
            # Local server was never started or is already gone.
            logger.debug("Local server not stopped: %s", e)
        self.surface.close()
        self.scanner.shutdown()
        self.coordinator.close()
        logger.info("Shutdown complete")
