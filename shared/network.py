"""
Network identity of the host and the info snapshot both surfaces hand out.
"""
import socket
from dataclasses import dataclass
from typing import Any, Dict

from shared.constants import LOCAL_PORT, REMOTE_PORT


def get_local_ipv4() -> str:
    """Return this machine's local IPv4 (for LAN access)."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            # UDP connect sends nothing, it only picks the outgoing interface.
            s.connect(("8.8.8.8", 80))
            return s.getsockname()[0]
    except OSError:
        return "127.0.0.1"


@dataclass(frozen=True)
class NetworkInfo:
    address: str
    local_port: int = LOCAL_PORT
    remote_port: int = REMOTE_PORT

    @classmethod
    def detect(cls, local_port: int = LOCAL_PORT, remote_port: int = REMOTE_PORT) -> 'NetworkInfo':
        return cls(address=get_local_ipv4(), local_port=local_port, remote_port=remote_port)


def build_info(store, network: NetworkInfo, force_update: bool) -> Dict[str, Any]:
    """Snapshot for a connecting or resynchronizing client."""
    return {
        "networkAddress": network.address,
        "localPort": network.local_port,
        "remotePort": network.remote_port,
        "settings": store.settings.to_dict(),
        "playlists": store.playlists_dict(),
        "forceUpdate": force_update,
    }
