"""
UI channel: the one way messages travel from the core to the host UI.

Local replies, notifications and intents relayed from remote clients all go
through the same channel.
"""
import logging
from typing import Any

from shared.constants import NOTIFY_EVENT
from shared.models import Notification

logger = logging.getLogger(__name__)


class UIChannel:
    """Interface for pushing events to the host UI."""

    def send(self, event: str, data: Any = None) -> None:
        raise NotImplementedError

    def notify(self, notification: Notification) -> None:
        self.send(NOTIFY_EVENT, notification.to_dict())


class SocketIOChannel(UIChannel):
    """Emits events to every UI client connected to the local Socket.IO server."""

    def __init__(self, socketio, namespace: str = "/"):
        self.socketio = socketio
        self.namespace = namespace

    def send(self, event: str, data: Any = None) -> None:
        logger.debug("UI <- %s", event)
        if data is None:
            self.socketio.emit(event, namespace=self.namespace)
        else:
            self.socketio.emit(event, data, namespace=self.namespace)
