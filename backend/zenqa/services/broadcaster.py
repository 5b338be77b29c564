"""In-process relay: every message, text or binary, goes to every open connection."""

import logging
from typing import Union

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class Broadcaster:

    def __init__(self):
        self.connections: list[WebSocket] = []

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.connections.append(websocket)
        logger.info("Realtime client connected (%s open)", len(self.connections))

    def disconnect(self, websocket: WebSocket):
        if websocket in self.connections:
            self.connections.remove(websocket)
            logger.info("Realtime client disconnected (%s open)", len(self.connections))

    async def broadcast(self, message: Union[str, bytes]) -> int:
        """Best effort; a connection whose send fails is dropped. Returns deliveries."""
        delivered = 0
        for connection in list(self.connections):
            try:
                if isinstance(message, bytes):
                    await connection.send_bytes(message)
                else:
                    await connection.send_text(message)
                delivered += 1
            except Exception as e:
                logger.warning("Dropping realtime client after failed send: %s", e)
                self.disconnect(connection)
        return delivered


broadcaster = Broadcaster()


def get_broadcaster() -> Broadcaster:
    return broadcaster
