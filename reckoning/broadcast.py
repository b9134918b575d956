"""Fire-and-forget push of narrator events to subscribed clients.

Each subscriber gets its own bounded asyncio.Queue. broadcast() never blocks
and never raises: a subscriber whose queue is full simply misses the message
and recovers by re-reading the pending lists.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from typing import Any

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def format_sse_message(message: dict[str, Any]) -> str:
    """Serialize one message as a server-sent event frame."""
    event_type = message.get("type", "message")
    return f"event: {event_type}\ndata: {json.dumps(message)}\n\n"


class BroadcastManager:
    def __init__(self, queue_size: int = 100) -> None:
        self._queue_size = queue_size
        self._clients: dict[str, dict[str, asyncio.Queue[dict[str, Any]]]] = {}

    def subscribe(self, game_id: str) -> tuple[str, asyncio.Queue[dict[str, Any]]]:
        """Register a client for a game. Returns (client_id, queue)."""
        client_id = str(uuid.uuid4())
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=self._queue_size)
        self._clients.setdefault(game_id, {})[client_id] = queue
        logger.debug("client %s subscribed to game %s", client_id, game_id)
        return client_id, queue

    def unsubscribe(self, game_id: str, client_id: str) -> None:
        clients = self._clients.get(game_id)
        if not clients or client_id not in clients:
            return
        del clients[client_id]
        if not clients:
            del self._clients[game_id]
        logger.debug("client %s unsubscribed from game %s", client_id, game_id)

    def broadcast(self, game_id: str, message: dict[str, Any]) -> int:
        """Queue a message for every client of the game. Returns how many got it."""
        delivered = 0
        for client_id, queue in list(self._clients.get(game_id, {}).items()):
            try:
                queue.put_nowait(message)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning("dropping %s for slow client %s", message.get("type"), client_id)
        return delivered

    def client_count(self, game_id: str) -> int:
        return len(self._clients.get(game_id, {}))
