"""
Per-user WebSocket registry used to push payment events to the browser.

Request handlers run in FastAPI's threadpool, so ``notify`` hands the send
over to the event loop the sockets were accepted on.
"""
import asyncio
import logging
from collections import defaultdict
from typing import Dict, List, Optional

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    def __init__(self):
        self.active_connections: Dict[int, List[WebSocket]] = defaultdict(list)
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    async def connect(self, user_id: int, websocket: WebSocket):
        await websocket.accept()
        self._loop = asyncio.get_running_loop()
        self.active_connections[user_id].append(websocket)
        logger.debug(f"Socket connected: user_id={user_id}, open={len(self.active_connections[user_id])}")

    def disconnect(self, user_id: int, websocket: WebSocket):
        connections = self.active_connections.get(user_id, [])
        if websocket in connections:
            connections.remove(websocket)
        if not connections:
            self.active_connections.pop(user_id, None)
        logger.debug(f"Socket disconnected: user_id={user_id}")

    def connection_count(self, user_id: int) -> int:
        return len(self.active_connections.get(user_id, []))

    async def send_to_user(self, user_id: int, message: dict):
        for websocket in list(self.active_connections.get(user_id, [])):
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.warning(f"Dropping dead socket: user_id={user_id}, error={e}")
                self.disconnect(user_id, websocket)

    def notify(self, user_id: int, message: dict) -> bool:
        """
        Queue ``message`` for every socket ``user_id`` has open.

        Safe to call from sync code. Returns False when nobody is listening.
        """
        if not self.active_connections.get(user_id):
            return False
        loop = self._loop
        if loop is None or loop.is_closed():
            return False

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is loop:
            loop.create_task(self.send_to_user(user_id, message))
        else:
            asyncio.run_coroutine_threadsafe(self.send_to_user(user_id, message), loop)
        logger.debug(f"Push queued: user_id={user_id}, event={message.get('event')}")
        return True


manager = ConnectionManager()
