"""
WebSocket connection manager for live seat maps
"""
import logging
import time
from typing import Dict, List

from fastapi import WebSocket

from cinema.core.metrics import websocket_connections_total

logger = logging.getLogger(__name__)


class ConnectionManager:
    def __init__(self):
        self.active_connections: Dict[int, List[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, showtime_id: int):
        await websocket.accept()
        self.active_connections.setdefault(showtime_id, []).append(websocket)
        websocket_connections_total.labels(showtime_id=str(showtime_id)).inc()
        logger.info(f"WebSocket connected to showtime {showtime_id}")

    def disconnect(self, websocket: WebSocket, showtime_id: int):
        connections = self.active_connections.get(showtime_id, [])
        if websocket in connections:
            connections.remove(websocket)
            websocket_connections_total.labels(showtime_id=str(showtime_id)).dec()
        if not connections:
            self.active_connections.pop(showtime_id, None)
        logger.info(f"WebSocket disconnected from showtime {showtime_id}")

    async def handle_message(self, websocket: WebSocket, message: dict):
        """Handle incoming messages from client"""
        if message.get("type") == "ping":
            await websocket.send_json({"type": "pong", "timestamp": time.time()})
        else:
            logger.debug(f"Ignoring message type: {message.get('type')}")

    async def broadcast_to_showtime(self, showtime_id: int, message: dict):
        """Broadcast message to all connections watching a showtime"""
        disconnected = []

        for websocket in list(self.active_connections.get(showtime_id, [])):
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.warning(f"Error sending to websocket: {e}")
                disconnected.append(websocket)

        for websocket in disconnected:
            self.disconnect(websocket, showtime_id)

    async def broadcast_seat_update(self, showtime_id: int, seat_ids: list, status: str, hold_id: int = None):
        message = {
            "type": "seat_update",
            "showtime_id": showtime_id,
            "seat_ids": seat_ids,
            "status": status,
            "hold_id": hold_id,
            "timestamp": time.time(),
        }
        await self.broadcast_to_showtime(showtime_id, message)


manager = ConnectionManager()
