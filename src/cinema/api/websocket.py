"""
WebSocket endpoint for live seat maps
"""
import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from cinema.services.websocket_manager import manager

logger = logging.getLogger(__name__)
router = APIRouter()


@router.websocket("/showtimes/{showtime_id}")
async def showtime_updates(websocket: WebSocket, showtime_id: int):
    """
    Pushes a ``seat_update`` message whenever seats of the showtime are
    held, released, expired, booked or freed by a cancellation.
    """
    await manager.connect(websocket, showtime_id)

    await websocket.send_json({
        "type": "connected",
        "showtime_id": showtime_id,
        "message": f"Connected to showtime {showtime_id} updates",
    })

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                logger.warning("Invalid JSON received")
                continue
            await manager.handle_message(websocket, message)
    except WebSocketDisconnect:
        manager.disconnect(websocket, showtime_id)
