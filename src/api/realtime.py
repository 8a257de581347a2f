"""
Realtime notifications over WebSocket.

Every connected browser receives every notification, e.g.:

    {"type": "notification", "message": "New video uploaded!"}

Connect: ws://host/ws/notifications
"""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

router = APIRouter()


class NotificationHub:
    """
    Tracks open WebSocket connections and broadcasts to all of them.

    Connections live in this process only; with several workers each
    worker notifies its own clients.
    """

    def __init__(self) -> None:
        self.connections: set[WebSocket] = set()

    async def connect(self, websocket: WebSocket) -> None:
        # registered before the handshake completes so nothing sent after
        # the client sees the accept can be missed
        self.connections.add(websocket)
        await websocket.accept()

        logger.info(
            "WebSocket connected",
            extra={"connections": len(self.connections)}
        )

    def disconnect(self, websocket: WebSocket) -> None:
        self.connections.discard(websocket)

        logger.info(
            "WebSocket disconnected",
            extra={"connections": len(self.connections)}
        )

    async def broadcast(self, message: str) -> int:
        """
        Send a notification to every connected client.

        Returns:
            Number of clients the message was sent to
        """
        payload = {"type": "notification", "message": message}
        dead_connections: set[WebSocket] = set()
        sent_count = 0

        for websocket in list(self.connections):
            try:
                await websocket.send_json(payload)
                sent_count += 1
            except Exception as e:
                logger.warning(f"Failed to send to WebSocket: {e}")
                dead_connections.add(websocket)

        # Clean up any dead connections
        self.connections -= dead_connections

        logger.debug(
            "Broadcast notification",
            extra={"notification": message, "sent_to": sent_count}
        )

        return sent_count


# Global singleton instance
notification_hub = NotificationHub()


@router.websocket("/ws/notifications")
async def notifications_websocket(websocket: WebSocket):
    """
    Stream notifications to the client until it disconnects.

    Clients don't need to send anything; incoming messages are ignored.
    """
    await notification_hub.connect(websocket)

    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        notification_hub.disconnect(websocket)
