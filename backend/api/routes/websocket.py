"""
Vogue WebSocket Routes.

Delivery channel pushing stylesheet update events to browsers.
Requires Python 3.11+.
"""

import asyncio
import json
import time
from typing import Any

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from api.dependencies import get_channel, get_settings_dep
from utils.config import Settings, get_settings
from utils.logger import get_logger

router = APIRouter()
logger = get_logger("api.websocket")


class WebSocketManager:
    """
    Manages WebSocket connections of one delivery channel.

    Handles connection lifecycle and event broadcasting.
    """

    def __init__(self, name: str = "plain", send_timeout: float | None = None) -> None:
        """
        Initialize the WebSocket manager.

        Args:
            name: Channel name used in logs ("plain" or "secure")
            send_timeout: Seconds a client may take to accept a broadcast
        """
        self.name = name
        if send_timeout is None:
            send_timeout = get_settings().api.send_timeout_seconds
        self.send_timeout = send_timeout
        self._connections: set[WebSocket] = set()
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket) -> None:
        """
        Accept and register a new WebSocket connection.

        Args:
            websocket: The WebSocket connection to register
        """
        await websocket.accept()
        async with self._lock:
            self._connections.add(websocket)
        logger.info(
            "websocket_connected",
            channel=self.name,
            total_connections=len(self._connections),
        )

    async def disconnect(self, websocket: WebSocket) -> None:
        """
        Unregister a WebSocket connection.

        Args:
            websocket: The WebSocket connection to unregister
        """
        async with self._lock:
            self._connections.discard(websocket)
        logger.info(
            "websocket_disconnected",
            channel=self.name,
            total_connections=len(self._connections),
        )

    async def broadcast(self, event_name: str) -> None:
        """
        Broadcast an event to all connected clients.

        Sends run concurrently, each bounded by the send timeout, and
        without holding the connection lock. Having no clients is not an
        error. A connection that fails or times out is dropped; the
        others still receive the event.

        Args:
            event_name: Event sent as {"type": event_name}
        """
        async with self._lock:
            connections = list(self._connections)
        if not connections:
            return

        message_json = json.dumps({"type": event_name})
        results = await asyncio.gather(
            *(
                asyncio.wait_for(connection.send_text(message_json), self.send_timeout)
                for connection in connections
            ),
            return_exceptions=True,
        )

        disconnected: set[WebSocket] = set()
        for connection, result in zip(connections, results):
            if isinstance(result, asyncio.TimeoutError):
                logger.warning("broadcast_timeout", channel=self.name, timeout=self.send_timeout)
                disconnected.add(connection)
            elif isinstance(result, Exception):
                logger.warning("broadcast_failed", channel=self.name, error=str(result))
                disconnected.add(connection)

        if disconnected:
            # Clean up disconnected clients
            async with self._lock:
                self._connections -= disconnected

    async def send_to(self, websocket: WebSocket, message: dict[str, Any]) -> None:
        """
        Send a message to a specific client.

        Args:
            websocket: Target WebSocket connection
            message: The message to send
        """
        try:
            await websocket.send_text(json.dumps(message))
        except Exception as e:
            logger.warning("send_failed", channel=self.name, error=str(e))

    @property
    def connection_count(self) -> int:
        """Get the number of active connections."""
        return len(self._connections)


@router.websocket("")
async def websocket_endpoint(
    websocket: WebSocket,
    manager: WebSocketManager = Depends(get_channel),
    settings: Settings = Depends(get_settings_dep),
) -> None:
    """
    WebSocket endpoint for stylesheet updates.

    Clients receive:
    - {"type": "update"} whenever a watched stylesheet changes
    - Heartbeat messages while idle
    """
    await manager.connect(websocket)

    await manager.send_to(websocket, {
        "type": "connected",
        "channel": manager.name,
    })

    try:
        while True:
            try:
                data = await asyncio.wait_for(
                    websocket.receive_text(),
                    timeout=settings.api.heartbeat_seconds,
                )

                try:
                    message = json.loads(data)
                    await handle_client_message(manager, websocket, message)
                except json.JSONDecodeError:
                    await manager.send_to(websocket, {
                        "type": "error",
                        "message": "Invalid JSON",
                    })

            except asyncio.TimeoutError:
                await manager.send_to(websocket, {
                    "type": "heartbeat",
                    "timestamp": time.time(),
                })

    except WebSocketDisconnect:
        await manager.disconnect(websocket)
    except Exception as e:
        logger.error("websocket_error", channel=manager.name, error=str(e))
        await manager.disconnect(websocket)


async def handle_client_message(
    manager: WebSocketManager,
    websocket: WebSocket,
    message: Any,
) -> None:
    """
    Handle incoming client messages.

    Supported message types:
    - ping: Respond with pong
    """
    msg_type = message.get("type", "") if isinstance(message, dict) else ""

    if msg_type == "ping":
        await manager.send_to(websocket, {"type": "pong"})
    else:
        await manager.send_to(websocket, {
            "type": "error",
            "message": f"Unknown message type: {msg_type}",
        })
