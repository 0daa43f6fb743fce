"""
WebSocket transport for the Durak room server.

Each WebSocket connection becomes one hub connection. Inbound text frames are
handed to the hub as JSON messages; outbound messages are JSON-encoded and
sent on the event loop without blocking the hub.
"""

import asyncio
import functools
import json
import logging
from typing import Any, Dict, Optional

import websockets

from durakroom.server.hub import GameHub

logger = logging.getLogger("durakroom.server.websocket")

# Strong references to in-flight send tasks until they finish
_pending_sends = set()


async def _send_message(websocket, message: Dict[str, Any]) -> None:
    """
    Send a message to a WebSocket client.

    Args:
        websocket: WebSocket connection
        message: Message to send
    """
    try:
        await websocket.send(json.dumps(message))
    except websockets.ConnectionClosed:
        logger.debug("Dropped message for a closed connection")
    except Exception as e:
        logger.warning(f"Error sending message: {e}")


def create_send_callback(websocket):
    """
    Create a send callback for a WebSocket connection.

    Args:
        websocket: WebSocket connection

    Returns:
        Callback that schedules the message to be sent
    """

    def send_callback(message: Dict[str, Any]) -> None:
        task = asyncio.create_task(_send_message(websocket, message))
        _pending_sends.add(task)
        task.add_done_callback(_pending_sends.discard)

    return send_callback


async def handle_connection(hub: GameHub, websocket) -> None:
    """
    Serve one WebSocket client until it disconnects.

    Args:
        hub: Hub that owns rooms and connections
        websocket: WebSocket connection
    """
    connection_id = hub.connect(create_send_callback(websocket))
    try:
        async for message in websocket:
            await hub.handle_message(connection_id, message)
    except websockets.ConnectionClosedError as e:
        logger.info(f"Connection {connection_id} dropped: {e}")
    finally:
        await hub.disconnect(connection_id)


async def serve(
    config: Optional[Dict[str, Any]] = None, hub: Optional[GameHub] = None
) -> None:
    """
    Run the WebSocket server until cancelled.

    Args:
        config: Configuration options for a new hub
        hub: Existing hub to serve (config is ignored if given)
    """
    hub = hub or GameHub(config)
    host, port = hub.config["host"], hub.config["port"]

    handler = functools.partial(handle_connection, hub)
    try:
        async with websockets.serve(handler, host, port):
            logger.info(f"Durak server listening on ws://{host}:{port}")
            await asyncio.Future()
    finally:
        hub.close()
