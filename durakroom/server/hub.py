"""
Connection hub for the Durak room server.

The hub binds connections to rooms and players, turns inbound messages into
actions, and pushes a per-player snapshot after every accepted change. It
knows nothing about sockets: each connection is a send callback, which keeps
the hub usable from any transport and from tests.
"""

import json
import logging
import uuid
from typing import Any, Callable, Dict, Optional, Union

from durakroom.engine.registry import RoomRegistry
from durakroom.engine.room import RoomEngine
from durakroom.events import EventBus, EngineEventType
from durakroom.room.actions import Create, Join, parse_message
from durakroom.room.errors import ProtocolError, RoomError

logger = logging.getLogger("durakroom.server.hub")

DEFAULT_CONFIG: Dict[str, Any] = {
    "host": "localhost",
    "port": 8765,
    "max_rooms": 1,
}


class ServerMessage:
    """Message types the server sends to clients."""

    STATE = "state"
    CREATED = "created"
    ERROR = "error"


class Connection:
    """
    A connected client.

    Attributes:
        id: Unique identifier for the connection
        room_id: Room the connection joined, if any
        player_id: Player the connection plays as, if any
    """

    def __init__(
        self, connection_id: str, send_callback: Callable[[Dict[str, Any]], None]
    ):
        self.id = connection_id
        self._send = send_callback
        self.room_id: Optional[str] = None
        self.player_id: Optional[str] = None

    @property
    def is_joined(self) -> bool:
        return self.player_id is not None

    def send(self, message: Dict[str, Any]) -> None:
        self._send(message)


class GameHub:
    """
    Routes client messages to room engines and snapshots back to clients.

    Actions on one room are serialised with that room's lock; different rooms
    proceed independently.

    The hub listens for ROOM_CLOSED on the event bus so that players of an
    evicted room can join another one. Call `close` to stop listening.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        registry: Optional[RoomRegistry] = None,
    ):
        """
        Initialize the hub.

        Args:
            config: Configuration options merged over DEFAULT_CONFIG
            registry: Room registry to use (built from config if None)
        """
        self.config = dict(DEFAULT_CONFIG)
        if config:
            self.config.update(config)

        self.registry = registry or RoomRegistry(max_rooms=self.config["max_rooms"])
        self.connections: Dict[str, Connection] = {}
        self._unsubscribe = EventBus.get_instance().on(
            EngineEventType.ROOM_CLOSED, self._on_room_closed
        )

    def close(self) -> None:
        """Stop listening for room events."""
        self._unsubscribe()

    def connect(
        self,
        send_callback: Callable[[Dict[str, Any]], None],
        connection_id: Optional[str] = None,
    ) -> str:
        """
        Register a connection.

        Args:
            send_callback: Function to call to send a message to the client
            connection_id: Optional id; generated if not provided

        Returns:
            The connection id
        """
        if connection_id is None:
            connection_id = str(uuid.uuid4())

        self.connections[connection_id] = Connection(connection_id, send_callback)
        logger.info(f"Connection {connection_id} opened")
        return connection_id

    async def disconnect(self, connection_id: str) -> None:
        """
        Drop a connection, removing its player from the room.

        The remaining player gets a fresh snapshot of the reset room; a room
        left empty is torn down.
        """
        connection = self.connections.pop(connection_id, None)
        if connection is None:
            return

        logger.info(f"Connection {connection_id} closed")
        if not connection.is_joined or connection.room_id not in self.registry:
            return

        engine = self.registry.get(connection.room_id)
        async with engine.lock:
            room_empty = engine.leave(connection.player_id)

        if room_empty:
            self.registry.remove(engine.room_id)
        else:
            self._broadcast(engine)

    async def handle_message(
        self, connection_id: str, raw: Union[str, bytes, Dict[str, Any]]
    ) -> None:
        """
        Handle one inbound message.

        Rejections are reported to the sending connection only and never
        propagate.

        Args:
            connection_id: Connection the message arrived on
            raw: JSON text, or an already-decoded message
        """
        connection = self.connections.get(connection_id)
        if connection is None:
            logger.warning(f"Message from unknown connection {connection_id}")
            return

        try:
            await self._dispatch(connection, raw)
        except RoomError as e:
            logger.warning(
                f"Rejected message from {connection_id} ({e.category}): {e.reason}"
            )
            self._send_error(connection, e.reason)
        except Exception as e:
            logger.error(
                f"Error handling message from {connection_id}: {e}", exc_info=True
            )
            self._send_error(connection, "Internal server error.")

    async def _dispatch(
        self, connection: Connection, raw: Union[str, bytes, Dict[str, Any]]
    ) -> None:
        if isinstance(raw, (str, bytes)):
            try:
                message = json.loads(raw)
            except (json.JSONDecodeError, UnicodeDecodeError):
                raise ProtocolError("Invalid message format.")
        else:
            message = raw

        action = parse_message(message)

        match action:
            case Create(perevod=perevod):
                engine = self.registry.create_room(perevod=perevod)
                connection.send(
                    {
                        "type": ServerMessage.CREATED,
                        "room_id": engine.room_id,
                        "settings": engine.state.settings.to_dict(),
                    }
                )

            case Join(room_id=room_id, name=name):
                if connection.is_joined:
                    raise ProtocolError("You have already joined a room.")
                engine = self.registry.get(room_id)
                async with engine.lock:
                    player_id = engine.join(name)
                connection.room_id = engine.room_id
                connection.player_id = player_id
                self._broadcast(engine)

            case _:
                if not connection.is_joined or connection.room_id not in self.registry:
                    raise ProtocolError("You are not in a room.")
                engine = self.registry.get(connection.room_id)
                async with engine.lock:
                    engine.apply(connection.player_id, action)
                logger.debug(
                    f"Room {engine.room_id}: applied {action.type} "
                    f"from {connection.player_id}"
                )
                self._broadcast(engine)

    def _on_room_closed(self, event: Dict[str, Any]) -> None:
        """Unseat the connections of a room that was torn down."""
        room_id = event["room_id"]
        for connection in self.connections.values():
            if connection.room_id != room_id:
                continue
            logger.info(f"Connection {connection.id} released from room {room_id}")
            connection.room_id = None
            connection.player_id = None

    def _broadcast(self, engine: RoomEngine) -> None:
        """Send each connection in the room the snapshot for its player."""
        views = engine.views()
        for connection in list(self.connections.values()):
            if connection.room_id != engine.room_id:
                continue
            view = views.get(connection.player_id)
            if view is None:
                continue
            try:
                connection.send({"type": ServerMessage.STATE, **view.to_dict()})
            except Exception as e:
                logger.warning(f"Error sending state to {connection.id}: {e}")

    def _send_error(self, connection: Connection, reason: str) -> None:
        try:
            connection.send({"type": ServerMessage.ERROR, "message": reason})
        except Exception as e:
            logger.warning(f"Error sending error to {connection.id}: {e}")
