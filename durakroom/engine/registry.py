"""
Registry of live rooms, keyed by room id.
"""

from typing import Any, Dict, Iterator, Optional
import logging
import random
import time

from durakroom.engine.room import RoomEngine
from durakroom.events import EventBus, EngineEventType
from durakroom.room.errors import ResourceError, RoomCapacityError
from durakroom.room.state import RoomSettings

logger = logging.getLogger("durakroom.engine.registry")


class RoomRegistry:
    """
    Owns every RoomEngine in the process.

    `max_rooms` bounds the number of active rooms (seated players, game not
    finished); None means unbounded. When the bound is reached, creating a
    room first evicts inactive rooms and fails only if none can be evicted.
    """

    def __init__(
        self, max_rooms: Optional[int] = 1, rng: Optional[random.Random] = None
    ):
        self.max_rooms = max_rooms
        self.rng = rng
        self._rooms: Dict[str, RoomEngine] = {}

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, room_id: str) -> bool:
        return room_id in self._rooms

    def __iter__(self) -> Iterator[RoomEngine]:
        return iter(list(self._rooms.values()))

    def create_room(self, perevod: bool = False) -> RoomEngine:
        """
        Create and register a new room.

        Args:
            perevod: Whether transfers are allowed in the room

        Returns:
            The engine for the new room

        Raises:
            RoomCapacityError: If `max_rooms` active rooms already exist
        """
        if self.max_rooms is not None and len(self._rooms) >= self.max_rooms:
            for engine in list(self._rooms.values()):
                if not engine.is_active:
                    self.remove(engine.room_id)

            if len(self._rooms) >= self.max_rooms:
                raise RoomCapacityError("A game is already running.")

        engine = RoomEngine(settings=RoomSettings(perevod=perevod), rng=self.rng)
        while engine.room_id in self._rooms:
            engine = RoomEngine(settings=RoomSettings(perevod=perevod), rng=self.rng)

        self._rooms[engine.room_id] = engine
        return engine

    def get(self, room_id: str) -> RoomEngine:
        """
        Look up a room.

        Raises:
            ResourceError: If no room has this id
        """
        engine = self._rooms.get(room_id)
        if engine is None:
            raise ResourceError("Room not found.")
        return engine

    def remove(self, room_id: str) -> None:
        """Tear down a room. Unknown ids are ignored."""
        engine = self._rooms.pop(room_id, None)
        if engine is None:
            return

        logger.info(f"Room {room_id} closed")
        EventBus.get_instance().emit(
            EngineEventType.ROOM_CLOSED,
            {"room_id": room_id, "timestamp": time.time()},
        )

    def room_info(self, room_id: str) -> Dict[str, Any]:
        """
        Public summary of a room, for lobby lookups.

        Raises:
            ResourceError: If no room has this id
        """
        state = self.get(room_id).state
        return {
            "room_id": state.id,
            "status": state.status.value,
            "settings": state.settings.to_dict(),
            "players": len(state.players),
        }
