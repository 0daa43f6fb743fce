"""
Event bus for the Durak room engine.

Transitions announce what happened to a room (a game started, a round closed,
a player left) on a process-wide bus. Handlers run synchronously on the
emitting thread, in the order they subscribed.
"""

from collections import defaultdict
from typing import Any, Callable, Dict, List, Union
import threading
import logging
from enum import Enum

logger = logging.getLogger("durakroom.events")

EventHandler = Callable[[Dict[str, Any]], None]


def _event_name(event_type: Union[str, Enum]) -> str:
    return event_type.name if isinstance(event_type, Enum) else event_type


class EventEmitter:
    """
    Routes room events to their subscribers.

    An enum member and its name address the same event, so
    `EngineEventType.ROOM_CLOSED` and "ROOM_CLOSED" are interchangeable.
    """

    def __init__(self):
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)
        self._lock = threading.RLock()

    def on(
        self, event_type: Union[str, Enum], handler: EventHandler
    ) -> Callable[[], None]:
        """
        Subscribe to an event type.

        Args:
            event_type: The event type to subscribe to (string or enum)
            handler: Function called with the event data

        Returns:
            Function that removes this subscription
        """
        name = _event_name(event_type)
        with self._lock:
            self._handlers[name].append(handler)

        def unsubscribe() -> None:
            with self._lock:
                handlers = self._handlers[name]
                for i, subscribed in enumerate(handlers):
                    if subscribed is handler:
                        del handlers[i]
                        break

        return unsubscribe

    def emit(self, event_type: Union[str, Enum], data: Dict[str, Any]) -> None:
        """
        Call every handler subscribed to `event_type` with `data`.

        A failing handler is logged and the remaining handlers still run.
        """
        name = _event_name(event_type)
        with self._lock:
            handlers = list(self._handlers.get(name, ()))

        # Handlers may subscribe or unsubscribe, so call them outside the lock
        for handler in handlers:
            try:
                handler(data)
            except Exception as e:
                logger.error(f"Error in event handler for {name}: {e}", exc_info=True)


class EventBus:
    """
    Process-wide EventEmitter shared by the transitions, the registry and
    the connection hub.
    """

    _instance = None
    _lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> EventEmitter:
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = EventEmitter()
        return cls._instance


class EngineEventType(Enum):
    """
    Event types emitted by the room engine.
    """

    # Room lifecycle
    ROOM_CREATED = "room_created"
    ROOM_CLOSED = "room_closed"
    ROOM_RESET = "room_reset"

    # Game lifecycle
    GAME_STARTED = "game_started"
    GAME_ENDED = "game_ended"
    ROUND_ENDED = "round_ended"

    # Player events
    PLAYER_JOINED = "player_joined"
    PLAYER_LEFT = "player_left"

    # Play events
    CARD_PLAYED = "card_played"
    TAKE_DECLARED = "take_declared"
    CARDS_TAKEN = "cards_taken"
    ROLES_SWAPPED = "roles_swapped"

    # Rejections
    ACTION_REJECTED = "action_rejected"
