"""
Room engine for Durak.

This module provides the RoomEngine class, which owns the state of one room
and applies actions to it one at a time.
"""

from typing import Any, Dict, List, Optional
import asyncio
import logging
import random
import time

from durakroom.events import EventBus, EngineEventType
from durakroom.room.actions import Attack, Defend, EndTurn, GameAction, Take, Transfer
from durakroom.room.errors import ProtocolError, RoomError
from durakroom.room.state import GameResult, RoomSettings, RoomState, RoomStatus
from durakroom.room.transitions import StateTransitionEngine
from durakroom.room.view import PlayerView, build_player_view, valid_actions

logger = logging.getLogger("durakroom.engine.room")


class RoomEngine:
    """
    Engine for a single Durak room.

    The engine holds the current immutable `RoomState` and replaces it after
    every accepted action. A rejected action raises and leaves `state` as it
    was. Callers that may deliver actions concurrently hold `lock` around each
    call, so actions on a room never interleave.
    """

    def __init__(
        self,
        room_id: Optional[str] = None,
        settings: Optional[RoomSettings] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize the room engine.

        Args:
            room_id: Identifier for the room (generated if None)
            settings: Settings fixed for the room's lifetime
            rng: Optional random source for shuffles and tie-breaks
        """
        self.rng = rng
        self.event_bus = EventBus.get_instance()
        self.lock = asyncio.Lock()
        self.state: RoomState = StateTransitionEngine.create_room(room_id, settings)

    @property
    def room_id(self) -> str:
        return self.state.id

    @property
    def is_empty(self) -> bool:
        return not self.state.players

    @property
    def is_active(self) -> bool:
        """True while players are seated and the game has not finished."""
        return bool(self.state.players) and self.state.status != RoomStatus.FINISHED

    def join(self, name: Any = None) -> str:
        """
        Seat a new player; the game starts when the second player joins.

        Args:
            name: Requested display name

        Returns:
            ID of the new player
        """
        self.state = StateTransitionEngine.add_player(self.state, name, self.rng)
        return self.state.players[-1].id

    def leave(self, player_id: str) -> bool:
        """
        Remove a disconnected player, resetting the room if anyone remains.

        Returns:
            True if the room is now empty
        """
        self.state = StateTransitionEngine.remove_player(self.state, player_id)
        return self.is_empty

    def apply(self, player_id: str, action: GameAction) -> RoomState:
        """
        Apply a player action.

        Args:
            player_id: ID of the acting player
            action: The action to apply

        Returns:
            The new room state

        Raises:
            RoomError: If the action is rejected; the state is unchanged
        """
        try:
            match action:
                case Attack(card_id=card_id):
                    new_state = StateTransitionEngine.play_attack(
                        self.state, player_id, card_id
                    )
                case Defend(pile_id=pile_id, card_id=card_id):
                    new_state = StateTransitionEngine.play_defense(
                        self.state, player_id, pile_id, card_id
                    )
                case Transfer(card_id=card_id):
                    new_state = StateTransitionEngine.transfer(
                        self.state, player_id, card_id
                    )
                case Take():
                    new_state = StateTransitionEngine.take(self.state, player_id)
                case EndTurn():
                    new_state = StateTransitionEngine.end_turn(self.state, player_id)
                case _:
                    raise ProtocolError("Unknown action.")
        except RoomError as e:
            self.event_bus.emit(
                EngineEventType.ACTION_REJECTED,
                {
                    "room_id": self.room_id,
                    "player_id": player_id,
                    "action": getattr(action, "type", None),
                    "category": e.category,
                    "reason": e.reason,
                    "timestamp": time.time(),
                },
            )
            raise

        self.state = new_state
        return new_state

    def view_for(self, player_id: str) -> PlayerView:
        return build_player_view(self.state, player_id)

    def views(self) -> Dict[str, PlayerView]:
        """Build the snapshot of every seated player, keyed by player id."""
        return {
            player.id: build_player_view(self.state, player.id)
            for player in self.state.players
        }

    def get_valid_actions(self, player_id: str) -> Dict[str, List[Any]]:
        return valid_actions(self.state, player_id)

    def is_game_over(self) -> bool:
        return self.state.status == RoomStatus.FINISHED

    def get_result(self) -> Optional[GameResult]:
        """
        Get the result of the game.

        Returns:
            The result, or None if the game is not over
        """
        return self.state.result
