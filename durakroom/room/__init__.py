"""
Durak room module.

This module provides the room state models, the rules of play, and the
state transitions and per-player views built on them.
"""

from durakroom.room.state import (
    RoomState as RoomState,
    PlayerState as PlayerState,
    TableState as TableState,
    Pile as Pile,
    RoomSettings as RoomSettings,
    RoomStatus as RoomStatus,
    RoundPhase as RoundPhase,
    GameResult as GameResult,
)
from durakroom.room.transitions import StateTransitionEngine as StateTransitionEngine
from durakroom.room.view import (
    PlayerView as PlayerView,
    ActionHints as ActionHints,
    build_player_view as build_player_view,
    compute_action_hints as compute_action_hints,
    valid_actions as valid_actions,
)

__all__ = [
    "RoomState",
    "PlayerState",
    "TableState",
    "Pile",
    "RoomSettings",
    "RoomStatus",
    "RoundPhase",
    "GameResult",
    "StateTransitionEngine",
    "PlayerView",
    "ActionHints",
    "build_player_view",
    "compute_action_hints",
    "valid_actions",
]
