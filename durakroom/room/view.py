"""
Per-player projection of a room.

A player sees their own hand in full, the opponent's hand as a count, the
whole table, and the sizes (not contents) of the deck and the discard. Action
hints are derived with the same `check_*` functions the transition engine
enforces, so a hint is true exactly when the action would be accepted for
some choice of card or pile.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from durakroom.room.errors import ResourceError, RoomError
from durakroom.room.rules import (
    attack_limit,
    check_attack,
    check_defense,
    check_end_turn,
    check_take,
    check_transfer,
)
from durakroom.room.state import RoomState


@dataclass(frozen=True)
class ActionHints:
    can_attack: bool = False
    can_defend: bool = False
    can_transfer: bool = False
    can_take: bool = False
    can_end_turn: bool = False

    def to_dict(self) -> Dict[str, bool]:
        return {
            "can_attack": self.can_attack,
            "can_defend": self.can_defend,
            "can_transfer": self.can_transfer,
            "can_take": self.can_take,
            "can_end_turn": self.can_end_turn,
        }


@dataclass(frozen=True)
class PlayerView:
    """
    Snapshot of a room as one player is allowed to see it.

    Attributes:
        room_id: Room identifier
        status: Room status value
        settings: Room settings as a dictionary
        you_id: The viewing player
        players: Id, name and hand count of each player
        your_hand: The viewing player's cards
        table: Piles on the table
        deck_count: Cards left in the deck
        trump_card: The face-up trump card, if dealt
        trump_suit: The trump suit value, if dealt
        discard_count: Cards in the discard pile
        phase: Round phase value
        attack_limit: Piles allowed this round (None unless playing)
        attacker_id: Current attacker
        defender_id: Current defender
        action_hints: What the viewing player may do now
        result: Game result, once finished
    """

    room_id: str
    status: str
    settings: Dict[str, Any]
    you_id: str
    players: Tuple[Dict[str, Any], ...]
    your_hand: Tuple[Dict[str, Any], ...]
    table: Dict[str, Any]
    deck_count: int
    trump_card: Optional[Dict[str, Any]]
    trump_suit: Optional[str]
    discard_count: int
    phase: str
    attack_limit: Optional[int]
    attacker_id: Optional[str]
    defender_id: Optional[str]
    action_hints: ActionHints = field(default_factory=ActionHints)
    result: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "room_id": self.room_id,
            "status": self.status,
            "settings": self.settings,
            "you_id": self.you_id,
            "players": list(self.players),
            "your_hand": list(self.your_hand),
            "table": self.table,
            "deck_count": self.deck_count,
            "trump_card": self.trump_card,
            "trump_suit": self.trump_suit,
            "discard_count": self.discard_count,
            "phase": self.phase,
            "attack_limit": self.attack_limit,
            "attacker_id": self.attacker_id,
            "defender_id": self.defender_id,
            "action_hints": self.action_hints.to_dict(),
            "result": self.result,
        }


def _is_legal(check, *args) -> bool:
    try:
        check(*args)
    except RoomError:
        return False
    return True


def valid_actions(state: RoomState, player_id: str) -> Dict[str, List[Any]]:
    """
    List the legal actions for a player.

    Args:
        state: Current room state
        player_id: ID of the player

    Returns:
        Dictionary mapping action types to lists of valid parameters: card ids
        for "attack" and "transfer", `(pile_id, card_id)` pairs for "defend",
        and an empty list for "take" and "end_turn". Actions that are not
        legal are absent.
    """
    player = state.get_player(player_id)
    if player is None or not state.is_playing:
        return {}

    actions: Dict[str, List[Any]] = {}

    attack_cards = [
        card.id
        for card in player.hand
        if _is_legal(check_attack, state, player_id, card.id)
    ]
    if attack_cards:
        actions["attack"] = attack_cards

    defenses = [
        (pile.id, card.id)
        for pile in state.table.undefended_piles
        for card in player.hand
        if _is_legal(check_defense, state, player_id, pile.id, card.id)
    ]
    if defenses:
        actions["defend"] = defenses

    transfer_cards = [
        card.id
        for card in player.hand
        if _is_legal(check_transfer, state, player_id, card.id)
    ]
    if transfer_cards:
        actions["transfer"] = transfer_cards

    if _is_legal(check_take, state, player_id):
        actions["take"] = []

    if _is_legal(check_end_turn, state, player_id):
        actions["end_turn"] = []

    return actions


def compute_action_hints(state: RoomState, player_id: str) -> ActionHints:
    """
    Derive the action hints for a player. Pure: reads `state` only.
    """
    actions = valid_actions(state, player_id)
    return ActionHints(
        can_attack="attack" in actions,
        can_defend="defend" in actions,
        can_transfer="transfer" in actions,
        can_take="take" in actions,
        can_end_turn="end_turn" in actions,
    )


def build_player_view(state: RoomState, player_id: str) -> PlayerView:
    """
    Build the redacted snapshot of `state` for one player.

    Raises:
        ResourceError: If the player is not in the room
    """
    player = state.get_player(player_id)
    if player is None:
        raise ResourceError("Player not found.")

    return PlayerView(
        room_id=state.id,
        status=state.status.value,
        settings=state.settings.to_dict(),
        you_id=player.id,
        players=tuple(
            {"id": p.id, "name": p.name, "hand_count": p.card_count}
            for p in state.players
        ),
        your_hand=tuple(card.to_dict() for card in player.hand),
        table=state.table.to_dict(),
        deck_count=len(state.deck),
        trump_card=state.trump_card.to_dict() if state.trump_card else None,
        trump_suit=state.trump_suit.value if state.trump_suit else None,
        discard_count=len(state.discard),
        phase=state.phase.value,
        attack_limit=attack_limit(state) if state.is_playing else None,
        attacker_id=state.attacker_id,
        defender_id=state.defender_id,
        action_hints=compute_action_hints(state, player.id),
        result=state.result.to_dict() if state.result else None,
    )
