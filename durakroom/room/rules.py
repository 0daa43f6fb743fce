"""
Rules of two-player transfer Durak.

The `check_*` functions decide whether an action is legal for a room state.
Each one either returns the cards and piles the action refers to or raises a
`RoomError` subclass naming the first rule the action breaks. They never build
new state, so the transition engine and the action hints share exactly the
same legality decisions.
"""

from typing import Optional, Tuple

from durakroom.common.card import Card, Suit
from durakroom.room.constants import FIRST_ROUND_MAX_PAIRS, MAX_PAIRS
from durakroom.room.errors import (
    AuthorizationError,
    LegalityError,
    ResourceError,
)
from durakroom.room.state import Pile, PlayerState, RoomState, RoundPhase


def beats(attack: Card, defense: Card, trump_suit: Optional[Suit]) -> bool:
    """
    Check whether `defense` beats `attack`.

    A card beats another of its own suit with a higher value; a trump beats
    any non-trump. A card of a third suit never beats.
    """
    if defense.suit == attack.suit:
        return defense.value > attack.value
    return defense.suit == trump_suit


def max_pairs(state: RoomState) -> int:
    """Piles allowed in a round: one fewer while nothing has been discarded yet."""
    return FIRST_ROUND_MAX_PAIRS if not state.discard else MAX_PAIRS


def attack_limit(state: RoomState) -> int:
    """
    Number of piles allowed on the table this round.

    Before the first attack the quota follows the defender's current hand;
    afterwards it is the value captured in `round_limit`.
    """
    if state.round_limit is not None:
        quota = state.round_limit
    else:
        defender = state.defender
        quota = defender.card_count if defender else 0
    return min(quota, max_pairs(state))


def transfer_limit(state: RoomState) -> int:
    """Attack limit as it would be after a transfer, against the current attacker."""
    attacker = state.attacker
    return min(attacker.card_count if attacker else 0, max_pairs(state))


def lowest_trump_value(player: PlayerState, trump_suit: Optional[Suit]) -> Optional[int]:
    values = [card.value for card in player.hand if card.suit == trump_suit]
    return min(values) if values else None


def _require_active(state: RoomState) -> None:
    if not state.is_playing:
        raise LegalityError("The game is not active.")


def _require_player(state: RoomState, player_id: str) -> PlayerState:
    player = state.get_player(player_id)
    if player is None:
        raise ResourceError("Player not found.")
    return player


def _require_card(player: PlayerState, card_id: str) -> Card:
    card = player.find_card(card_id)
    if card is None:
        raise ResourceError("Card not in hand.")
    return card


def check_attack(state: RoomState, player_id: str, card_id: str) -> Card:
    """
    Validate an attack.

    Returns:
        The card to play

    Raises:
        RoomError: If the attack is not legal
    """
    _require_active(state)
    player = _require_player(state, player_id)
    if player.id != state.attacker_id:
        raise AuthorizationError("Only the attacker can attack.")
    card = _require_card(player, card_id)
    if not state.table.is_empty and card.rank not in state.table.ranks:
        raise LegalityError("Attack cards must match a rank on the table.")
    if len(state.table) >= attack_limit(state):
        raise LegalityError("Defender has no room for more attacks.")
    return card


def check_defense(
    state: RoomState, player_id: str, pile_id: str, card_id: str
) -> Tuple[Pile, Card]:
    """
    Validate a defense.

    Returns:
        The pile being defended and the card defending it

    Raises:
        RoomError: If the defense is not legal
    """
    _require_active(state)
    player = _require_player(state, player_id)
    if player.id != state.defender_id:
        raise AuthorizationError("Only the defender can play defense.")
    if state.phase == RoundPhase.TAKING:
        raise LegalityError("You have already chosen to take.")
    pile = state.table.find_pile(pile_id)
    if pile is None:
        raise ResourceError("Pile not found.")
    if pile.is_defended:
        raise LegalityError("That attack is already defended.")
    card = _require_card(player, card_id)
    if not beats(pile.attack, card, state.trump_suit):
        raise LegalityError("That card does not beat the attack.")
    return pile, card


def check_transfer(state: RoomState, player_id: str, card_id: str) -> Card:
    """
    Validate a transfer of the attack back onto the attacker.

    Returns:
        The card to add to the table

    Raises:
        RoomError: If the transfer is not legal
    """
    _require_active(state)
    if not state.settings.perevod:
        raise LegalityError("Transfers are disabled.")
    player = _require_player(state, player_id)
    if player.id != state.defender_id:
        raise AuthorizationError("Only the defender can transfer.")
    if state.phase == RoundPhase.TAKING:
        raise LegalityError("You have already chosen to take.")
    if state.table.is_empty or state.table.any_defended:
        raise LegalityError("Transfers are only allowed before any defense.")
    card = _require_card(player, card_id)
    if card.rank not in state.table.ranks:
        raise LegalityError("Transfer card must match a rank on the table.")
    if len(state.table) >= transfer_limit(state):
        raise LegalityError("The attacker has no room for a transfer.")
    return card


def check_take(state: RoomState, player_id: str) -> PlayerState:
    """
    Validate a take declaration.

    Returns:
        The defender

    Raises:
        RoomError: If the defender cannot take now
    """
    _require_active(state)
    player = _require_player(state, player_id)
    if player.id != state.defender_id:
        raise AuthorizationError("Only the defender can take.")
    if state.table.is_empty:
        raise LegalityError("There is nothing to take.")
    if state.phase == RoundPhase.TAKING:
        raise LegalityError("You have already chosen to take.")
    return player


def check_end_turn(state: RoomState, player_id: str) -> PlayerState:
    """
    Validate ending the turn.

    Returns:
        The attacker

    Raises:
        RoomError: If the attacker cannot end the turn now
    """
    _require_active(state)
    player = _require_player(state, player_id)
    if player.id != state.attacker_id:
        raise AuthorizationError("Only the attacker can end the turn.")
    if state.table.is_empty:
        raise LegalityError("There is nothing on the table.")
    if state.phase == RoundPhase.ATTACKING and not state.table.all_defended:
        raise LegalityError("All attacks must be defended before ending the turn.")
    return player
