"""
State transition functions for a Durak room.

This module provides pure functions for transitioning between room states,
without modifying the original state objects. Every player action is
validated by `durakroom.room.rules` before any new state is built, so a
rejected action raises and the caller keeps the state it already had.
"""

from dataclasses import replace
from typing import Iterable, Optional, Tuple
import logging
import random
import time

from durakroom.common.deck import Deck
from durakroom.events import EventBus, EngineEventType
from durakroom.room.constants import HAND_SIZE, NAME_MAX_LENGTH, PLAYERS_PER_ROOM
from durakroom.room.errors import LegalityError, ResourceError
from durakroom.room.rules import (
    check_attack,
    check_defense,
    check_end_turn,
    check_take,
    check_transfer,
    lowest_trump_value,
    max_pairs,
)
from durakroom.room.state import (
    GameResult,
    Pile,
    PlayerState,
    RoomSettings,
    RoomState,
    RoomStatus,
    RoundPhase,
    TableState,
)

logger = logging.getLogger("durakroom.room.transitions")


def sanitize_name(name, fallback: str) -> str:
    """
    Clean a display name sent by a client.

    >>> sanitize_name("  Alice  ", "Player 1")
    'Alice'
    >>> sanitize_name(42, "Player 2")
    'Player 2'
    """
    if not isinstance(name, str):
        return fallback
    cleaned = name.strip()[:NAME_MAX_LENGTH]
    return cleaned or fallback


class StateTransitionEngine:
    """
    Pure functions for state transitions in a Durak room.

    This class contains static methods that implement room state transitions.
    Each method takes a state and returns a new state, without modifying the
    original. Player actions raise a `RoomError` when they are not legal.
    """

    @staticmethod
    def create_room(
        room_id: Optional[str] = None, settings: Optional[RoomSettings] = None
    ) -> RoomState:
        """
        Create an empty room waiting for players.

        Args:
            room_id: Identifier for the room (generated if None)
            settings: Settings fixed for the room's lifetime

        Returns:
            The new room state
        """
        settings = settings or RoomSettings()
        if room_id is None:
            state = RoomState(settings=settings)
        else:
            state = RoomState(id=room_id, settings=settings)

        logger.info(f"Room {state.id} created (perevod={settings.perevod})")
        EventBus.get_instance().emit(
            EngineEventType.ROOM_CREATED,
            {
                "room_id": state.id,
                "settings": settings.to_dict(),
                "timestamp": state.timestamp,
            },
        )
        return state

    @staticmethod
    def add_player(
        state: RoomState, name, rng: Optional[random.Random] = None
    ) -> RoomState:
        """
        Add a player to the room, starting the game when the room fills.

        Args:
            state: Current room state
            name: Requested display name (sanitised)
            rng: Optional random source for the deal

        Returns:
            New room state; the new player is the last in `players`
        """
        if state.is_full:
            raise LegalityError("Room is full.")
        if state.status != RoomStatus.WAITING:
            raise LegalityError("The game has already started.")

        player = PlayerState(
            name=sanitize_name(name, f"Player {len(state.players) + 1}")
        )
        new_state = replace(state, players=state.players + (player,))

        logger.info(f"Player {player.id} ({player.name}) joined room {state.id}")
        EventBus.get_instance().emit(
            EngineEventType.PLAYER_JOINED,
            {
                "room_id": state.id,
                "player_id": player.id,
                "player_name": player.name,
                "timestamp": time.time(),
            },
        )

        if len(new_state.players) == PLAYERS_PER_ROOM:
            new_state = StateTransitionEngine.start_game(new_state, rng)

        return new_state

    @staticmethod
    def remove_player(state: RoomState, player_id: str) -> RoomState:
        """
        Remove a player who disconnected.

        If a player remains, the room goes back to waiting for a new
        opponent; an empty room is left for the registry to tear down.

        Args:
            state: Current room state
            player_id: ID of the player to remove

        Returns:
            New room state without the player
        """
        player = state.get_player(player_id)
        if player is None:
            raise ResourceError("Player not found.")

        new_state = replace(
            state, players=tuple(p for p in state.players if p.id != player_id)
        )

        logger.info(f"Player {player_id} ({player.name}) left room {state.id}")
        EventBus.get_instance().emit(
            EngineEventType.PLAYER_LEFT,
            {
                "room_id": state.id,
                "player_id": player_id,
                "player_name": player.name,
                "timestamp": time.time(),
            },
        )

        if new_state.players:
            new_state = StateTransitionEngine.reset_room(new_state)
        return new_state

    @staticmethod
    def reset_room(state: RoomState) -> RoomState:
        """
        Return the room to waiting, dropping every card and role.

        Players stay seated with empty hands.
        """
        new_state = replace(
            state,
            status=RoomStatus.WAITING,
            players=tuple(replace(p, hand=()) for p in state.players),
            deck=(),
            trump_card=None,
            trump_suit=None,
            table=TableState(),
            discard=(),
            phase=RoundPhase.ATTACKING,
            round_limit=None,
            attacker_id=None,
            defender_id=None,
            result=None,
        )

        logger.info(f"Room {state.id} reset to waiting")
        EventBus.get_instance().emit(
            EngineEventType.ROOM_RESET,
            {"room_id": state.id, "timestamp": time.time()},
        )
        return new_state

    @staticmethod
    def start_game(state: RoomState, rng: Optional[random.Random] = None) -> RoomState:
        """
        Shuffle, turn up the trump, deal and pick the first attacker.

        The bottom card of the shuffled deck is the trump card; it stays in
        the deck and is drawn last. Cards are dealt one at a time to each
        player in turn until hands hold six cards.

        Args:
            state: Room state with two seated players
            rng: Optional random source for the shuffle and the tie-break

        Returns:
            New room state with the game playing
        """
        if len(state.players) != PLAYERS_PER_ROOM:
            raise LegalityError("Two players are needed to start the game.")

        deck = Deck().shuffle(rng)
        trump_card = deck.bottom

        hands = {player.id: [] for player in state.players}
        for _ in range(HAND_SIZE):
            for player in state.players:
                if not deck.is_empty():
                    hands[player.id].append(deck.deal())

        players = tuple(replace(p, hand=tuple(hands[p.id])) for p in state.players)
        attacker_id, defender_id = StateTransitionEngine._first_attacker(
            players, trump_card.suit, rng
        )

        new_state = replace(
            state,
            status=RoomStatus.PLAYING,
            players=players,
            deck=tuple(deck.cards),
            trump_card=trump_card,
            trump_suit=trump_card.suit,
            table=TableState(),
            discard=(),
            phase=RoundPhase.ATTACKING,
            round_limit=None,
            attacker_id=attacker_id,
            defender_id=defender_id,
            result=None,
        )

        logger.info(
            f"Game started in room {state.id}: trump {trump_card}, "
            f"{attacker_id} attacks {defender_id}"
        )
        EventBus.get_instance().emit(
            EngineEventType.GAME_STARTED,
            {
                "room_id": state.id,
                "trump_card": trump_card.to_dict(),
                "attacker_id": attacker_id,
                "defender_id": defender_id,
                "timestamp": time.time(),
            },
        )
        return new_state

    @staticmethod
    def _first_attacker(
        players: Tuple[PlayerState, ...], trump_suit, rng: Optional[random.Random]
    ) -> Tuple[str, str]:
        """The holder of the lowest trump attacks; a coin flip if nobody holds one."""
        first, second = players
        first_min = lowest_trump_value(first, trump_suit)
        second_min = lowest_trump_value(second, trump_suit)

        if first_min is not None and (second_min is None or first_min < second_min):
            return first.id, second.id
        if second_min is not None and (first_min is None or second_min < first_min):
            return second.id, first.id

        if (rng or random).random() < 0.5:
            return first.id, second.id
        return second.id, first.id

    @staticmethod
    def play_attack(state: RoomState, player_id: str, card_id: str) -> RoomState:
        """
        Play an attack card onto a new pile.

        The first attack of a round fixes `round_limit` at the defender's hand
        size.

        Args:
            state: Current room state
            player_id: ID of the attacker
            card_id: ID of the card in the attacker's hand

        Returns:
            New room state with the attack on the table
        """
        card = check_attack(state, player_id, card_id)

        round_limit = state.round_limit
        if round_limit is None:
            round_limit = state.defender.card_count

        new_state = replace(
            state.with_player(state.attacker.without_card(card)),
            table=state.table.with_pile(Pile(attack=card)),
            round_limit=round_limit,
        )

        logger.debug(f"Room {state.id}: {player_id} attacks with {card}")
        EventBus.get_instance().emit(
            EngineEventType.CARD_PLAYED,
            {
                "room_id": state.id,
                "player_id": player_id,
                "play": "attack",
                "card": card.to_dict(),
                "timestamp": time.time(),
            },
        )
        return new_state

    @staticmethod
    def play_defense(
        state: RoomState, player_id: str, pile_id: str, card_id: str
    ) -> RoomState:
        """
        Beat the attack card of a pile.

        Args:
            state: Current room state
            player_id: ID of the defender
            pile_id: ID of the undefended pile
            card_id: ID of the card in the defender's hand

        Returns:
            New room state with the pile defended
        """
        pile, card = check_defense(state, player_id, pile_id, card_id)

        new_state = replace(
            state.with_player(state.defender.without_card(card)),
            table=state.table.with_defense(pile.id, card),
        )

        logger.debug(f"Room {state.id}: {player_id} beats {pile.attack} with {card}")
        EventBus.get_instance().emit(
            EngineEventType.CARD_PLAYED,
            {
                "room_id": state.id,
                "player_id": player_id,
                "play": "defend",
                "pile_id": pile.id,
                "card": card.to_dict(),
                "against_card": pile.attack.to_dict(),
                "timestamp": time.time(),
            },
        )
        return new_state

    @staticmethod
    def transfer(state: RoomState, player_id: str, card_id: str) -> RoomState:
        """
        Transfer the attack onto the attacker with a card of a rank in play.

        The card becomes a new undefended pile, the roles swap, and the round
        quota is recomputed against the new defender.

        Args:
            state: Current room state
            player_id: ID of the defender
            card_id: ID of the card in the defender's hand

        Returns:
            New room state with roles swapped
        """
        card = check_transfer(state, player_id, card_id)

        new_state = replace(
            state.with_player(state.defender.without_card(card)),
            table=state.table.with_pile(Pile(attack=card)),
        )
        new_state = StateTransitionEngine.swap_roles(new_state)
        new_state = replace(
            new_state,
            round_limit=min(new_state.defender.card_count, max_pairs(new_state)),
        )

        logger.debug(f"Room {state.id}: {player_id} transfers with {card}")
        EventBus.get_instance().emit(
            EngineEventType.CARD_PLAYED,
            {
                "room_id": state.id,
                "player_id": player_id,
                "play": "transfer",
                "card": card.to_dict(),
                "timestamp": time.time(),
            },
        )
        return new_state

    @staticmethod
    def take(state: RoomState, player_id: str) -> RoomState:
        """
        Declare that the defender will take the table.

        No cards move yet: the attacker may keep adding legal attacks and the
        sweep happens when the attacker ends the turn.

        Args:
            state: Current room state
            player_id: ID of the defender

        Returns:
            New room state in the taking phase
        """
        defender = check_take(state, player_id)

        round_limit = state.round_limit
        if round_limit is None:
            round_limit = defender.card_count

        new_state = replace(state, phase=RoundPhase.TAKING, round_limit=round_limit)

        logger.debug(f"Room {state.id}: {player_id} will take")
        EventBus.get_instance().emit(
            EngineEventType.TAKE_DECLARED,
            {"room_id": state.id, "player_id": player_id, "timestamp": time.time()},
        )
        return new_state

    @staticmethod
    def end_turn(state: RoomState, player_id: str) -> RoomState:
        """
        Close the round.

        After a take declaration the defender collects every table card and
        the same attacker goes again. Otherwise every pile must be defended;
        the table is discarded and the roles swap. Either way hands are
        refilled, attacker first, and the game end is checked.

        Args:
            state: Current room state
            player_id: ID of the attacker

        Returns:
            New room state for the next round (or the finished game)
        """
        check_end_turn(state, player_id)

        table_cards = state.table.cards
        taken = state.phase == RoundPhase.TAKING

        if taken:
            new_state = state.with_player(state.defender.with_cards(table_cards))
        else:
            new_state = replace(state, discard=state.discard + table_cards)

        new_state = replace(
            new_state,
            table=TableState(),
            phase=RoundPhase.ATTACKING,
            round_limit=None,
        )
        new_state = StateTransitionEngine.draw_up(
            new_state, (state.attacker_id, state.defender_id)
        )

        event_bus = EventBus.get_instance()
        if taken:
            event_bus.emit(
                EngineEventType.CARDS_TAKEN,
                {
                    "room_id": state.id,
                    "player_id": state.defender_id,
                    "card_count": len(table_cards),
                    "timestamp": time.time(),
                },
            )
        else:
            new_state = StateTransitionEngine.swap_roles(new_state)

        logger.info(
            f"Round ended in room {state.id}: "
            f"{'taken by' if taken else 'defended by'} {state.defender_id}"
        )
        event_bus.emit(
            EngineEventType.ROUND_ENDED,
            {
                "room_id": state.id,
                "defender_won": not taken,
                "next_attacker": new_state.attacker_id,
                "next_defender": new_state.defender_id,
                "deck_count": len(new_state.deck),
                "timestamp": time.time(),
            },
        )

        return StateTransitionEngine.check_game_end(new_state)

    @staticmethod
    def swap_roles(state: RoomState) -> RoomState:
        """Exchange the attacker and defender."""
        new_state = replace(
            state, attacker_id=state.defender_id, defender_id=state.attacker_id
        )
        EventBus.get_instance().emit(
            EngineEventType.ROLES_SWAPPED,
            {
                "room_id": state.id,
                "attacker_id": new_state.attacker_id,
                "defender_id": new_state.defender_id,
                "timestamp": time.time(),
            },
        )
        return new_state

    @staticmethod
    def draw_up(state: RoomState, player_ids: Iterable[str]) -> RoomState:
        """
        Refill hands to six cards from the deck, in the order given.

        Args:
            state: Current room state
            player_ids: Players to refill, first to draw first

        Returns:
            New room state with refilled hands
        """
        deck = list(state.deck)
        new_state = state
        for player_id in player_ids:
            player = new_state.get_player(player_id)
            if player is None:
                continue
            drawn = []
            while player.card_count + len(drawn) < HAND_SIZE and deck:
                drawn.append(deck.pop())
            new_state = new_state.with_player(player.with_cards(tuple(drawn)))
        return replace(new_state, deck=tuple(deck))

    @staticmethod
    def check_game_end(state: RoomState) -> RoomState:
        """
        Finish the game once the deck is empty and a hand has run out.

        One empty hand wins; two empty hands draw. While the deck still has
        cards nothing changes.

        Only `end_turn` calls this, once the round has closed and both hands
        are refilled. A defender who beats the last attack with their last
        card therefore has not won yet: the attacker may still close the round
        with an empty hand of their own, which is how a draw comes about.

        Args:
            state: Current room state

        Returns:
            The same state, or a finished state with its result set
        """
        if state.deck or not state.is_playing:
            return state

        empty = [p for p in state.players if p.card_count == 0]
        if not empty:
            return state

        if len(empty) == len(state.players):
            result = GameResult(outcome="draw")
        else:
            winner = empty[0]
            loser = next(p for p in state.players if p.id != winner.id)
            result = GameResult(outcome="win", winner_id=winner.id, loser_id=loser.id)

        new_state = replace(state, status=RoomStatus.FINISHED, result=result)

        logger.info(f"Game ended in room {state.id}: {result.to_dict()}")
        EventBus.get_instance().emit(
            EngineEventType.GAME_ENDED,
            {"room_id": state.id, **result.to_dict(), "timestamp": time.time()},
        )
        return new_state
