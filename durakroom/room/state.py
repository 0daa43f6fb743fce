"""
Immutable state models for a Durak room.

This module provides dataclasses for representing the state of a two-player
Durak room in an immutable manner. These classes are designed to be used with
pure transition functions that create new state instances rather than
modifying existing ones, so a rejected action can never leave a room
half-changed.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, Iterator, Optional, Tuple
from enum import Enum
import time

from durakroom.common.card import Card, Rank, Suit
from durakroom.common.util import generate_id
from durakroom.room.constants import (
    PILE_ID_LENGTH,
    PLAYER_ID_LENGTH,
    PLAYERS_PER_ROOM,
    ROOM_ID_LENGTH,
)


class RoomStatus(Enum):
    """Lifecycle status of a room."""

    WAITING = "waiting"
    PLAYING = "playing"
    FINISHED = "finished"


class RoundPhase(Enum):
    """
    Phase of the current round.

    TAKING means the defender has declared they will take the table; the
    attacker may still add cards until they end the turn.
    """

    ATTACKING = "attacking"
    TAKING = "taking"


@dataclass(frozen=True)
class RoomSettings:
    """
    Settings fixed for the lifetime of a room.

    Attributes:
        perevod: Whether the defender may transfer an attack back
    """

    perevod: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"perevod": self.perevod}


@dataclass(frozen=True)
class Pile:
    """
    One attack card and the card that beat it, if any.
    """

    attack: Card
    defense: Optional[Card] = None
    id: str = field(default_factory=lambda: generate_id(PILE_ID_LENGTH))

    @property
    def is_defended(self) -> bool:
        return self.defense is not None

    @property
    def cards(self) -> Tuple[Card, ...]:
        if self.defense is None:
            return (self.attack,)
        return (self.attack, self.defense)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "attack": self.attack.to_dict(),
            "defense": self.defense.to_dict() if self.defense else None,
        }


@dataclass(frozen=True)
class TableState:
    """
    Immutable representation of the piles on the table this round.

    Attributes:
        piles: Piles in the order they were played
    """

    piles: Tuple[Pile, ...] = ()

    def __len__(self) -> int:
        return len(self.piles)

    @property
    def is_empty(self) -> bool:
        return not self.piles

    @property
    def all_defended(self) -> bool:
        """True if there is at least one pile and every pile is defended."""
        return bool(self.piles) and all(pile.is_defended for pile in self.piles)

    @property
    def any_defended(self) -> bool:
        return any(pile.is_defended for pile in self.piles)

    @property
    def undefended_piles(self) -> Tuple[Pile, ...]:
        return tuple(pile for pile in self.piles if not pile.is_defended)

    @property
    def ranks(self) -> FrozenSet[Rank]:
        """Ranks of every attack and defense card on the table."""
        return frozenset(card.rank for card in self.cards)

    @property
    def cards(self) -> Tuple[Card, ...]:
        """All cards on the table, attack before defense within each pile."""
        return tuple(card for pile in self.piles for card in pile.cards)

    def find_pile(self, pile_id: str) -> Optional[Pile]:
        for pile in self.piles:
            if pile.id == pile_id:
                return pile
        return None

    def with_pile(self, pile: Pile) -> "TableState":
        """Return a table with `pile` appended."""
        return replace(self, piles=self.piles + (pile,))

    def with_defense(self, pile_id: str, card: Card) -> "TableState":
        """Return a table where the pile `pile_id` is defended by `card`."""
        return replace(
            self,
            piles=tuple(
                replace(pile, defense=card) if pile.id == pile_id else pile
                for pile in self.piles
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"piles": [pile.to_dict() for pile in self.piles]}


@dataclass(frozen=True)
class PlayerState:
    """
    Immutable representation of a player in a room.

    Attributes:
        id: Unique identifier for this player
        name: Display name of the player
        hand: Cards in the player's hand
    """

    id: str = field(default_factory=lambda: generate_id(PLAYER_ID_LENGTH))
    name: str = "Player"
    hand: Tuple[Card, ...] = ()

    @property
    def card_count(self) -> int:
        """Get the number of cards in the player's hand."""
        return len(self.hand)

    def find_card(self, card_id: str) -> Optional[Card]:
        for card in self.hand:
            if card.id == card_id:
                return card
        return None

    def without_card(self, card: Card) -> "PlayerState":
        return replace(self, hand=tuple(c for c in self.hand if c.id != card.id))

    def with_cards(self, cards: Tuple[Card, ...]) -> "PlayerState":
        return replace(self, hand=self.hand + tuple(cards))


@dataclass(frozen=True)
class GameResult:
    """
    Outcome of a finished game.

    Attributes:
        outcome: "win" or "draw"
        winner_id: Player who emptied their hand first (None on a draw)
        loser_id: The other player (None on a draw)
    """

    outcome: str
    winner_id: Optional[str] = None
    loser_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        if self.outcome == "draw":
            return {"outcome": self.outcome}
        return {
            "outcome": self.outcome,
            "winner_id": self.winner_id,
            "loser_id": self.loser_id,
        }


@dataclass(frozen=True)
class RoomState:
    """
    Immutable representation of a Durak room.

    Attributes:
        id: Room identifier shared with players to join
        status: Lifecycle status of the room
        settings: Settings fixed at creation
        players: Players in join order (at most two)
        deck: Cards left to draw; the last element is drawn next and the
            first element is the face-up trump card
        trump_card: The card that fixed the trump suit
        trump_suit: The trump suit for this game
        table: Piles played this round
        discard: Cards beaten in earlier rounds
        phase: Phase of the current round
        round_limit: Pile quota captured at the first attack of the round
        attacker_id: Player currently attacking
        defender_id: Player currently defending
        result: Outcome once the game is finished
        timestamp: Time when this state was created
    """

    id: str = field(default_factory=lambda: generate_id(ROOM_ID_LENGTH))
    status: RoomStatus = RoomStatus.WAITING
    settings: RoomSettings = field(default_factory=RoomSettings)
    players: Tuple[PlayerState, ...] = ()
    deck: Tuple[Card, ...] = ()
    trump_card: Optional[Card] = None
    trump_suit: Optional[Suit] = None
    table: TableState = field(default_factory=TableState)
    discard: Tuple[Card, ...] = ()
    phase: RoundPhase = RoundPhase.ATTACKING
    round_limit: Optional[int] = None
    attacker_id: Optional[str] = None
    defender_id: Optional[str] = None
    result: Optional[GameResult] = None
    timestamp: float = field(default_factory=time.time, compare=False)

    @property
    def is_playing(self) -> bool:
        return self.status == RoomStatus.PLAYING

    @property
    def is_full(self) -> bool:
        return len(self.players) >= PLAYERS_PER_ROOM

    def get_player(self, player_id: Optional[str]) -> Optional[PlayerState]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    @property
    def attacker(self) -> Optional[PlayerState]:
        return self.get_player(self.attacker_id)

    @property
    def defender(self) -> Optional[PlayerState]:
        return self.get_player(self.defender_id)

    def with_player(self, player: PlayerState) -> "RoomState":
        """Return a room where the player with `player.id` is replaced."""
        return replace(
            self,
            players=tuple(player if p.id == player.id else p for p in self.players),
        )

    def all_cards(self) -> Iterator[Card]:
        """Every card in the room: hands, table, deck and discard."""
        for player in self.players:
            yield from player.hand
        yield from self.table.cards
        yield from self.deck
        yield from self.discard

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the room to a dictionary with every hand visible.

        Only suitable for logs and debugging; players receive the redacted
        view built by `durakroom.room.view`.
        """
        return {
            "id": self.id,
            "status": self.status.value,
            "settings": self.settings.to_dict(),
            "phase": self.phase.value,
            "round_limit": self.round_limit,
            "attacker_id": self.attacker_id,
            "defender_id": self.defender_id,
            "trump_card": self.trump_card.to_dict() if self.trump_card else None,
            "trump_suit": self.trump_suit.value if self.trump_suit else None,
            "deck_count": len(self.deck),
            "discard_count": len(self.discard),
            "table": self.table.to_dict(),
            "players": [
                {
                    "id": player.id,
                    "name": player.name,
                    "hand": [card.to_dict() for card in player.hand],
                }
                for player in self.players
            ],
            "result": self.result.to_dict() if self.result else None,
            "timestamp": self.timestamp,
        }
