"""
This module defines the `Suit`, `Rank`, and `Card` classes used by the Durak
room engine.

- `Suit`: An enum representing the four suits: Spades, Hearts, Diamonds and
Clubs.

- `Rank`: An enum representing the nine ranks of the 36-card deck, Six through
Ace. The enum value is the card's comparison value (6 to 14).

- `Card`: An immutable playing card. Two cards are the same card only if they
share an `id`; a deck never holds two cards with the same suit and rank, but
identity on the wire is always by id.
"""

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Any, Dict

from durakroom.common.util import generate_id

CARD_ID_LENGTH = 10


@unique
class Suit(Enum):
    """
    Enum for suits in a card deck.
    """

    SPADES = "spades"
    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"

    @property
    def symbol(self) -> str:
        return _SUIT_SYMBOLS[self]

    def __str__(self) -> str:
        return self.symbol


_SUIT_SYMBOLS = {
    Suit.SPADES: "♠",
    Suit.HEARTS: "♥",
    Suit.DIAMONDS: "♦",
    Suit.CLUBS: "♣",
}


@unique
class Rank(Enum):
    """
    Enum for ranks in a 36-card deck. Ace is highest.
    """

    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14

    @property
    def rank_value(self) -> int:
        """The comparison value of the rank."""
        return self.value

    @property
    def rank_str(self) -> str:
        """A string representation of the rank."""
        if self in (Rank.JACK, Rank.QUEEN, Rank.KING, Rank.ACE):
            return self.name[0]
        return str(self.value)

    def __str__(self) -> str:
        return self.rank_str


@dataclass(frozen=True)
class Card:
    """
    Class representing a playing card.

    >>> card = Card(Suit.HEARTS, Rank.QUEEN, id="QH")
    >>> print(card)
    Q of ♥
    >>> card.value
    12
    """

    suit: Suit = field(compare=False)
    rank: Rank = field(compare=False)
    id: str = field(default_factory=lambda: generate_id(CARD_ID_LENGTH))

    def __post_init__(self):
        if not isinstance(self.suit, Suit):
            raise TypeError(f"Invalid suit: {self.suit}")
        if not isinstance(self.rank, Rank):
            raise TypeError(f"Invalid rank: {self.rank}")

    @property
    def value(self) -> int:
        return self.rank.rank_value

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the card to its wire representation.

        :return: Dictionary with id, suit, rank and value.
        """
        return {
            "id": self.id,
            "suit": self.suit.value,
            "rank": self.rank.rank_str,
            "value": self.value,
        }

    def __repr__(self) -> str:
        return f"Card(Suit.{self.suit.name}, Rank.{self.rank.name}, id={self.id!r})"

    def __str__(self) -> str:
        return f"{self.rank.rank_str} of {self.suit}"
