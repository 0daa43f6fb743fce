"""
This module contains the Deck class, which represents the 36-card Durak deck.

>>> deck = Deck()
>>> deck.size
36
>>> card = deck.deal()
>>> deck.size
35
"""

import random
from typing import List, Optional, Union

from durakroom.common.card import Card, Rank, Suit


def build_deck() -> List[Card]:
    """
    Build all 36 cards, one per suit and rank, each with a fresh id.

    :return: A list of Card instances in suit-major order.
    """
    return [Card(suit, rank) for suit in Suit for rank in Rank]


def shuffle(cards: List[Card], rng: Optional[random.Random] = None) -> List[Card]:
    """
    Return a uniformly shuffled copy of `cards`.

    Uses the Fisher-Yates shuffle from the `random` module, so every
    permutation is equally likely given a fair source.

    :param cards: The cards to shuffle
    :param rng: Optional random source, for reproducible games
    :return: A new list holding the same cards in random order
    """
    shuffled = list(cards)
    (rng or random).shuffle(shuffled)
    return shuffled


class Deck:
    """
    A class representing a deck of cards. Cards are dealt from the end of the
    list, so `cards[0]` is the bottom card.
    """

    def __init__(self, cards: Union[List[Card], None] = None):
        """
        Initialize a Deck instance.

        :param cards: A list of Card instances to populate the deck (optional).
                      If not provided, a fresh 36-card deck is built.
        """
        if cards is None:
            self.cards: List[Card] = build_deck()
        else:
            self.cards = list(cards)

    def shuffle(self, rng: Optional[random.Random] = None) -> "Deck":
        """
        Shuffle the cards in the deck.

        >>> deck = Deck()
        >>> ids = {card.id for card in deck.cards}
        >>> {card.id for card in deck.shuffle().cards} == ids
        True
        """
        self.cards = shuffle(self.cards, rng)
        return self

    def deal(self, num_cards=1) -> Union[Card, List[Card]]:
        """
        Pop n cards from the top of the deck.

        :return: A card instance or a list of card instances.
        """
        if num_cards == 1:
            return self.cards.pop()
        return [self.cards.pop() for _ in range(num_cards)]

    @property
    def bottom(self) -> Optional[Card]:
        """The card dealt last, which is turned face up as trump."""
        return self.cards[0] if self.cards else None

    @property
    def size(self) -> int:
        return len(self.cards)

    def is_empty(self) -> bool:
        return len(self.cards) == 0

    def __repr__(self) -> str:
        return f"Deck({[repr(card) for card in self.cards]})"

    def __str__(self) -> str:
        """
        >>> str(Deck())
        'Deck of 36 cards'
        """
        return f"Deck of {len(self.cards)} cards"
