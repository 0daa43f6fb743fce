"""
Common card primitives shared by the room engine.
"""

from durakroom.common.card import Card, Rank, Suit
from durakroom.common.deck import Deck, build_deck, shuffle

__all__ = ["Card", "Rank", "Suit", "Deck", "build_deck", "shuffle"]
