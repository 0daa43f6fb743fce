"""
Pytest configuration for the durakroom test suite.

Cards in tests are written as short codes: rank then suit letter, e.g. "6H",
"10S", "QD", "AC". A card's id is its code, so hands and tables can be
checked by id.
"""

from typing import Iterable, Optional, Sequence, Tuple

import pytest

from durakroom.common.card import Card, Rank, Suit
from durakroom.events import EventBus
from durakroom.room.state import (
    Pile,
    PlayerState,
    RoomSettings,
    RoomState,
    RoomStatus,
    RoundPhase,
    TableState,
)

SUIT_CODES = {
    "S": Suit.SPADES,
    "H": Suit.HEARTS,
    "D": Suit.DIAMONDS,
    "C": Suit.CLUBS,
}

ATTACKER_ID = "alice"
DEFENDER_ID = "bob"


def _make_card(code: str) -> Card:
    rank_str, suit_code = code[:-1], code[-1]
    rank = next(rank for rank in Rank if rank.rank_str == rank_str)
    return Card(SUIT_CODES[suit_code], rank, id=code)


def _make_cards(codes: Iterable[str]) -> Tuple[Card, ...]:
    return tuple(_make_card(code) for code in codes)


def _make_room(
    attacker_hand: Sequence[str] = (),
    defender_hand: Sequence[str] = (),
    trump: str = "H",
    deck: Sequence[str] = (),
    discard: Sequence[str] = (),
    piles: Sequence[Tuple[str, Optional[str]]] = (),
    phase: RoundPhase = RoundPhase.ATTACKING,
    round_limit: Optional[int] = None,
    perevod: bool = False,
) -> RoomState:
    """
    Build a playing room with "alice" attacking and "bob" defending.

    Piles are `(attack_code, defense_code_or_None)` pairs; pile ids are
    "p1", "p2", ... in order.
    """
    table = TableState(
        piles=tuple(
            Pile(
                attack=_make_card(attack),
                defense=_make_card(defense) if defense else None,
                id=f"p{i}",
            )
            for i, (attack, defense) in enumerate(piles, start=1)
        )
    )
    return RoomState(
        id="ROOM01",
        status=RoomStatus.PLAYING,
        settings=RoomSettings(perevod=perevod),
        players=(
            PlayerState(id=ATTACKER_ID, name="Alice", hand=_make_cards(attacker_hand)),
            PlayerState(id=DEFENDER_ID, name="Bob", hand=_make_cards(defender_hand)),
        ),
        deck=_make_cards(deck),
        trump_card=None,
        trump_suit=SUIT_CODES[trump],
        table=table,
        discard=_make_cards(discard),
        phase=phase,
        round_limit=round_limit,
        attacker_id=ATTACKER_ID,
        defender_id=DEFENDER_ID,
    )


@pytest.fixture(scope="function", autouse=True)
def reset_event_bus():
    """Reset the event bus singleton before each test."""
    EventBus._instance = None
    yield
    EventBus._instance = None


@pytest.fixture
def make_card():
    """Factory for a card from its code."""
    return _make_card


@pytest.fixture
def make_room():
    """Factory for a playing room; see `_make_room`."""
    return _make_room


@pytest.fixture
def hand_ids():
    """Ids of the cards in a player's hand."""

    def _hand_ids(state: RoomState, player_id: str) -> set:
        return {card.id for card in state.get_player(player_id).hand}

    return _hand_ids
