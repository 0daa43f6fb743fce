"""
Tests for the in-game state transitions: attack, defense, transfer, take and
ending the turn, including every rejection a player can run into.
"""

from dataclasses import replace

import pytest

from durakroom.room.errors import (
    AuthorizationError,
    LegalityError,
    ResourceError,
)
from durakroom.room.state import RoomStatus, RoundPhase
from durakroom.room.transitions import StateTransitionEngine as engine

ALICE = "alice"
BOB = "bob"


def hand(state, player_id):
    return [card.id for card in state.get_player(player_id).hand]


def table(state):
    return [
        (pile.attack.id, pile.defense.id if pile.defense else None)
        for pile in state.table.piles
    ]


class TestAttack:
    def test_opening_attack(self, make_room):
        state = make_room(attacker_hand=["6S", "7S"], defender_hand=["6C", "7C", "8C"])

        new_state = engine.play_attack(state, ALICE, "6S")

        assert table(new_state) == [("6S", None)]
        assert hand(new_state, ALICE) == ["7S"]
        assert new_state.round_limit == 3
        # The original state is untouched
        assert table(state) == []
        assert hand(state, ALICE) == ["6S", "7S"]

    def test_follow_up_attack_matches_table_rank(self, make_room):
        state = make_room(
            attacker_hand=["7D", "6H"],
            defender_hand=["9C", "10C"],
            piles=[("6S", "7S")],
            round_limit=3,
        )

        state = engine.play_attack(state, ALICE, "7D")
        state = engine.play_attack(state, ALICE, "6H")

        assert table(state) == [("6S", "7S"), ("7D", None), ("6H", None)]

    def test_attack_while_piles_undefended(self, make_room):
        state = make_room(
            attacker_hand=["6D"],
            defender_hand=["9C", "10C"],
            piles=[("6S", None)],
            round_limit=3,
        )
        state = engine.play_attack(state, ALICE, "6D")
        assert len(state.table) == 2

    def test_rank_must_be_on_table(self, make_room):
        state = make_room(
            attacker_hand=["8S"], defender_hand=["9C"], piles=[("6S", "7S")]
        )
        with pytest.raises(LegalityError, match="Attack cards must match a rank"):
            engine.play_attack(state, ALICE, "8S")

    def test_defender_cannot_attack(self, make_room):
        state = make_room(attacker_hand=["6S"], defender_hand=["6C"])
        with pytest.raises(AuthorizationError, match="Only the attacker can attack."):
            engine.play_attack(state, BOB, "6C")

    def test_card_not_in_hand(self, make_room):
        state = make_room(attacker_hand=["6S"], defender_hand=["6C"])
        with pytest.raises(ResourceError, match="Card not in hand."):
            engine.play_attack(state, ALICE, "6C")

    def test_unknown_player(self, make_room):
        state = make_room(attacker_hand=["6S"], defender_hand=["6C"])
        with pytest.raises(ResourceError, match="Player not found."):
            engine.play_attack(state, "carol", "6S")

    @pytest.mark.parametrize("status", [RoomStatus.WAITING, RoomStatus.FINISHED])
    def test_game_not_active(self, make_room, status):
        state = replace(make_room(attacker_hand=["6S"], defender_hand=["6C"]), status=status)
        with pytest.raises(LegalityError, match="The game is not active."):
            engine.play_attack(state, ALICE, "6S")

    def test_limit_is_defender_hand_at_first_attack(self, make_room):
        """The quota is fixed when the round opens and does not shrink."""
        state = make_room(
            attacker_hand=["6S", "6D", "6C", "6H"],
            defender_hand=["7S", "7D", "8C"],
            discard=["AC"],
        )

        state = engine.play_attack(state, ALICE, "6S")
        state = engine.play_defense(state, BOB, state.table.piles[0].id, "7S")
        state = engine.play_attack(state, ALICE, "6D")
        state = engine.play_defense(state, BOB, state.table.piles[1].id, "7D")
        state = engine.play_attack(state, ALICE, "6C")

        assert state.round_limit == 3
        assert len(state.table) == 3
        with pytest.raises(LegalityError, match="Defender has no room for more attacks."):
            engine.play_attack(state, ALICE, "6H")

    def test_first_round_allows_five_piles(self, make_room, make_card):
        state = make_room(
            attacker_hand=["6D"],
            defender_hand=["AS", "AD", "AC", "KS", "KD", "KC"],
            piles=[("6S", "7S"), ("6C", "7C"), ("7D", "8D"), ("8S", "9S"), ("9D", "10D")],
            round_limit=6,
        )
        with pytest.raises(LegalityError, match="Defender has no room for more attacks."):
            engine.play_attack(state, ALICE, "6D")

        # With a discard pile the sixth pile is allowed
        state = replace(state, discard=(make_card("AH"),))
        assert len(engine.play_attack(state, ALICE, "6D").table) == 6

    def test_attack_while_defender_takes(self, make_room):
        state = make_room(
            attacker_hand=["6D"],
            defender_hand=["9C", "10C"],
            piles=[("6S", None)],
            phase=RoundPhase.TAKING,
            round_limit=3,
        )
        state = engine.play_attack(state, ALICE, "6D")
        assert table(state) == [("6S", None), ("6D", None)]
        assert state.phase == RoundPhase.TAKING


class TestDefense:
    def test_defend_pile(self, make_room):
        state = make_room(
            attacker_hand=["9C"], defender_hand=["7S", "8C"], piles=[("6S", None)]
        )

        state = engine.play_defense(state, BOB, "p1", "7S")

        assert table(state) == [("6S", "7S")]
        assert hand(state, BOB) == ["8C"]

    def test_defend_with_trump(self, make_room):
        state = make_room(
            attacker_hand=["9C"], defender_hand=["6H"], piles=[("AS", None)], trump="H"
        )
        state = engine.play_defense(state, BOB, "p1", "6H")
        assert table(state) == [("AS", "6H")]

    def test_defend_any_pile_in_any_order(self, make_room):
        state = make_room(
            attacker_hand=["9C"],
            defender_hand=["7S", "7D"],
            piles=[("6S", None), ("6D", None)],
        )
        state = engine.play_defense(state, BOB, "p2", "7D")
        assert table(state) == [("6S", None), ("6D", "7D")]

    def test_card_does_not_beat(self, make_room):
        state = make_room(
            attacker_hand=["9C"], defender_hand=["AD"], piles=[("6S", None)]
        )
        with pytest.raises(LegalityError, match="That card does not beat the attack."):
            engine.play_defense(state, BOB, "p1", "AD")

    def test_lower_card_does_not_beat(self, make_room):
        state = make_room(
            attacker_hand=["9C"], defender_hand=["6S"], piles=[("7S", None)]
        )
        with pytest.raises(LegalityError, match="That card does not beat the attack."):
            engine.play_defense(state, BOB, "p1", "6S")

    def test_pile_already_defended(self, make_room):
        state = make_room(
            attacker_hand=["9C"], defender_hand=["8S"], piles=[("6S", "7S")]
        )
        with pytest.raises(LegalityError, match="That attack is already defended."):
            engine.play_defense(state, BOB, "p1", "8S")

    def test_pile_not_found(self, make_room):
        state = make_room(
            attacker_hand=["9C"], defender_hand=["8S"], piles=[("6S", None)]
        )
        with pytest.raises(ResourceError, match="Pile not found."):
            engine.play_defense(state, BOB, "p9", "8S")

    def test_attacker_cannot_defend(self, make_room):
        state = make_room(
            attacker_hand=["9S"], defender_hand=["8S"], piles=[("6S", None)]
        )
        with pytest.raises(AuthorizationError, match="Only the defender can play defense."):
            engine.play_defense(state, ALICE, "p1", "9S")

    def test_no_defense_after_take(self, make_room):
        state = make_room(
            attacker_hand=["9C"],
            defender_hand=["8S"],
            piles=[("6S", None)],
            phase=RoundPhase.TAKING,
        )
        with pytest.raises(LegalityError, match="You have already chosen to take."):
            engine.play_defense(state, BOB, "p1", "8S")

    def test_emptying_hand_mid_round_does_not_end_game(self, make_room):
        state = make_room(
            attacker_hand=["8C"], defender_hand=["7S"], piles=[("6S", None)]
        )
        state = engine.play_defense(state, BOB, "p1", "7S")
        assert state.status == RoomStatus.PLAYING
        assert state.result is None


class TestTransfer:
    def test_transfer_swaps_roles(self, make_room):
        state = make_room(
            attacker_hand=["7C", "8C"],
            defender_hand=["6D", "9S"],
            piles=[("6S", None)],
            discard=["AC"],
            round_limit=2,
            perevod=True,
        )

        state = engine.transfer(state, BOB, "6D")

        assert table(state) == [("6S", None), ("6D", None)]
        assert hand(state, BOB) == ["9S"]
        assert state.attacker_id == BOB
        assert state.defender_id == ALICE
        assert state.round_limit == 2
        assert state.phase == RoundPhase.ATTACKING

    def test_round_limit_recomputed_for_new_defender(self, make_room):
        state = make_room(
            attacker_hand=["7C", "8C", "9C", "10C", "JC", "QC", "KC"],
            defender_hand=["6D", "9S"],
            piles=[("6S", None)],
            round_limit=2,
            perevod=True,
        )
        state = engine.transfer(state, BOB, "6D")
        # Capped at five while nothing has been discarded
        assert state.round_limit == 5

    def test_transfer_back_and_forth(self, make_room):
        state = make_room(
            attacker_hand=["6C", "8C", "9C"],
            defender_hand=["6D", "9S", "10S", "JS"],
            piles=[("6S", None)],
            discard=["AC"],
            round_limit=3,
            perevod=True,
        )
        state = engine.transfer(state, BOB, "6D")
        state = engine.transfer(state, ALICE, "6C")

        assert state.attacker_id == ALICE
        assert state.defender_id == BOB
        assert len(state.table) == 3
        assert state.round_limit == 3

    def test_transfers_disabled(self, make_room):
        state = make_room(
            attacker_hand=["7C"], defender_hand=["6D"], piles=[("6S", None)]
        )
        with pytest.raises(LegalityError, match="Transfers are disabled."):
            engine.transfer(state, BOB, "6D")

    def test_attacker_cannot_transfer(self, make_room):
        state = make_room(
            attacker_hand=["6C"],
            defender_hand=["6D"],
            piles=[("6S", None)],
            perevod=True,
        )
        with pytest.raises(AuthorizationError, match="Only the defender can transfer."):
            engine.transfer(state, ALICE, "6C")

    def test_not_after_defense(self, make_room):
        state = make_room(
            attacker_hand=["7C", "8C", "9C"],
            defender_hand=["6D"],
            piles=[("6S", "7S"), ("6C", None)],
            perevod=True,
        )
        with pytest.raises(LegalityError, match="only allowed before any defense"):
            engine.transfer(state, BOB, "6D")

    def test_not_on_empty_table(self, make_room):
        state = make_room(attacker_hand=["7C"], defender_hand=["6D"], perevod=True)
        with pytest.raises(LegalityError, match="only allowed before any defense"):
            engine.transfer(state, BOB, "6D")

    def test_rank_must_match(self, make_room):
        state = make_room(
            attacker_hand=["7C", "8C"],
            defender_hand=["7D"],
            piles=[("6S", None)],
            perevod=True,
        )
        with pytest.raises(LegalityError, match="Transfer card must match a rank"):
            engine.transfer(state, BOB, "7D")

    def test_attacker_hand_too_small(self, make_room):
        state = make_room(
            attacker_hand=["7C"],
            defender_hand=["6D", "9S"],
            piles=[("6S", None)],
            perevod=True,
        )
        with pytest.raises(LegalityError, match="The attacker has no room for a transfer."):
            engine.transfer(state, BOB, "6D")

    def test_not_after_take(self, make_room):
        state = make_room(
            attacker_hand=["7C", "8C"],
            defender_hand=["6D"],
            piles=[("6S", None)],
            phase=RoundPhase.TAKING,
            perevod=True,
        )
        with pytest.raises(LegalityError, match="You have already chosen to take."):
            engine.transfer(state, BOB, "6D")


class TestTake:
    def test_take_moves_no_cards(self, make_room):
        state = make_room(
            attacker_hand=["9C"], defender_hand=["8D", "9D"], piles=[("6S", None)]
        )

        state = engine.take(state, BOB)

        assert state.phase == RoundPhase.TAKING
        assert table(state) == [("6S", None)]
        assert hand(state, BOB) == ["8D", "9D"]
        assert state.round_limit == 2

    def test_take_keeps_captured_limit(self, make_room):
        state = make_room(
            attacker_hand=["9C"],
            defender_hand=["8D"],
            piles=[("6S", None)],
            round_limit=4,
        )
        assert engine.take(state, BOB).round_limit == 4

    def test_nothing_to_take(self, make_room):
        state = make_room(attacker_hand=["9C"], defender_hand=["8D"])
        with pytest.raises(LegalityError, match="There is nothing to take."):
            engine.take(state, BOB)

    def test_take_twice(self, make_room):
        state = make_room(
            attacker_hand=["9C"],
            defender_hand=["8D"],
            piles=[("6S", None)],
            phase=RoundPhase.TAKING,
        )
        with pytest.raises(LegalityError, match="You have already chosen to take."):
            engine.take(state, BOB)

    def test_attacker_cannot_take(self, make_room):
        state = make_room(
            attacker_hand=["9C"], defender_hand=["8D"], piles=[("6S", None)]
        )
        with pytest.raises(AuthorizationError, match="Only the defender can take."):
            engine.take(state, ALICE)


class TestEndTurn:
    DECK = ["AH", "KH", "QH", "JH", "10H", "9H", "8H", "7H", "6H", "AD", "KD", "QD"]

    def test_defended_round_is_discarded(self, make_room):
        state = make_room(
            attacker_hand=["8S"],
            defender_hand=["9S"],
            piles=[("6S", "7S"), ("6C", "7C")],
            deck=self.DECK,
        )

        state = engine.end_turn(state, ALICE)

        assert [card.id for card in state.discard] == ["6S", "7S", "6C", "7C"]
        assert state.table.is_empty
        # The attacker draws first, from the end of the deck
        assert hand(state, ALICE) == ["8S", "QD", "KD", "AD", "6H", "7H"]
        assert hand(state, BOB) == ["9S", "8H", "9H", "10H", "JH", "QH"]
        assert [card.id for card in state.deck] == ["AH", "KH"]
        # The defender beat everything and attacks next
        assert state.attacker_id == BOB
        assert state.defender_id == ALICE
        assert state.phase == RoundPhase.ATTACKING
        assert state.round_limit is None

    def test_taken_round_goes_to_defender(self, make_room):
        state = make_room(
            attacker_hand=["9D"],
            defender_hand=["8D"],
            piles=[("6S", "7S"), ("6C", None)],
            deck=["AH", "KH"],
            discard=["AC"],
            phase=RoundPhase.TAKING,
            round_limit=3,
        )

        state = engine.end_turn(state, ALICE)

        assert hand(state, BOB) == ["8D", "6S", "7S", "6C"]
        assert hand(state, ALICE) == ["9D", "KH", "AH"]
        assert [card.id for card in state.discard] == ["AC"]
        assert state.deck == ()
        # Same attacker goes again
        assert state.attacker_id == ALICE
        assert state.defender_id == BOB
        assert state.phase == RoundPhase.ATTACKING
        assert state.status == RoomStatus.PLAYING

    def test_undefended_piles(self, make_room):
        state = make_room(
            attacker_hand=["8S"],
            defender_hand=["9S"],
            piles=[("6S", "7S"), ("6C", None)],
        )
        with pytest.raises(LegalityError, match="All attacks must be defended"):
            engine.end_turn(state, ALICE)

    def test_nothing_on_table(self, make_room):
        state = make_room(attacker_hand=["8S"], defender_hand=["9S"])
        with pytest.raises(LegalityError, match="There is nothing on the table."):
            engine.end_turn(state, ALICE)

    def test_defender_cannot_end_turn(self, make_room):
        state = make_room(
            attacker_hand=["8S"], defender_hand=["9S"], piles=[("6S", "7S")]
        )
        with pytest.raises(AuthorizationError, match="Only the attacker can end the turn."):
            engine.end_turn(state, BOB)

    def test_attacker_out_of_cards_wins(self, make_room):
        state = make_room(attacker_hand=[], defender_hand=["9C"], piles=[("6S", "7S")])

        state = engine.end_turn(state, ALICE)

        assert state.status == RoomStatus.FINISHED
        assert state.result.to_dict() == {
            "outcome": "win",
            "winner_id": ALICE,
            "loser_id": BOB,
        }

    def test_defender_out_of_cards_wins(self, make_room):
        state = make_room(attacker_hand=["8C"], defender_hand=["7S"], piles=[("6S", None)])

        state = engine.play_defense(state, BOB, "p1", "7S")
        state = engine.end_turn(state, ALICE)

        assert state.status == RoomStatus.FINISHED
        assert state.result.winner_id == BOB
        assert state.result.loser_id == ALICE

    def test_both_out_of_cards_is_draw(self, make_room):
        state = make_room(attacker_hand=[], defender_hand=[], piles=[("6S", "7S")])

        state = engine.end_turn(state, ALICE)

        assert state.status == RoomStatus.FINISHED
        assert state.result.to_dict() == {"outcome": "draw"}

    def test_no_actions_after_game_end(self, make_room):
        state = make_room(attacker_hand=[], defender_hand=["9C"], piles=[("6S", "7S")])
        state = engine.end_turn(state, ALICE)

        with pytest.raises(LegalityError, match="The game is not active."):
            engine.play_attack(state, BOB, "9C")
