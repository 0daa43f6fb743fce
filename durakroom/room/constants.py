"""Durak room constants."""

# Cards each player is dealt and refilled to
HAND_SIZE = 6

# Piles allowed per round; the first round of a game is one shorter
FIRST_ROUND_MAX_PAIRS = 5
MAX_PAIRS = 6

PLAYERS_PER_ROOM = 2

ROOM_ID_LENGTH = 6
PLAYER_ID_LENGTH = 8
PILE_ID_LENGTH = 8

NAME_MAX_LENGTH = 16
