"""
Actions a connection can request, one dataclass per message type.

`parse_message` turns an inbound `{"type": ..., ...}` message into one of
these variants; the engine then dispatches on the variant with `match`.
"""

from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Dict, Mapping, Union

from durakroom.room.errors import ProtocolError


@dataclass(frozen=True)
class Create:
    """Create a room."""

    type: ClassVar[str] = "create"
    perevod: bool = False


@dataclass(frozen=True)
class Join:
    """Join an existing room."""

    type: ClassVar[str] = "join"
    room_id: str
    name: Any = None


@dataclass(frozen=True)
class Attack:
    type: ClassVar[str] = "attack"
    card_id: str


@dataclass(frozen=True)
class Defend:
    type: ClassVar[str] = "defend"
    pile_id: str
    card_id: str


@dataclass(frozen=True)
class Transfer:
    type: ClassVar[str] = "transfer"
    card_id: str


@dataclass(frozen=True)
class Take:
    type: ClassVar[str] = "take"


@dataclass(frozen=True)
class EndTurn:
    type: ClassVar[str] = "end_turn"


# Actions applied to a running game
GameAction = Union[Attack, Defend, Transfer, Take, EndTurn]

Action = Union[Create, Join, GameAction]


def _require_str(message: Mapping[str, Any], key: str) -> str:
    value = message.get(key)
    if value is None or value == "":
        raise ProtocolError(f"Missing {key}.")
    if not isinstance(value, str):
        raise ProtocolError(f"Invalid {key}.")
    return value


def _parse_create(message: Mapping[str, Any]) -> Create:
    return Create(perevod=bool(message.get("perevod", False)))


def _parse_join(message: Mapping[str, Any]) -> Join:
    return Join(room_id=_require_str(message, "roomId"), name=message.get("name"))


def _parse_attack(message: Mapping[str, Any]) -> Attack:
    return Attack(card_id=_require_str(message, "cardId"))


def _parse_defend(message: Mapping[str, Any]) -> Defend:
    return Defend(
        pile_id=_require_str(message, "pileId"),
        card_id=_require_str(message, "cardId"),
    )


def _parse_transfer(message: Mapping[str, Any]) -> Transfer:
    return Transfer(card_id=_require_str(message, "cardId"))


_PARSERS: Dict[str, Callable[[Mapping[str, Any]], "Action"]] = {
    Create.type: _parse_create,
    Join.type: _parse_join,
    Attack.type: _parse_attack,
    Defend.type: _parse_defend,
    Transfer.type: _parse_transfer,
    Take.type: lambda message: Take(),
    EndTurn.type: lambda message: EndTurn(),
}


def parse_message(message: Any) -> Action:
    """
    Parse an inbound message into an action.

    Args:
        message: Decoded JSON message

    Returns:
        The action variant for the message type

    Raises:
        ProtocolError: If the message is not an object with a known string
            `type` and the arguments that type requires
    """
    if not isinstance(message, Mapping) or not isinstance(message.get("type"), str):
        raise ProtocolError("Invalid message payload.")

    parser = _PARSERS.get(message["type"])
    if parser is None:
        raise ProtocolError("Unknown action.")
    return parser(message)
