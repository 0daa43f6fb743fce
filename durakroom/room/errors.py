"""
Rejection taxonomy for room actions.

Every error here is recoverable: the action that raised it is dropped, the
room keeps its previous state, and `reason` is reported to the requester.
"""


class RoomError(Exception):
    """Base class for a rejected room action."""

    category = "error"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ProtocolError(RoomError):
    """Raised for a malformed message, an unknown action or acting before joining."""

    category = "protocol"


class AuthorizationError(RoomError):
    """Raised when the player's role does not allow the action."""

    category = "authorization"


class LegalityError(RoomError):
    """Raised when an action breaks a rule of the current game state."""

    category = "legality"


class ResourceError(RoomError):
    """Raised when a referenced room, player, card or pile does not exist."""

    category = "resource"


class RoomCapacityError(LegalityError):
    """Raised when the registry cannot hold another active room."""
